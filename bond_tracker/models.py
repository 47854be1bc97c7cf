from dataclasses import dataclass, replace
from datetime import datetime

from bond_tracker.utils.date_utils import parse_transaction_date

CURRENCIES: tuple[str, ...] = ("BYN", "USD", "EUR", "RUB")
REFERENCE_CURRENCY: str = "USD"

TRANSACTION_TYPES: tuple[str, ...] = (
    "buy",
    "sell",
    "coupon",
    "maturity",
    "deposit",
    "credit",
    "debit",
    "dividend",
)
BROKERS: tuple[str, ...] = ("finstore", "freedom")
SECURITY_TYPES: tuple[str, ...] = ("bond", "stock", "etf")

# Currency code -> running total
CurrencyBalances = dict[str, float]


def empty_balances() -> CurrencyBalances:
    return {currency: 0.0 for currency in CURRENCIES}


@dataclass(frozen=True)
class Security:
    symbol: str
    name: str
    quantity: float
    price: float
    currency: str
    type: str = "bond"
    company_name: str | None = None
    nominal_value: float | None = None
    coupon_rate: float | None = None
    maturity_date: str | None = None


@dataclass(frozen=True)
class CashAmount:
    amount: float
    currency: str


@dataclass(frozen=True)
class Transaction:
    id: str | None
    type: str
    date: str  # ISO-8601, as entered
    broker: str = "finstore"
    security: Security | None = None
    cash: CashAmount | None = None
    fee: float = 0.0
    note: str | None = None
    description: str | None = None

    def with_id(self, transaction_id: str) -> "Transaction":
        return replace(self, id=transaction_id)


@dataclass
class SecurityPosition:
    """
    Running aggregate of every transaction referencing one symbol.
    """

    symbol: str
    name: str
    type: str
    currency: str
    quantity: float = 0.0
    total_cost: float = 0.0  # Native currency, fees included
    coupons_received: float = 0.0
    company_name: str | None = None
    coupon_rate: float | None = None
    maturity_date: str | None = None
    first_buy: Transaction | None = None

    @property
    def average_price(self) -> float:
        if self.quantity <= 0:
            return 0.0
        return self.total_cost / self.quantity


@dataclass(frozen=True)
class CashFlow:
    date: datetime
    amount: float  # Reference currency, negative = money invested


@dataclass
class CalculatedSecurity:
    """
    Reporting view of an open position.
    """

    symbol: str
    name: str
    type: str
    quantity: float
    average_price: float
    currency: str
    current_value: float
    total_invested: float
    unrealized_pnl: float
    company_name: str | None = None
    coupon_rate: float | None = None
    maturity_date: str | None = None
    monthly_income: float | None = None


@dataclass
class CalculatedPortfolio:
    """
    Aggregated state of the whole portfolio, rebuilt from scratch on every calculation.
    """

    balances: CurrencyBalances
    securities: list[CalculatedSecurity]
    total_value: CurrencyBalances
    total_deposited: float
    last_updated: str


@dataclass
class TransactionFilters:
    type: str | None = None
    broker: str | None = None
    currency: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None

    def matches(self, transaction: Transaction) -> bool:
        if self.type and transaction.type != self.type:
            return False
        if self.broker and transaction.broker != self.broker:
            return False
        if self.currency:
            currencies = {
                t.currency for t in (transaction.cash, transaction.security) if t is not None
            }
            if self.currency not in currencies:
                return False
        if self.date_from or self.date_to:
            try:
                when = parse_transaction_date(transaction.date)
            except ValueError:
                return False
            if self.date_from and when < self.date_from:
                return False
            if self.date_to and when > self.date_to:
                return False
        return True
