import logging
from collections.abc import Iterable, Mapping

from bond_tracker.exceptions import UnknownCurrencyError
from bond_tracker.models import CURRENCIES, REFERENCE_CURRENCY, CurrencyBalances

logger: logging.Logger = logging.getLogger(__name__)

# Units of the reference currency (USD) per unit of each currency
DEFAULT_RATES: dict[str, float] = {
    "USD": 1.0,
    "BYN": 0.31,
    "EUR": 1.05,
    "RUB": 0.011,
}


class CurrencyService:
    """Fixed-rate conversion between the supported currencies, pivoting through USD."""

    def __init__(self, rates: Mapping[str, float] | None = None):
        table: dict[str, float] = dict(DEFAULT_RATES if rates is None else rates)

        missing = [c for c in CURRENCIES if c not in table]
        if missing:
            raise ValueError(f"Missing exchange rates for: {', '.join(missing)}")
        for currency, rate in table.items():
            if currency not in CURRENCIES:
                raise UnknownCurrencyError(currency)
            if rate <= 0:
                raise ValueError(f"Exchange rate for {currency} must be positive, got {rate}")
        if table[REFERENCE_CURRENCY] != 1.0:
            raise ValueError(f"Reference currency {REFERENCE_CURRENCY} must have a rate of 1.0")

        self.rates: dict[str, float] = table
        logger.debug(f"Currency service initialised with rates: {self.rates}")

    def _rate(self, currency: str) -> float:
        try:
            return self.rates[currency]
        except (KeyError, TypeError):
            raise UnknownCurrencyError(currency) from None

    def to_reference(self, amount: float, currency: str) -> float:
        rate = self._rate(currency)
        if currency == REFERENCE_CURRENCY:
            return amount
        return amount * rate

    def from_reference(self, amount: float, currency: str) -> float:
        rate = self._rate(currency)
        if currency == REFERENCE_CURRENCY:
            return amount
        return amount / rate

    def convert(self, amount: float, from_currency: str, to_currency: str) -> float:
        """Convert an amount between two currencies via the reference currency."""
        # Both codes are validated even on the identity path
        self._rate(from_currency)
        self._rate(to_currency)
        if from_currency == to_currency:
            return amount
        return self.from_reference(self.to_reference(amount, from_currency), to_currency)

    def get_exchange_rate(self, from_currency: str, to_currency: str) -> float:
        return self.convert(1.0, from_currency, to_currency)

    def sum_as_reference(self, amounts: Iterable[tuple[float, str]]) -> float:
        return sum(self.to_reference(amount, currency) for amount, currency in amounts)

    def sum_balances(self, balances: CurrencyBalances) -> float:
        """Total a per-currency balance mapping in the reference currency."""
        return self.sum_as_reference((amount, currency) for currency, amount in balances.items())
