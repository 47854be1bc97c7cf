import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime

from bond_tracker.exceptions import UnknownCurrencyError
from bond_tracker.models import (
    CURRENCIES,
    CurrencyBalances,
    Security,
    SecurityPosition,
    Transaction,
    empty_balances,
)
from bond_tracker.utils.date_utils import parse_transaction_date

logger: logging.Logger = logging.getLogger(__name__)


@dataclass
class Holdings:
    """Cash ledgers and per-symbol positions folded from a transaction list."""

    deposits: CurrencyBalances = field(default_factory=empty_balances)
    withdrawals: CurrencyBalances = field(default_factory=empty_balances)
    income: CurrencyBalances = field(default_factory=empty_balances)
    purchases: CurrencyBalances = field(default_factory=empty_balances)
    positions: dict[str, SecurityPosition] = field(default_factory=dict)

    def net_cash(self) -> CurrencyBalances:
        return {
            c: self.deposits[c] - self.withdrawals[c] + self.income[c] - self.purchases[c]
            for c in CURRENCIES
        }

    def total_value(self) -> CurrencyBalances:
        """Capital attributable to the investor, whether held as cash or securities."""
        return {c: self.deposits[c] - self.withdrawals[c] + self.income[c] for c in CURRENCIES}

    def open_positions(self) -> Iterator[SecurityPosition]:
        return (p for p in self.positions.values() if p.quantity > 0)


def _check_currency(currency: str) -> str:
    if currency not in CURRENCIES:
        raise UnknownCurrencyError(currency)
    return currency


def sort_chronologically(transactions: Iterable[Transaction]) -> list[Transaction]:
    """
    Order transactions by date, oldest first, dropping any whose date cannot be parsed.

    The sort is stable, so same-timestamp records keep their input order.
    """
    dated: list[tuple[datetime, Transaction]] = []
    for transaction in transactions:
        try:
            dated.append((parse_transaction_date(transaction.date), transaction))
        except ValueError as e:
            logger.warning(f"Skipping transaction {transaction.id}: {e}")
    dated.sort(key=lambda item: item[0])
    return [transaction for _, transaction in dated]


def _get_or_create_position(holdings: Holdings, security: Security) -> SecurityPosition:
    position = holdings.positions.get(security.symbol)
    if position is None:
        position = SecurityPosition(
            symbol=security.symbol,
            name=security.name,
            type=security.type,
            currency=security.currency,
            company_name=security.company_name,
            coupon_rate=security.coupon_rate,
            maturity_date=security.maturity_date,
        )
        holdings.positions[security.symbol] = position
        logger.debug(f"Opened position for {security.symbol}")
    return position


def _reduce_position(position: SecurityPosition, quantity: float, transaction: Transaction) -> None:
    """Remove units at the average cost held before the reduction, never going below zero."""
    avg_cost = position.average_price
    if quantity > position.quantity:
        logger.warning(
            f"Transaction {transaction.id} {transaction.type}s {quantity} units of "
            f"{position.symbol} but only {position.quantity} are held; clamping to zero"
        )
    position.quantity = max(0.0, position.quantity - quantity)
    position.total_cost = max(0.0, position.total_cost - quantity * avg_cost)


def apply_transaction(holdings: Holdings, transaction: Transaction) -> None:
    """Fold a single transaction into the running holdings."""
    cash = transaction.cash
    security = transaction.security
    kind = transaction.type

    if cash is not None:
        currency = _check_currency(cash.currency)
        if kind == "deposit":
            holdings.deposits[currency] += cash.amount
        elif kind == "debit":
            holdings.withdrawals[currency] += cash.amount
        elif kind in ("coupon", "dividend"):
            holdings.income[currency] += cash.amount

    if security is None:
        if kind == "credit":
            logger.debug(f"Ignoring credit transaction {transaction.id}")
        return

    _check_currency(security.currency)
    position = _get_or_create_position(holdings, security)

    if kind == "buy":
        cost = security.quantity * security.price + transaction.fee
        position.quantity += security.quantity
        position.total_cost += cost
        holdings.purchases[security.currency] += cost
        if position.first_buy is None:
            position.first_buy = transaction
    elif kind in ("sell", "maturity"):
        _reduce_position(position, security.quantity, transaction)
    elif kind == "coupon" and cash is not None:
        position.coupons_received += cash.amount


def aggregate_holdings(transactions: Iterable[Transaction]) -> Holdings:
    """
    Fold a transaction list (any order) into cash ledgers and average-cost positions.

    Args:
        transactions: Snapshot of the full transaction history

    Returns:
        A new Holdings instance

    Raises:
        UnknownCurrencyError: If any record carries an unsupported currency
    """
    holdings = Holdings()
    ordered = sort_chronologically(transactions)
    for transaction in ordered:
        apply_transaction(holdings, transaction)

    logger.debug(
        f"Aggregated {len(ordered)} transactions into {len(holdings.positions)} positions"
    )
    return holdings
