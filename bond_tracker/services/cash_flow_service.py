import logging
from collections.abc import Sequence
from datetime import datetime

from bond_tracker.models import CashFlow, Transaction
from bond_tracker.services.currency_service import CurrencyService
from bond_tracker.services.holdings_service import aggregate_holdings
from bond_tracker.utils.date_utils import parse_transaction_date

logger: logging.Logger = logging.getLogger(__name__)

INFLOW_TYPES: tuple[str, ...] = ("debit", "coupon", "dividend")


def holdings_value(transactions: Sequence[Transaction], converter: CurrencyService) -> float:
    """Cost basis of every open position, in the reference currency."""
    holdings = aggregate_holdings(transactions)
    return converter.sum_as_reference(
        (position.total_cost, position.currency) for position in holdings.open_positions()
    )


def extract_cash_flows(
    transactions: Sequence[Transaction],
    converter: CurrencyService,
    now: datetime | None = None,
) -> list[CashFlow]:
    """
    Turn a transaction list into dated, signed flows in the reference currency.

    Deposits are negative (money put in), withdrawals and income are positive.
    Securities contribute one terminal flow dated `now`: their combined cost
    basis, as if liquidated today.

    Returns:
        Flows sorted by date, or an empty list when fewer than two exist
    """
    if now is None:
        now = datetime.now()

    flows: list[CashFlow] = []
    for transaction in transactions:
        cash = transaction.cash
        if cash is None:
            continue
        if transaction.type == "deposit":
            sign = -1.0
        elif transaction.type in INFLOW_TYPES:
            sign = 1.0
        else:
            continue

        try:
            when = parse_transaction_date(transaction.date)
        except ValueError as e:
            logger.warning(f"Skipping cash flow for transaction {transaction.id}: {e}")
            continue

        amount = converter.to_reference(cash.amount, cash.currency)
        flows.append(CashFlow(date=when, amount=sign * amount))

    terminal_value = holdings_value(transactions, converter)
    if terminal_value > 0:
        flows.append(CashFlow(date=now, amount=terminal_value))

    if len(flows) < 2:
        logger.debug(f"Only {len(flows)} cash flows, return is not computable")
        return []

    flows.sort(key=lambda flow: flow.date)
    return flows
