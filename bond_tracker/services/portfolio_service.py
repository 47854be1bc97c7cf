import logging
from collections.abc import Sequence
from datetime import datetime

from bond_tracker.models import (
    CURRENCIES,
    CalculatedPortfolio,
    CalculatedSecurity,
    CurrencyBalances,
    SecurityPosition,
    Transaction,
)
from bond_tracker.repositories.transaction_repository import TransactionRepository
from bond_tracker.services.cash_flow_service import extract_cash_flows
from bond_tracker.services.currency_service import CurrencyService
from bond_tracker.services.holdings_service import Holdings, aggregate_holdings
from bond_tracker.services.xirr import annualized_return
from bond_tracker.utils.name_parsing import extract_coupon_rate, extract_maturity_date

logger: logging.Logger = logging.getLogger(__name__)


def _resolve_coupon_rate(position: SecurityPosition) -> float | None:
    if position.coupon_rate is not None:
        return position.coupon_rate
    buy = position.first_buy
    if buy is not None and buy.security is not None and buy.security.coupon_rate is not None:
        return buy.security.coupon_rate
    return extract_coupon_rate(position.name)


def _resolve_maturity_date(position: SecurityPosition) -> str | None:
    if position.maturity_date:
        return position.maturity_date
    buy = position.first_buy
    if buy is not None and buy.security is not None and buy.security.maturity_date:
        return buy.security.maturity_date
    return extract_maturity_date(position.name)


def calculate_security(position: SecurityPosition) -> CalculatedSecurity:
    """Build the reporting view of an open position (quantity must be positive)."""
    average_price = position.total_cost / position.quantity
    current_value = position.quantity * average_price
    coupon_rate = _resolve_coupon_rate(position)
    monthly_income = (
        position.total_cost * coupon_rate / 100 / 12 if coupon_rate is not None else None
    )

    company_name = position.company_name
    if company_name is None and position.first_buy and position.first_buy.security:
        company_name = position.first_buy.security.company_name

    return CalculatedSecurity(
        symbol=position.symbol,
        name=position.name,
        type=position.type,
        quantity=position.quantity,
        average_price=average_price,
        currency=position.currency,
        current_value=current_value,
        total_invested=position.total_cost,
        unrealized_pnl=current_value - position.total_cost + position.coupons_received,
        company_name=company_name,
        coupon_rate=coupon_rate,
        maturity_date=_resolve_maturity_date(position),
        monthly_income=monthly_income,
    )


def assemble_portfolio(
    holdings: Holdings, converter: CurrencyService, now: datetime | None = None
) -> CalculatedPortfolio:
    """Combine aggregated holdings into a fresh CalculatedPortfolio."""
    if now is None:
        now = datetime.now()

    securities = [calculate_security(position) for position in holdings.open_positions()]

    return CalculatedPortfolio(
        balances=holdings.net_cash(),
        securities=securities,
        total_value=holdings.total_value(),
        total_deposited=converter.sum_balances(holdings.deposits),
        last_updated=now.isoformat(),
    )


class PortfolioService:
    """Service for portfolio-level calculations over the stored transaction history."""

    def __init__(self, transaction_repo: TransactionRepository, currency_service: CurrencyService):
        self.transaction_repo = transaction_repo
        self.currency_service = currency_service

    def _snapshot(self, transactions: Sequence[Transaction] | None) -> list[Transaction]:
        if transactions is None:
            return self.transaction_repo.load()
        return list(transactions)

    def calculate_portfolio(
        self, transactions: Sequence[Transaction] | None = None, now: datetime | None = None
    ) -> CalculatedPortfolio:
        """
        Calculate balances, open positions and totals for the portfolio.

        Args:
            transactions: Transactions to use instead of the stored history
            now: Timestamp recorded as last_updated (defaults to now)

        Returns:
            A newly built CalculatedPortfolio
        """
        snapshot = self._snapshot(transactions)
        holdings = aggregate_holdings(snapshot)
        portfolio = assemble_portfolio(holdings, self.currency_service, now)
        logger.info(
            f"Calculated portfolio from {len(snapshot)} transactions: "
            f"{len(portfolio.securities)} open positions"
        )
        return portfolio

    def calculate_portfolio_return(
        self, transactions: Sequence[Transaction] | None = None, now: datetime | None = None
    ) -> float:
        """
        Calculate the annualized money-weighted return as a percentage.

        Returns:
            XIRR * 100, or 0.0 when the cash flows do not allow a result
        """
        snapshot = self._snapshot(transactions)
        cash_flows = extract_cash_flows(snapshot, self.currency_service, now)
        return annualized_return(cash_flows)

    def calculate_security_breakdown(
        self, transactions: Sequence[Transaction] | None = None
    ) -> dict[str, dict[str, float]]:
        """Invested cost, monthly income and position count of open positions, per currency."""
        portfolio = self.calculate_portfolio(transactions)

        breakdown: dict[str, dict[str, float]] = {}
        for currency in CURRENCIES:
            breakdown[currency] = {"total": 0.0, "monthly_income": 0.0, "count": 0}
        for security in portfolio.securities:
            entry = breakdown[security.currency]
            entry["total"] += security.total_invested
            entry["monthly_income"] += security.monthly_income or 0.0
            entry["count"] += 1

        return breakdown

    def total_in_reference(self, balances: CurrencyBalances) -> float:
        """Sum per-currency balances into one reference-currency figure."""
        return self.currency_service.sum_balances(balances)
