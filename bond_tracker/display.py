import logging

from bond_tracker.models import CURRENCIES, REFERENCE_CURRENCY, CalculatedPortfolio, Transaction

logger = logging.getLogger(__name__)


def display_portfolio(
    portfolio: CalculatedPortfolio,
    annual_return: float | None = None,
    total_value_reference: float | None = None,
) -> None:
    """
    Display cash balances and open positions in formatted ASCII tables.

    Args:
        portfolio: Calculated portfolio to display
        annual_return: Optional XIRR percentage shown in the summary
        total_value_reference: Optional total value converted to the reference currency
    """
    print("\n╔═══════════════════════════════════════════════════════╗")
    print("║                   PORTFOLIO SUMMARY                   ║")
    print("╠══════════╦═══════════════════╦════════════════════════╣")
    print("║ Currency ║ Cash Balance      ║ Total Value            ║")
    print("╠══════════╬═══════════════════╬════════════════════════╣")
    for currency in CURRENCIES:
        print(
            f"║ {currency:<8} ║ {portfolio.balances[currency]:17.2f} ║ "
            f"{portfolio.total_value[currency]:22.2f} ║"
        )
    print("╚══════════╩═══════════════════╩════════════════════════╝")

    if not portfolio.securities:
        print("\nNo open positions.")
    else:
        print("\n╔═════════════════╦══════════╦═══════════╦═════╦════════════╦════════════╦═════════╗")
        print("║ Symbol          ║ Quantity ║ Avg Price ║ Cur ║ Invested   ║ P&L        ║ Coupon% ║")
        print("╠═════════════════╬══════════╬═══════════╬═════╬════════════╬════════════╬═════════╣")

        # Sort securities by invested amount (descending)
        sorted_securities = sorted(portfolio.securities, key=lambda s: s.total_invested, reverse=True)
        for security in sorted_securities:
            symbol_display = security.symbol
            if len(symbol_display) > 15:
                symbol_display = symbol_display[:14] + "…"
            coupon = f"{security.coupon_rate:6.2f}%" if security.coupon_rate is not None else "      -"

            print(
                f"║ {symbol_display:<15} ║ "
                f"{security.quantity:8.2f} ║ "
                f"{security.average_price:9.2f} ║ "
                f"{security.currency:<3} ║ "
                f"{security.total_invested:10.2f} ║ "
                f"{security.unrealized_pnl:10.2f} ║ "
                f"{coupon} ║"
            )
        print("╚═════════════════╩══════════╩═══════════╩═════╩════════════╩════════════╩═════════╝")

    print("\nSUMMARY:")
    print(f"Total deposited: {portfolio.total_deposited:.2f} {REFERENCE_CURRENCY}")
    if total_value_reference is not None:
        print(f"Total value: {total_value_reference:.2f} {REFERENCE_CURRENCY}")
    if annual_return is not None:
        print(f"Annualized return (XIRR): {annual_return:.2f}%")
    print(f"Last updated: {portfolio.last_updated}")


def display_breakdown(breakdown: dict[str, dict[str, float]]) -> None:
    """Display invested cost and expected coupon income per currency."""
    print("\n╔══════════╦════════════════╦════════════════╦═══════╗")
    print("║ Currency ║ Invested       ║ Monthly Income ║ Count ║")
    print("╠══════════╬════════════════╬════════════════╬═══════╣")
    for currency, entry in breakdown.items():
        if not entry["count"]:
            continue
        print(
            f"║ {currency:<8} ║ {entry['total']:14.2f} ║ "
            f"{entry['monthly_income']:14.2f} ║ {int(entry['count']):5} ║"
        )
    print("╚══════════╩════════════════╩════════════════╩═══════╝")


def display_transactions(transactions: list[Transaction]) -> None:
    """Display one line per transaction, newest first as supplied."""
    if not transactions:
        print("No transactions to display.")
        return

    for t in transactions:
        if t.security is not None:
            detail = (
                f"{t.security.symbol} {t.security.quantity:g} @ {t.security.price:.2f} "
                f"{t.security.currency}"
            )
        else:
            detail = ""
        if t.cash is not None:
            detail = f"{detail} {t.cash.amount:.2f} {t.cash.currency}".strip()
        if t.fee:
            detail = f"{detail} (fee {t.fee:.2f})"
        print(f"{t.date:<20} {t.type:<9} {t.broker:<9} {detail}  [{t.id}]")
