"""Report command implementation."""

import argparse
import logging
from typing import override

from bond_tracker.commands.base import Command, CommandRegistry
from bond_tracker.config import AppConfig
from bond_tracker.container import ServiceContainer
from bond_tracker.db import Database
from bond_tracker.display import display_breakdown, display_portfolio
from bond_tracker.exceptions import UnknownCurrencyError
from bond_tracker.models import CalculatedPortfolio
from bond_tracker.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)


@CommandRegistry.register
class ReportCommand(Command):
    """Command to generate reports."""

    name: str = "report"
    help: str = "Generate reports"

    def __init__(self, config: AppConfig, db: Database, container: ServiceContainer):
        """Initialise the command with config, database connection, and service container."""
        super().__init__(config, db, container)

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        """Configure the argument parser for the report command."""
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        _ = parser.add_argument(
            "type",
            choices=["portfolio", "yield", "breakdown"],
            help="Type of report to generate",
        )

    @override
    def execute(self, args: argparse.Namespace) -> int:
        """Execute the report command."""
        report_type: str = str(args.type)

        portfolio_service: PortfolioService = self.container.get_service(PortfolioService)

        try:
            # One snapshot per report so every figure comes from the same history
            transactions = portfolio_service.transaction_repo.load()

            if report_type == "portfolio":
                print("Generating portfolio report...")
                portfolio: CalculatedPortfolio = portfolio_service.calculate_portfolio(transactions)
                annual_return = portfolio_service.calculate_portfolio_return(transactions)
                total_value = portfolio_service.total_in_reference(portfolio.total_value)
                display_portfolio(portfolio, annual_return, total_value)

            elif report_type == "yield":
                annual_return = portfolio_service.calculate_portfolio_return(transactions)
                print(f"Annualized return (XIRR): {annual_return:.2f}%")

            elif report_type == "breakdown":
                print("Generating breakdown by currency...")
                display_breakdown(portfolio_service.calculate_security_breakdown(transactions))

            return 0
        except UnknownCurrencyError as e:
            logger.error(f"Transaction history contains an unsupported currency: {e}", exc_info=True)
            print(f"Error: {e}. Fix the offending transaction and try again.")
            return 1
        except Exception as e:
            logger.error(f"Error generating report: {e}", exc_info=True)
            print(f"Error: Failed to generate {report_type} report: {e}")
            return 1
