"""Transactions command implementation."""

import argparse
import logging
from typing import override

from bond_tracker.commands.base import Command, CommandRegistry
from bond_tracker.config import AppConfig
from bond_tracker.container import ServiceContainer
from bond_tracker.db import Database
from bond_tracker.display import display_transactions
from bond_tracker.importer import parse_transaction_row, transaction_to_row
from bond_tracker.models import (
    BROKERS,
    CURRENCIES,
    SECURITY_TYPES,
    TRANSACTION_TYPES,
    Transaction,
    TransactionFilters,
)
from bond_tracker.repositories.transaction_repository import TransactionRepository
from bond_tracker.utils.date_utils import parse_end_date, parse_transaction_date

logger = logging.getLogger(__name__)

# Command-line option (argparse dest) -> transaction field as named in the CSV import
RECORD_OPTIONS: dict[str, str] = {
    "filter_type": "type",
    "date": "date",
    "broker": "broker",
    "symbol": "symbol",
    "name": "name",
    "security_type": "security_type",
    "quantity": "quantity",
    "price": "price",
    "amount": "amount",
    "fee": "fee",
    "coupon_rate": "coupon_rate",
    "maturity_date": "maturity_date",
    "company_name": "company_name",
    "note": "note",
    "description": "description",
}


def record_from_args(args: argparse.Namespace, base: dict[str, str] | None = None) -> Transaction:
    """
    Build a transaction from command-line options, layered over an existing record's fields.

    Raises:
        ValueError: If the resulting record fails the same validation as a CSV row
    """
    row_data: dict[str, str] = dict(base or {})
    for option, field_name in RECORD_OPTIONS.items():
        value = getattr(args, option, None)
        if value is not None:
            row_data[field_name] = str(value)
    if args.currency:
        row_data["currency"] = args.currency
        row_data["cash_currency"] = args.currency
    return parse_transaction_row(row_data)


@CommandRegistry.register
class TransactionsCommand(Command):
    """Command to list, record, edit and remove stored transactions."""

    name: str = "transactions"
    help: str = "List, add, edit or delete stored transactions"

    def __init__(self, config: AppConfig, db: Database, container: ServiceContainer):
        super().__init__(config, db, container)

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        """Configure the argument parser for the transactions command."""
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        _ = parser.add_argument("action", choices=["list", "add", "edit", "delete", "clear"])
        _ = parser.add_argument("id", nargs="?", help="Transaction id (for edit and delete)")

        # Shared by list (as filters) and add/edit (as record fields)
        _ = parser.add_argument("--type", dest="filter_type", choices=TRANSACTION_TYPES)
        _ = parser.add_argument("--broker", choices=BROKERS)
        _ = parser.add_argument("--currency", choices=CURRENCIES)
        _ = parser.add_argument("--symbol", help="Security symbol")

        filters = parser.add_argument_group("List filters")
        _ = filters.add_argument(
            "--from", dest="date_from", type=parse_transaction_date, help="ISO-8601 start date"
        )
        _ = filters.add_argument(
            "--to",
            dest="date_to",
            type=parse_end_date,
            help="ISO-8601 end date (a bare date includes the whole day)",
        )

        record = parser.add_argument_group("Record fields (add/edit)")
        _ = record.add_argument("--date", help="ISO-8601 transaction date")
        _ = record.add_argument("--name", help="Security name")
        _ = record.add_argument("--security-type", choices=SECURITY_TYPES)
        _ = record.add_argument("--quantity")
        _ = record.add_argument("--price", help="Price per unit")
        _ = record.add_argument("--amount", help="Cash amount (non-negative)")
        _ = record.add_argument("--fee")
        _ = record.add_argument("--coupon-rate", help="Annual coupon in percent")
        _ = record.add_argument("--maturity-date")
        _ = record.add_argument("--company-name")
        _ = record.add_argument("--note")
        _ = record.add_argument("--description")

    @override
    def execute(self, args: argparse.Namespace) -> int:
        """Execute the transactions command."""
        transaction_repo: TransactionRepository = self.container.get_repository(
            TransactionRepository
        )

        try:
            if args.action == "list":
                if args.symbol:
                    transactions = transaction_repo.get_by_security(args.symbol)
                elif args.filter_type:
                    transactions = transaction_repo.get_by_type(args.filter_type)
                else:
                    transactions = transaction_repo.load()
                filters = TransactionFilters(
                    type=args.filter_type,
                    broker=args.broker,
                    currency=args.currency,
                    date_from=args.date_from,
                    date_to=args.date_to,
                )
                display_transactions([t for t in transactions if filters.matches(t)])

            elif args.action == "add":
                stored = transaction_repo.add(record_from_args(args))
                logger.info(f"Recorded {stored.type} transaction {stored.id}")
                print(f"Added transaction {stored.id}")

            elif args.action in ("edit", "delete"):
                if not args.id:
                    print(f"Error: a transaction id is required for {args.action}")
                    return 1

                if args.action == "edit":
                    existing = transaction_repo.get_by_id(args.id)
                    if existing is None:
                        raise KeyError(f"Transaction {args.id} not found")
                    record = record_from_args(args, transaction_to_row(existing))
                    _ = transaction_repo.update(args.id, record)
                    print(f"Updated transaction {args.id}")
                else:
                    transaction_repo.delete(args.id)
                    print(f"Deleted transaction {args.id}")

            elif args.action == "clear":
                transaction_repo.delete_all()
                print("Deleted all transactions")

            return 0
        except KeyError as e:
            logger.error(f"Transaction not found: {e}")
            print(f"Error: {e}")
            return 1
        except ValueError as e:
            logger.error(f"Invalid transaction: {e}")
            print(f"Error: Invalid transaction: {e}")
            return 1
        except Exception as e:
            logger.error(f"Error running transactions {args.action}: {e}", exc_info=True)
            print(f"Error: {e}")
            return 1
