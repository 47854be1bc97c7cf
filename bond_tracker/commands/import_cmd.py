"""Import command implementation."""

import argparse
import logging
from pathlib import Path
from typing import override

from bond_tracker.commands.base import Command, CommandRegistry
from bond_tracker.config import AppConfig
from bond_tracker.container import ServiceContainer
from bond_tracker.db import Database
from bond_tracker.importer import import_transactions
from bond_tracker.repositories.transaction_repository import TransactionRepository

logger = logging.getLogger(__name__)


@CommandRegistry.register
class ImportCommand(Command):
    """Command to import transactions from a CSV file."""

    name: str = "import"
    help: str = "Import transactions from CSV"

    def __init__(self, config: AppConfig, db: Database, container: ServiceContainer):
        """Initialise the command with config and database connection."""
        super().__init__(config, db, container)

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        """Configure the argument parser for the import command."""
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        _ = parser.add_argument(
            "file",
            nargs="?",
            help="CSV file to import (defaults to config.csv_path if not specified)",
        )

    @override
    def execute(self, args: argparse.Namespace) -> int:
        """Execute the import command."""
        csv_path: Path = Path(args.file) if args.file else self.config.csv_path

        if not csv_path.exists():
            logger.error(f"CSV file not found: {csv_path}")
            print(f"Error: CSV file not found: {csv_path}")
            return 1

        transaction_repo: TransactionRepository = self.container.get_repository(
            TransactionRepository
        )

        logger.info(f"Importing transactions from {csv_path}")
        print(f"Importing transactions from {csv_path}...")

        try:
            imported = import_transactions(csv_path, transaction_repo)
            print(f"Import completed: {imported} transactions imported.")
            return 0
        except Exception as e:
            logger.error(f"Import failed: {e}", exc_info=True)
            print(f"Error: Import failed: {e}")
            return 1
