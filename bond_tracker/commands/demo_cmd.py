"""Demo data command implementation."""

import argparse
import logging
from typing import override

from bond_tracker.commands.base import Command, CommandRegistry
from bond_tracker.config import AppConfig
from bond_tracker.container import ServiceContainer
from bond_tracker.db import Database
from bond_tracker.demo_data import DEMO_TRANSACTIONS
from bond_tracker.repositories.transaction_repository import TransactionRepository

logger = logging.getLogger(__name__)


@CommandRegistry.register
class DemoCommand(Command):
    """Command to seed the transaction store with demo data."""

    name: str = "demo"
    help: str = "Load demo transactions into an empty store"

    def __init__(self, config: AppConfig, db: Database, container: ServiceContainer):
        super().__init__(config, db, container)

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        _ = parser.add_argument(
            "--force",
            action="store_true",
            help="Replace existing transactions with the demo data",
        )

    @override
    def execute(self, args: argparse.Namespace) -> int:
        transaction_repo: TransactionRepository = self.container.get_repository(
            TransactionRepository
        )

        existing = transaction_repo.load()
        if existing and not args.force:
            print(f"Store already holds {len(existing)} transactions. Use --force to replace them.")
            return 1

        transaction_repo.save(DEMO_TRANSACTIONS)
        logger.info(f"Seeded {len(DEMO_TRANSACTIONS)} demo transactions")
        print(f"Loaded {len(DEMO_TRANSACTIONS)} demo transactions.")
        return 0
