"""
Service container for dependency injection.

This module defines a container that manages the creation and lifecycle of
service objects, repository objects, and other application components.
"""

import logging
from typing import TypeVar, cast

from bond_tracker.config import AppConfig
from bond_tracker.db import Database
from bond_tracker.repositories.transaction_repository import TransactionRepository
from bond_tracker.services.currency_service import CurrencyService
from bond_tracker.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ServiceContainer:
    """
    Container for application services and repositories.

    The portfolio engine itself is stateless; the container only wires the
    transaction store and the configured exchange rates into it.
    """

    def __init__(self, config: AppConfig, db: Database):
        """
        Initialise the service container.

        Args:
            config: Application configuration
            db: Database connection
        """
        self.config = config
        self.db = db
        self._repositories: dict[type, object] = {}
        self._services: dict[type, object] = {}

        self._init_repositories()
        self._init_services()

    def _init_repositories(self) -> None:
        """Initialise all repositories."""
        self._repositories[TransactionRepository] = TransactionRepository(self.db)

    def _init_services(self) -> None:
        """Initialise all services."""
        currency_service = CurrencyService(self.config.fx_rates)
        self._services[CurrencyService] = currency_service

        transaction_repo: TransactionRepository = self.get_repository(TransactionRepository)
        self._services[PortfolioService] = PortfolioService(transaction_repo, currency_service)

    def get_repository(self, repo_type: type[T]) -> T:
        """
        Get a repository instance by type.

        Raises:
            KeyError: If repository type is not registered
        """
        if repo_type not in self._repositories:
            raise KeyError(f"Repository {repo_type.__name__} not registered")

        return cast(T, self._repositories[repo_type])

    def get_service(self, service_type: type[T]) -> T:
        """
        Get a service instance by type.

        Raises:
            KeyError: If service type is not registered
        """
        if service_type not in self._services:
            raise KeyError(f"Service {service_type.__name__} not registered")

        return cast(T, self._services[service_type])
