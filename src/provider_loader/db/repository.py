"""Repository for persisting provider records.

Every data operation raises :class:`DatabaseNotImplementedError` until the
database layer is written.
"""

import logging
from typing import List

from ..config.models import DatabaseConfig, DatabaseStats, ProviderRecord
from ..utils.error_handler import NotImplementedFeatureError


logger = logging.getLogger(__name__)


class DatabaseError(Exception):
    """Base exception for database operations."""
    pass


class DatabaseNotImplementedError(NotImplementedFeatureError, DatabaseError):
    """Raised by repository operations that are not implemented yet."""
    pass


class ProviderRepository:
    """Provider persistence to the relational store."""

    def __init__(self, config: DatabaseConfig):
        self.db_url = config.url
        self.db_username = config.username
        self.db_password = config.password
        self.db_driver = config.driver
        logger.info("Provider Repository initialized (persistence not implemented)")

    def connect(self) -> None:
        """Open the database connection.

        Raises:
            DatabaseNotImplementedError: Always
        """
        logger.warning("Database connection not yet implemented - stub method called")
        logger.info(f"Would connect to database: {self.db_url}")
        raise DatabaseNotImplementedError("Database connection")

    def disconnect(self) -> None:
        """Close the database connection. Safe during cleanup."""
        logger.debug("No database connection to close")

    def is_connected(self) -> bool:
        """Always False while there is no connection layer."""
        return False

    def save_provider(self, provider: ProviderRecord) -> None:
        """Insert or update one provider with its locations and specialties.

        Raises:
            DatabaseNotImplementedError: Always
        """
        logger.warning("Provider save not yet implemented - stub method called")
        logger.info(f"Would save provider: {provider.provider_id}")
        raise DatabaseNotImplementedError("Provider save")

    def save_providers(self, providers: List[ProviderRecord]) -> None:
        """Insert or update a batch of providers in one transaction.

        Raises:
            DatabaseNotImplementedError: Always
        """
        logger.warning("Batch provider save not yet implemented - stub method called")
        logger.info(f"Would save {len(providers)} providers")
        raise DatabaseNotImplementedError("Batch provider save")

    def provider_exists(self, provider_id: str) -> bool:
        """Check whether a provider id is already stored."""
        logger.warning("Provider existence check not yet implemented - stub method called")
        logger.info(f"Would check if provider exists: {provider_id}")
        raise DatabaseNotImplementedError("Provider existence check")

    def update_provider(self, provider: ProviderRecord) -> None:
        logger.warning("Provider update not yet implemented - stub method called")
        logger.info(f"Would update provider: {provider.provider_id}")
        raise DatabaseNotImplementedError("Provider update")

    def delete_provider(self, provider_id: str) -> None:
        """Delete a provider, cascading to its locations and specialties.

        Raises:
            DatabaseNotImplementedError: Always
        """
        logger.warning("Provider deletion not yet implemented - stub method called")
        logger.info(f"Would delete provider: {provider_id}")
        raise DatabaseNotImplementedError("Provider deletion")

    def get_stats(self) -> DatabaseStats:
        logger.warning("Database stats not yet implemented - stub method called")
        raise DatabaseNotImplementedError("Database stats")

    def is_healthy(self) -> bool:
        """Report database health. Always False while there is no connection layer."""
        logger.debug("Checking database health")
        return False
