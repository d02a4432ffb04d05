"""Persistent single-slot storage for the current rate table."""

import logging

from sqlalchemy.exc import SQLAlchemyError

from fintrack.database.base import Database
from fintrack.domain.entities import RateTable
from fintrack.domain.errors import NotFoundError, RateStoreError

logger = logging.getLogger(__name__)


class RateStore:
    """Load and save the last saved rate table.

    There is exactly one slot and no versioning. Concurrent saves are not
    coordinated: the last writer wins.
    """

    def __init__(self, db: Database):
        """Initialize rate store.

        Args:
            db: Database instance
        """
        self.db = db

    def load(self) -> RateTable:
        """Return the stored rate table.

        Raises:
            NotFoundError: If no table has ever been saved
            RateStoreError: If the database could not be read
        """
        try:
            table = self.db.get_conversion_rates()
        except SQLAlchemyError as e:
            raise RateStoreError(f"Could not read stored rates: {e}") from e
        if table is None:
            raise NotFoundError("No stored conversion rates")
        return table

    def save(self, table: RateTable) -> None:
        """Overwrite the stored rate table.

        Raises:
            RateStoreError: If the database write failed
        """
        try:
            self.db.save_conversion_rates(table)
        except SQLAlchemyError as e:
            logger.error("Saving conversion rates failed: %s", e)
            raise RateStoreError(f"Could not save rates: {e}") from e
        logger.info(
            "Saved %d conversion rates (last updated %s)",
            len(table.rates),
            table.last_updated.isoformat(),
        )
