"""Inventory Ledger - on-hand quantities per (storage location, item).

The reconciliation service talks to stock through the InventoryLedger
interface so it can be exercised against any store. SessionInventoryLedger
is the database implementation; every call runs inside the caller's session
and therefore inside the caller's transaction.

Ledger rules:
- A row is created on the first increment for a (location, item) pair
- A decrement that lands exactly on zero deletes the row
- A decrement that would go below zero raises InventoryUnderflow and
  changes nothing
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional

from sqlalchemy.orm import Session

from ..models import InventoryItem, StorageLocation
from .exceptions import InventoryUnderflow, ValidationError as ServiceValidationError
from .logging_utils import get_service_logger

logger = get_service_logger(__name__)


class InventoryLedger(ABC):
    """Interface for reading and adjusting on-hand stock."""

    @abstractmethod
    def get(self, storage_location_id: int, item_id: int) -> Optional[int]:
        """Units on hand, or None when there is no record for the pair."""

    @abstractmethod
    def increment(self, storage_location_id: int, item_id: int, amount: int) -> int:
        """Add amount units, creating the record if needed. Returns the new quantity."""

    @abstractmethod
    def decrement(self, storage_location_id: int, item_id: int, amount: int) -> int:
        """Remove amount units, deleting the record at zero. Returns the new quantity."""

    @abstractmethod
    def delete(self, storage_location_id: int, item_id: int) -> None:
        """Delete the record for the pair, if any."""


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ServiceValidationError([f"Ledger adjustment must be a positive whole number, got {amount!r}"])


class SessionInventoryLedger(InventoryLedger):
    """
    InventoryLedger backed by InventoryItem rows.

    Rows are read with SELECT ... FOR UPDATE so concurrent reconciliations
    against the same (location, item) pair serialize on databases that
    support row locks.

    Args:
        session: Active database session owned by the caller
    """

    def __init__(self, session: Session):
        self._session = session

    def _find(self, storage_location_id: int, item_id: int) -> Optional[InventoryItem]:
        return (
            self._session.query(InventoryItem)
            .filter(
                InventoryItem.storage_location_id == storage_location_id,
                InventoryItem.item_id == item_id,
            )
            .with_for_update()
            .first()
        )

    def get(self, storage_location_id: int, item_id: int) -> Optional[int]:
        row = self._find(storage_location_id, item_id)
        return row.quantity if row is not None else None

    def increment(self, storage_location_id: int, item_id: int, amount: int) -> int:
        _check_amount(amount)
        row = self._find(storage_location_id, item_id)
        if row is None:
            row = InventoryItem(
                storage_location_id=storage_location_id, item_id=item_id, quantity=0
            )
            location = self._session.get(StorageLocation, storage_location_id)
            if location is not None:
                # keeps a loaded StorageLocation.inventory_items current
                row.storage_location = location
            self._session.add(row)
            logger.debug(
                f"Created inventory record for item {item_id} at location {storage_location_id}"
            )
        row.quantity += amount
        self._session.flush()
        return row.quantity

    def decrement(self, storage_location_id: int, item_id: int, amount: int) -> int:
        _check_amount(amount)
        row = self._find(storage_location_id, item_id)
        on_hand = row.quantity if row is not None else 0
        if amount > on_hand:
            raise InventoryUnderflow(storage_location_id, item_id, on_hand, amount)

        remaining = on_hand - amount
        if remaining == 0:
            self._delete_row(row)
        else:
            row.quantity = remaining
        self._session.flush()
        return remaining

    def delete(self, storage_location_id: int, item_id: int) -> None:
        row = self._find(storage_location_id, item_id)
        if row is not None:
            self._delete_row(row)
            self._session.flush()

    def _delete_row(self, row: InventoryItem) -> None:
        location = row.storage_location
        if location is not None and row in location.inventory_items:
            # delete-orphan cascade deletes the row at flush
            location.inventory_items.remove(row)
        else:
            self._session.delete(row)
        logger.debug(
            f"Deleted inventory record for item {row.item_id} "
            f"at location {row.storage_location_id}"
        )

    def get_inventory(self, storage_location_id: int) -> Dict[int, int]:
        """Mapping of item id to on-hand quantity at a location."""
        rows = (
            self._session.query(InventoryItem)
            .filter(InventoryItem.storage_location_id == storage_location_id)
            .order_by(InventoryItem.item_id)
            .all()
        )
        return {row.item_id: row.quantity for row in rows}
