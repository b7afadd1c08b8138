"""Tests for the database-backed inventory ledger.

Tests cover:
- Lazy record creation on first increment
- Decrement to exactly zero deletes the record
- Underflow raises and leaves the record unchanged
- Non-positive adjustments rejected
"""

import pytest

from src.models import InventoryItem
from src.services.exceptions import InventoryUnderflow, ValidationError
from src.services.inventory_ledger import SessionInventoryLedger


@pytest.fixture
def ledger(db_session):
    return SessionInventoryLedger(db_session)


def _count(db_session, location_id):
    return db_session.query(InventoryItem).filter_by(storage_location_id=location_id).count()


class TestSessionInventoryLedger:
    """Tests for SessionInventoryLedger."""

    def test_get_absent(self, ledger, storage_location, items):
        assert ledger.get(storage_location.id, items[0].id) is None

    def test_increment_creates_record(self, ledger, db_session, storage_location, items):
        assert ledger.increment(storage_location.id, items[0].id, 5) == 5
        assert ledger.get(storage_location.id, items[0].id) == 5
        assert _count(db_session, storage_location.id) == 1

    def test_increment_existing(self, ledger, db_session, storage_location, items):
        ledger.increment(storage_location.id, items[0].id, 5)
        assert ledger.increment(storage_location.id, items[0].id, 3) == 8
        assert _count(db_session, storage_location.id) == 1

    def test_decrement(self, ledger, storage_location, items):
        ledger.increment(storage_location.id, items[0].id, 5)
        assert ledger.decrement(storage_location.id, items[0].id, 3) == 2
        assert ledger.get(storage_location.id, items[0].id) == 2

    def test_decrement_to_zero_deletes(self, ledger, db_session, storage_location, items):
        ledger.increment(storage_location.id, items[0].id, 5)
        assert ledger.decrement(storage_location.id, items[0].id, 5) == 0
        assert ledger.get(storage_location.id, items[0].id) is None
        assert _count(db_session, storage_location.id) == 0

    def test_increment_updates_loaded_collection(self, ledger, storage_location, items):
        """A new record shows up in an already loaded location collection."""
        assert storage_location.size == 0

        ledger.increment(storage_location.id, items[0].id, 5)

        assert storage_location.size == 5
        assert storage_location.quantity_of(items[0].id) == 5

    def test_decrement_loaded_collection_deletes(self, ledger, db_session, storage_location, items):
        """Deleting works when the location's inventory collection is already loaded."""
        ledger.increment(storage_location.id, items[0].id, 5)
        db_session.expire(storage_location)
        assert storage_location.size == 5

        ledger.decrement(storage_location.id, items[0].id, 5)

        assert storage_location.inventory_items == []
        assert _count(db_session, storage_location.id) == 0

    def test_underflow(self, ledger, storage_location, items):
        ledger.increment(storage_location.id, items[0].id, 2)
        with pytest.raises(InventoryUnderflow):
            ledger.decrement(storage_location.id, items[0].id, 3)
        assert ledger.get(storage_location.id, items[0].id) == 2

    def test_underflow_without_record(self, ledger, storage_location, items):
        with pytest.raises(InventoryUnderflow) as exc_info:
            ledger.decrement(storage_location.id, items[0].id, 1)
        assert exc_info.value.on_hand == 0

    @pytest.mark.parametrize("amount", [0, -1, 1.5, True])
    def test_invalid_amount(self, ledger, storage_location, items, amount):
        with pytest.raises(ValidationError):
            ledger.increment(storage_location.id, items[0].id, amount)

    def test_delete(self, ledger, storage_location, items):
        ledger.increment(storage_location.id, items[0].id, 5)
        ledger.delete(storage_location.id, items[0].id)
        assert ledger.get(storage_location.id, items[0].id) is None

    def test_delete_absent_is_noop(self, ledger, storage_location, items):
        ledger.delete(storage_location.id, items[0].id)

    def test_get_inventory(self, ledger, storage_location, items):
        ledger.increment(storage_location.id, items[0].id, 5)
        ledger.increment(storage_location.id, items[2].id, 1)
        assert ledger.get_inventory(storage_location.id) == {items[0].id: 5, items[2].id: 1}
