"""Pytest configuration and fixtures for service layer tests."""

from typing import Dict, Optional, Tuple

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session

import src.models  # noqa: F401  registers every table with Base.metadata
from src.models import Item, Organization, StorageLocation, Vendor
from src.models.base import Base
from src.services.exceptions import InventoryUnderflow
from src.services.inventory_ledger import InventoryLedger


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the session registry to the test
    4. Drops all tables after the test completes
    """
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Point session_scope() at the test database
    import src.services.database as db_module

    original_get_session_factory = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    Session.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()

    db_module.get_session_factory = original_get_session_factory


@pytest.fixture
def db_session(test_db):
    """Provide a database session for tests."""
    return test_db()


@pytest.fixture
def organization(db_session):
    """Create a sample organization."""
    org = Organization(name="Pawnee Diaper Bank", short_name="pawnee")
    db_session.add(org)
    db_session.flush()
    return org


@pytest.fixture
def other_organization(db_session):
    """Create a second organization for cross-organization checks."""
    org = Organization(name="Eagleton Diaper Bank", short_name="eagleton")
    db_session.add(org)
    db_session.flush()
    return org


@pytest.fixture
def storage_location(db_session, organization):
    """Create a sample storage location."""
    location = StorageLocation(
        organization_id=organization.id,
        name="Smithsonian Conservation Center",
        address="1500 Remount Road, Front Royal, VA",
    )
    db_session.add(location)
    db_session.flush()
    return location


@pytest.fixture
def vendor(db_session, organization):
    """Create a sample vendor."""
    v = Vendor(organization_id=organization.id, business_name="Walmart", contact_name="Ann Perkins")
    db_session.add(v)
    db_session.flush()
    return v


@pytest.fixture
def make_item(db_session, organization):
    """Factory for catalog items."""

    def _make_item(name: str, active: bool = True, organization_id: Optional[int] = None) -> Item:
        item = Item(
            organization_id=organization_id or organization.id,
            name=name,
            partner_key=name.lower().replace(" ", "_"),
            active=active,
        )
        db_session.add(item)
        db_session.flush()
        return item

    return _make_item


@pytest.fixture
def items(make_item):
    """Three active catalog items."""
    return [make_item("Kids Size 4"), make_item("Adult Briefs M"), make_item("Wipes")]


class InMemoryInventoryLedger(InventoryLedger):
    """Dictionary-backed ledger for exercising reconciliation without a database."""

    def __init__(self, stock: Optional[Dict[Tuple[int, int], int]] = None):
        self.stock: Dict[Tuple[int, int], int] = dict(stock or {})
        self.calls = []

    def get(self, storage_location_id, item_id):
        return self.stock.get((storage_location_id, item_id))

    def increment(self, storage_location_id, item_id, amount):
        self.calls.append(("increment", storage_location_id, item_id, amount))
        key = (storage_location_id, item_id)
        self.stock[key] = self.stock.get(key, 0) + amount
        return self.stock[key]

    def decrement(self, storage_location_id, item_id, amount):
        self.calls.append(("decrement", storage_location_id, item_id, amount))
        key = (storage_location_id, item_id)
        on_hand = self.stock.get(key, 0)
        if amount > on_hand:
            raise InventoryUnderflow(storage_location_id, item_id, on_hand, amount)
        if on_hand == amount:
            del self.stock[key]
            return 0
        self.stock[key] = on_hand - amount
        return self.stock[key]

    def delete(self, storage_location_id, item_id):
        self.calls.append(("delete", storage_location_id, item_id))
        self.stock.pop((storage_location_id, item_id), None)


@pytest.fixture
def memory_ledger():
    """Empty in-memory ledger."""
    return InMemoryInventoryLedger()
