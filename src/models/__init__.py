"""
Database models package.

This package contains all SQLAlchemy ORM models for the application.
"""

from .base import Base, BaseModel
from .organization import Organization
from .storage_location import StorageLocation
from .vendor import Vendor
from .item import Item
from .inventory_item import InventoryItem
from .line_item import LineItem
from .purchase import Purchase

__all__ = [
    "Base",
    "BaseModel",
    # Reference models
    "Organization",
    "StorageLocation",
    "Vendor",
    "Item",
    # Inventory ledger
    "InventoryItem",
    # Purchases
    "Purchase",
    "LineItem",
]
