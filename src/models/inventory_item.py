"""
InventoryItem model - quantity on hand for one (storage location, item) pair.

Rows are created lazily on the first increment for a pair and deleted when
a decrement brings the quantity to exactly zero, so no row is kept at zero.
"""

from sqlalchemy import (
    Column, Integer, ForeignKey, Index, CheckConstraint, UniqueConstraint
)
from sqlalchemy.orm import relationship

from .base import BaseModel


class InventoryItem(BaseModel):
    """
    Ledger record of how many units of an item sit at a storage location.

    Attributes:
        storage_location_id: Foreign key to StorageLocation
        item_id: Foreign key to Item
        quantity: Units on hand (never negative)

    Relationships:
        storage_location: Where the stock sits
        item: What is stocked
    """

    __tablename__ = "inventory_items"

    storage_location_id = Column(
        Integer,
        ForeignKey("storage_locations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_id = Column(
        Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    quantity = Column(Integer, nullable=False, default=0)

    storage_location = relationship("StorageLocation", back_populates="inventory_items")
    item = relationship("Item", back_populates="inventory_items")

    __table_args__ = (
        UniqueConstraint(
            "storage_location_id", "item_id", name="uq_inventory_item_location_item"
        ),
        CheckConstraint("quantity >= 0", name="ck_inventory_item_quantity_non_negative"),
        Index("idx_inventory_item_location_item", "storage_location_id", "item_id"),
    )

    def __repr__(self) -> str:
        """String representation of inventory item."""
        return (
            f"InventoryItem(id={self.id}, "
            f"storage_location_id={self.storage_location_id}, "
            f"item_id={self.item_id}, "
            f"quantity={self.quantity})"
        )
