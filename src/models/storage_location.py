"""
StorageLocation model - an inventory site whose stock is tracked per item.
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import BaseModel


class StorageLocation(BaseModel):
    """
    Storage location (warehouse, closet, partner site).

    Attributes:
        organization_id: Owning organization
        name: Display name (e.g., "Smithsonian Conservation Center")
        address: Optional street address

    Relationships:
        organization: The owning Organization
        inventory_items: On-hand records, one per item stocked here
        purchases: Purchases received into this location
    """

    __tablename__ = "storage_locations"

    organization_id = Column(
        Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(200), nullable=False)
    address = Column(Text, nullable=True)

    organization = relationship("Organization", back_populates="storage_locations")
    inventory_items = relationship(
        "InventoryItem",
        back_populates="storage_location",
        cascade="all, delete-orphan",
    )
    purchases = relationship("Purchase", back_populates="storage_location")

    __table_args__ = (Index("idx_storage_location_organization", "organization_id"),)

    @property
    def size(self) -> int:
        """Total units on hand across all items at this location."""
        return sum(inventory_item.quantity for inventory_item in self.inventory_items)

    def quantity_of(self, item_id: int) -> int:
        """On-hand quantity for one item, 0 when the item isn't stocked here."""
        for inventory_item in self.inventory_items:
            if inventory_item.item_id == item_id:
                return inventory_item.quantity
        return 0
