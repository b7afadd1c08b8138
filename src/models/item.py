"""
Item model - the organization's catalog of things that can be stocked.

Items are soft-deleted: deactivating an item hides it from the active
catalog but keeps it resolvable so historical line items stay valid.
"""

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import BaseModel


class Item(BaseModel):
    """
    Item catalog entry.

    Attributes:
        organization_id: Owning organization
        name: Display name (e.g., "Kids (Size 4)")
        partner_key: Stable key shared with partner systems
        active: Soft delete flag (True = active, False = deactivated)

    Relationships:
        organization: The owning Organization
        line_items: Purchase line items referencing this item
        inventory_items: On-hand records per storage location
    """

    __tablename__ = "items"

    organization_id = Column(
        Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(200), nullable=False)
    partner_key = Column(String(100), nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    organization = relationship("Organization", back_populates="items")
    line_items = relationship("LineItem", back_populates="item")
    inventory_items = relationship("InventoryItem", back_populates="item")

    __table_args__ = (
        Index("idx_item_organization", "organization_id"),
        Index("idx_item_active", "active"),
    )

    def deactivate(self) -> None:
        """Soft-delete the item."""
        self.active = False

    def reactivate(self) -> None:
        """Return a deactivated item to the active catalog."""
        self.active = True
