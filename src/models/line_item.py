"""
LineItem model - one (item, quantity) row of a purchase.

Line items are owned by their purchase: they are deleted with it and never
shared. At most one line item per item exists on a purchase once it has
been saved.
"""

from sqlalchemy import (
    Column, Integer, ForeignKey, Index, CheckConstraint, UniqueConstraint
)
from sqlalchemy.orm import relationship

from .base import BaseModel


class LineItem(BaseModel):
    """
    Line item on a purchase.

    Attributes:
        purchase_id: Owning purchase (CASCADE delete)
        item_id: Catalog item that was bought
        quantity: Units bought (positive integer)
    """

    __tablename__ = "line_items"

    purchase_id = Column(
        Integer, ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_id = Column(
        Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    quantity = Column(Integer, nullable=False)

    purchase = relationship("Purchase", back_populates="line_items")
    item = relationship("Item", back_populates="line_items")

    __table_args__ = (
        UniqueConstraint("purchase_id", "item_id", name="uq_line_item_purchase_item"),
        CheckConstraint("quantity > 0", name="ck_line_item_quantity_positive"),
        Index("idx_line_item_purchase_item", "purchase_id", "item_id"),
    )

    @property
    def item_key(self):
        """Identity used for duplicate detection, usable before the row is flushed."""
        if self.item_id is not None:
            return self.item_id
        if self.item is not None and self.item.id is not None:
            return self.item.id
        return self.item

    def __repr__(self) -> str:
        """String representation of line item."""
        return (
            f"LineItem(id={self.id}, "
            f"purchase_id={self.purchase_id}, "
            f"item_id={self.item_id}, "
            f"quantity={self.quantity})"
        )
