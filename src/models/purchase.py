"""
Purchase model for recording items bought into a storage location.

Each record captures one purchase transaction made by an organization:
where the goods were received, who sold them, how much was spent (in cents,
optionally split across cost categories), and the line items bought.

Inventory effects are not applied here; the reconciliation service moves
storage location stock to match the purchase's line items.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey, Index, CheckConstraint
)
from sqlalchemy.orm import relationship, validates

from .base import BaseModel
from .line_item import LineItem
from src.utils.constants import COST_CATEGORY_FIELDS, MAX_LINE_ITEM_QUANTITY
from src.utils.datetime_utils import to_naive_utc, utc_now


class Purchase(BaseModel):
    """
    Purchase model representing one buying transaction.

    Attributes:
        organization_id: Owning organization (required, immutable)
        storage_location_id: Location receiving the goods (required, immutable)
        vendor_id: Optional Vendor the goods were bought from
        purchased_from: Optional free-text source when there is no vendor
        amount_spent_in_cents: Declared total, nullable
        diapers_money_cents: Category subtotal, default 0
        adult_incontinence_money_cents: Category subtotal, default 0
        other_money_cents: Category subtotal, default 0
        issued_at: Effective date of the purchase (defaults to created_at)
        comment: Optional free text

    Relationships:
        organization: The owning Organization
        storage_location: The receiving StorageLocation
        vendor: The Vendor, if any
        line_items: LineItem rows owned by this purchase
    """

    __tablename__ = "purchases"

    organization_id = Column(
        Integer, ForeignKey("organizations.id", ondelete="RESTRICT"), nullable=False
    )
    storage_location_id = Column(
        Integer, ForeignKey("storage_locations.id", ondelete="RESTRICT"), nullable=False
    )
    vendor_id = Column(
        Integer, ForeignKey("vendors.id", ondelete="SET NULL"), nullable=True
    )
    purchased_from = Column(String(200), nullable=True)

    # Money, all integer cents
    amount_spent_in_cents = Column(Integer, nullable=True)
    diapers_money_cents = Column(Integer, nullable=False, default=0)
    adult_incontinence_money_cents = Column(Integer, nullable=False, default=0)
    other_money_cents = Column(Integer, nullable=False, default=0)

    issued_at = Column(DateTime, nullable=False)
    comment = Column(Text, nullable=True)

    organization = relationship("Organization", back_populates="purchases")
    storage_location = relationship("StorageLocation", back_populates="purchases")
    vendor = relationship("Vendor", back_populates="purchases")
    line_items = relationship(
        "LineItem",
        back_populates="purchase",
        cascade="all, delete-orphan",
        order_by=LineItem.id,
    )

    __table_args__ = (
        CheckConstraint(
            "amount_spent_in_cents IS NULL OR amount_spent_in_cents >= 0",
            name="ck_purchase_amount_spent_non_negative",
        ),
        CheckConstraint("diapers_money_cents >= 0", name="ck_purchase_diapers_non_negative"),
        CheckConstraint(
            "adult_incontinence_money_cents >= 0",
            name="ck_purchase_adult_incontinence_non_negative",
        ),
        CheckConstraint("other_money_cents >= 0", name="ck_purchase_other_non_negative"),
        Index("idx_purchase_issued_at", "issued_at"),
        Index("idx_purchase_organization_issued_at", "organization_id", "issued_at"),
        Index("idx_purchase_storage_location", "storage_location_id"),
    )

    def __init__(self, **kwargs):
        # Column defaults only apply at flush; validation runs before that
        for field in COST_CATEGORY_FIELDS:
            kwargs.setdefault(field, 0)
        super().__init__(**kwargs)

    @validates("issued_at", "created_at")
    def _validate_timestamp(self, _key: str, value):
        """Store aware timestamps as naive UTC."""
        if isinstance(value, datetime):
            return to_naive_utc(value)
        return value

    def __repr__(self) -> str:
        """String representation of purchase."""
        return (
            f"Purchase(id={self.id}, "
            f"storage_location_id={self.storage_location_id}, "
            f"issued_at={self.issued_at}, "
            f"line_items={len(self.line_items)})"
        )

    # ------------------------------------------------------------------
    # Save pipeline stages
    # ------------------------------------------------------------------

    def apply_issued_at_default(self) -> None:
        """Default issued_at to the creation timestamp; never overwrite a given value."""
        if self.created_at is None:
            self.created_at = utc_now()
        if self.issued_at is None:
            self.issued_at = self.created_at

    def combine_duplicate_line_items(self) -> int:
        """
        Collapse line items for the same item into one with the summed quantity.

        The first line item for each item is kept, in the order the items were
        added. Running it on an already merged set changes nothing.

        Returns:
            Number of line items folded into another one

        Raises:
            ValueError: If a summed quantity exceeds MAX_LINE_ITEM_QUANTITY;
                args are (message, item key) and no line item is changed
        """
        totals: Dict[object, int] = {}
        for line_item in self.line_items:
            key = line_item.item_key
            totals[key] = totals.get(key, 0) + line_item.quantity
            if totals[key] > MAX_LINE_ITEM_QUANTITY:
                raise ValueError(
                    f"quantity must be less than {MAX_LINE_ITEM_QUANTITY + 1}", key
                )

        kept: Dict[object, LineItem] = {}
        duplicates = []
        for line_item in self.line_items:
            key = line_item.item_key
            if key in kept:
                kept[key].quantity = kept[key].quantity + line_item.quantity
                duplicates.append(line_item)
            else:
                kept[key] = line_item

        for line_item in duplicates:
            self.line_items.remove(line_item)
        return len(duplicates)

    # ------------------------------------------------------------------
    # Line items
    # ------------------------------------------------------------------

    def find_line_item(self, item_id: int) -> Optional[LineItem]:
        """Line item for item_id, or None."""
        for line_item in self.line_items:
            if line_item.item_key == item_id:
                return line_item
        return None

    def remove(self, item_id: int) -> bool:
        """
        Drop the line item for item_id.

        Inventory is not touched. Does nothing when the purchase has no
        line item for that item.

        Returns:
            True if a line item was removed
        """
        line_item = self.find_line_item(item_id)
        if line_item is None:
            return False
        self.line_items.remove(line_item)
        return True

    def line_item_quantities(self) -> Dict[int, int]:
        """Mapping of item id to quantity for the current line items."""
        return {line_item.item_key: line_item.quantity for line_item in self.line_items}

    @property
    def total_quantity(self) -> int:
        """Total units across all line items."""
        return sum(line_item.quantity or 0 for line_item in self.line_items)

    # ------------------------------------------------------------------
    # Display helpers
    # ------------------------------------------------------------------

    @property
    def category_total_cents(self) -> int:
        """Sum of the three cost category subtotals."""
        return sum(getattr(self, field) or 0 for field in COST_CATEGORY_FIELDS)

    @property
    def amount_spent_in_dollars(self) -> Optional[Decimal]:
        """Declared total as dollars, or None if no total was given."""
        if self.amount_spent_in_cents is None:
            return None
        return (Decimal(self.amount_spent_in_cents) / 100).quantize(Decimal("0.01"))

    @property
    def storage_view(self) -> Optional[str]:
        """Name of the receiving storage location."""
        return self.storage_location.name if self.storage_location else None

    @property
    def purchased_from_view(self) -> Optional[str]:
        """Vendor business name, falling back to the free-text source."""
        if self.vendor is not None:
            return self.vendor.business_name
        return self.purchased_from

    def to_dict(self, include_relationships: bool = False) -> dict:
        """
        Convert purchase to dictionary.

        Args:
            include_relationships: If True, include line items

        Returns:
            Dictionary representation
        """
        result = super().to_dict(include_relationships=False)
        result["storage_view"] = self.storage_view
        result["purchased_from_view"] = self.purchased_from_view
        result["total_quantity"] = self.total_quantity

        if include_relationships:
            result["line_items"] = [
                {"item_id": line_item.item_key, "quantity": line_item.quantity}
                for line_item in self.line_items
            ]

        return result
