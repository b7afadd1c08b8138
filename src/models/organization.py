"""
Organization model.

An organization owns storage locations, vendors, the item catalog, and the
purchases recorded against them. Only the fields needed to resolve
references are modeled here.
"""

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from .base import BaseModel


class Organization(BaseModel):
    """
    Organization model representing a tenant of the tracker.

    Attributes:
        name: Organization name (e.g., "Pawnee Diaper Bank")
        short_name: URL-safe short name

    Relationships:
        storage_locations: Inventory sites run by the organization
        vendors: Vendors the organization buys from
        items: Item catalog entries
        purchases: Purchases recorded by the organization
    """

    __tablename__ = "organizations"

    name = Column(String(200), nullable=False)
    short_name = Column(String(100), nullable=True, unique=True)

    storage_locations = relationship("StorageLocation", back_populates="organization")
    vendors = relationship("Vendor", back_populates="organization")
    items = relationship("Item", back_populates="organization")
    purchases = relationship("Purchase", back_populates="organization")
