"""
Vendor model for tracking where purchases are made.

Example: "Walmart" as a vendor, with an optional contact name.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import BaseModel


class Vendor(BaseModel):
    """
    Vendor model representing a business the organization buys from.

    Attributes:
        organization_id: Owning organization
        business_name: Vendor name shown on purchases and exports
        contact_name: Optional contact person

    Relationships:
        organization: The owning Organization
        purchases: Purchases made from this vendor
    """

    __tablename__ = "vendors"

    organization_id = Column(
        Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    business_name = Column(String(200), nullable=False)
    contact_name = Column(String(200), nullable=True)

    organization = relationship("Organization", back_populates="vendors")
    purchases = relationship("Purchase", back_populates="vendor")

    __table_args__ = (Index("idx_vendor_organization", "organization_id"),)

    def __repr__(self) -> str:
        """String representation of vendor."""
        return f"Vendor(id={self.id}, business_name='{self.business_name}')"
