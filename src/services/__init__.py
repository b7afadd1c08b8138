"""Services package - Business logic layer for Essentials Tracker.

This package contains all service modules that provide business logic
and database operations for the application.

Architecture:
- Services: Stateless functions organized by domain (purchases, line items, stock)
- Transactions: Managed via session_scope() or a caller-supplied session
- Exceptions: Consistent error handling via the ServiceError hierarchy
- Validation: All checks run before the first write

Service Modules:
- purchase_service: Purchase create/edit/delete, item removal, replace_increase
- line_item_service: Line item parsing and duplicate merging
- cost_category_validator: Cost category vs. declared total check
- inventory_ledger: On-hand stock per (storage location, item)
- reconciliation_service: Stock deltas between line-item sets
- purchase_export_service: CSV export rows

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Session management and database utilities
- logging_utils: Structured service logging
"""

from . import (
    database,
    cost_category_validator,
    line_item_service,
    inventory_ledger,
    reconciliation_service,
    purchase_service,
    purchase_export_service,
)

from .exceptions import (
    ServiceError,
    CategoryMismatch,
    InvalidLineItem,
    MissingReference,
    InventoryUnderflow,
    PurchaseNotFound,
    ValidationError,
    DatabaseError,
)

from .inventory_ledger import InventoryLedger, SessionInventoryLedger
from .line_item_service import LineItemEntry
from .reconciliation_service import ItemReactivationPolicy

__all__ = [
    # Modules
    "database",
    "cost_category_validator",
    "line_item_service",
    "inventory_ledger",
    "reconciliation_service",
    "purchase_service",
    "purchase_export_service",
    # Exceptions
    "ServiceError",
    "CategoryMismatch",
    "InvalidLineItem",
    "MissingReference",
    "InventoryUnderflow",
    "PurchaseNotFound",
    "ValidationError",
    "DatabaseError",
    # Types
    "InventoryLedger",
    "SessionInventoryLedger",
    "LineItemEntry",
    "ItemReactivationPolicy",
]
