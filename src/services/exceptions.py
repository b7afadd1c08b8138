"""Service layer exception classes for Essentials Tracker.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the application.

Exception Hierarchy:
    ServiceError (base)
    ├── CategoryMismatch
    ├── InvalidLineItem
    ├── MissingReference
    ├── InventoryUnderflow
    ├── PurchaseNotFound
    ├── ValidationError
    └── DatabaseError
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    pass


class CategoryMismatch(ServiceError):
    """Raised when cost category subtotals don't add up to the declared total.

    Args:
        category_total_cents: Sum of the category subtotals
        amount_spent_in_cents: Declared total
        message: Preformatted message citing both amounts

    Example:
        >>> raise CategoryMismatch(200, 450, "...categories add to $2.00 but given total is $4.50")
    """

    def __init__(self, category_total_cents: int, amount_spent_in_cents: int, message: str):
        self.category_total_cents = category_total_cents
        self.amount_spent_in_cents = amount_spent_in_cents
        super().__init__(message)


class InvalidLineItem(ServiceError):
    """Raised when a line item entry is malformed or references an unknown item.

    Args:
        item_id: The item reference on the offending entry (may be None)
        reason: What is wrong with the entry

    Example:
        >>> raise InvalidLineItem(12, "quantity must be a whole number")
        InvalidLineItem: Invalid line item for item 12: quantity must be a whole number
    """

    def __init__(self, item_id: Any, reason: str):
        self.item_id = item_id
        self.reason = reason
        super().__init__(f"Invalid line item for item {item_id}: {reason}")


class MissingReference(ServiceError):
    """Raised when a required organization/storage location/vendor reference can't be resolved.

    Args:
        entity_type: Kind of record referenced (e.g., "storage_location")
        reference: The identifier that was given (None when absent)

    Example:
        >>> raise MissingReference("organization", None)
        MissingReference: organization is required
        >>> raise MissingReference("storage_location", 99)
        MissingReference: storage_location with ID 99 not found
    """

    def __init__(self, entity_type: str, reference: Optional[Any] = None):
        self.entity_type = entity_type
        self.reference = reference
        if reference is None:
            message = f"{entity_type} is required"
        else:
            message = f"{entity_type} with ID {reference} not found"
        super().__init__(message)


class InventoryUnderflow(ServiceError):
    """Raised when a decrement would drive an inventory quantity below zero.

    Args:
        storage_location_id: Location being decremented
        item_id: Item being decremented
        on_hand: Units currently on hand
        requested: Units the decrement asked for

    Example:
        >>> raise InventoryUnderflow(1, 7, 2, 5)
        InventoryUnderflow: Cannot remove 5 of item 7 from storage location 1: only 2 on hand
    """

    def __init__(self, storage_location_id: int, item_id: int, on_hand: int, requested: int):
        self.storage_location_id = storage_location_id
        self.item_id = item_id
        self.on_hand = on_hand
        self.requested = requested
        super().__init__(
            f"Cannot remove {requested} of item {item_id} from storage location "
            f"{storage_location_id}: only {on_hand} on hand"
        )


class PurchaseNotFound(ServiceError):
    """Raised when purchase record cannot be found by ID.

    Args:
        purchase_id: The purchase ID that was not found

    Example:
        >>> raise PurchaseNotFound(789)
        PurchaseNotFound: Purchase with ID 789 not found
    """

    def __init__(self, purchase_id: int):
        self.purchase_id = purchase_id
        super().__init__(f"Purchase with ID {purchase_id} not found")


class ValidationError(ServiceError):
    """Raised when data validation fails."""

    def __init__(self, errors: list):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
