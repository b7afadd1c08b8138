"""Purchase Service - recording purchases and keeping stock in step with them.

This module provides business logic for purchases made by an organization
into one of its storage locations: creating and editing purchases, removing
line items, replacing a purchase's line items with reconciliation against
storage location stock, and range queries over the effective date.

All public functions accept an optional session. When one is given the work
joins the caller's transaction (the caller commits or rolls back); otherwise
the function runs in its own session_scope() transaction.

Save pipeline (runs on every create and update, before the flush):
    references -> issued_at default -> line item checks -> duplicate merge
    -> money field checks -> cost category check

Example Usage:
    >>> from src.services import purchase_service
    >>> purchase = purchase_service.create_purchase(
    ...     organization_id=1,
    ...     storage_location_id=2,
    ...     line_items=[{"item_id": 5, "quantity": 10}, {"item_id": 5, "quantity": 5}],
    ...     amount_spent_in_cents=4500,
    ...     diapers_money_cents=4500,
    ... )
    >>> purchase.line_item_quantities()
    {5: 15}
    >>> purchase_service.replace_increase(purchase.id, [{"item_id": 5, "quantity": 2}])
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from ..models import LineItem, Organization, Purchase, StorageLocation, Vendor
from ..utils.constants import COST_CATEGORY_FIELDS
from ..utils.datetime_utils import range_end_exclusive, range_start
from .cost_category_validator import validate_money_fields, validate_purchase_categories
from .database import session_scope
from .exceptions import (
    DatabaseError,
    InvalidLineItem,
    MissingReference,
    PurchaseNotFound,
    ServiceError,
    ValidationError as ServiceValidationError,
)
from .inventory_ledger import InventoryLedger, SessionInventoryLedger
from .line_item_service import (
    combine_quantities,
    parse_line_item_entries,
    resolve_items,
    sync_line_items,
    validate_line_items,
)
from .logging_utils import get_service_logger, log_operation
from .reconciliation_service import (
    ItemReactivationPolicy,
    apply_deltas,
    check_underflow,
    compute_deltas,
    enforce_reactivation_policy,
    reconcile,
)

logger = get_service_logger(__name__)

# Header fields a caller may change after creation
EDITABLE_FIELDS = frozenset(
    [
        "vendor_id",
        "purchased_from",
        "amount_spent_in_cents",
        "issued_at",
        "comment",
    ]
    + COST_CATEGORY_FIELDS
)

# Fixed at creation
IMMUTABLE_FIELDS = frozenset(["organization_id", "storage_location_id"])


# =============================================================================
# Pipeline
# =============================================================================


def validate_references(
    session: Session,
    organization_id: Optional[int],
    storage_location_id: Optional[int],
    vendor_id: Optional[int] = None,
) -> None:
    """
    Check that the organization, storage location and vendor resolve.

    The storage location and vendor must belong to the organization.

    Raises:
        MissingReference: If a required reference is absent or doesn't resolve
        ValidationError: If a reference belongs to another organization
    """
    if organization_id is None:
        raise MissingReference("organization")
    if session.get(Organization, organization_id) is None:
        raise MissingReference("organization", organization_id)

    if storage_location_id is None:
        raise MissingReference("storage_location")
    location = session.get(StorageLocation, storage_location_id)
    if location is None:
        raise MissingReference("storage_location", storage_location_id)
    if location.organization_id != organization_id:
        raise ServiceValidationError(
            [f"Storage location {storage_location_id} belongs to a different organization"]
        )

    if vendor_id is not None:
        vendor = session.get(Vendor, vendor_id)
        if vendor is None:
            raise MissingReference("vendor", vendor_id)
        if vendor.organization_id != organization_id:
            raise ServiceValidationError([f"Vendor {vendor_id} belongs to a different organization"])


def prepare_purchase(purchase: Purchase) -> None:
    """
    Run the pre-save stages on a purchase, in order.

    1. Default issued_at to created_at
    2. Check each line item
    3. Merge duplicate line items
    4. Check money fields
    5. Check cost categories against the declared total

    Raises:
        InvalidLineItem: If a line item is malformed
        ValidationError: If a money field is malformed
        CategoryMismatch: If itemized categories don't match the total
    """
    purchase.apply_issued_at_default()
    validate_line_items(purchase)
    try:
        merged = purchase.combine_duplicate_line_items()
    except ValueError as e:
        reason, item_key = e.args
        raise InvalidLineItem(item_key, reason) from e
    if merged:
        logger.debug(f"Merged {merged} duplicate line item(s)")
    validate_money_fields(purchase)
    validate_purchase_categories(purchase)


def _apply_header_updates(session: Session, purchase: Purchase, updates: Dict[str, Any]) -> None:
    """Assign header field updates after checking they are allowed."""
    errors = []
    for field, value in updates.items():
        if field in IMMUTABLE_FIELDS:
            if value != getattr(purchase, field):
                errors.append(f"{field} cannot be changed after creation")
        elif field not in EDITABLE_FIELDS:
            errors.append(f"Unknown purchase field: {field}")
    if errors:
        raise ServiceValidationError(errors)

    if "vendor_id" in updates and updates["vendor_id"] != purchase.vendor_id:
        validate_references(
            session, purchase.organization_id, purchase.storage_location_id, updates["vendor_id"]
        )

    for field, value in updates.items():
        if field in EDITABLE_FIELDS:
            setattr(purchase, field, value)


def _load_purchase(session: Session, purchase_id: int, lock: bool = False) -> Purchase:
    query = (
        session.query(Purchase)
        .options(
            selectinload(Purchase.line_items),
            joinedload(Purchase.storage_location),
            joinedload(Purchase.vendor),
        )
        .filter(Purchase.id == purchase_id)
    )
    if lock:
        query = query.with_for_update(of=Purchase)
    purchase = query.first()
    if purchase is None:
        raise PurchaseNotFound(purchase_id)
    return purchase


def _run(operation: str, impl, *args, session: Optional[Session] = None):
    """Run impl in the caller's session or in a new transaction."""
    try:
        if session is not None:
            return impl(*args, session)
        with session_scope() as sess:
            return impl(*args, sess)
    except ServiceError as e:
        log_operation(
            logger,
            operation=operation,
            outcome=type(e).__name__,
            level=logging.WARNING,
            error=str(e),
        )
        raise
    except SQLAlchemyError as e:
        log_operation(
            logger, operation=operation, outcome="error", level=logging.ERROR, error=str(e)
        )
        raise DatabaseError(f"Failed to {operation.replace('_', ' ')}", original_error=e) from e


# =============================================================================
# Create / read / update / delete
# =============================================================================


def _create_purchase_impl(
    organization_id: Optional[int],
    storage_location_id: Optional[int],
    line_items: Iterable[Any],
    fields: Dict[str, Any],
    increase_inventory: bool,
    ledger: Optional[InventoryLedger],
    reactivation_policy: Optional[ItemReactivationPolicy],
    session: Session,
) -> Purchase:
    validate_references(session, organization_id, storage_location_id, fields.get("vendor_id"))

    entries = parse_line_item_entries(line_items)
    items = resolve_items(session, organization_id, [entry.item_id for entry in entries])

    purchase = Purchase(
        organization_id=organization_id,
        storage_location_id=storage_location_id,
        **fields,
    )
    for entry in entries:
        purchase.line_items.append(LineItem(item_id=entry.item_id, quantity=entry.quantity))

    prepare_purchase(purchase)
    enforce_reactivation_policy(items.values(), reactivation_policy)

    session.add(purchase)
    session.flush()

    deltas = {}
    if increase_inventory:
        ledger = ledger if ledger is not None else SessionInventoryLedger(session)
        deltas = reconcile(ledger, storage_location_id, {}, purchase.line_item_quantities())

    log_operation(
        logger,
        operation="create_purchase",
        outcome="success",
        purchase_id=purchase.id,
        storage_location_id=storage_location_id,
        line_item_count=len(purchase.line_items),
        deltas=deltas,
    )
    return purchase


def create_purchase(
    organization_id: Optional[int],
    storage_location_id: Optional[int],
    line_items: Iterable[Any] = (),
    *,
    vendor_id: Optional[int] = None,
    purchased_from: Optional[str] = None,
    amount_spent_in_cents: Optional[int] = None,
    diapers_money_cents: int = 0,
    adult_incontinence_money_cents: int = 0,
    other_money_cents: int = 0,
    issued_at: Optional[datetime] = None,
    created_at: Optional[datetime] = None,
    comment: Optional[str] = None,
    increase_inventory: bool = True,
    ledger: Optional[InventoryLedger] = None,
    reactivation_policy: Optional[ItemReactivationPolicy] = None,
    session: Optional[Session] = None,
) -> Purchase:
    """Record a new purchase and add its line items to storage location stock.

    Duplicate rows for the same item are summed into one line item. When
    increase_inventory is True (the default) the purchase is reconciled from
    an empty line-item set, so each item's stock grows by its quantity.

    Args:
        organization_id: Owning organization (required)
        storage_location_id: Location receiving the goods (required)
        line_items: (item_id, quantity) rows; rows with quantity <= 0 are dropped
        vendor_id: Optional vendor
        purchased_from: Optional free-text source
        amount_spent_in_cents: Optional declared total
        diapers_money_cents: Category subtotal
        adult_incontinence_money_cents: Category subtotal
        other_money_cents: Category subtotal
        issued_at: Effective date; defaults to the creation timestamp
        created_at: Creation timestamp; defaults to now
        comment: Optional note
        increase_inventory: Apply the line items to stock
        ledger: Ledger to adjust; defaults to the database ledger
        reactivation_policy: Policy for inactive items; defaults to config
        session: Optional database session for transaction sharing

    Returns:
        The persisted Purchase

    Raises:
        MissingReference: If organization/storage location/vendor don't resolve
        InvalidLineItem: If a row is malformed or references an unknown item
        CategoryMismatch: If itemized categories don't match the total
        ValidationError: If a money field is malformed
        DatabaseError: If the database operation fails
    """
    fields = {
        "vendor_id": vendor_id,
        "purchased_from": purchased_from,
        "amount_spent_in_cents": amount_spent_in_cents,
        "diapers_money_cents": diapers_money_cents,
        "adult_incontinence_money_cents": adult_incontinence_money_cents,
        "other_money_cents": other_money_cents,
        "issued_at": issued_at,
        "created_at": created_at,
        "comment": comment,
    }
    return _run(
        "create_purchase",
        _create_purchase_impl,
        organization_id,
        storage_location_id,
        line_items,
        fields,
        increase_inventory,
        ledger,
        reactivation_policy,
        session=session,
    )


def get_purchase(purchase_id: int, session: Optional[Session] = None) -> Purchase:
    """Retrieve a purchase with its line items, storage location and vendor loaded.

    Raises:
        PurchaseNotFound: If purchase_id doesn't exist
    """
    return _run("get_purchase", _load_purchase, purchase_id, session=session)


def _update_purchase_impl(purchase_id: int, updates: Dict[str, Any], session: Session) -> Purchase:
    purchase = _load_purchase(session, purchase_id, lock=True)
    _apply_header_updates(session, purchase, updates)
    prepare_purchase(purchase)
    session.flush()

    log_operation(
        logger,
        operation="update_purchase",
        outcome="success",
        purchase_id=purchase.id,
        fields=sorted(updates),
    )
    return purchase


def update_purchase(
    purchase_id: int, updates: Dict[str, Any], session: Optional[Session] = None
) -> Purchase:
    """Edit a purchase's header fields.

    Organization and storage location can't change. Line items are changed
    through replace_increase() or remove_item().

    Args:
        purchase_id: Purchase to edit
        updates: field name -> new value (see EDITABLE_FIELDS)
        session: Optional database session

    Returns:
        Updated Purchase

    Raises:
        PurchaseNotFound: If purchase_id doesn't exist
        ValidationError: If a field is unknown, immutable, or malformed
        CategoryMismatch: If itemized categories don't match the total
    """
    return _run("update_purchase", _update_purchase_impl, purchase_id, updates, session=session)


def _delete_purchase_impl(
    purchase_id: int, ledger: Optional[InventoryLedger], session: Session
) -> Dict[int, int]:
    purchase = _load_purchase(session, purchase_id, lock=True)
    ledger = ledger if ledger is not None else SessionInventoryLedger(session)

    old = purchase.line_item_quantities()
    deltas = reconcile(ledger, purchase.storage_location_id, old, {})
    session.delete(purchase)
    session.flush()

    log_operation(
        logger,
        operation="delete_purchase",
        outcome="success",
        purchase_id=purchase_id,
        deltas=deltas,
    )
    return deltas


def delete_purchase(
    purchase_id: int,
    ledger: Optional[InventoryLedger] = None,
    session: Optional[Session] = None,
) -> Dict[int, int]:
    """Delete a purchase and take its line items back out of stock.

    Returns:
        The applied deltas (item id -> negative change)

    Raises:
        PurchaseNotFound: If purchase_id doesn't exist
        InventoryUnderflow: If stock was already drawn down below the purchased quantities
    """
    return _run("delete_purchase", _delete_purchase_impl, purchase_id, ledger, session=session)


# =============================================================================
# Line items
# =============================================================================


def _remove_item_impl(purchase_id: int, item_id: int, session: Session) -> bool:
    purchase = _load_purchase(session, purchase_id, lock=True)
    removed = purchase.remove(item_id)
    if removed:
        session.flush()

    log_operation(
        logger,
        operation="remove_item",
        outcome="removed" if removed else "not_present",
        level=logging.INFO if removed else logging.DEBUG,
        purchase_id=purchase_id,
        item_id=item_id,
    )
    return removed


def remove_item(purchase_id: int, item_id: int, session: Optional[Session] = None) -> bool:
    """Remove the line item for item_id from a purchase.

    Stock is not adjusted; callers that want stock to follow reconcile the
    purchase afterwards. Removing an item the purchase doesn't have is a
    no-op and returns False.

    Returns:
        True if a line item was removed

    Raises:
        PurchaseNotFound: If purchase_id doesn't exist
    """
    return _run("remove_item", _remove_item_impl, purchase_id, item_id, session=session)


def _replace_increase_impl(
    purchase_id: int,
    line_items: Iterable[Any],
    header_updates: Dict[str, Any],
    ledger: Optional[InventoryLedger],
    reactivation_policy: Optional[ItemReactivationPolicy],
    session: Session,
) -> Purchase:
    purchase = _load_purchase(session, purchase_id, lock=True)
    ledger = ledger if ledger is not None else SessionInventoryLedger(session)
    storage_location_id = purchase.storage_location_id

    old = purchase.line_item_quantities()
    new = combine_quantities(parse_line_item_entries(line_items))
    items = resolve_items(session, purchase.organization_id, new.keys())
    deltas = compute_deltas(old, new)

    # Every check runs before the first write
    if header_updates:
        _apply_header_updates(session, purchase, header_updates)
    validate_money_fields(purchase)
    validate_purchase_categories(purchase)
    check_underflow(ledger, storage_location_id, deltas)
    increased = [items[item_id] for item_id, delta in deltas.items() if delta > 0]
    enforce_reactivation_policy(increased, reactivation_policy)

    sync_line_items(purchase, new)
    prepare_purchase(purchase)
    session.flush()

    apply_deltas(ledger, storage_location_id, deltas, preflight=False)

    log_operation(
        logger,
        operation="replace_increase",
        outcome="success",
        purchase_id=purchase.id,
        storage_location_id=storage_location_id,
        deltas=deltas,
    )
    return purchase


def replace_increase(
    purchase_id: int,
    line_items: Iterable[Any],
    header_updates: Optional[Dict[str, Any]] = None,
    *,
    ledger: Optional[InventoryLedger] = None,
    reactivation_policy: Optional[ItemReactivationPolicy] = None,
    session: Optional[Session] = None,
) -> Purchase:
    """Replace a purchase's line items and move stock by the difference.

    line_items is the complete new set. Items left out, or given a quantity
    of 0, are removed from the purchase; new items are added; duplicate rows
    are summed. For each item the storage location's stock changes by
    new quantity - old quantity; stock records reaching exactly 0 are deleted.

    All checks (malformed rows, unknown items, cost categories, reactivation
    policy, stock underflow) run before anything is written, and the line
    item change and every stock adjustment share one transaction.

    Args:
        purchase_id: Purchase to edit
        line_items: Complete new (item_id, quantity) rows
        header_updates: Optional header field edits applied in the same transaction
        ledger: Ledger to adjust; defaults to the database ledger
        reactivation_policy: Policy for inactive items; defaults to config
        session: Optional database session for transaction sharing

    Returns:
        The updated Purchase

    Raises:
        PurchaseNotFound: If purchase_id doesn't exist
        InvalidLineItem: If a row is malformed, references an unknown item,
            or (under REJECT) an inactive one
        CategoryMismatch: If itemized categories don't match the total
        InventoryUnderflow: If a decrement exceeds on-hand stock
        DatabaseError: If the database operation fails
    """
    return _run(
        "replace_increase",
        _replace_increase_impl,
        purchase_id,
        line_items,
        dict(header_updates or {}),
        ledger,
        reactivation_policy,
        session=session,
    )


# =============================================================================
# Queries
# =============================================================================


def _list_purchases_during_impl(
    start: Union[date, datetime],
    end: Union[date, datetime],
    organization_id: Optional[int],
    session: Session,
) -> List[Purchase]:
    query = (
        session.query(Purchase)
        .options(
            selectinload(Purchase.line_items),
            joinedload(Purchase.storage_location),
            joinedload(Purchase.vendor),
        )
        .filter(
            Purchase.issued_at >= range_start(start),
            Purchase.issued_at < range_end_exclusive(end),
        )
    )
    if organization_id is not None:
        query = query.filter(Purchase.organization_id == organization_id)
    return query.order_by(Purchase.issued_at, Purchase.id).all()


def list_purchases_during(
    start: Union[date, datetime],
    end: Union[date, datetime],
    organization_id: Optional[int] = None,
    session: Optional[Session] = None,
) -> List[Purchase]:
    """Purchases whose issued_at falls within [start, end].

    Both bounds are inclusive; a plain date bound covers the whole day.
    created_at plays no part.

    Args:
        start: Earliest issued_at
        end: Latest issued_at
        organization_id: Optional organization filter
        session: Optional database session

    Returns:
        Purchases ordered by issued_at
    """
    return _run(
        "list_purchases_during",
        _list_purchases_during_impl,
        start,
        end,
        organization_id,
        session=session,
    )
