"""Line Item Service - parsing and merging of purchase line items.

A purchase's line items form a set keyed by item: at most one line item per
item. Callers (forms, imports) may submit several rows for the same item;
those rows are summed.

Input rows are explicit (item_id, quantity) pairs. A quantity of 0 or less
means "not bought" and the row is dropped.

Example Usage:
    >>> from src.services.line_item_service import parse_line_item_entries, combine_quantities
    >>> entries = parse_line_item_entries([
    ...     {"item_id": 3, "quantity": "5"},
    ...     (3, 10),
    ...     {"item_id": 4, "quantity": 0},
    ... ])
    >>> combine_quantities(entries)
    {3: 15}
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping

from sqlalchemy.orm import Session

from ..models import Item, LineItem, Purchase
from ..utils.constants import MAX_LINE_ITEM_QUANTITY
from .exceptions import InvalidLineItem


@dataclass(frozen=True)
class LineItemEntry:
    """One (item, quantity) row submitted for a purchase."""

    item_id: int
    quantity: int


def _coerce_whole_number(value: Any, item_id: Any, field: str) -> int:
    """Convert form or API input to an int, rejecting anything that isn't a whole number."""
    if value is None or isinstance(value, bool):
        raise InvalidLineItem(item_id, f"{field} is required")
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        if value != int(value):
            raise InvalidLineItem(item_id, f"{field} must be a whole number")
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidLineItem(item_id, f"{field} is required")
        try:
            number = Decimal(text)
        except InvalidOperation:
            raise InvalidLineItem(item_id, f"{field} must be a whole number") from None
        if not number.is_finite() or number != number.to_integral_value():
            raise InvalidLineItem(item_id, f"{field} must be a whole number")
        return int(number)
    raise InvalidLineItem(item_id, f"{field} must be a whole number")


def parse_line_item_entry(raw: Any) -> LineItemEntry:
    """
    Normalize one submitted row into a LineItemEntry.

    Accepts a LineItemEntry, a mapping with 'item_id' and 'quantity' keys,
    or an (item_id, quantity) pair.

    Raises:
        InvalidLineItem: If the row is malformed
    """
    if isinstance(raw, LineItemEntry):
        item_id, quantity = raw.item_id, raw.quantity
    elif isinstance(raw, Mapping):
        item_id, quantity = raw.get("item_id"), raw.get("quantity")
    elif isinstance(raw, (tuple, list)) and len(raw) == 2:
        item_id, quantity = raw
    else:
        raise InvalidLineItem(None, f"unrecognized line item entry {raw!r}")

    item_id = _coerce_whole_number(item_id, item_id, "item_id")
    quantity = _coerce_whole_number(quantity, item_id, "quantity")

    if quantity > MAX_LINE_ITEM_QUANTITY:
        raise InvalidLineItem(item_id, f"quantity must be less than {MAX_LINE_ITEM_QUANTITY + 1}")

    return LineItemEntry(item_id=item_id, quantity=quantity)


def parse_line_item_entries(raw_entries: Iterable[Any]) -> List[LineItemEntry]:
    """
    Parse submitted rows, dropping rows whose quantity is 0 or less.

    Args:
        raw_entries: Rows as accepted by parse_line_item_entry()

    Returns:
        Entries with positive quantities, in submission order (duplicates kept)

    Raises:
        InvalidLineItem: If any row is malformed
    """
    entries = []
    for raw in raw_entries or ():
        entry = parse_line_item_entry(raw)
        if entry.quantity > 0:
            entries.append(entry)
    return entries


def combine_quantities(entries: Iterable[LineItemEntry]) -> Dict[int, int]:
    """
    Sum quantities per item.

    Items keep the order of their first appearance. Combining the result
    again (as entries) gives the same mapping.

    Raises:
        InvalidLineItem: If a summed quantity no longer fits the quantity column
    """
    combined: Dict[int, int] = {}
    for entry in entries:
        combined[entry.item_id] = combined.get(entry.item_id, 0) + entry.quantity
        if combined[entry.item_id] > MAX_LINE_ITEM_QUANTITY:
            raise InvalidLineItem(
                entry.item_id, f"quantity must be less than {MAX_LINE_ITEM_QUANTITY + 1}"
            )
    return combined


def validate_line_items(purchase: Purchase) -> None:
    """
    Check every line item attached to a purchase before it is merged and saved.

    Raises:
        InvalidLineItem: If a line item has no item or a malformed quantity
    """
    for line_item in purchase.line_items:
        if line_item.item_key is None:
            raise InvalidLineItem(None, "item is required")
        quantity = _coerce_whole_number(line_item.quantity, line_item.item_key, "quantity")
        if quantity <= 0:
            raise InvalidLineItem(line_item.item_key, "quantity must be greater than 0")
        line_item.quantity = quantity


def resolve_items(session: Session, organization_id: int, item_ids: Iterable[int]) -> Dict[int, Item]:
    """
    Load the catalog entries for item_ids.

    Inactive items are returned as well; whether they may be used is a
    reconciliation policy decision.

    Raises:
        InvalidLineItem: If an item doesn't exist or belongs to another organization
    """
    item_ids = list(dict.fromkeys(item_ids))
    if not item_ids:
        return {}

    items = {item.id: item for item in session.query(Item).filter(Item.id.in_(item_ids)).all()}
    for item_id in item_ids:
        item = items.get(item_id)
        if item is None:
            raise InvalidLineItem(item_id, "item not found")
        if organization_id is not None and item.organization_id != organization_id:
            raise InvalidLineItem(item_id, "item belongs to a different organization")
    return items


def sync_line_items(purchase: Purchase, quantities: Dict[int, int]) -> None:
    """
    Make a purchase's line items equal to quantities.

    Existing rows for kept items are updated in place, rows for dropped items
    are deleted, and rows for new items are appended.
    """
    existing = {line_item.item_key: line_item for line_item in list(purchase.line_items)}

    for item_id, line_item in existing.items():
        if item_id not in quantities:
            purchase.line_items.remove(line_item)

    for item_id, quantity in quantities.items():
        line_item = existing.get(item_id)
        if line_item is not None:
            line_item.quantity = quantity
        else:
            purchase.line_items.append(LineItem(item_id=item_id, quantity=quantity))
