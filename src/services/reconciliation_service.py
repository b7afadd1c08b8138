"""Reconciliation Service - move stock from an old line-item set to a new one.

Given the quantities a purchase used to record and the quantities it records
now, reconciliation applies the smallest set of ledger adjustments that
makes storage location stock reflect the change:

    delta(item) = new_quantity(item) - old_quantity(item)

Items missing from either side count as 0; items whose delta is 0 are left
alone. Positive deltas increment (creating the ledger record on first use),
negative deltas decrement (deleting the record when it lands on zero).

All decrements are checked against on-hand stock before the first write, so
an underflow leaves the ledger untouched even for ledgers that don't roll
back. The purchase service runs reconciliation inside the same database
transaction as the line item change.

Example Usage:
    >>> from src.services.reconciliation_service import compute_deltas, apply_deltas
    >>> deltas = compute_deltas({1: 5}, {1: 2, 2: 4})
    >>> deltas
    {1: -3, 2: 4}
    >>> apply_deltas(ledger, storage_location_id=7, deltas=deltas)
"""

import enum
import logging
from typing import Dict, Iterable, Mapping, Optional

from ..models import Item
from ..utils.config import get_config
from ..utils.constants import REACTIVATION_REACTIVATE, REACTIVATION_REJECT
from .exceptions import InvalidLineItem, InventoryUnderflow
from .inventory_ledger import InventoryLedger
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)


class ItemReactivationPolicy(enum.Enum):
    """
    What to do when a purchase adds a positive quantity of an inactive item.

    REACTIVATE returns the item to the active catalog as part of the same
    transaction. REJECT refuses the line item instead.
    """

    REACTIVATE = REACTIVATION_REACTIVATE
    REJECT = REACTIVATION_REJECT

    @classmethod
    def from_config(cls) -> "ItemReactivationPolicy":
        """Policy configured for this installation."""
        return cls(get_config().item_reactivation_policy)


def compute_deltas(old: Mapping[int, int], new: Mapping[int, int]) -> Dict[int, int]:
    """
    Per-item quantity change from old to new.

    Args:
        old: item id -> quantity previously recorded
        new: item id -> quantity now recorded

    Returns:
        item id -> non-zero delta; old items first, then newly added ones
    """
    deltas: Dict[int, int] = {}
    for item_id in list(old) + [item_id for item_id in new if item_id not in old]:
        delta = new.get(item_id, 0) - old.get(item_id, 0)
        if delta != 0:
            deltas[item_id] = delta
    return deltas


def check_underflow(
    ledger: InventoryLedger, storage_location_id: int, deltas: Mapping[int, int]
) -> None:
    """
    Verify every decrement in deltas can be covered by on-hand stock.

    Raises:
        InventoryUnderflow: For the first decrement larger than what is on hand
    """
    for item_id, delta in deltas.items():
        if delta >= 0:
            continue
        on_hand = ledger.get(storage_location_id, item_id) or 0
        if on_hand + delta < 0:
            log_operation(
                logger,
                operation="check_underflow",
                outcome="underflow",
                level=logging.WARNING,
                storage_location_id=storage_location_id,
                item_id=item_id,
                on_hand=on_hand,
                requested=-delta,
            )
            raise InventoryUnderflow(storage_location_id, item_id, on_hand, -delta)


def apply_deltas(
    ledger: InventoryLedger,
    storage_location_id: int,
    deltas: Mapping[int, int],
    preflight: bool = True,
) -> Dict[int, int]:
    """
    Apply per-item deltas to the ledger for one storage location.

    Args:
        ledger: Ledger to adjust
        storage_location_id: Location whose stock changes
        deltas: item id -> quantity change (zero entries are skipped)
        preflight: Run check_underflow first; pass False when the caller
            already checked these deltas in the same transaction

    Returns:
        item id -> resulting on-hand quantity for each touched item

    Raises:
        InventoryUnderflow: If any decrement exceeds on-hand stock (no writes made)
    """
    if preflight:
        check_underflow(ledger, storage_location_id, deltas)

    results: Dict[int, int] = {}
    for item_id, delta in deltas.items():
        if delta > 0:
            results[item_id] = ledger.increment(storage_location_id, item_id, delta)
        elif delta < 0:
            results[item_id] = ledger.decrement(storage_location_id, item_id, -delta)
        else:
            continue
        logger.debug(
            f"Applied delta {delta:+d} for item {item_id} at location {storage_location_id}, "
            f"now {results[item_id]}"
        )
    return results


def reconcile(
    ledger: InventoryLedger,
    storage_location_id: int,
    old: Mapping[int, int],
    new: Mapping[int, int],
) -> Dict[int, int]:
    """
    Move stock from the old quantities to the new ones.

    Returns:
        The deltas that were applied (item id -> change)
    """
    deltas = compute_deltas(old, new)
    apply_deltas(ledger, storage_location_id, deltas)
    log_operation(
        logger,
        operation="reconcile",
        outcome="success",
        level=logging.DEBUG,
        storage_location_id=storage_location_id,
        deltas=deltas,
    )
    return deltas


def enforce_reactivation_policy(
    items: Iterable[Item],
    policy: Optional[ItemReactivationPolicy] = None,
) -> list:
    """
    Apply the reactivation policy to items that are being bought.

    Args:
        items: Catalog items receiving a positive quantity
        policy: Policy to apply; defaults to the configured one

    Returns:
        Items that were reactivated

    Raises:
        InvalidLineItem: Under REJECT, for the first inactive item
    """
    if policy is None:
        policy = ItemReactivationPolicy.from_config()

    reactivated = []
    for item in items:
        if item.active:
            continue
        if policy is ItemReactivationPolicy.REJECT:
            raise InvalidLineItem(item.id, "item is inactive")
        item.reactivate()
        reactivated.append(item)
        log_operation(
            logger,
            operation="reactivate_item",
            outcome="reactivated",
            item_id=item.id,
            organization_id=item.organization_id,
        )
    return reactivated
