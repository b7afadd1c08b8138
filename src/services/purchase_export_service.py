"""Purchase Export Service - flattened CSV rows for purchase reports.

Presentation only: reads purchase fields and formats them, no stock logic.
"""

import csv
from decimal import Decimal
from pathlib import Path
from typing import Iterable, List, Union

from ..models import Purchase
from ..utils.constants import COST_CATEGORY_FIELDS, COST_CATEGORY_LABELS, DATE_FORMAT
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)


def _dollars(cents) -> str:
    if cents is None:
        return ""
    return f"{Decimal(cents) / 100:.2f}"


def csv_export_headers() -> List[str]:
    """Column headers for a purchase export."""
    return [
        "Purchases from",
        "Storage Location",
        "Purchased Date",
        "Quantity of Items",
        "Variety of Items",
        "Amount Spent",
    ] + [COST_CATEGORY_LABELS[field] for field in COST_CATEGORY_FIELDS] + ["Comment"]


def csv_export_attributes(purchase: Purchase) -> List[str]:
    """One export row for a purchase, aligned with csv_export_headers()."""
    return [
        purchase.purchased_from_view or "",
        purchase.storage_view or "",
        purchase.issued_at.strftime(DATE_FORMAT) if purchase.issued_at else "",
        str(purchase.total_quantity),
        str(len(purchase.line_items)),
        _dollars(purchase.amount_spent_in_cents),
    ] + [_dollars(getattr(purchase, field)) for field in COST_CATEGORY_FIELDS] + [
        purchase.comment or ""
    ]


def export_purchases_csv(purchases: Iterable[Purchase], file_path: Union[str, Path]) -> int:
    """
    Write purchases to a CSV file.

    Args:
        purchases: Purchases with storage location, vendor and line items loaded
        file_path: Destination path

    Returns:
        Number of purchase rows written
    """
    count = 0
    with open(file_path, "w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh)
        writer.writerow(csv_export_headers())
        for purchase in purchases:
            writer.writerow(csv_export_attributes(purchase))
            count += 1

    log_operation(
        logger,
        operation="export_purchases_csv",
        outcome="success",
        file_path=str(file_path),
        row_count=count,
    )
    return count
