"""Cost category validation for purchase money fields.

A purchase may declare a total spend and split it across three cost
categories (diapers, adult incontinence, other). Purchasers who don't
itemize leave every category at 0; when they do itemize, the categories
must add up to the declared total exactly.
"""

from decimal import Decimal
from typing import Optional

from ..models import Purchase
from ..utils.constants import (
    COST_CATEGORY_FIELDS,
    CURRENCY_DECIMAL_PLACES,
    CURRENCY_SYMBOL,
    MONEY_FIELDS,
)
from .exceptions import CategoryMismatch, ValidationError as ServiceValidationError


def format_cents(cents: int) -> str:
    """
    Format integer cents as a currency string.

    Example:
        >>> format_cents(123450)
        '$1,234.50'
    """
    dollars = Decimal(cents) / (10 ** CURRENCY_DECIMAL_PLACES)
    return f"{CURRENCY_SYMBOL}{dollars:,.{CURRENCY_DECIMAL_PLACES}f}"


def validate_cost_categories(
    amount_spent_in_cents: Optional[int],
    diapers_money_cents: int = 0,
    adult_incontinence_money_cents: int = 0,
    other_money_cents: int = 0,
) -> None:
    """
    Check that itemized category spend matches the declared total.

    Passes when the total is absent, when no category is itemized, or when
    the categories sum exactly to the total.

    Raises:
        CategoryMismatch: With a message citing both the category sum and the total

    Example:
        >>> validate_cost_categories(450, diapers_money_cents=200)
        Traceback (most recent call last):
        CategoryMismatch: Amount spent does not equal all categories - categories add to $2.00 but given total is $4.50
    """
    if amount_spent_in_cents is None:
        return

    subtotals = [
        diapers_money_cents or 0,
        adult_incontinence_money_cents or 0,
        other_money_cents or 0,
    ]
    if not any(subtotals):
        return

    category_total = sum(subtotals)
    if category_total == amount_spent_in_cents:
        return

    raise CategoryMismatch(
        category_total,
        amount_spent_in_cents,
        "Amount spent does not equal all categories - categories add to "
        f"{format_cents(category_total)} but given total is {format_cents(amount_spent_in_cents)}",
    )


def validate_money_fields(purchase: Purchase) -> None:
    """
    Check that every money field is a non-negative whole number of cents.

    Raises:
        ValidationError: Listing each offending field
    """
    errors = []
    for field in MONEY_FIELDS:
        value = getattr(purchase, field)
        if value is None:
            if field in COST_CATEGORY_FIELDS:
                errors.append(f"{field} is required")
            continue
        if isinstance(value, bool) or not isinstance(value, int):
            errors.append(f"{field} must be a whole number of cents")
        elif value < 0:
            errors.append(f"{field} cannot be negative")

    if errors:
        raise ServiceValidationError(errors)


def validate_purchase_categories(purchase: Purchase) -> None:
    """Run the category check against a purchase's fields."""
    validate_cost_categories(
        purchase.amount_spent_in_cents,
        purchase.diapers_money_cents,
        purchase.adult_incontinence_money_cents,
        purchase.other_money_cents,
    )
