"""Tests for cost category validation.

Tests cover:
- Passing cases: no total, no categories, exact sum
- Mismatch message cites both amounts as currency
- Money field type/sign checks
"""

import pytest

from src.models import Purchase
from src.services.cost_category_validator import (
    format_cents,
    validate_cost_categories,
    validate_money_fields,
    validate_purchase_categories,
)
from src.services.exceptions import CategoryMismatch, ValidationError


class TestFormatCents:
    """Tests for format_cents()."""

    @pytest.mark.parametrize(
        "cents, expected",
        [(0, "$0.00"), (5, "$0.05"), (200, "$2.00"), (450, "$4.50"), (123450, "$1,234.50")],
    )
    def test_format(self, cents, expected):
        assert format_cents(cents) == expected


class TestValidateCostCategories:
    """Tests for validate_cost_categories()."""

    def test_valid_without_categories(self):
        validate_cost_categories(450)

    def test_valid_without_total(self):
        validate_cost_categories(None, 200, 0, 999)

    def test_valid_when_categories_add_up(self):
        validate_cost_categories(450, diapers_money_cents=200, other_money_cents=250)

    def test_valid_all_three_categories(self):
        validate_cost_categories(1000, 500, 300, 200)

    def test_mismatch_message(self):
        with pytest.raises(CategoryMismatch) as exc_info:
            validate_cost_categories(450, diapers_money_cents=200)

        assert str(exc_info.value) == (
            "Amount spent does not equal all categories - "
            "categories add to $2.00 but given total is $4.50"
        )
        assert exc_info.value.category_total_cents == 200
        assert exc_info.value.amount_spent_in_cents == 450

    def test_categories_over_total(self):
        with pytest.raises(CategoryMismatch, match=r"categories add to \$6.00 but given total is \$4.50"):
            validate_cost_categories(450, 200, 200, 200)

    def test_zero_total_with_categories(self):
        with pytest.raises(CategoryMismatch):
            validate_cost_categories(0, other_money_cents=1)


class TestPurchaseValidation:
    """Tests against Purchase instances."""

    def test_purchase_categories_checked(self):
        purchase = Purchase(amount_spent_in_cents=450, diapers_money_cents=200)
        with pytest.raises(CategoryMismatch):
            validate_purchase_categories(purchase)

    def test_purchase_defaults_pass(self):
        validate_purchase_categories(Purchase(amount_spent_in_cents=450))

    def test_negative_money_rejected(self):
        purchase = Purchase(amount_spent_in_cents=-1)
        with pytest.raises(ValidationError, match="amount_spent_in_cents cannot be negative"):
            validate_money_fields(purchase)

    def test_fractional_money_rejected(self):
        purchase = Purchase(amount_spent_in_cents=450, diapers_money_cents=1.5)
        with pytest.raises(ValidationError, match="whole number of cents"):
            validate_money_fields(purchase)

    def test_missing_category_rejected(self):
        purchase = Purchase(other_money_cents=None)
        with pytest.raises(ValidationError, match="other_money_cents is required"):
            validate_money_fields(purchase)

    def test_all_errors_reported(self):
        purchase = Purchase(amount_spent_in_cents=-1, diapers_money_cents=-2)
        with pytest.raises(ValidationError) as exc_info:
            validate_money_fields(purchase)
        assert len(exc_info.value.errors) == 2
