"""Tests for Line Item Service.

Tests cover:
- Parsing rows given as entries, mappings and pairs
- Dropping rows with quantity <= 0
- Rejecting malformed quantities and item references
- Summing duplicate rows (order independent, idempotent)
- Resolving item references against the catalog
- Syncing a purchase's line items to a new quantity mapping
"""

from decimal import Decimal

import pytest

from src.models import LineItem, Purchase
from src.services.exceptions import InvalidLineItem
from src.services.line_item_service import (
    LineItemEntry,
    combine_quantities,
    parse_line_item_entries,
    parse_line_item_entry,
    resolve_items,
    sync_line_items,
    validate_line_items,
)
from src.utils.constants import MAX_LINE_ITEM_QUANTITY


class TestParseLineItemEntry:
    """Tests for parse_line_item_entry()."""

    def test_mapping(self):
        assert parse_line_item_entry({"item_id": 3, "quantity": 5}) == LineItemEntry(3, 5)

    def test_pair(self):
        assert parse_line_item_entry((3, 5)) == LineItemEntry(3, 5)

    def test_entry_passthrough(self):
        assert parse_line_item_entry(LineItemEntry(3, 5)) == LineItemEntry(3, 5)

    def test_form_strings(self):
        assert parse_line_item_entry({"item_id": "3", "quantity": " 12 "}) == LineItemEntry(3, 12)

    def test_whole_decimal_accepted(self):
        assert parse_line_item_entry((3, Decimal("4.0"))) == LineItemEntry(3, 4)

    @pytest.mark.parametrize("quantity", [None, "", "abc", "2.5", 2.5, True, "NaN"])
    def test_malformed_quantity(self, quantity):
        with pytest.raises(InvalidLineItem):
            parse_line_item_entry({"item_id": 3, "quantity": quantity})

    def test_missing_item_id(self):
        with pytest.raises(InvalidLineItem, match="item_id is required"):
            parse_line_item_entry({"quantity": 5})

    def test_unrecognized_shape(self):
        with pytest.raises(InvalidLineItem):
            parse_line_item_entry("3:5")

    def test_quantity_too_large(self):
        with pytest.raises(InvalidLineItem):
            parse_line_item_entry((3, MAX_LINE_ITEM_QUANTITY + 1))


class TestParseLineItemEntries:
    """Tests for parse_line_item_entries()."""

    def test_non_positive_rows_dropped(self):
        entries = parse_line_item_entries([(1, 5), (2, 0), (3, -4), {"item_id": 4, "quantity": "0"}])
        assert entries == [LineItemEntry(1, 5)]

    def test_duplicates_kept_in_order(self):
        entries = parse_line_item_entries([(1, 5), (2, 1), (1, 10)])
        assert entries == [LineItemEntry(1, 5), LineItemEntry(2, 1), LineItemEntry(1, 10)]

    def test_none_is_empty(self):
        assert parse_line_item_entries(None) == []

    def test_malformed_row_fails_whole_parse(self):
        with pytest.raises(InvalidLineItem):
            parse_line_item_entries([(1, 5), (2, "x")])


class TestCombineQuantities:
    """Tests for combine_quantities()."""

    def test_duplicates_summed(self):
        assert combine_quantities([LineItemEntry(1, 5), LineItemEntry(1, 10)]) == {1: 15}

    def test_order_independent(self):
        forward = combine_quantities([LineItemEntry(1, 5), LineItemEntry(2, 3), LineItemEntry(1, 10)])
        backward = combine_quantities([LineItemEntry(1, 10), LineItemEntry(2, 3), LineItemEntry(1, 5)])
        assert forward == backward == {1: 15, 2: 3}

    def test_idempotent(self):
        once = combine_quantities([LineItemEntry(1, 5), LineItemEntry(1, 10), LineItemEntry(2, 1)])
        twice = combine_quantities(LineItemEntry(item_id, qty) for item_id, qty in once.items())
        assert once == twice

    def test_first_appearance_order(self):
        combined = combine_quantities([LineItemEntry(2, 1), LineItemEntry(1, 1), LineItemEntry(2, 1)])
        assert list(combined) == [2, 1]

    def test_overflowing_sum_rejected(self):
        with pytest.raises(InvalidLineItem):
            combine_quantities([LineItemEntry(1, MAX_LINE_ITEM_QUANTITY), LineItemEntry(1, 1)])


class TestValidateLineItems:
    """Tests for validate_line_items() on an unsaved purchase."""

    def test_missing_quantity_rejected(self):
        purchase = Purchase()
        purchase.line_items.append(LineItem(item_id=1, quantity=None))
        with pytest.raises(InvalidLineItem):
            validate_line_items(purchase)

    def test_zero_quantity_rejected(self):
        purchase = Purchase()
        purchase.line_items.append(LineItem(item_id=1, quantity=0))
        with pytest.raises(InvalidLineItem, match="greater than 0"):
            validate_line_items(purchase)

    def test_missing_item_rejected(self):
        purchase = Purchase()
        purchase.line_items.append(LineItem(quantity=3))
        with pytest.raises(InvalidLineItem, match="item is required"):
            validate_line_items(purchase)

    def test_string_quantity_normalized(self):
        purchase = Purchase()
        purchase.line_items.append(LineItem(item_id=1, quantity="7"))
        validate_line_items(purchase)
        assert purchase.line_items[0].quantity == 7


class TestResolveItems:
    """Tests for resolve_items()."""

    def test_known_items(self, db_session, organization, items):
        resolved = resolve_items(db_session, organization.id, [items[0].id, items[1].id])
        assert set(resolved) == {items[0].id, items[1].id}

    def test_unknown_item(self, db_session, organization):
        with pytest.raises(InvalidLineItem, match="not found"):
            resolve_items(db_session, organization.id, [9999])

    def test_other_organization_item(self, db_session, organization, other_organization, make_item):
        foreign = make_item("Foreign Wipes", organization_id=other_organization.id)
        with pytest.raises(InvalidLineItem, match="different organization"):
            resolve_items(db_session, organization.id, [foreign.id])

    def test_inactive_items_resolve(self, db_session, organization, make_item):
        inactive = make_item("Retired Pads", active=False)
        assert resolve_items(db_session, organization.id, [inactive.id])[inactive.id] is inactive

    def test_empty(self, db_session, organization):
        assert resolve_items(db_session, organization.id, []) == {}


class TestSyncLineItems:
    """Tests for sync_line_items()."""

    def test_updates_adds_and_removes(self):
        purchase = Purchase()
        kept = LineItem(item_id=1, quantity=5)
        dropped = LineItem(item_id=2, quantity=3)
        purchase.line_items.extend([kept, dropped])

        sync_line_items(purchase, {1: 2, 3: 4})

        assert purchase.line_item_quantities() == {1: 2, 3: 4}
        assert kept in purchase.line_items
        assert dropped not in purchase.line_items

    def test_empty_mapping_clears(self):
        purchase = Purchase()
        purchase.line_items.append(LineItem(item_id=1, quantity=5))
        sync_line_items(purchase, {})
        assert purchase.line_items == []
