"""
Constants for the Essentials Tracker application.

This module defines all system-wide constants including:
- Application metadata
- Purchase money fields and cost categories
- Line item quantity limits
- Database and date formats
"""

from typing import Dict, List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Essentials Tracker"
APP_VERSION = "0.1.0"
DATABASE_VERSION = "1.0"

# ============================================================================
# Purchase Money Fields
# ============================================================================

# Declared total, nullable (purchasers may not record one)
AMOUNT_SPENT_FIELD = "amount_spent_in_cents"

# Category subtotals, default 0
COST_CATEGORY_FIELDS: List[str] = [
    "diapers_money_cents",
    "adult_incontinence_money_cents",
    "other_money_cents",
]

COST_CATEGORY_LABELS: Dict[str, str] = {
    "diapers_money_cents": "Spent on Diapers",
    "adult_incontinence_money_cents": "Spent on Adult Incontinence",
    "other_money_cents": "Spent on Other",
}

MONEY_FIELDS: List[str] = [AMOUNT_SPENT_FIELD] + COST_CATEGORY_FIELDS

CURRENCY_SYMBOL = "$"
CURRENCY_DECIMAL_PLACES = 2

# ============================================================================
# Line Item Limits
# ============================================================================

# Quantities are stored in a 32-bit integer column
MAX_LINE_ITEM_QUANTITY = 2**31 - 1

# ============================================================================
# Item Reactivation Policy
# ============================================================================

REACTIVATION_REACTIVATE = "reactivate"
REACTIVATION_REJECT = "reject"
DEFAULT_ITEM_REACTIVATION = REACTIVATION_REACTIVATE

# ============================================================================
# Database Constants
# ============================================================================

DATABASE_FILENAME = "essentials_tracker.db"

# ============================================================================
# Date/Time Formats
# ============================================================================

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
