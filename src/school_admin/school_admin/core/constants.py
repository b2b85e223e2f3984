"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

DUE_DAY_OF_MONTH = 15
DEFAULT_SECTION = "A"

DEFAULT_PAGE_LIMIT = 50
MAX_PAGE_LIMIT = 500

MAX_INVOICE_ATTEMPTS = 5
MAX_ROLL_NUMBER_ATTEMPTS = 5

DEFAULT_TOKEN_HOURS = 24
MIN_PASSWORD_LENGTH = 6

# Store-level unique key names (see database/schema.sql).
KEY_FEE_INVOICE = "uq_fees_invoice_number"
KEY_FEE_PERIOD = "uq_fees_student_period"
KEY_STUDENT_ROLL = "uq_students_roll_number"
KEY_STRUCTURE_ACTIVE = "uq_fee_structures_active"
KEY_USER_EMAIL = "uq_users_email"

# Billing years accepted on requests; due dates roll into year + 1.
MIN_FEE_YEAR = 2000
MAX_FEE_YEAR = 2100

# Largest value a DECIMAL(12,2) money column holds.
MAX_AMOUNT = Decimal("9999999999.99")
