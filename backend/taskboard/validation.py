"""
Taskboard Backend — Validation Rules
======================================

What:  Pure predicates for phone, email, date and non-empty-string checks,
       plus the storage-side CHECK expressions built from the same patterns.
How:   Every layer that enforces a rule imports it from here:
       1. Application boundary: Pydantic validators in `taskboard.schemas`
       2. ORM boundary: `@validates` hooks in `taskboard.models`
       3. Database boundary: CHECK constraints from the `*_check()` builders
Who:   Schemas, models, the Alembic revision and the test suite.

"Today" is always the UTC calendar date, matching CURRENT_DATE on a
database server running in UTC.
"""

import re
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

import sqlalchemy as sa

# Patterns are evaluated by Python re (predicates, SQLite REGEXP) and by
# PostgreSQL ~, so they use only syntax both read the same way: [0-9] rather
# than \d (Unicode digits in Python) and \Z rather than $ (Python's $ also
# matches before a trailing newline).

# Phone: Ukrainian mobile in international (+380XXXXXXXXX) or local (0XXXXXXXXX) form
PHONE_PATTERN = r"^(\+380[0-9]{9}|0[0-9]{9})\Z"

# Email: something@something.tld with no spaces, line breaks or tabs and a single @
EMAIL_PATTERN = r"^[^@ \t\r\n]+@[^@ \t\r\n]+\.[^@ \t\r\n]+\Z"

NICKNAME_MAX_LENGTH = 64
EMAIL_MAX_LENGTH = 255
PASSWORD_MAX_LENGTH = 72  # bcrypt ignores bytes past 72

# Field-level messages shared by every enforcement site
MESSAGES: Dict[str, str] = {
    "nickname": "Nickname must not be empty",
    "email": "Email must be a valid address",
    "tel": "Phone must match +380XXXXXXXXX or 0XXXXXXXXX",
    "birthday": "Birthday must not be in the future",
    "body": "Task body must not be empty",
    "deadline": "Deadline must not be in the past",
    "password": "Password must not be empty",
}


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def is_valid_phone(value: Any) -> bool:
    """True iff `value` is +380 or 0 followed by exactly nine ASCII digits."""
    return isinstance(value, str) and re.search(PHONE_PATTERN, value) is not None


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and re.search(EMAIL_PATTERN, value) is not None


def is_valid_birthday(value: Any, today: Optional[date] = None) -> bool:
    """True iff `value` is on or before today."""
    if not isinstance(value, date):
        return False
    if isinstance(value, datetime):
        value = value.date()
    return value <= (today or utc_today())


def is_valid_deadline(value: Any, today: Optional[date] = None) -> bool:
    """True iff `value` is on or after today."""
    if not isinstance(value, date):
        return False
    if isinstance(value, datetime):
        value = value.date()
    return value >= (today or utc_today())


def is_non_empty(value: Any) -> bool:
    """True iff the trimmed string has at least one character."""
    return isinstance(value, str) and len(value.strip()) > 0


# ══════════════════════════════════════════════════════════════════════════
# Storage-side CHECK expressions
# ══════════════════════════════════════════════════════════════════════════
# Rendered through SQLAlchemy so the pattern text is the constant above:
#   PostgreSQL: tel ~ '<PHONE_PATTERN>'
#   SQLite:     tel REGEXP '<PHONE_PATTERN>'  (REGEXP is re.search, registered by SQLAlchemy)


def phone_check(column: str = "tel") -> sa.ColumnElement:
    return sa.column(column).regexp_match(PHONE_PATTERN)


def email_check(column: str = "email") -> sa.ColumnElement:
    return sa.column(column).regexp_match(EMAIL_PATTERN)


def non_empty_check(column: str) -> sa.ColumnElement:
    return sa.func.length(sa.func.trim(sa.column(column))) > 0


def not_after_today_check(column: str) -> sa.ColumnElement:
    # PostgreSQL only: SQLite rejects CURRENT_DATE inside CHECK
    return sa.column(column, sa.Date) <= sa.func.current_date()


def not_before_today_check(column: str) -> sa.ColumnElement:
    return sa.column(column, sa.Date) >= sa.func.current_date()
