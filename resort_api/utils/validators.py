"""
Validation utility functions
"""
import re
from datetime import date, datetime, timezone
from typing import Any, Optional, Tuple

from email_validator import EmailNotValidError, validate_email as check_email

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
PHONE_PATTERN = re.compile(r"^\+?\d{7,15}$")
# Characters stripped from phone numbers before validation and storage
PHONE_FORMATTING = re.compile(r"[\s()\-]")

DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%d-%m-%Y", "%d/%m/%Y")


def validate_email(email: Any) -> bool:
    """
    Validate email format

    Args:
        email: Email address to validate

    Returns:
        True if email is valid, False otherwise
    """
    if not isinstance(email, str) or not email.strip():
        return False
    try:
        check_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def validate_name(name: Any, max_length: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    if not isinstance(name, str) or len(name.strip()) < 2:
        return False, "Name must be at least 2 characters long"
    if max_length is not None and len(name.strip()) > max_length:
        return False, f"Name must be at most {max_length} characters long"
    return True, None


def validate_max_length(value: Any, max_length: int, label: str) -> Tuple[bool, Optional[str]]:
    """
    Check a free-text value against the size of the column that stores it

    Args:
        value: Value to check, already stripped if it is stored stripped
        max_length: Column size
        label: Field name used in the error message

    Returns:
        (True, None) if the value fits, (False, error_message) otherwise
    """
    if isinstance(value, str) and len(value) > max_length:
        return False, f"{label} must be at most {max_length} characters long"
    return True, None


def validate_username(username: Any) -> Tuple[bool, Optional[str]]:
    """
    Validate username format

    Args:
        username: Username to validate

    Returns:
        (True, None) if username is valid, (False, error_message) otherwise
    """
    if not isinstance(username, str) or len(username) < 3 or len(username) > 20:
        return False, "Username must be between 3 and 20 characters"

    if not USERNAME_PATTERN.match(username):
        return False, "Username can only contain letters, numbers, and underscores"

    return True, None


def validate_password(password: Any) -> Tuple[bool, Optional[str]]:
    if not isinstance(password, str) or len(password) < 6:
        return False, "Password must be at least 6 characters long"
    # bcrypt cannot hash NUL bytes
    if "\x00" in password:
        return False, "Password must not contain null characters"
    return True, None


def normalize_phone_number(phone_number: str) -> str:
    """Strip whitespace, parentheses and hyphens from a phone number"""
    return PHONE_FORMATTING.sub("", phone_number)


def validate_phone_number(phone_number: Any) -> bool:
    """
    Validate an already normalized phone number (not country-specific)

    Args:
        phone_number: Phone number to validate

    Returns:
        True if phone number is valid, False otherwise
    """
    return isinstance(phone_number, str) and bool(PHONE_PATTERN.match(phone_number))


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse a calendar date or an ISO 8601 timestamp

    Date-only values are taken as midnight UTC, naive timestamps as UTC.

    Args:
        value: String to parse

    Returns:
        Timezone-aware datetime, or None if the value is not a real date
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        parsed = None
        for fmt in DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
        if parsed is None:
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def validate_required_fields(*values: Any) -> bool:
    """
    Check that every value is present and, for strings, not blank
    """
    for value in values:
        if value is None:
            return False
        if isinstance(value, str) and not value.strip():
            return False
    return True
