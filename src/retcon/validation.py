"""Field validation for editable commit metadata.

Pure functions with no state. ``validate_email`` is deliberately permissive: it
rejects obviously malformed input rather than every address RFC 5322 would.
``validate_date`` accepts a handful of progressively shorter layouts and always
returns a timezone-aware datetime; layouts without an offset are taken as UTC.
"""

from datetime import datetime, timezone

from retcon.errors import InvalidDate, InvalidEmail

DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"

# Tried in order, first match wins.
_ZONED_FORMATS = ("%Y-%m-%d %H:%M:%S %z", "%Y-%m-%d %H:%M:%S%z")
_NAIVE_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%Y-%m-%d")


def validate_email(value: str) -> None:
    """Raise InvalidEmail unless *value* looks like ``local@domain.tld``."""
    if any(ch.isspace() for ch in value) or value.count("@") != 1:
        raise InvalidEmail(value)
    local, domain = value.split("@")
    if not local or not domain:
        raise InvalidEmail(value)
    if "." not in domain or domain.startswith(".") or domain.endswith("."):
        raise InvalidEmail(value)


def validate_date(value: str) -> datetime:
    """Parse *value* into an aware datetime or raise InvalidDate."""
    text = value.strip()
    for fmt in _ZONED_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    for fmt in _NAIVE_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    raise InvalidDate(value)


def format_date(value: datetime) -> str:
    """Render *value* in the canonical layout accepted back by validate_date."""
    return value.strftime(DATE_FORMAT)


def format_short_date(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")
