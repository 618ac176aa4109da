"""Input validation utilities."""
from typing import Optional

from bson import ObjectId

from supply_ledger.core.exceptions import ValidationError


def parse_object_id(value: str, label: str = "id") -> ObjectId:
    """
    Parse a client supplied id.

    Raises ValidationError for anything that is not a 24-char hex ObjectId.
    """
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(value):
        raise ValidationError(f"Invalid {label}: {value!r}")
    return ObjectId(value)


def to_object_id(value: str) -> Optional[ObjectId]:
    """Lenient variant used by lookups: invalid ids simply match nothing."""
    if isinstance(value, ObjectId):
        return value
    if value and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def require_text(fields: dict) -> dict:
    """
    Validate required text fields.

    Rules:
    - every field must be present
    - whitespace-only values count as missing
    Returns the fields trimmed.
    """
    missing = [name for name, value in fields.items() if not value or not str(value).strip()]
    if missing:
        raise ValidationError(
            f"Missing required field(s): {', '.join(missing)}"
        )
    return {name: str(value).strip() for name, value in fields.items()}
