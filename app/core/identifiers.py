import uuid
from typing import Optional

from app.core.exceptions import ValidationError


def parse_id(value: Optional[str], label: str) -> str:
    """Normalise a UUID path/query parameter or raise ValidationError("Invalid <label> ID")."""
    try:
        return str(uuid.UUID(value))
    except (ValueError, TypeError, AttributeError):
        raise ValidationError(f"Invalid {label} ID")


def parse_optional_id(value: Optional[str]) -> Optional[str]:
    """Like parse_id, but a missing or malformed value is treated as absent."""
    if value is None:
        return None
    try:
        return str(uuid.UUID(value))
    except (ValueError, TypeError, AttributeError):
        return None
