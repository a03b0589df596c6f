"""
Request Sanitizer
Coerces untyped request payloads into MemberCreate / MemberUpdate records.
"""

import math
from typing import Any, Dict, Optional, Union

from members_api.schemas.member import MemberCreate, MemberUpdate

STRING_FIELDS = (
    "name", "pseudonym", "title", "descript", "owner",
    "ethnicity", "eyes", "hair", "height", "religion", "image",
)
NUMBER_FIELDS = ("born", "died", "weight", "hp", "level")
LIST_FIELDS = ("classes", "races", "groups")
REFERENCE_FIELDS = ("colour_hex", "caster_colour", "tower_id")

# Create-time values for numeric fields that are missing or falsy.
CREATE_NUMBER_DEFAULTS: Dict[str, Optional[int]] = {
    "born": None,
    "died": None,
    "weight": 0,
    "hp": 1,
    "level": 1,
}


def to_number(value: Any, field: str) -> Union[int, float]:
    """Parse a numeric field; integral values come back as int."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        number = value
    else:
        text = str(value).strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            raise ValueError(f"Invalid number for '{field}': {value!r}")
    if not math.isfinite(number):
        raise ValueError(f"Invalid number for '{field}': {value!r}")
    return int(number) if number.is_integer() else number


def _clean_str(value: Any) -> str:
    return "" if value is None else str(value).strip()


def sanitize_create_member_request(raw: Dict[str, Any]) -> MemberCreate:
    """
    Build a create record, applying defaults for everything omitted.

    Numeric fields are parsed only when the supplied value is truthy, so an
    explicit 0 counts as "not provided" and hp/level come back as 1.
    """
    if not isinstance(raw, dict):
        raise ValueError("Member data must be a JSON object")

    data: Dict[str, Any] = {}
    for field in STRING_FIELDS:
        data[field] = _clean_str(raw.get(field))
    for field, default in CREATE_NUMBER_DEFAULTS.items():
        value = raw.get(field)
        data[field] = to_number(value, field) if value else default
    for field in LIST_FIELDS:
        value = raw.get(field)
        data[field] = value if isinstance(value, list) else []
    for field in REFERENCE_FIELDS:
        data[field] = raw.get(field) or None

    return MemberCreate(**data)


def sanitize_update_member_request(raw: Dict[str, Any]) -> MemberUpdate:
    """
    Build a partial update containing only the fields present in ``raw``.

    Unlike create, numeric values are parsed whenever the key is present,
    so 0 is written as 0. An explicit null clears the attribute.
    """
    if not isinstance(raw, dict):
        raise ValueError("Member data must be a JSON object")

    data: Dict[str, Any] = {}
    for field in STRING_FIELDS:
        if field in raw:
            value = raw[field]
            data[field] = None if value is None and field != "name" else _clean_str(value)
    for field in NUMBER_FIELDS:
        if field in raw:
            value = raw[field]
            data[field] = None if value is None else to_number(value, field)
    for field in LIST_FIELDS:
        if field in raw:
            value = raw[field]
            data[field] = value if isinstance(value, list) else []
    for field in REFERENCE_FIELDS:
        if field in raw:
            data[field] = raw[field]

    return MemberUpdate(**data)
