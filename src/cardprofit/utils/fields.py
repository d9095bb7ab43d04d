"""Ordered-fallback access to loosely shaped JSON records."""
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Sequence


def first_present(record: Mapping[str, Any], keys: Sequence[str]) -> Optional[Any]:
    """
    Return the value of the first key whose value is present and non-empty.

    None, empty strings and zero count as absent, matching how the upstream
    batch producers leave unused columns.

    Args:
        record: Source record
        keys: Candidate field names, in priority order

    Returns:
        The first usable value, or None
    """
    if not isinstance(record, Mapping):
        return None

    for key in keys:
        value = record.get(key)
        if value is None or value == "" or value == 0:
            continue
        return value
    return None


def has_any_field(record: Mapping[str, Any], keys: Sequence[str]) -> bool:
    """True if the record declares at least one of the keys, whatever its value."""
    if not isinstance(record, Mapping):
        return False
    return any(key in record for key in keys)


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Coerce a JSON scalar to Decimal.

    Numeric strings may carry thousands separators ("12,000"). Anything that
    is not a finite number yields None.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "")
        if not cleaned:
            return None
        try:
            number = Decimal(cleaned)
        except InvalidOperation:
            return None
    else:
        return None

    if not number.is_finite():
        return None
    return number
