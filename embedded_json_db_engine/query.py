from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional

_MISSING = object()
_NUMBER = (int, float)


def strict_equal(a: Any, b: Any) -> bool:
    """
    Equality with no type coercion: 1 == 1.0 but True != 1 and "1" != 1.
    Containers are equal only when they are the very same object.
    """
    if isinstance(a, (dict, list, tuple)) or isinstance(b, (dict, list, tuple)):
        return a is b
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, _NUMBER) and isinstance(b, _NUMBER):
        return a == b
    return type(a) is type(b) and a == b


def matches(record: Mapping[str, Any], flt: Mapping[str, Any]) -> bool:
    """True iff every field in `flt` is present on `record` with a strictly equal value."""
    for key, want in flt.items():
        have = record.get(key, _MISSING)
        if have is _MISSING or not strict_equal(have, want):
            return False
    return True


def scan(collection: Mapping[str, Dict[str, Any]], flt: Mapping[str, Any], *, keys: bool = False) -> List[Any]:
    """
    Walk the collection in its current order and collect either the matching
    records or their ids. Ids are the only handle that stays valid while the
    caller mutates the collection.
    """
    out: List[Any] = []
    for rec_id, rec in collection.items():
        if matches(rec, flt):
            out.append(rec_id if keys else rec)
    return out


def first_match(collection: Mapping[str, Dict[str, Any]], flt: Mapping[str, Any]) -> Optional[str]:
    for rec_id, rec in collection.items():
        if matches(rec, flt):
            return rec_id
    return None


def is_simple_filter(flt: Mapping[str, Any]) -> bool:
    """Non-empty conjunction of scalar equality terms only."""
    if not flt:
        return False
    return not any(isinstance(v, (dict, list, tuple)) for v in flt.values())
