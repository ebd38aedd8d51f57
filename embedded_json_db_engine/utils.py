from __future__ import annotations
import json
import math
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set

from .errors import ValidationError

ID_FIELD = "_id"


def new_uid(length: int = 16) -> str:
    # Random lowercase hex; 16 chars gives 64 bits of entropy.
    return secrets.token_hex((length + 1) // 2)[:length]


def now_stamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def pretty_json(obj: Any, indent: int = 2) -> str:
    return json.dumps(obj, indent=indent, ensure_ascii=False, allow_nan=False)


def json_copy(obj: Any) -> Any:
    # Detached copy in JSON shapes (tuples become lists)
    return json.loads(json.dumps(obj, ensure_ascii=False, allow_nan=False))


def check_json_value(value: Any, where: str = "value", _active: Optional[Set[int]] = None) -> None:
    """
    Raise ValidationError unless `value` survives a JSON round trip unchanged:
    str/int/float/bool/None, lists/tuples of those, dicts with str keys.
    Containers that contain themselves are rejected.
    """
    if value is None or isinstance(value, (str, bool, int)):
        return
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValidationError(f"{where}: NaN/Infinity is not valid JSON")
        return
    if isinstance(value, (list, tuple, dict)):
        active = set() if _active is None else _active
        if id(value) in active:
            raise ValidationError(f"{where}: circular reference")
        active.add(id(value))
        if isinstance(value, dict):
            for k, v in value.items():
                if not isinstance(k, str):
                    raise ValidationError(f"{where}: key {k!r} is not a string")
                check_json_value(v, f"{where}.{k}", active)
        else:
            for i, item in enumerate(value):
                check_json_value(item, f"{where}[{i}]", active)
        active.discard(id(value))
        return
    raise ValidationError(f"{where}: {type(value).__name__} is not JSON-representable")


def check_mapping(obj: Any, what: str) -> Dict[str, Any]:
    if not isinstance(obj, dict):
        raise ValidationError(f"{what} must be a dict, got {type(obj).__name__}")
    check_json_value(obj, what)
    return obj
