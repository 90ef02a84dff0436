from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

import orjson


def _default(o: Any):
    # Decimals stay strings so cached money and distances keep exact digits
    if isinstance(o, Decimal):
        return str(o)
    if isinstance(o, (datetime, date)):
        return o.isoformat()
    raise TypeError(f"Type is not JSON serializable: {type(o).__name__}")


def dumps_bytes(obj: Any) -> bytes:
    return orjson.dumps(obj, option=orjson.OPT_NON_STR_KEYS, default=_default)


def dumps(obj: Any) -> str:
    """Serialize obj to a compact JSON string (UTF-8)."""
    return dumps_bytes(obj).decode("utf-8")


def loads(data: str | bytes) -> Any:
    return orjson.loads(data)
