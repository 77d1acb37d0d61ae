"""Duration parsing for task values: seconds, "250ms"/"2s"/"5m"/"1h", ISO-8601 "PT2S"."""
from __future__ import annotations

import re
from datetime import timedelta

_SIMPLE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$", re.IGNORECASE)
_ISO = re.compile(
    r"^P(?:(?P<days>\d+(?:\.\d+)?)D)?"
    r"(?:T(?:(?P<hours>\d+(?:\.\d+)?)H)?(?:(?P<minutes>\d+(?:\.\d+)?)M)?(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$",
    re.IGNORECASE,
)
_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: object) -> timedelta:
    """Raises ValueError for anything that is not a non-negative duration."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a duration: {value!r}")
    if isinstance(value, (int, float)):
        if value < 0:
            raise ValueError(f"Negative duration: {value!r}")
        return timedelta(seconds=value)
    if not isinstance(value, str):
        raise ValueError(f"Not a duration: {value!r}")

    m = _SIMPLE.match(value)
    if m:
        amount, unit = m.groups()
        return timedelta(seconds=float(amount) * _UNITS[(unit or "s").lower()])

    m = _ISO.match(value.strip())
    if m and value.strip().upper() not in ("P", "PT"):
        parts = {k: float(v) for k, v in m.groupdict().items() if v}
        return timedelta(**parts)

    raise ValueError(f"Not a duration: {value!r}")


def to_millis(value: timedelta) -> int:
    return int(round(value.total_seconds() * 1000))
