"""
Legacy Xero date handling.

The Xero accounting API still returns most timestamps in the old .NET JSON
format, e.g. ``/Date(1580000000000+0000)/`` (milliseconds since the Unix
epoch plus an optional display offset). Everything past the connector layer
works with RFC3339 strings instead.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any

_DOTNET_DATE_RE = re.compile(r"^/Date\((-?\d+)([+-]\d{4})?\)/$")


def is_dotnet_date(value: Any) -> bool:
    """Return True if *value* is a legacy ``/Date(...)/`` string."""
    return isinstance(value, str) and _DOTNET_DATE_RE.match(value) is not None


def dotnet_to_rfc3339(value: str, utc: bool = True) -> str:
    """Convert a .NET JSON date into an RFC3339 timestamp.

    Args:
        value: ``/Date(ms)/`` or ``/Date(ms+hhmm)/``. Empty strings and
            values that are already RFC3339 are returned unchanged.
        utc: Render in UTC (``Z`` suffix). When False, the offset carried by
            the legacy value is used for display.

    Raises:
        ValueError: If *value* is neither format or lies outside the supported range.
    """
    if not value:
        return value

    match = _DOTNET_DATE_RE.match(value)
    if match is None:
        _parse_rfc3339(value)
        return value

    millis = int(match.group(1))
    try:
        moment = datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=millis)
    except OverflowError:
        raise ValueError(f"Date out of range: {value!r}") from None
    moment = moment.replace(microsecond=0)

    offset = match.group(2)
    if utc or not offset:
        return moment.strftime("%Y-%m-%dT%H:%M:%SZ")

    sign = -1 if offset[0] == "-" else 1
    delta = timedelta(hours=int(offset[1:3]), minutes=int(offset[3:5]))
    return moment.astimezone(timezone(sign * delta)).isoformat()


def _parse_rfc3339(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"Not a .NET JSON or RFC3339 date: {value!r}") from None


def normalize_dates(payload: Any, utc: bool = True) -> Any:
    """Rewrite every legacy date string found in *payload*, in place.

    Walks nested dicts and lists. Returns the payload for convenience.
    """
    if isinstance(payload, dict):
        for key, item in payload.items():
            if is_dotnet_date(item):
                payload[key] = dotnet_to_rfc3339(item, utc)
            else:
                normalize_dates(item, utc)
    elif isinstance(payload, list):
        for idx, item in enumerate(payload):
            if is_dotnet_date(item):
                payload[idx] = dotnet_to_rfc3339(item, utc)
            else:
                normalize_dates(item, utc)
    return payload
