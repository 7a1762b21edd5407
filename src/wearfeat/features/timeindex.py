"""Time indexing for intraday windows.

Every windowed aggregator works in "minutes since local midnight".  Samples
carry either a bare clock time (``"HH:mm"`` / ``"HH:mm:ss"``) or a full
timestamp; both are reduced to a minute offset within the day they encode.
A window that crosses midnight is handled by shifting samples that are
"later in the day" than the anchor back by one day (see
:func:`normalize_minutes_for_window`).
"""

from __future__ import annotations

import math
from datetime import datetime, timezone, tzinfo

from wearfeat.errors import InvalidAnchorError


MINUTES_PER_DAY = 1440


# ---------------------------------------------------------------------------
# Clock parsing
# ---------------------------------------------------------------------------


def _int_or_zero(part: str) -> int | None:
    part = part.strip()
    if not part:
        return 0
    # Tolerate fractional seconds such as "05.000"
    head = part.split(".", 1)[0]
    if not head.isdigit():
        return None
    return int(head)


def parse_time_to_minutes(raw: object) -> float | None:
    """Convert a clock string or ISO timestamp to minutes since midnight.

    Accepts ``"HH:mm"``, ``"HH:mm:ss"`` or ``"YYYY-MM-DDTHH:mm:ss..."``.
    The result is ``h*60 + m + s/60`` within whatever day the string encodes.

    Returns None if the value cannot be parsed.
    """
    if raw is None:
        return None
    s = str(raw).strip()
    if not s:
        return None

    if len(s) >= 16 and s[10] == "T":
        clock = s[11:19]
    else:
        clock = s

    parts = clock.split(":")
    if len(parts) < 2 or len(parts) > 3:
        return None

    values = [_int_or_zero(p) for p in parts]
    if any(v is None for v in values):
        return None

    h, m = values[0], values[1]
    sec = values[2] if len(values) == 3 else 0
    if h > 24 or m > 59 or sec > 60:
        return None
    return h * 60 + m + sec / 60.0


def minutes_since_midnight(anchor: datetime) -> float:
    """Minutes since local midnight of the anchor's own wall clock."""
    return anchor.hour * 60 + anchor.minute + anchor.second / 60.0


def normalize_minutes_for_window(
    sample_minutes: float | None,
    anchor_minutes: float,
) -> float | None:
    """Place a sample on the anchor's minute axis.

    A sample whose clock time is later in the day than the anchor belongs to
    the previous calendar day, so it is shifted by -1440.  This lets windows
    such as "last 60 minutes" cross midnight.

    Returns None for non-finite input.
    """
    if sample_minutes is None:
        return None
    try:
        value = float(sample_minutes)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    if value > anchor_minutes:
        return value - MINUTES_PER_DAY
    return value


# ---------------------------------------------------------------------------
# Anchor handling
# ---------------------------------------------------------------------------


def resolve_anchor(value: object) -> datetime:
    """Validate an anchor and return it as an aware datetime.

    Naive datetimes are interpreted as UTC.  ISO-8601 strings are accepted,
    including a trailing ``Z``.

    Raises:
        InvalidAnchorError: if *value* is not a valid point in time.
    """
    if isinstance(value, datetime):
        anchor = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            anchor = datetime.fromisoformat(text)
        except ValueError as exc:
            raise InvalidAnchorError(f"anchor is not an ISO-8601 timestamp: {value!r}") from exc
    else:
        raise InvalidAnchorError(f"anchor must be a datetime or ISO string, got {value!r}")

    if anchor.tzinfo is None or anchor.utcoffset() is None:
        anchor = anchor.replace(tzinfo=timezone.utc)
    return anchor


def localize_anchor(anchor: datetime, tz: tzinfo) -> datetime:
    """Convert an aware anchor into the local zone *tz*."""
    return anchor.astimezone(tz)


def parse_local_timestamp(raw: object, tz: tzinfo | None = None) -> datetime | None:
    """Parse a full timestamp into a naive local datetime.

    Upstream sleep/exercise timestamps are local wall-clock strings without
    an offset (``"2025-11-18T23:30:00.000"``) and are returned as-is.  Aware
    timestamps are converted to *tz* first, then made naive.

    Returns None when the value is missing or unparseable.
    """
    if raw is None:
        return None
    if isinstance(raw, datetime):
        parsed = raw
    else:
        text = str(raw).strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None

    if parsed.tzinfo is not None:
        if tz is not None:
            parsed = parsed.astimezone(tz)
        parsed = parsed.replace(tzinfo=None)
    return parsed


def local_naive(anchor: datetime) -> datetime:
    """The anchor's local wall-clock time without tzinfo."""
    return anchor.replace(tzinfo=None)


def local_fractional_hour(dt: datetime) -> float:
    """Wall-clock hour as a fraction, e.g. 22:30 -> 22.5."""
    return dt.hour + dt.minute / 60.0
