"""Time helpers shared by the alert engine."""

import math
import time
from datetime import datetime
from typing import Any


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def parse_float(raw: Any) -> float:
    """Parse a telemetry value; anything non-numeric or non-finite becomes 0.0."""
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def parse_timestamp_ms(raw: Any) -> int | None:
    """
    Parse an epoch-millisecond timestamp.

    Accepts numbers, numeric strings and ISO-8601 strings.
    Returns None for anything missing, non-positive or unparsable.
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        try:
            value = float(text)
        except ValueError:
            try:
                value = datetime.fromisoformat(text.replace("Z", "+00:00")).timestamp() * 1000
            except ValueError:
                return None
    else:
        return None

    if not math.isfinite(value) or value <= 0:
        return None
    return int(value)


def format_elapsed(ms: int | float | None) -> str:
    """Human-readable elapsed time, e.g. '1h 5m', '3m 20s', '45s'."""
    if ms is None or not math.isfinite(ms) or ms <= 0:
        return "0s"

    total_seconds = int(ms // 1000)
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if hours == 0 and seconds > 0:
        parts.append(f"{seconds}s")

    return " ".join(parts) or "0s"
