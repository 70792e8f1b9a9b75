"""
Literal parsing for the command line.

Numbers:
    0b1010   binary        0o17   octal
    0x1F     hex           1Fh    hex (trailing h)
    31       decimal
  Prefixes and the suffix are case-insensitive. The value must fit the
  requested cell type.

Durations (humantime style):
    100ms    2s    1min 30s    1h30m    250us
  One or more <integer><unit> items, optionally separated by whitespace.
"""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Dict, List

from bf_runtime.cells import CellType


def parse_number(text: str, cell_type: CellType) -> int:
    """Parse a numeric literal for cell_type. Raises ValueError."""
    lowered = text.lower()
    radix = 10
    digits = text
    if lowered.startswith("0b"):
        radix, digits = 2, text[2:]
    elif lowered.startswith("0o"):
        radix, digits = 8, text[2:]
    elif lowered.startswith("0x"):
        radix, digits = 16, text[2:]
    elif lowered.endswith("h"):
        radix, digits = 16, text[:-1]
    return cell_type.from_str_radix(digits, radix)


# ──────────────────────────────────────────────
# Durations
# ──────────────────────────────────────────────

_NS = 1
_US = 1_000
_MS = 1_000_000
_SEC = 1_000_000_000
_MIN = 60 * _SEC
_HOUR = 60 * _MIN
_DAY = 24 * _HOUR
_WEEK = 7 * _DAY
_MONTH = 2_630_016 * _SEC      # 30.44 days
_YEAR = 31_557_600 * _SEC      # 365.25 days

DURATION_UNITS: Dict[str, int] = {
    "nanos": _NS, "nsec": _NS, "ns": _NS,
    "micros": _US, "usec": _US, "us": _US, "µs": _US,
    "millis": _MS, "msec": _MS, "ms": _MS,
    "seconds": _SEC, "second": _SEC, "secs": _SEC, "sec": _SEC, "s": _SEC,
    "minutes": _MIN, "minute": _MIN, "mins": _MIN, "min": _MIN, "m": _MIN,
    "hours": _HOUR, "hour": _HOUR, "hrs": _HOUR, "hr": _HOUR, "h": _HOUR,
    "days": _DAY, "day": _DAY, "d": _DAY,
    "weeks": _WEEK, "week": _WEEK, "w": _WEEK,
    "months": _MONTH, "month": _MONTH, "M": _MONTH,
    "years": _YEAR, "year": _YEAR, "y": _YEAR,
}

# Largest value timedelta can hold, in nanoseconds
_MAX_NS = (timedelta.max // timedelta(microseconds=1)) * _US

_ITEM = re.compile(r'(\d+)\s*([^\d\s]*)', re.ASCII)


class DurationError(ValueError):
    pass


def parse_duration(text: str) -> timedelta:
    """Parse a humantime-style duration. Raises DurationError.

    Precision below one microsecond is truncated.
    """
    if not text.strip():
        raise DurationError("value was empty")

    total_ns = 0
    pos = 0
    while pos < len(text):
        if text[pos].isspace():
            pos += 1
            continue
        m = _ITEM.match(text, pos)
        if m is None:
            raise DurationError(f"expected number at {pos}")
        number, unit = m.group(1), m.group(2)
        if not unit:
            raise DurationError(
                f"time unit needed, for example {number}sec or {number}ms")
        if unit not in DURATION_UNITS:
            raise DurationError(
                f"unknown time unit {unit!r}, supported units: "
                "ns, us, ms, sec, min, hours, days, weeks, months, years "
                "(and few variations)")
        total_ns += int(number) * DURATION_UNITS[unit]
        if total_ns > _MAX_NS:
            raise DurationError("number is too large")
        pos = m.end()

    return timedelta(microseconds=total_ns // _US)


def format_duration(value: timedelta) -> str:
    """Render a duration the way parse_duration reads it, e.g. '1s 500ms'."""
    remaining = value // timedelta(microseconds=1) * _US
    if remaining <= 0:
        return "0s"
    parts: List[str] = []
    for unit, size in (("y", _YEAR), ("M", _MONTH), ("d", _DAY), ("h", _HOUR),
                       ("m", _MIN), ("s", _SEC), ("ms", _MS), ("us", _US)):
        count, remaining = divmod(remaining, size)
        if count:
            parts.append(f"{count}{unit}")
    return " ".join(parts)
