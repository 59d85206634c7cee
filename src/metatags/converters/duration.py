"""Duration literals such as ``300ms``, ``-1.5h`` or ``2h45m``.

A duration is a signed 64-bit count of nanoseconds written as a sequence of
decimal numbers, each with an optional fraction and a unit suffix. Valid units
are ``ns``, ``us`` (or ``µs``), ``ms``, ``s``, ``m`` and ``h``. Values are
handed to Python as :class:`datetime.timedelta`, which stores microseconds;
sub-microsecond remainders are rounded half to even.
"""

from __future__ import annotations

import re
from datetime import timedelta
from fractions import Fraction
from typing import Dict

_NANOSECOND = 1
_MICROSECOND = 1000 * _NANOSECOND
_MILLISECOND = 1000 * _MICROSECOND
_SECOND = 1000 * _MILLISECOND
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE

_UNITS: Dict[str, int] = {
    "ns": _NANOSECOND,
    "us": _MICROSECOND,
    "µs": _MICROSECOND,  # U+00B5 micro sign
    "μs": _MICROSECOND,  # U+03BC Greek small letter mu
    "ms": _MILLISECOND,
    "s": _SECOND,
    "m": _MINUTE,
    "h": _HOUR,
}

_MAX_NANOSECONDS = 2**63 - 1
_MIN_NANOSECONDS = -(2**63)
_MAX_DIGITS = 20

_COMPONENT = re.compile(r"([0-9]*)(?:\.([0-9]*))?([^0-9.]*)")


class DurationSyntaxError(ValueError):
    pass


def parse_nanoseconds(text: str) -> int:
    """Parse a duration literal into a nanosecond count."""
    original = text
    negative = False
    if text[:1] in ("-", "+"):
        negative = text[0] == "-"
        text = text[1:]

    if text == "0":
        return 0
    if not text:
        raise DurationSyntaxError(f"invalid duration {original!r}")

    total = 0
    pos = 0
    while pos < len(text):
        match = _COMPONENT.match(text, pos)
        whole, frac, unit = match.group(1), match.group(2), match.group(3)
        if not whole and not frac:
            raise DurationSyntaxError(f"invalid duration {original!r}")
        if not unit:
            raise DurationSyntaxError(f"missing unit in duration {original!r}")
        if unit not in _UNITS:
            raise DurationSyntaxError(f"unknown unit {unit!r} in duration {original!r}")

        whole = whole.lstrip("0")
        if len(whole) > _MAX_DIGITS:
            raise DurationSyntaxError(f"duration {original!r} out of range")
        # Digits past the first _MAX_DIGITS are below a nanosecond for every unit.
        frac = frac[:_MAX_DIGITS] if frac else frac

        scale = _UNITS[unit]
        total += int(whole or "0") * scale
        if frac:
            # Fractional parts are truncated to whole nanoseconds.
            total += int(frac) * scale // 10 ** len(frac)
        if total > _MAX_NANOSECONDS + 1:
            raise DurationSyntaxError(f"duration {original!r} out of range")
        pos = match.end()

    if negative:
        total = -total
    if not _MIN_NANOSECONDS <= total <= _MAX_NANOSECONDS:
        raise DurationSyntaxError(f"duration {original!r} out of range")
    return total


def parse_duration(text: str) -> timedelta:
    nanoseconds = parse_nanoseconds(text)
    return timedelta(microseconds=round(Fraction(nanoseconds, _MICROSECOND)))


def to_nanoseconds(value: timedelta) -> int:
    return ((value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds) * _MICROSECOND


def _with_fraction(amount: int, unit: int) -> str:
    whole, rest = divmod(amount, unit)
    if not rest:
        return str(whole)
    digits = len(str(unit)) - 1
    return f"{whole}.{str(rest).rjust(digits, '0').rstrip('0')}"


def format_nanoseconds(nanoseconds: int) -> str:
    """Render a nanosecond count in the canonical ``1h2m3.5s`` form."""
    if nanoseconds == 0:
        return "0s"

    sign = "-" if nanoseconds < 0 else ""
    amount = abs(nanoseconds)

    if amount < _MICROSECOND:
        return f"{sign}{amount}ns"
    if amount < _MILLISECOND:
        return f"{sign}{_with_fraction(amount, _MICROSECOND)}us"
    if amount < _SECOND:
        return f"{sign}{_with_fraction(amount, _MILLISECOND)}ms"

    hours, rest = divmod(amount, _HOUR)
    minutes, rest = divmod(rest, _MINUTE)
    seconds = _with_fraction(rest, _SECOND)
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def format_duration(value: timedelta) -> str:
    return format_nanoseconds(to_nanoseconds(value))
