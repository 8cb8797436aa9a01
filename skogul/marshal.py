"""Durations and by-name references used while loading configuration."""

from __future__ import annotations

import enum
import math
import re
from dataclasses import dataclass, field
from datetime import timedelta
from fractions import Fraction
from typing import Any, Optional

_UNITS = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_COMPONENT = re.compile(r"([0-9]*)(\.([0-9]*))?([^0-9.]*)")

_INT64_MAX = 2**63 - 1


def _parse_text(text: str) -> int:
    original = text
    negative = False
    if text and text[0] in "+-":
        negative = text[0] == "-"
        text = text[1:]
    if text == "0":
        return 0
    if not text:
        raise ValueError(f"invalid duration {original!r}")

    total = Fraction(0)
    while text:
        match = _COMPONENT.match(text)
        whole, _, frac, unit = match.groups()
        if not whole and not frac:
            raise ValueError(f"invalid duration {original!r}")
        if not unit:
            raise ValueError(f"missing unit in duration {original!r}")
        if unit not in _UNITS:
            raise ValueError(f"unknown unit {unit!r} in duration {original!r}")
        value = Fraction(int(whole or "0"))
        if frac:
            value += Fraction(int(frac), 10 ** len(frac))
        total += value * _UNITS[unit]
        text = text[match.end():]

    nanoseconds = int(total)
    limit = _INT64_MAX + 1 if negative else _INT64_MAX
    if nanoseconds > limit:
        raise ValueError(f"invalid duration {original!r}")
    return -nanoseconds if negative else nanoseconds


def _fraction(value: int, precision: int) -> str:
    whole, rest = divmod(value, 10**precision)
    digits = str(rest).zfill(precision).rstrip("0")
    return f"{whole}.{digits}" if digits else str(whole)


def _format(nanoseconds: int) -> str:
    if nanoseconds == 0:
        return "0s"
    sign = "-" if nanoseconds < 0 else ""
    u = abs(nanoseconds)
    if u < 1_000_000_000:
        if u < 1_000:
            return f"{sign}{u}ns"
        if u < 1_000_000:
            return f"{sign}{_fraction(u, 3)}\u00b5s"
        return f"{sign}{_fraction(u, 6)}ms"
    seconds_whole, rest = divmod(u, 1_000_000_000)
    minutes, seconds = divmod(seconds_whole, 60)
    text = _fraction(seconds * 1_000_000_000 + rest, 9) + "s"
    if minutes:
        hours, minutes = divmod(minutes, 60)
        text = f"{minutes}m{text}"
        if hours:
            text = f"{hours}h{text}"
    return sign + text


@dataclass(frozen=True, order=True)
class Duration:
    """A span of time held in whole nanoseconds."""

    nanoseconds: int = 0

    def __str__(self) -> str:
        return _format(self.nanoseconds)

    @property
    def timedelta(self) -> timedelta:
        return timedelta(microseconds=self.nanoseconds // 1000)

    def to_json(self) -> str:
        """The value to write in JSON: the duration's text form."""
        return str(self)


def parse_duration(value: Any) -> Duration:
    """Build a Duration from a number of nanoseconds or text such as "1m30s"."""
    if isinstance(value, bool):
        raise ValueError("invalid duration")
    if isinstance(value, int):
        if not -_INT64_MAX - 1 <= value <= _INT64_MAX:
            raise ValueError("invalid duration")
        return Duration(value)
    if isinstance(value, float):
        if not math.isfinite(value) or not -(2.0**63) <= value < 2.0**63:
            raise ValueError("invalid duration")
        return Duration(int(value))
    if isinstance(value, str):
        return Duration(_parse_text(value))
    raise ValueError("invalid duration")


class RefKind(enum.Enum):
    SENDER = "sender"
    HANDLER = "handler"
    TRANSFORMER = "transformer"
    PARSER = "parser"
    ENCODER = "encoder"


@dataclass(eq=False)
class Ref:
    """A named reference to a module, resolved after configuration loads."""

    kind: RefKind
    name: str
    target: Optional[Any] = None

    def to_json(self) -> str:
        return self.name


@dataclass
class RefRegistry:
    """Collects references by kind so they can be back-filled later."""

    _refs: dict = field(default_factory=dict)

    def ref(self, kind: RefKind, name: str) -> Ref:
        """Create an unresolved reference and record it."""
        if not isinstance(name, str):
            raise TypeError(f"{kind.value} reference must be a string, not {type(name).__name__}")
        reference = Ref(kind=kind, name=name)
        self._refs.setdefault(kind, []).append(reference)
        return reference

    def pending(self, kind: RefKind) -> list[Ref]:
        """All references of ``kind`` recorded so far, in order."""
        return list(self._refs.get(kind, ()))

    def clear(self) -> None:
        self._refs.clear()