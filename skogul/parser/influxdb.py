"""Parser for the InfluxDB line protocol."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from itertools import islice
from typing import Any, Iterable, Iterator, Optional, Union

from skogul.metric import Container, Metric, ParseError, now

_log = logging.getLogger("skogul.parser.influxdb")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

# Escapes that stay in the output so consumers can decode them themselves.
_KEPT_ESCAPES = frozenset("xX0uU")

_TRUE = frozenset({"t", "T", "true", "True", "TRUE"})
_FALSE = frozenset({"f", "F", "false", "False", "FALSE"})

_INT_LITERAL = re.compile(
    r"[+-]?(?:0[xX]_?[0-9a-fA-F](?:_?[0-9a-fA-F])*"
    r"|0[bB]_?[01](?:_?[01])*"
    r"|0[oO]_?[0-7](?:_?[0-7])*"
    r"|0_?[0-7](?:_?[0-7])*"
    r"|[1-9](?:_?[0-9])*"
    r"|0)"
)
_DIGITS = r"[0-9](?:_?[0-9])*"
_DECIMAL_FLOAT = re.compile(
    rf"[+-]?(?:{_DIGITS}(?:\.(?:{_DIGITS})?)?|\.{_DIGITS})(?:[eE][+-]?{_DIGITS})?"
)
_HEX_FLOAT = re.compile(r"[+-]?0[xX][0-9a-fA-F.]+[pP][+-]?[0-9]+")
_SPECIAL_FLOAT = re.compile(r"[+-]?(?:inf|infinity)|nan", re.IGNORECASE)


class InfluxDBParseError(ParseError):
    """A line could not be parsed.

    When raised from a whole document, ``container`` holds the metrics of
    the lines that did parse and ``errors`` the failure of each bad line.
    """

    def __init__(
        self,
        message: str,
        container: Optional[Container] = None,
        errors: Iterable[Exception] = (),
    ) -> None:
        super().__init__(message)
        self.container = container
        self.errors = list(errors)


def _parse_int(text: str) -> int:
    """Integer with optional base prefix (0x, 0o, 0b, leading 0) and underscores."""
    if not _INT_LITERAL.fullmatch(text):
        raise ValueError(f"invalid integer {text!r}")
    sign = -1 if text.startswith("-") else 1
    body = text.lstrip("+-")
    if len(body) > 1 and body[0] == "0" and body[1] not in "xXbBoO":
        value = int(body.replace("_", ""), 8)
    else:
        value = int(body, 0)
    value *= sign
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"integer {text!r} out of range")
    return value


def _parse_float(text: str) -> float:
    if _SPECIAL_FLOAT.fullmatch(text):
        return float(text)
    if _DECIMAL_FLOAT.fullmatch(text):
        value = float(text)
    elif _HEX_FLOAT.fullmatch(text):
        value = float.fromhex(text)
    else:
        raise ValueError(f"invalid float {text!r}")
    if math.isinf(value):
        raise ValueError(f"float {text!r} out of range")
    return value


def parse_field_value(value: str) -> Any:
    """Type a field value: ``5i`` integers, floats, booleans, quoted strings.

    Anything that matches none of these is returned unchanged.
    """
    if not value:
        return value
    if value.endswith("i"):
        try:
            return _parse_int(value[:-1])
        except ValueError:
            pass
    try:
        return _parse_float(value)
    except ValueError:
        pass
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    if value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value


def _scan(text: str, separator: str, unescape: bool) -> tuple[int, str]:
    """Find the first unquoted, unescaped separator.

    Returns the separator's position (or the length of the text) and the
    text before it, with escaping backslashes removed if ``unescape``.
    """
    open_quote = False
    escape = False
    removed: list[int] = []
    end = len(text)
    for index, char in enumerate(text):
        if escape:
            escape = False
            if unescape and char not in _KEPT_ESCAPES:
                removed.append(index - 1)
            continue
        if open_quote:
            if char == '"':
                open_quote = False
            continue
        if char == '"':
            open_quote = True
            continue
        if char == "\\":
            escape = True
            continue
        if char == separator:
            end = index
            break
    piece = text[:end]
    for index in reversed(removed):
        piece = piece[:index] + piece[index + 1:]
    return end, piece


def _pieces(text: str, separator: str, unescape: bool) -> Iterator[str]:
    """Split ``text`` into pieces, then yield empty strings once it is used up.

    A final piece that lost escape characters is dropped.
    """
    rest = text
    while rest:
        end, piece = _scan(rest, separator, unescape)
        if len(piece) == len(rest):
            advance = len(rest)
        else:
            advance = end + 1
            if advance > len(rest):
                return
        yield piece
        rest = rest[advance:]
    while True:
        yield ""


def _pairs(section: str, split_all: bool) -> Iterator[tuple[str, str]]:
    """Yield key=value pairs until one is malformed."""
    for raw in _pieces(section, ",", True):
        pair_text = raw.strip("\0")
        parts = pair_text.split("=") if split_all else pair_text.split("=", 1)
        if len(parts) != 2:
            return
        yield parts[0], parts[1]


@dataclass
class InfluxLine:
    """One parsed line: measurement, tags, fields and timestamp."""

    measurement: str
    tags: dict = field(default_factory=dict)
    fields: dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=now)

    def to_metric(self) -> Metric:
        """Tags become metadata (with the measurement added), fields data."""
        metadata = dict(self.tags)
        metadata["measurement"] = self.measurement
        return Metric(time=self.timestamp, metadata=metadata, data=dict(self.fields))


def parse_line(line: str) -> InfluxLine:
    """Parse a single line of InfluxDB line protocol."""
    cut = next((index for index, char in enumerate(line) if char in ", "), None)
    if not cut:
        raise InfluxDBParseError("could not find a measurement name")
    measurement = line[:cut]

    tags_text, fields_text, stamp = islice(_pieces(line[cut + 1:], " ", False), 3)

    if stamp:
        try:
            nanoseconds = _parse_int(stamp)
        except ValueError as exc:
            raise InfluxDBParseError(f"failed to parse time for influxdb line: {exc}") from exc
        timestamp = _EPOCH + timedelta(microseconds=nanoseconds // 1000)
    else:
        timestamp = now()

    return InfluxLine(
        measurement=measurement,
        tags=dict(_pairs(tags_text, split_all=False)),
        fields={key: parse_field_value(value) for key, value in _pairs(fields_text, split_all=True)},
        timestamp=timestamp,
    )


@dataclass
class InfluxDB:
    """Parses InfluxDB line protocol, one metric per non-empty line."""

    def parse(self, data: Union[bytes, bytearray, str]) -> Container:
        """Parse every line; bad lines are skipped and reported together.

        If any line fails, InfluxDBParseError is raised carrying the
        container of the lines that parsed.
        """
        if isinstance(data, (bytes, bytearray)):
            text = bytes(data).decode("utf-8", errors="replace")
        else:
            text = data
        metrics = []
        failures = []
        for number, raw in enumerate(text.split("\n")):
            line = raw.strip()
            if not line:
                continue
            try:
                metrics.append(parse_line(line).to_metric())
            except InfluxDBParseError as exc:
                failures.append(InfluxDBParseError(f"failed to parse influx line {number}-'{line}': {exc}"))
                _log.error(
                    "Failed to parse influx line protocol",
                    extra={"fields": {"error": str(exc)}},
                )
        container = Container(metrics=metrics)
        if failures:
            raise InfluxDBParseError(
                "One or more influxdb line protocol parse failures. "
                f"Returning {len(metrics)} successful parses and skipping {len(failures)} errors.",
                container=container,
                errors=failures,
            )
        return container