"""Parser for the Prometheus text exposition format."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from skogul.metric import Container, Metric, ParseError

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_BLANKS = " \t"
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_METRIC_NAME = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*")
_LABEL_NAME = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")
_DECIMAL_FLOAT = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_HEX_FLOAT = re.compile(r"[+-]?0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)[pP][+-]?[0-9]+")
_SPECIAL_FLOAT = re.compile(r"[+-]?inf(?:inity)?|nan", re.IGNORECASE)
_TIMESTAMP = re.compile(r"[+-]?[0-9]+")

_TYPES = frozenset({"counter", "gauge", "histogram", "summary", "untyped"})
_LABEL_ESCAPES = {"\\": "\\", '"': '"', "n": "\n"}


@dataclass
class _Sample:
    labels: dict
    value: float
    timestamp_ms: Optional[int]


@dataclass
class _Family:
    name: str
    type: str = "untyped"
    typed: bool = False
    has_help: bool = False
    samples: list = field(default_factory=list)


class _Cursor:
    """Position within one line of exposition text."""

    def __init__(self, text: str, number: int) -> None:
        self.text = text
        self.number = number
        self.pos = 0

    def error(self, message: str) -> ParseError:
        return ParseError(f"text format parsing error in line {self.number}: {message}")

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def skip_blanks(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in _BLANKS:
            self.pos += 1

    def token(self) -> str:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] not in _BLANKS:
            self.pos += 1
        return self.text[start:self.pos]

    def match(self, pattern: re.Pattern) -> Optional[str]:
        found = pattern.match(self.text, self.pos)
        if found is None:
            return None
        self.pos = found.end()
        return found.group()

    def expect(self, char: str, message: str) -> None:
        if self.peek() != char:
            raise self.error(message)
        self.pos += 1

    def metric_name(self, what: str) -> str:
        name = self.match(_METRIC_NAME)
        if name is None or (not self.at_end() and self.peek() not in _BLANKS + what):
            raise self.error("invalid metric name")
        return name


def _parse_value(cursor: _Cursor, text: str) -> float:
    if _SPECIAL_FLOAT.fullmatch(text):
        return float(text)
    if _DECIMAL_FLOAT.fullmatch(text):
        value = float(text)
    elif _HEX_FLOAT.fullmatch(text):
        value = float.fromhex(text)
    else:
        raise cursor.error(f"expected float as value, got {text!r}")
    if math.isinf(value):
        raise cursor.error(f"value {text!r} out of range")
    return value


def _parse_timestamp(cursor: _Cursor, text: str) -> int:
    if not _TIMESTAMP.fullmatch(text):
        raise cursor.error(f"expected integer as timestamp, got {text!r}")
    stamp = int(text)
    if not _INT64_MIN <= stamp <= _INT64_MAX:
        raise cursor.error(f"timestamp {text!r} out of range")
    return stamp


def _label_value(cursor: _Cursor) -> str:
    chars = []
    while True:
        char = cursor.peek()
        if not char:
            raise cursor.error("label value not terminated")
        cursor.pos += 1
        if char == '"':
            return "".join(chars)
        if char == "\\":
            escaped = cursor.peek()
            if escaped not in _LABEL_ESCAPES:
                raise cursor.error(f"invalid escape sequence '\\{escaped}'")
            cursor.pos += 1
            chars.append(_LABEL_ESCAPES[escaped])
        else:
            chars.append(char)


def _parse_labels(cursor: _Cursor) -> dict:
    labels: dict = {}
    while True:
        cursor.skip_blanks()
        if cursor.peek() == "}":
            cursor.pos += 1
            return labels
        label = cursor.match(_LABEL_NAME)
        if label is None:
            raise cursor.error("invalid label name")
        if label == "__name__":
            raise cursor.error("label name '__name__' is reserved")
        cursor.skip_blanks()
        cursor.expect("=", f"expected '=' after label name {label!r}")
        cursor.skip_blanks()
        cursor.expect('"', f"expected '\"' at start of label value for {label!r}")
        value = _label_value(cursor)
        if label in labels:
            raise cursor.error(f"duplicate label name {label!r}")
        labels[label] = value
        cursor.skip_blanks()
        char = cursor.peek()
        cursor.pos += 1
        if char == "}":
            return labels
        if char != ",":
            raise cursor.error("expected ',' or '}' after label value")


def _check_help(cursor: _Cursor) -> None:
    rest = cursor.text[cursor.pos:]
    escaping = False
    for char in rest:
        if escaping:
            if char not in "\\n":
                raise cursor.error(f"invalid escape sequence '\\{char}'")
            escaping = False
        elif char == "\\":
            escaping = True


def _parse_comment(cursor: _Cursor, families: dict) -> None:
    cursor.skip_blanks()
    keyword = cursor.token()
    if keyword not in ("HELP", "TYPE"):
        return
    cursor.skip_blanks()
    name = cursor.metric_name("")
    family = families.setdefault(name, _Family(name))
    cursor.skip_blanks()
    if keyword == "HELP":
        if family.has_help:
            raise cursor.error(f"second HELP line for metric name {name!r}")
        _check_help(cursor)
        family.has_help = True
        return
    kind = cursor.token()
    if kind.lower() not in _TYPES:
        raise cursor.error(f"unknown metric type {kind!r}")
    if family.typed or family.samples:
        raise cursor.error(
            f"second TYPE line for metric name {name!r}, or TYPE reported after samples"
        )
    cursor.skip_blanks()
    if not cursor.at_end():
        raise cursor.error("spurious string after metric type")
    family.type = kind.lower()
    family.typed = True


def _family_name(name: str, families: dict) -> str:
    for suffix in ("_bucket", "_count", "_sum"):
        if name.endswith(suffix):
            base = families.get(name[: -len(suffix)])
            if base is not None and base.type in ("summary", "histogram"):
                if suffix != "_bucket" or base.type == "histogram":
                    return base.name
    return name


def _parse_sample(cursor: _Cursor, families: dict) -> None:
    name = cursor.metric_name("{")
    cursor.skip_blanks()
    labels: dict = {}
    if cursor.peek() == "{":
        cursor.pos += 1
        labels = _parse_labels(cursor)
        cursor.skip_blanks()
    value_text = cursor.token()
    if not value_text:
        raise cursor.error("expected float as value")
    value = _parse_value(cursor, value_text)
    cursor.skip_blanks()
    stamp_text = cursor.token()
    stamp = None
    if stamp_text:
        stamp = _parse_timestamp(cursor, stamp_text)
        cursor.skip_blanks()
        if not cursor.at_end():
            raise cursor.error("spurious string after timestamp")

    family_name = _family_name(name, families)
    family = families.setdefault(family_name, _Family(family_name))
    if family.type != "untyped":
        raise cursor.error(
            f"metric {family_name!r} has type {family.type}; only untyped metrics are supported"
        )
    family.samples.append(_Sample(labels=labels, value=value, timestamp_ms=stamp))


def _parse_families(text: str) -> list:
    families: dict = {}
    for number, line in enumerate(text.split("\n"), start=1):
        cursor = _Cursor(line, number)
        cursor.skip_blanks()
        if cursor.at_end():
            continue
        if cursor.peek() == "#":
            cursor.pos += 1
            _parse_comment(cursor, families)
        else:
            _parse_sample(cursor, families)
    return [family for family in families.values() if family.samples]


@dataclass
class Prometheus:
    """Parses a Prometheus text document, one metric per sample line.

    Labels become metadata and the value is stored in data under the
    metric family's name. A sample without a timestamp is stamped with the
    Unix epoch, as a missing timestamp counts as zero milliseconds.
    """

    def parse(self, data: Union[bytes, bytearray, str]) -> Container:
        if isinstance(data, (bytes, bytearray)):
            text = bytes(data).decode("utf-8", errors="replace")
        else:
            text = data
        metrics = []
        for family in _parse_families(text):
            for sample in family.samples:
                if not math.isfinite(sample.value):
                    raise ParseError(
                        f"value {sample.value!r} of {family.name!r} cannot be represented"
                    )
                try:
                    moment = _EPOCH + timedelta(milliseconds=sample.timestamp_ms or 0)
                except OverflowError as exc:
                    raise ParseError(
                        f"timestamp {sample.timestamp_ms} of {family.name!r} out of range"
                    ) from exc
                metrics.append(
                    Metric(
                        time=moment,
                        metadata=dict(sample.labels),
                        data={family.name: sample.value},
                    )
                )
        return Container(metrics=metrics)