"""Parser for tab-separated M&R (MnR) data lines."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Union

from skogul.metric import Container, Metric, ParseError
from skogul.parser.influxdb import _parse_float, _parse_int

_log = logging.getLogger("skogul.parser.mnr")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_SEPARATOR = "\t"
_DECIMAL = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def parse_mnr_value(value: str) -> Any:
    """Type a value as an integer (any base prefix) or a float if possible.

    Values that are neither are returned unchanged.
    """
    try:
        return _parse_int(value)
    except ValueError:
        pass
    try:
        return _parse_float(value)
    except ValueError:
        pass
    return value


def _parse_seconds(text: str) -> datetime:
    if not _DECIMAL.fullmatch(text):
        raise ParseError(f"failed to convert string to integer for timestamp: {text!r}")
    seconds = int(text)
    if not _INT64_MIN <= seconds <= _INT64_MAX:
        raise ParseError(f"failed to convert string to integer for timestamp: {text!r} out of range")
    try:
        return _EPOCH + timedelta(seconds=seconds)
    except OverflowError as exc:
        raise ParseError(f"timestamp {text!r} out of range") from exc


@dataclass
class MNR:
    """Parses M&R data, one metric per non-empty line.

    Each line holds an optional ``+r``/``+d`` change tag, a timestamp in
    seconds, a group, a variable, its value and then ``key=value``
    properties, all separated by tabs.
    """

    extract_field_name: bool = False
    default_field_name: str = ""
    parse_as_string: list = field(default_factory=list)
    store_variable: bool = False

    def __post_init__(self) -> None:
        if self.parse_as_string:
            _log.debug(
                "MNR parser configured with parsing fields as string: %s",
                list(self.parse_as_string),
            )

    def parse(self, data: Union[bytes, bytearray, str]) -> Container:
        """Parse every line; lines that fail are logged and skipped.

        Raises ParseError if no line could be parsed.
        """
        if isinstance(data, (bytes, bytearray)):
            text = bytes(data).decode("utf-8", errors="replace")
        else:
            text = data
        lines = text.split("\n")
        metrics = []
        for raw in lines:
            line = raw.strip()
            if not line:
                continue
            try:
                metrics.append(self._parse_line(line))
            except ParseError as exc:
                _log.error("Failed to parse MNR line", extra={"fields": {"error": str(exc)}})
        if not metrics:
            raise ParseError(f"MNR parser failed to parse any of the {len(lines)} lines")
        return Container(metrics=metrics)

    def _parse_line(self, line: str) -> Metric:
        tokens = iter(line.split(_SEPARATOR))
        metadata: dict = {"mnr_changed": False, "mnr_deleted": False}

        timestamp = next(tokens, None)
        if timestamp is None:
            raise ParseError("failed to extract first value from a MnR line")
        if timestamp.startswith("+"):
            metadata["mnr_tag"] = timestamp
            if timestamp[1:] == "r":
                metadata["mnr_changed"] = True
            if timestamp[1:] == "d":
                metadata["mnr_deleted"] = True
            timestamp = next(tokens, None)
            if timestamp is None:
                raise ParseError("failed to extract timestamp as second value from a MnR line")
        moment = _parse_seconds(timestamp)

        group = next(tokens, None)
        if group is None:
            raise ParseError("failed to extract MNR group")
        metadata["group"] = group

        values: dict = {}
        variable = next(tokens, None)
        if variable is None:
            raise ParseError("failed to extract MNR variable name")
        if self.store_variable:
            values["variable"] = variable

        raw_value = next(tokens, None)
        if raw_value is None:
            raise ParseError("failed to extract MNR variable value")
        value = parse_mnr_value(raw_value)

        as_string = frozenset(self.parse_as_string)
        for prop in tokens:
            pair = prop.split("=", 1)
            if len(pair) != 2:
                continue
            key, text = pair
            values[key] = text if key in as_string else parse_mnr_value(text)

        name = values.get("name")
        if self.extract_field_name and name is not None:
            if not isinstance(name, str):
                raise ParseError(f"MNR 'name' property is not a string: {name!r}")
            values[name] = value
        else:
            if self.default_field_name:
                values[self.default_field_name] = value
            values["failed_name_extract"] = True

        return Metric(time=moment, metadata=metadata, data=values)