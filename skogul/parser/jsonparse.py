"""Parsers for JSON input: whole containers, single metrics and raw data."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union

from skogul.metric import (
    Container,
    Metric,
    ParseError,
    container_from_dict,
    metric_from_dict,
    now,
)

Payload = Union[bytes, bytearray, str]


def _decode(data: Payload) -> Any:
    try:
        return json.loads(data)
    except ValueError as exc:
        raise ParseError(f"invalid JSON: {exc}") from exc


@dataclass
class JSON:
    """Parses the standard JSON representation of a Container."""

    def parse(self, data: Payload) -> Container:
        return container_from_dict(_decode(data))


@dataclass
class JSONMetric:
    """Parses a single JSON-encoded metric and wraps it in a Container."""

    def parse(self, data: Payload) -> Container:
        return Container(metrics=[metric_from_dict(_decode(data))])


@dataclass
class RawJSON:
    """Parses arbitrary JSON into the data of one metric.

    An object becomes the metric's data as is; an array is stored under
    the key ``blob``. The metric is stamped with the current time.
    """

    def parse(self, data: Payload) -> Container:
        decoded = _decode(data)
        if isinstance(decoded, dict):
            values = decoded
        elif decoded is None:
            values = {}
        elif isinstance(decoded, list):
            values = {"blob": decoded}
        else:
            raise ParseError(f"cannot use a JSON {type(decoded).__name__} as raw data")
        return Container(metrics=[Metric(time=now(), metadata={}, data=values)])