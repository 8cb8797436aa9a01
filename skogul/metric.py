"""Metrics and containers: the data every parser produces."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

_RFC3339 = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
    r"(?:([Zz])|([+-])(\d{2}):(\d{2}))$"
)


class ParseError(ValueError):
    """Raised when input cannot be turned into metrics."""


def now() -> datetime:
    """The current time, timezone aware."""
    return datetime.now(timezone.utc)


def _parse_time(value: Any) -> datetime:
    if not isinstance(value, str):
        raise ParseError(f"timestamp must be a string, got {type(value).__name__}")
    match = _RFC3339.match(value)
    if match is None:
        raise ParseError(f"invalid timestamp {value!r}")
    year, month, day, hour, minute, second, frac, zulu, sign, off_h, off_m = match.groups()
    if zulu:
        tz = timezone.utc
    else:
        offset = timedelta(hours=int(off_h), minutes=int(off_m))
        tz = timezone(-offset if sign == "-" else offset)
    microsecond = int((frac or "0")[:6].ljust(6, "0"))
    try:
        return datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second), microsecond, tzinfo=tz
        )
    except ValueError as exc:
        raise ParseError(f"invalid timestamp {value!r}: {exc}") from exc


def _format_time(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.replace(tzinfo=None).isoformat()
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    offset = moment.utcoffset()
    if not offset:
        return text + "Z"
    minutes = int(offset.total_seconds()) // 60
    sign = "-" if minutes < 0 else "+"
    hours, mins = divmod(abs(minutes), 60)
    return f"{text}{sign}{hours:02d}:{mins:02d}"


def _mapping(value: Any, what: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ParseError(f"{what} must be an object, got {type(value).__name__}")
    return dict(value)


@dataclass
class Metric:
    """One measurement: a time, identifying metadata and the data itself."""

    time: Optional[datetime] = None
    metadata: dict = field(default_factory=dict)
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        out: dict = {}
        if self.time is not None:
            out["timestamp"] = _format_time(self.time)
        if self.metadata:
            out["metadata"] = dict(self.metadata)
        if self.data:
            out["data"] = dict(self.data)
        return out


@dataclass
class Container:
    """A batch of metrics with an optional template for shared values."""

    metrics: list = field(default_factory=list)
    template: Optional[Metric] = None

    def to_dict(self) -> dict:
        out: dict = {}
        if self.template is not None:
            out["template"] = self.template.to_dict()
        out["metrics"] = [metric.to_dict() for metric in self.metrics]
        return out


def metric_from_dict(data: Any) -> Metric:
    """Build a Metric from its decoded JSON form."""
    if not isinstance(data, dict):
        raise ParseError(f"metric must be an object, got {type(data).__name__}")
    timestamp = data.get("timestamp")
    return Metric(
        time=None if timestamp is None else _parse_time(timestamp),
        metadata=_mapping(data.get("metadata"), "metadata"),
        data=_mapping(data.get("data"), "data"),
    )


def container_from_dict(data: Any) -> Container:
    """Build a Container from its decoded JSON form."""
    if not isinstance(data, dict):
        raise ParseError(f"container must be an object, got {type(data).__name__}")
    raw_metrics = data.get("metrics")
    if raw_metrics is None:
        raw_metrics = []
    if not isinstance(raw_metrics, list):
        raise ParseError(f"metrics must be an array, got {type(raw_metrics).__name__}")
    template = data.get("template")
    return Container(
        metrics=[metric_from_dict(item) for item in raw_metrics],
        template=None if template is None else metric_from_dict(template),
    )