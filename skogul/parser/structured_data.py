"""Parser for RFC 5424 structured data elements."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Union

from skogul.metric import Container, Metric, ParseError, now

_log = logging.getLogger("skogul.parser.structured_data")

_Split = Callable[[str, bool], "tuple[int, Optional[str]]"]


def _section(text: str, unescape: bool, whole_metric: bool) -> tuple[int, Optional[str]]:
    """Read one section of ``text``.

    A section ends at an unescaped ``]`` or newline and, unless
    ``whole_metric`` is set, at an unquoted, unescaped space. Returns how
    far to advance and the section with a leading ``[`` dropped. Text that
    starts with a space is consumed whole and gives no section.
    """
    if text.startswith(" "):
        return len(text), None

    open_quote = False
    escape = False
    removed: list[int] = []
    end = len(text)
    for index, char in enumerate(text):
        if escape:
            escape = False
            continue
        if char in "]\n":
            end = index
            break
        if open_quote:
            if char == '"':
                open_quote = False
            continue
        if char == '"':
            open_quote = True
            continue
        if char == "\\":
            escape = True
            if unescape:
                removed.append(index)
            continue
        if not whole_metric and char == " ":
            end = index
            break

    token = text[:end]
    for index in reversed(removed):
        token = token[:index] + token[index + 1:]
    if text.startswith("["):
        token = token[1:]
    return end + 1, token


def _split_pairs(text: str, at_eof: bool) -> tuple[int, Optional[str]]:
    advance, token = _section(text, unescape=True, whole_metric=False)
    size = len(token) if token is not None else 0
    if at_eof:
        return size + 1, token
    if size == len(text):
        return size, token
    return advance, token


def _split_metrics(text: str, at_eof: bool) -> tuple[int, Optional[str]]:
    advance, token = _section(text, unescape=False, whole_metric=True)
    size = len(token) if token is not None else 0
    if at_eof or size == len(text):
        return size + 1, token
    return advance, token


def _scan(text: str, split: _Split) -> Iterator[str]:
    """Yield tokens from ``split`` until it asks to move past the end."""
    start = 0
    at_eof = False
    while True:
        if start < len(text) or at_eof:
            advance, token = split(text[start:], at_eof)
            if advance > len(text) - start:
                return
            start += advance
            if token is not None:
                yield token
                continue
        if at_eof:
            return
        at_eof = True


@dataclass
class StructuredData:
    """Parses RFC 5424 structured data (not a full syslog message).

    Each ``[SD-ID key="value" ...]`` element becomes one metric; the SD-ID,
    when present, is stored in metadata under ``sd_id_field``.
    """

    sd_id_field: str = "sd-id"

    def parse(self, data: Union[bytes, bytearray, str]) -> Container:
        if isinstance(data, (bytes, bytearray)):
            text = bytes(data).decode("utf-8", errors="replace")
        else:
            text = data
        id_field = self.sd_id_field or "sd-id"
        timestamp = now()
        metrics = []
        for line in _scan(text, _split_metrics):
            if not line:
                continue
            metric = Metric(time=timestamp, metadata={}, data={})
            for raw in _scan(line, _split_pairs):
                parts = raw.strip("\0").split("=", 1)
                if len(parts) == 1:
                    if id_field not in metric.metadata:
                        metric.metadata[id_field] = parts[0]
                    elif not parts[0].strip():
                        raise ParseError("got invalid data in the middle of a structured data line")
                    continue
                name, value = parts
                if len(value) < 2:
                    raise ParseError(f"invalid value for structured data parameter {name!r}")
                metric.data[name] = value[1:-1]
            metrics.append(metric)
        if not metrics:
            _log.warning(
                "RFC5424/Structured Data parser failed to parse any lines",
                extra={"fields": {"bytes": len(data)}},
            )
            raise ParseError("failed to parse RFC5424 lines")
        return Container(metrics=metrics)