"""A parser that stores raw input on disk for later study."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Union

from skogul.metric import Container, Metric, ParseError, now


@dataclass
class DummyStore:
    """Writes received data to ``file`` and returns a single empty metric.

    By default the file is overwritten on every call, so it holds only the
    latest payload; with ``append`` set, payloads are appended.
    """

    file: str
    append: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def parse(self, data: Union[bytes, bytearray]) -> Container:
        container = Container(metrics=[Metric(time=now(), metadata={}, data={})])
        mode = "ab" if self.append else "wb"
        with self._lock:
            try:
                handle = open(self.file, mode)
            except OSError as exc:
                raise ParseError(f"opening file failed: {exc}") from exc
            with handle:
                try:
                    written = handle.write(data)
                except OSError as exc:
                    raise ParseError(f"write error: {exc}") from exc
        if written != len(data):
            raise ParseError("written bytes != received bytes")
        return container