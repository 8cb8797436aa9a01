"""Registry of the available parsers, by name and alias."""

from __future__ import annotations

from typing import Any

from skogul.modules import Module, ModuleMap
from skogul.parser.dummystore import DummyStore
from skogul.parser.influxdb import InfluxDB
from skogul.parser.jsonparse import JSON, JSONMetric, RawJSON
from skogul.parser.mnr import MNR
from skogul.parser.prometheus import Prometheus
from skogul.parser.structured_data import StructuredData


def build_registry() -> ModuleMap:
    """Create a fresh map of every parser module."""
    registry = ModuleMap()
    registry.add(Module(
        name="skogul",
        aliases=("json",),
        alloc=JSON,
        help="Parses the standard Skogul JSON format.",
        auto_make=True,
    ))
    registry.add(Module(
        name="skogulmetric",
        aliases=("jsonmetric", "json1"),
        alloc=JSONMetric,
        help="Parses the byte stream as a single json-encoded metric.",
        auto_make=True,
    ))
    registry.add(Module(
        name="rawjson",
        aliases=("jsonraw", "custom-json"),
        alloc=RawJSON,
        help=(
            "Parses any generic JSON data into a single metric which can then be "
            "potentially transformed into multiple metrics if need be."
        ),
        auto_make=True,
    ))
    registry.add(Module(
        name="influxdb",
        aliases=("influx",),
        alloc=InfluxDB,
        help="Parse InfluxDB line-protocol data",
        auto_make=True,
    ))
    registry.add(Module(
        name="mnr",
        aliases=("m&r",),
        alloc=MNR,
        help="Parse M&R internal data",
        auto_make=True,
    ))
    registry.add(Module(
        name="structured_data",
        alloc=StructuredData,
        help="Parse structured data as specified in RFC5424",
        auto_make=True,
    ))
    registry.add(Module(
        name="dummystore",
        aliases=("dstore",),
        alloc=lambda: DummyStore(file=""),
        help=(
            "Stores the raw, unparsed data to disk, then returns an empty container. "
            "Used for capturing unsupported encodings for future development."
        ),
    ))
    registry.add(Module(
        name="prometheus",
        alloc=Prometheus,
        help="Parse a prometheus formatted document into a skogul container, one metric per line.",
        auto_make=True,
    ))
    return registry


AUTO = build_registry()


def make_parser(name: str) -> Any:
    """Allocate the parser called ``name`` with default settings.

    Raises LookupError if no parser of that name may be created that way.
    """
    module = AUTO.lookup(name)
    if module is None:
        raise LookupError(f"no parser named {name!r} can be created automatically")
    return module.alloc()