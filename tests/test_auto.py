import pytest

from skogul.parser.auto import AUTO, build_registry, make_parser
from skogul.parser.dummystore import DummyStore
from skogul.parser.influxdb import InfluxDB
from skogul.parser.jsonparse import JSON, JSONMetric, RawJSON
from skogul.parser.mnr import MNR
from skogul.parser.prometheus import Prometheus
from skogul.parser.structured_data import StructuredData


@pytest.mark.parametrize(
    "name, kind",
    [
        ("skogul", JSON),
        ("json", JSON),
        ("skogulmetric", JSONMetric),
        ("json1", JSONMetric),
        ("rawjson", RawJSON),
        ("custom-json", RawJSON),
        ("influxdb", InfluxDB),
        ("influx", InfluxDB),
        ("mnr", MNR),
        ("m&r", MNR),
        ("structured_data", StructuredData),
        ("prometheus", Prometheus),
    ],
)
def test_make_parser_by_name_and_alias(name, kind):
    assert type(make_parser(name)) is kind


def test_aliases_share_module():
    registry = build_registry()
    assert registry["json"] is registry["skogul"]
    assert registry["jsonmetric"] is registry["json1"]
    assert registry["dstore"] is registry["dummystore"]


def test_dummystore_is_not_auto_made():
    assert AUTO.lookup("dummystore") is None
    assert AUTO.lookup("dstore") is None
    with pytest.raises(LookupError):
        make_parser("dummystore")


def test_dummystore_can_still_be_allocated():
    parser = AUTO["dummystore"].alloc()
    assert isinstance(parser, DummyStore)
    assert parser.append is False


def test_unknown_parser():
    with pytest.raises(LookupError):
        make_parser("protobuf")


def test_registries_are_independent():
    first = build_registry()
    second = build_registry()
    assert first["influxdb"] is not second["influxdb"]
    assert set(first) == set(second)


def test_every_module_has_help():
    assert all(module.help for module in build_registry().values())


def test_made_parsers_are_fresh():
    first = make_parser("influxdb")
    second = make_parser("influx")
    assert type(first) is InfluxDB
    assert type(second) is InfluxDB
    assert first is not second
    assert first.parse(b"m,host=a v=1i").metrics[0].data == {"v": 1}
    assert second.parse(b"m,host=b v=2i").metrics[0].data == {"v": 2}


def test_made_parser_works():
    container = make_parser("json").parse(b'{"metrics": [{"data": {"a": 1}}]}')
    assert container.metrics[0].data == {"a": 1}