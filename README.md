# skogul

A library of parsers that turn raw metric payloads into metric containers.
Each parser has a `parse(data)` method that takes bytes (or text) and returns
a `skogul.metric.Container` holding `skogul.metric.Metric` objects. A metric
has a `time` (a timezone-aware `datetime`), a `metadata` dict and a `data`
dict.

## Parsers

| Name              | Aliases                    | Class                                          |
|-------------------|----------------------------|------------------------------------------------|
| `skogul`          | `json`                     | `skogul.parser.jsonparse.JSON`                 |
| `skogulmetric`    | `jsonmetric`, `json1`      | `skogul.parser.jsonparse.JSONMetric`           |
| `rawjson`         | `jsonraw`, `custom-json`   | `skogul.parser.jsonparse.RawJSON`              |
| `influxdb`        | `influx`                   | `skogul.parser.influxdb.InfluxDB`              |
| `mnr`             | `m&r`                      | `skogul.parser.mnr.MNR`                        |
| `structured_data` |                            | `skogul.parser.structured_data.StructuredData` |
| `prometheus`      |                            | `skogul.parser.prometheus.Prometheus`          |
| `dummystore`      | `dstore`                   | `skogul.parser.dummystore.DummyStore`          |

- `JSON` reads a whole container: `{"metrics": [{"timestamp": ..., "metadata": ..., "data": ...}]}`
  with RFC 3339 timestamps. `JSONMetric` reads one such metric.
- `RawJSON` puts any JSON object into the data of one metric stamped with the
  current time; a JSON array is stored under the key `blob`.
- `InfluxDB` reads line protocol, one metric per line. Tags become metadata
  (plus `measurement`), fields become data: `5i` is an integer, then floats,
  booleans and quoted strings. A line without a timestamp gets the current time.
- `MNR` reads tab-separated M&R lines. Options: `extract_field_name`,
  `default_field_name`, `parse_as_string`, `store_variable`.
- `StructuredData` reads RFC 5424 structured data elements, one metric per
  `[...]` element; the SD-ID goes into metadata under `sd_id_field`
  (default `sd-id`).
- `Prometheus` reads the text exposition format, one metric per sample, with
  labels as metadata and the value under the family name. Only untyped
  metrics are accepted; a sample without a timestamp is stamped with the Unix
  epoch.

## Usage

```python
from skogul.parser.influxdb import InfluxDB

container = InfluxDB().parse(b"system,host=testhost uptime=5464i 1585737340000000000")
metric = container.metrics[0]
print(metric.metadata["host"])    # testhost
print(metric.data["uptime"])      # 5464
```

Look up a parser by name, aliases included:

```python
from skogul.parser.auto import make_parser

parser = make_parser("m&r")
container = parser.parse(b"1599730066\tgroup\tvariable\t0.0\tkey=val")
```

Only parsers marked for automatic creation can be made by name; others raise
`LookupError`. `dummystore` needs a file to write to, so build it yourself:

```python
from skogul.parser.dummystore import DummyStore

DummyStore(file="/tmp/capture.bin", append=True).parse(b"unknown payload")
```

It writes the raw bytes to that file (overwriting unless `append` is set) and
returns a container with one empty metric, which is handy for capturing
payloads you cannot parse yet.

Parse failures raise `skogul.metric.ParseError`. The InfluxDB parser raises
`InfluxDBParseError` when some lines fail; the lines that did parse are kept
on the exception as `container`, and each failure in `errors`.

Containers and metrics convert back to their JSON form with `to_dict()`.

## Other pieces

- `skogul.modules`: `Module` and `ModuleMap`, the name/alias registry used by
  `skogul.parser.auto.build_registry()`.
- `skogul.marshal`: `parse_duration("1m30s")` gives a `Duration` in
  nanoseconds (a plain number is taken as nanoseconds); `RefRegistry` records
  named references (`RefKind`) for resolving later.

## Logging

```python
from skogul.log import configure_logger

configure_logger("debug", True, "json")
```

This sets the `skogul` logger's level and writes to stdout, as JSON lines or
as `key=value` text (with or without a timestamp). The level may be a name or
its first letter: `e`, `w`, `i`, `d`, `v`/`t`. An unknown level falls back to
warn.

## What this package does not do

It only parses. There is no command-line program, no configuration-file
loader, and nothing that receives data from the network or sends metrics on.
There are no parsers for protocol-buffer telemetry, GOB or Avro payloads.

## Tests

```
pip install -e ".[test]"
pytest
```