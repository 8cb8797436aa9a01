from datetime import datetime, timedelta, timezone

import pytest

from skogul.metric import ParseError
from skogul.parser.structured_data import StructuredData

EXAMPLE1 = '[exampleSDID@32473 iut="3" eventSource="Application" eventID="1011"]'
PRIORITY = '[examplePriority@32473 class="high"]'


def test_parse_example1():
    c = StructuredData().parse(EXAMPLE1.encode())
    assert c.metrics[0].metadata["sd-id"] == "exampleSDID@32473"
    assert c.metrics[0].data == {"iut": "3", "eventSource": "Application", "eventID": "1011"}


def test_parse_example2():
    c = StructuredData().parse((EXAMPLE1 + PRIORITY).encode())
    assert c.metrics[0].metadata["sd-id"] == "exampleSDID@32473"
    assert c.metrics[0].data["iut"] == "3"
    assert c.metrics[0].data["eventSource"] == "Application"
    assert c.metrics[0].data["eventID"] == "1011"
    assert c.metrics[1].data["class"] == "high"
    assert c.metrics[1].metadata["sd-id"] == "examplePriority@32473"


def test_parse_example3_stops_at_invalid_space():
    c = StructuredData().parse((EXAMPLE1 + " " + PRIORITY).encode())
    assert len(c.metrics) == 1


def test_parse_example4_space_after_bracket():
    b = '[ exampleSDID@32473 iut="3" eventSource="Application" eventID="1011"]' + PRIORITY
    c = StructuredData().parse(b.encode())
    assert len(c.metrics) == 2
    assert c.metrics[1].data["class"] == "high"


def test_no_sd_id_allowed():
    c = StructuredData().parse(b'[iut="3" eventSource="Application" eventID="1011"]')
    assert c.metrics[0].data["iut"] == "3"
    assert "sd-id" not in c.metrics[0].metadata


def test_no_sd_id_multiple_metrics():
    b = '[iut="3" eventSource="Application" eventID="1011"]'
    c = StructuredData().parse((b + b).encode())
    assert len(c.metrics) == 2
    assert c.metrics[0].data["iut"] == "3"
    assert c.metrics[1].data["iut"] == "3"


def test_sd_id_only_gives_one_metric():
    c = StructuredData().parse(b"[exampleSDID@32473]")
    assert len(c.metrics) == 1
    assert c.metrics[0].metadata["sd-id"] == "exampleSDID@32473"
    assert c.metrics[0].data == {}


def test_dataset_with_newlines():
    text = EXAMPLE1 + "\n" + PRIORITY + "\n\n" + '[other@1 a="b"]\n'
    c = StructuredData().parse(text)
    assert len(c.metrics) == 3
    assert c.metrics[2].data == {"a": "b"}


def test_custom_sd_id_field():
    c = StructuredData(sd_id_field="SD-ID").parse(EXAMPLE1)
    assert c.metrics[0].metadata == {"SD-ID": "exampleSDID@32473"}


def test_escaped_space_in_key():
    c = StructuredData().parse('[id a\\ b="1" c="2"]')
    assert c.metrics[0].data == {"a b": "1", "c": "2"}


def test_metrics_share_a_recent_timestamp():
    before = datetime.now(timezone.utc)
    c = StructuredData().parse(EXAMPLE1 + PRIORITY)
    assert c.metrics[0].time == c.metrics[1].time
    assert before - timedelta(seconds=1) <= c.metrics[0].time <= datetime.now(timezone.utc)


def test_empty_input_raises():
    with pytest.raises(ParseError, match="failed to parse RFC5424 lines"):
        StructuredData().parse(b"")


def test_unterminated_element_is_not_parsed():
    with pytest.raises(ParseError):
        StructuredData().parse(b'[id a="1"')


def test_too_short_value_raises():
    with pytest.raises(ParseError):
        StructuredData().parse(b"[id a=]")