import pytest

from skogul.marshal import Duration, Ref, RefKind, RefRegistry, parse_duration


@pytest.mark.parametrize("text", ["1m30s", "-2s", "1.5s", "300\u00b5s", "250ms", "999ns"])
def test_duration_text_round_trip(text):
    assert str(parse_duration(text)) == text


def test_duration_hour_shows_all_units():
    assert str(parse_duration("1h")) == "1h0m0s"


def test_zero_duration():
    d = parse_duration("0")
    assert d.nanoseconds == 0
    assert str(d) == "0s"


def test_number_is_nanoseconds():
    assert parse_duration(1500.0).nanoseconds == 1500
    assert parse_duration(1500).nanoseconds == 1500


def test_number_and_text_agree():
    assert parse_duration("1s") == parse_duration(1e9)


def test_fraction_equivalents():
    assert parse_duration("1.5s") == parse_duration("1500ms")
    assert parse_duration("1.5\u00b5s") == parse_duration("1500ns")
    assert parse_duration("1us") == parse_duration("1\u03bcs")


def test_plus_sign_and_compound():
    assert parse_duration("+1h30m") == parse_duration("90m")


def test_float_truncates_toward_zero():
    assert parse_duration(-1.9) == parse_duration(-1)


@pytest.mark.parametrize("bad", ["", "1", "abc", "1x", ".s", "-", "9999999999h"])
def test_invalid_text(bad):
    with pytest.raises(ValueError):
        parse_duration(bad)


@pytest.mark.parametrize("bad", [True, None, [], {}, float("inf")])
def test_invalid_types(bad):
    with pytest.raises(ValueError):
        parse_duration(bad)


def test_duration_to_json_is_text():
    d = parse_duration("1m30s")
    assert d.to_json() == str(d)
    assert parse_duration(d.to_json()) == d


def test_duration_timedelta():
    d = parse_duration("1.5s")
    assert d.timedelta.total_seconds() == 1.5


def test_duration_ordering():
    assert parse_duration("1s") < parse_duration("1m")
    assert Duration() == parse_duration("0")


def test_registry_records_refs_in_order():
    registry = RefRegistry()
    a = registry.ref(RefKind.SENDER, "a")
    b = registry.ref(RefKind.SENDER, "b")
    assert registry.pending(RefKind.SENDER) == [a, b]
    assert a.name == "a"
    assert a.target is None


def test_registry_kinds_are_separate():
    registry = RefRegistry()
    p = registry.ref(RefKind.PARSER, "json")
    assert registry.pending(RefKind.SENDER) == []
    assert registry.pending(RefKind.PARSER) == [p]


def test_registry_clear():
    registry = RefRegistry()
    registry.ref(RefKind.HANDLER, "h")
    registry.clear()
    assert registry.pending(RefKind.HANDLER) == []


def test_registry_rejects_non_string():
    registry = RefRegistry()
    with pytest.raises(TypeError):
        registry.ref(RefKind.ENCODER, 5)


def test_ref_to_json_is_name():
    ref = Ref(kind=RefKind.TRANSFORMER, name="flatten")
    assert ref.to_json() == "flatten"


def test_ref_target_can_be_filled():
    registry = RefRegistry()
    ref = registry.ref(RefKind.SENDER, "print")
    for pending in registry.pending(RefKind.SENDER):
        pending.target = object
    assert ref.target is object