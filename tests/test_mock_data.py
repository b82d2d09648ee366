"""Tests for mock-data template expansion."""

from datetime import date

import pytest

from telgen.attributes.mock_data import (
    MockTemplateEngine,
    MockTemplateError,
    is_template,
    parse_template,
)


@pytest.fixture
def engine() -> MockTemplateEngine:
    return MockTemplateEngine(seed=1234)


def test_plain_strings_pass_through(engine: MockTemplateEngine) -> None:
    assert engine.expand("no templates here") == "no templates here"
    assert not is_template("no templates here")
    assert not is_template(42)
    assert is_template("MRN{{Number 1 2}}")


def test_number_stays_in_range(engine: MockTemplateEngine) -> None:
    for _ in range(200):
        assert 1 <= int(engine.expand("{{Number 1 5}}")) <= 5


def test_text_around_actions_is_kept(engine: MockTemplateEngine) -> None:
    value = engine.expand("MRN{{Number 100000 999999}}")
    assert value.startswith("MRN")
    assert len(value) == 9


def test_fixed_seed_is_reproducible() -> None:
    """Two engines with the same seed produce the same sequence."""
    template = "{{Name}} {{Number 1 1000000}} {{IPv4Address}}"
    first = MockTemplateEngine(seed=7)
    second = MockTemplateEngine(seed=7)
    assert [first.expand(template) for _ in range(5)] == [
        second.expand(template) for _ in range(5)
    ]


def test_seed_restarts_sequence(engine: MockTemplateEngine) -> None:
    engine.seed(99)
    before = [engine.expand("{{Number 1 1000000}}") for _ in range(3)]
    engine.seed(99)
    assert [engine.expand("{{Number 1 1000000}}") for _ in range(3)] == before
    assert engine.current_seed == 99


def test_reshuffle_swaps_source(engine: MockTemplateEngine) -> None:
    engine.reshuffle()
    assert engine.current_seed != 1234


def test_nested_calls(engine: MockTemplateEngine) -> None:
    for _ in range(20):
        value = engine.expand('{{RandomString (SliceString "inpatient" "outpatient")}}')
        assert value in ("inpatient", "outpatient")


def test_date_range_within_bounds(engine: MockTemplateEngine) -> None:
    value = engine.expand('{{DateRange (ToDate "1924-01-01") (ToDate "2024-12-31")}}')
    parsed = date.fromisoformat(value)
    assert date(1924, 1, 1) <= parsed <= date(2024, 12, 31)


def test_hex_uint_width(engine: MockTemplateEngine) -> None:
    value = engine.expand("{{HexUint 8}}")
    assert value.startswith("0x")
    assert len(value) == 4


def test_literals_and_fields(engine: MockTemplateEngine) -> None:
    assert engine.expand("{{true}}") == "true"
    assert engine.expand('{{"quoted"}}') == "quoted"
    assert engine.expand("{{.Name}}", {"Name": "Ada"}) == "Ada"


def test_trim_markers(engine: MockTemplateEngine) -> None:
    assert engine.expand("a {{- 1 -}} b") == "a1b"


def test_parsed_templates_are_cached() -> None:
    assert parse_template("x{{Name}}") is parse_template("x{{Name}}")


@pytest.mark.parametrize(
    "template",
    [
        "{{NoSuchFunction}}",
        "{{Number 1 2",
        "{{Number 1}}",
        '{{RandomString "not a slice"}}',
        "{{HexUint 7}}",
        "{{.Missing}}",
        "{{(Number 1 2}}",
    ],
)
def test_bad_templates_raise(engine: MockTemplateEngine, template: str) -> None:
    with pytest.raises(MockTemplateError):
        engine.expand(template)


def test_log_level_and_error_vocabulary(engine: MockTemplateEngine) -> None:
    assert engine.expand("{{LogLevel}}") in ("trace", "debug", "info", "warning", "error", "fatal")
    assert engine.expand("{{ErrorDatabase}}")
    assert engine.expand("{{ErrorHTTPClient}}")
