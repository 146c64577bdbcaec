from __future__ import annotations

from relay_core.extraction import (
    PREVIEW_LENGTH,
    ExtractionFailure,
    extract_json,
    parse_model_json,
)


def test_extracts_object_surrounded_by_prose() -> None:
    text = 'Sure! Here is the result:\n{"is_subscription": true, "price": 9.99}\nLet me know.'
    parsed = parse_model_json(text)
    assert parsed.ok
    assert parsed.payload == {"is_subscription": True, "price": 9.99}


def test_nested_objects_use_outermost_braces() -> None:
    text = 'prefix {"a": {"b": {"c": 1}}, "d": [1, 2]} suffix'
    assert extract_json(text) == '{"a": {"b": {"c": 1}}, "d": [1, 2]}'
    assert parse_model_json(text).payload == {"a": {"b": {"c": 1}}, "d": [1, 2]}


def test_missing_braces_report_no_json_found() -> None:
    for text in ["", "no json here", "only an opening {", "only a closing }", "} backwards {"]:
        parsed = parse_model_json(text)
        assert not parsed.ok
        assert parsed.failure == ExtractionFailure.no_json_found
        assert parsed.message == "AI did not return JSON"


def test_none_text_reports_no_json_found() -> None:
    assert parse_model_json(None).failure == ExtractionFailure.no_json_found


def test_malformed_candidate_reports_invalid_json_with_candidate_preview() -> None:
    parsed = parse_model_json('Result: {"price": 9.99,, } thanks')
    assert parsed.failure == ExtractionFailure.invalid_json
    assert parsed.preview == '{"price": 9.99,, }'
    assert parsed.message == "AI returned invalid JSON"


def test_stray_brace_in_prose_breaks_the_candidate() -> None:
    parsed = parse_model_json('{"ok": true} and a stray } brace')
    assert parsed.failure == ExtractionFailure.invalid_json


def test_preview_is_bounded() -> None:
    long_text = "x" * 5000
    parsed = parse_model_json(long_text)
    assert len(parsed.preview) == PREVIEW_LENGTH + 1
    assert parsed.preview.endswith("…")

    bad_json = "{" + "y" * 5000 + "}"
    parsed = parse_model_json(bad_json)
    assert parsed.failure == ExtractionFailure.invalid_json
    assert len(parsed.preview) == PREVIEW_LENGTH + 1


def test_oversized_integer_literal_is_invalid_json() -> None:
    text = '{"confidence": 1' + "0" * 5000 + "}"
    parsed = parse_model_json(text)
    assert parsed.failure == ExtractionFailure.invalid_json
    assert parsed.message == "AI returned invalid JSON"
    assert len(parsed.preview) == PREVIEW_LENGTH + 1


def test_deeply_nested_candidate_is_invalid_json() -> None:
    depth = 100_000
    text = '{"a": ' + "[" * depth + "]" * depth + "}"
    parsed = parse_model_json(text)
    assert parsed.failure == ExtractionFailure.invalid_json
    assert parsed.preview.startswith('{"a": [[[')
