from __future__ import annotations

import json
import logging

import pytest

from app.services.code_generator.escape_resolver import is_encodable, resolve_escapes
from app.services.code_generator.field_extractor import PartialFieldExtractor, extract_field
from app.services.code_generator.models import CODE_FIELDS, ExtractionResult, FieldSpec, FieldUpdate
from app.services.code_generator.stream_buffer import StreamBuffer
from app.services.code_generator.stream_pipeline import CodeStreamPipeline
from app.services.code_generator.update_coalescer import UpdateCoalescer

HTML = FieldSpec(name="html")
CSS = FieldSpec(name="css")
JS = FieldSpec(name="js")

DOCUMENT = {
    "html": '<!DOCTYPE html>\n<html lang="en"><body><div id="app">Café {x}</div></body></html>',
    "css": "*, *::before { box-sizing: border-box; }\nbody { font-family: \"Inter\", sans-serif; }",
    "js": "document.addEventListener('DOMContentLoaded', () => {\n\tconsole.log(\"ready\", \"}\");\n});",
}


# ----------------------- StreamBuffer -----------------------

def test_stream_buffer_only_grows():
    buffer = StreamBuffer()
    lengths = []
    for chunk in ['{"ht', "", 'ml":"', "a"]:
        buffer.append(chunk)
        lengths.append(len(buffer))

    assert lengths == sorted(lengths)
    assert buffer.text == '{"html":"a'
    assert buffer.chunk_count == 3


# ----------------------- EscapeResolver -----------------------

def test_resolve_escapes_decodes_json_escapes():
    assert resolve_escapes(r"line1\nline2 \"quoted\" \u00e9") == 'line1\nline2 "quoted" é'


def test_resolve_escapes_accepts_raw_control_characters():
    assert resolve_escapes("a\tb\nc") == "a\tb\nc"


@pytest.mark.parametrize("raw", ["line1\\", "caf\\u00", 'say "hi"'])
def test_resolve_escapes_falls_back_to_raw_span(raw):
    assert resolve_escapes(raw) == raw


def test_resolve_escapes_keeps_split_surrogate_pair_raw():
    assert resolve_escapes(r"Hi \ud83d") == r"Hi \ud83d"
    assert resolve_escapes(r"Hi \ud83d\ude00") == "Hi \U0001F600"
    assert not is_encodable("\ud83d")


def test_pipeline_updates_stay_serializable_across_split_surrogate_pair():
    pipeline = CodeStreamPipeline(logging.getLogger("test-pipeline"))

    first = pipeline.feed(r'{"html":"<p>Hi \ud83d')
    second = pipeline.feed(r'\ude00</p>"')

    assert first == [FieldUpdate(field_name="html", value=r"<p>Hi \ud83d")]
    assert second == [FieldUpdate(field_name="html", value="<p>Hi \U0001F600</p>")]
    for update in first + second:
        assert json.loads(update.model_dump_json())["value"] == update.value


# ----------------------- PartialFieldExtractor -----------------------

@pytest.mark.parametrize("separators", [None, (",", ":")])
def test_extract_round_trips_well_formed_document(separators):
    buffer = json.dumps(DOCUMENT, separators=separators)

    for field in CODE_FIELDS:
        result = extract_field(buffer, field)
        assert result.complete is True
        assert result.value == json.loads(buffer)[field.name]


def test_extract_missing_key_returns_empty_incomplete_result():
    assert extract_field('{"html":"<p>', CSS) == ExtractionResult(field_name="css")


def test_extract_is_idempotent():
    buffer = '{"html":"<p>hello</p>","css":"p { col'
    assert extract_field(buffer, CSS) == extract_field(buffer, CSS)
    assert extract_field(buffer, HTML) == extract_field(buffer, HTML)


def test_extract_uses_last_occurrence_of_key():
    buffer = '{"html":"old","css":"","js":""}\nUpdated: {"html":"new'

    result = extract_field(buffer, HTML)

    assert result.value == "new"
    assert result.complete is False


def test_extract_allows_whitespace_around_colon_and_separator():
    buffer = '{"html" :  "a" , "css": "b"}'
    assert extract_field(buffer, HTML) == ExtractionResult(field_name="html", value="a", complete=True)
    assert extract_field(buffer, CSS).value == "b"


def test_extract_ignores_unescaped_quote_followed_by_text():
    buffer = '{"html":"<a href="x">link</a>","css":""}'

    result = extract_field(buffer, HTML)

    assert result.complete is True
    assert result.value == '<a href="x">link</a>'


def test_extract_treats_escaped_backslash_before_quote_as_terminator():
    buffer = '{"html":"C:\\\\","css":""}'

    result = extract_field(buffer, HTML)

    assert result.complete is True
    assert result.value == "C:\\"


def test_extract_tail_quote_is_not_yet_complete():
    result = extract_field('{"html":"ab"', HTML)
    assert result.value == "ab"
    assert result.complete is False


def test_extract_buffer_ending_mid_escape_returns_raw_span():
    result = extract_field('{"html":"line1\\', HTML)
    assert result.value == "line1\\"
    assert result.complete is False


def test_extract_ambiguous_unterminated_value_stays_raw():
    result = extract_field('{"js":"f(\\"a\\", ', JS)
    assert result.value == 'f(\\"a\\", '
    assert result.complete is False


def test_extract_tracks_brace_depth_without_terminating():
    result = extract_field('{"js":"function f() { if (x) {', JS)
    assert result.brace_depth == 2
    assert result.value == "function f() { if (x) {"
    assert result.complete is False


def test_extract_converges_monotonically_over_growing_prefixes():
    final = json.dumps(DOCUMENT)
    extractor = PartialFieldExtractor()

    for field in CODE_FIELDS:
        completed_value = None
        for end in range(1, len(final) + 1):
            result = extractor.extract(final[:end], field)
            if completed_value is not None:
                assert result.complete is True
                assert result.value == completed_value
            elif result.complete:
                completed_value = result.value
        assert completed_value == DOCUMENT[field.name]


# ----------------------- UpdateCoalescer -----------------------

def test_coalescer_emits_only_changes():
    coalescer = UpdateCoalescer()
    emitted = []
    for buffer in ['{"html":"a', '{"html":"ab', '{"html":"ab"']:
        update = coalescer.update("html", extract_field(buffer, HTML).value)
        if update is not None:
            emitted.append(update)

    assert emitted == [
        FieldUpdate(field_name="html", value="a"),
        FieldUpdate(field_name="html", value="ab"),
    ]
    assert coalescer.get_metrics() == {
        "updates_received": 3,
        "updates_emitted": 2,
        "coalescing_ratio": 0.667,
    }


def test_coalescer_fields_are_independent_and_start_empty():
    coalescer = UpdateCoalescer()

    assert coalescer.update("css", "") is None
    assert coalescer.update("css", "a") == FieldUpdate(field_name="css", value="a")
    assert coalescer.update("js", "a") == FieldUpdate(field_name="js", value="a")
    assert coalescer.last_emitted("html") == ""


def test_coalescer_seed_suppresses_unchanged_code():
    coalescer = UpdateCoalescer(seed={"html": "<p>same</p>"})

    assert coalescer.update("html", "<p>same</p>") is None
    assert coalescer.update("html", "<p>other</p>") is not None
