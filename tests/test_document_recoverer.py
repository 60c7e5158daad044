from __future__ import annotations

import logging

import pytest

from app.services.code_generator.document_recoverer import (
    DocumentRecoverer,
    fenced_block,
    leading_object,
    outer_braces,
    recover_document,
    strip_stray_prefix,
)
from app.services.code_generator.models import FailureReason, RecoveredDocument, RecoveryFailure


@pytest.fixture
def recoverer():
    return DocumentRecoverer(logging.getLogger("test-recoverer"))


def test_recover_strips_markdown_fence(recoverer):
    text = '```json\n{"html":"<p>x</p>","css":"","js":""}\n```'

    assert recoverer.recover(text) == RecoveredDocument(html="<p>x</p>", css="", js="")


def test_recover_strips_surrounding_prose(recoverer):
    text = 'Sure! Here is the code: {"html":"a","css":"b","js":"c"} Hope it helps!'

    assert recoverer.recover(text) == RecoveredDocument(html="a", css="b", js="c")


def test_recover_skips_stray_json_token_inside_fence(recoverer):
    text = '```\njson\n{"html":"a","css":"b","js":"c"}\n```'

    assert recoverer.recover(text) == RecoveredDocument(html="a", css="b", js="c")


def test_recover_falls_through_to_outer_braces_when_fence_is_not_json(recoverer):
    text = 'Preview:\n```html\n<p>hi</p>\n```\nResult: {"html":"<p>hi</p>","css":"p{}","js":""}'

    assert recoverer.recover(text) == RecoveredDocument(html="<p>hi</p>", css="p{}", js="")


def test_recover_ignores_braces_in_trailing_prose(recoverer):
    text = '{"html":"a","css":"b","js":"c"}\nRemember to wrap handlers in {braces}.'

    assert recoverer.recover(text) == RecoveredDocument(html="a", css="b", js="c")


def test_recover_tolerates_raw_newlines_inside_strings(recoverer):
    text = '{"html":"<p>\n</p>","css":"","js":"a();\n\tb();"}'

    document = recoverer.recover(text)

    assert isinstance(document, RecoveredDocument)
    assert document.js == "a();\n\tb();"


def test_recover_domain_error_takes_precedence(recoverer):
    result = recoverer.recover('{"error": "blocked by safety filter"}')

    assert result == RecoveryFailure(
        reason=FailureReason.DOMAIN_REPORTED_ERROR,
        message="blocked by safety filter",
        excerpt='{"error": "blocked by safety filter"}',
    )


def test_recover_stream_error_key_is_a_domain_error(recoverer):
    result = recoverer.recover('{"stream_error": "Content generation blocked"}')

    assert result.reason == FailureReason.DOMAIN_REPORTED_ERROR
    assert result.message == "Content generation blocked"


def test_recover_without_braces_is_malformed_with_excerpt(recoverer):
    text = "I'm sorry, I can't help with that request."

    result = recoverer.recover(text)

    assert isinstance(result, RecoveryFailure)
    assert result.reason == FailureReason.MALFORMED_DOCUMENT
    assert result.excerpt == text


def test_recover_truncated_document_is_malformed(recoverer):
    result = recoverer.recover('{"html":"<p>cut off')

    assert result.reason == FailureReason.MALFORMED_DOCUMENT
    assert result.excerpt.startswith('{"html"')


@pytest.mark.parametrize(
    "text, problem",
    [
        ('{"html":"a","css":"b"}', "js"),
        ('{"html":1,"css":"","js":""}', "html"),
    ],
)
def test_recover_missing_or_mistyped_keys_are_malformed(recoverer, text, problem):
    result = recoverer.recover(text)

    assert result.reason == FailureReason.MALFORMED_DOCUMENT
    assert problem in result.message


def test_recover_excerpt_is_bounded():
    recoverer = DocumentRecoverer(excerpt_length=50)

    result = recoverer.recover("x" * 1000)

    assert result.excerpt == "x" * 50 + "..."


def test_recover_empty_buffer_still_has_excerpt(recoverer):
    result = recoverer.recover("")

    assert result.reason == FailureReason.MALFORMED_DOCUMENT
    assert result.excerpt


def test_parse_object_returns_plain_dict(recoverer):
    parsed = recoverer.parse_object('Answer: {"valid": true, "reason": "Static page."}')

    assert parsed == {"valid": True, "reason": "Static page."}
    assert recoverer.parse_object("no json here") is None


def test_strategy_helpers():
    assert fenced_block("```js\nlet a;\n```") == "let a;"
    assert fenced_block("no fence") is None
    assert outer_braces("a {b} c {d} e") == "{b} c {d}"
    assert outer_braces("} {") is None
    assert strip_stray_prefix('json\n{"a": "b"}') == '{"a": "b"}'
    assert leading_object('x {"a": 1} y {z}') == '{"a": 1}'
    assert leading_object("{broken") is None


def test_recover_document_shortcut():
    assert recover_document('{"html":"","css":"","js":""}') == RecoveredDocument(html="", css="", js="")


def test_recover_rejects_unpaired_surrogate_in_field(recoverer):
    result = recoverer.recover(r'{"html":"<p>Hi \ud83d</p>","css":"","js":""}')

    assert result.reason == FailureReason.MALFORMED_DOCUMENT
    assert "html" in result.message
    assert result.model_dump_json()


def test_recover_keeps_surrogate_pairs(recoverer):
    result = recoverer.recover(r'{"html":"<p>\ud83d\ude00</p>","css":"","js":""}')

    assert result == RecoveredDocument(html="<p>\U0001F600</p>", css="", js="")


def test_recover_domain_error_message_with_unpaired_surrogate_is_escaped(recoverer):
    result = recoverer.recover(r'{"error":"blocked \ud83d"}')

    assert result.reason == FailureReason.DOMAIN_REPORTED_ERROR
    assert result.message == r"blocked \ud83d"
