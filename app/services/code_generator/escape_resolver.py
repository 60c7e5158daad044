"""Interpret JSON string escapes inside a tentative field value."""

from __future__ import annotations
import json


def is_encodable(text: str) -> bool:
    """False when ``text`` holds a lone surrogate, which cannot be sent as UTF-8."""
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def resolve_escapes(raw_span: str) -> str:
    """Decode ``raw_span`` as the interior of a JSON string literal.

    Raw control characters (newlines, tabs) are accepted. When the span cannot
    be decoded, e.g. it ends in the middle of ``\\uXXXX``, on a lone
    backslash or between the two halves of a surrogate pair, the raw span is
    returned unchanged; the next chunk normally completes the escape.
    """
    if not raw_span:
        return raw_span
    try:
        decoded = json.loads(f'"{raw_span}"', strict=False)
    except ValueError:
        return raw_span
    if not is_encodable(decoded):
        return raw_span
    return decoded
