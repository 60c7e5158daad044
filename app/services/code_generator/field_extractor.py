"""Best-effort extraction of a string field from a partially streamed JSON object."""

from __future__ import annotations
import re
from functools import lru_cache
from .escape_resolver import resolve_escapes
from .models import ExtractionResult, FieldSpec

TERMINATOR_LOOKAHEAD = 3
AMBIGUOUS_SEQUENCE = '",'


@lru_cache(maxsize=32)
def _key_pattern(name: str) -> re.Pattern[str]:
    return re.compile(r'"%s"\s*:\s*"' % re.escape(name))


class PartialFieldExtractor:
    """
    Reads the current value of one field out of a growing text buffer.

    Every call is a pure function of the buffer: nothing is carried between
    calls, so the same snapshot always yields the same result. Only the last
    occurrence of the key is considered, which keeps tracking the most recently
    opened value when a producer restates a document inside the same stream.
    """

    def __init__(self, lookahead: int = TERMINATOR_LOOKAHEAD) -> None:
        self.lookahead = lookahead

    def extract(self, buffer: str, field: FieldSpec) -> ExtractionResult:
        match = None
        for match in _key_pattern(field.name).finditer(buffer):
            pass
        if match is None:
            return ExtractionResult(field_name=field.name)

        value_start = match.end()
        value_end = len(buffer)
        complete = False
        depth = 0
        escaped = False
        i = value_start
        while i < len(buffer):
            ch = buffer[i]
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                verdict = self._closes_value(buffer, i)
                if verdict is None:
                    # Quote at the tail; wait for more text to decide.
                    value_end = i
                    break
                if verdict:
                    value_end = i
                    complete = True
                    break
            elif ch == "{":
                depth += 1
            elif ch == "}" and depth > 0:
                depth -= 1
            i += 1

        span = buffer[value_start:value_end]
        if not complete and AMBIGUOUS_SEQUENCE in span:
            # Unterminated and possibly spilling into the next key: keep it raw.
            value = span
        else:
            value = resolve_escapes(span)
        return ExtractionResult(
            field_name=field.name, value=value, complete=complete, brace_depth=depth
        )

    def _closes_value(self, buffer: str, quote_index: int) -> bool | None:
        """Return True/False for a decided terminator, None while undecidable."""
        window = buffer[quote_index + 1 : quote_index + 1 + self.lookahead]
        for ch in window:
            if ch in ",}":
                return True
            if not ch.isspace():
                return False
        if len(window) < self.lookahead:
            return None
        return False


_default_extractor = PartialFieldExtractor()


def extract_field(buffer: str, field: FieldSpec) -> ExtractionResult:
    """Module-level shortcut using the default lookahead window."""
    return _default_extractor.extract(buffer, field)
