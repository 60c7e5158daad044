"""Turn the final streamed buffer into a RecoveredDocument or a diagnosed failure.

Producers are asked for a bare JSON object but regularly wrap it in a
markdown fence, surround it with prose or prefix it with a stray ``json``
token. Cleaning is an ordered chain of candidate strategies; each proposes a
substring and the first one that parses as a JSON object wins.
"""

from __future__ import annotations
import json
import logging
import re
from typing import Any, Callable, Iterator, Optional, Sequence
from pydantic import ValidationError
from .escape_resolver import is_encodable
from .models import FailureReason, RecoveredDocument, RecoveryFailure

FENCED_BLOCK_PATTERN = re.compile(r"```[\w+-]*[ \t]*\n?(.*?)\s*```", re.DOTALL)
STRAY_PREFIX = "json"
DOMAIN_ERROR_KEYS = ("error", "stream_error")
EMPTY_EXCERPT = "<empty response>"

CandidateStrategy = Callable[[str], Optional[str]]


def fenced_block(text: str) -> str | None:
    """Interior of the first fenced block, language tag dropped."""
    match = FENCED_BLOCK_PATTERN.search(text)
    if not match:
        return None
    return match.group(1)


def outer_braces(text: str) -> str | None:
    """Everything from the first ``{`` to the last ``}`` inclusive."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


_decoder = json.JSONDecoder(strict=False)


def leading_object(text: str) -> str | None:
    """The first complete object starting at the first ``{``, ignoring what follows."""
    start = text.find("{")
    if start == -1:
        return None
    try:
        _, end = _decoder.raw_decode(text, start)
    except ValueError:
        return None
    return text[start:end]


DEFAULT_STRATEGIES: tuple[CandidateStrategy, ...] = (fenced_block, outer_braces, leading_object)


def strip_stray_prefix(candidate: str) -> str:
    """Drop a leading ``json`` token some models print before the object."""
    candidate = candidate.strip()
    if candidate.startswith(STRAY_PREFIX):
        brace = candidate.find("{")
        if brace != -1:
            return candidate[brace:]
    return candidate


class DocumentRecoverer:
    """Cleans and parses a finished buffer; never raises for bad input."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        strategies: Sequence[CandidateStrategy] = DEFAULT_STRATEGIES,
        excerpt_length: int = 200,
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.strategies = tuple(strategies)
        self.excerpt_length = excerpt_length

    # ----------------------- Public API -----------------------
    def candidates(self, text: str) -> Iterator[str]:
        """Yield cleaned candidate substrings in strategy order, without repeats."""
        seen: set[str] = set()
        for strategy in self.strategies:
            raw = strategy(text)
            if raw is None:
                continue
            candidate = strip_stray_prefix(raw)
            if not candidate or candidate in seen:
                continue
            seen.add(candidate)
            yield candidate

    def parse_object(self, text: str) -> dict[str, Any] | None:
        """Return the first candidate that parses as a JSON object, or None."""
        parsed, _ = self._first_object(text)
        return parsed

    def recover(self, text: str) -> RecoveredDocument | RecoveryFailure:
        parsed, failed_text = self._first_object(text)
        if parsed is None:
            self.logger.warning("No JSON object could be recovered from %d chars.", len(text))
            return self._failure(
                FailureReason.MALFORMED_DOCUMENT,
                "Failed to parse the response as a JSON object.",
                failed_text,
            )

        for key in DOMAIN_ERROR_KEYS:
            if key in parsed:
                message = parsed[key]
                if not isinstance(message, str):
                    message = json.dumps(message, ensure_ascii=False)
                if not is_encodable(message):
                    message = json.dumps(message)[1:-1]
                self.logger.info("Producer reported an error: %s", message)
                return self._failure(FailureReason.DOMAIN_REPORTED_ERROR, message, failed_text)

        try:
            document = RecoveredDocument.model_validate(parsed)
        except ValidationError as e:
            problems = ", ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            self.logger.warning("Recovered object has an invalid structure: %s", problems)
            return self._failure(
                FailureReason.MALFORMED_DOCUMENT,
                f"Invalid document structure ({problems}).",
                failed_text,
            )

        broken = [name for name, value in document.model_dump().items() if not is_encodable(value)]
        if broken:
            self.logger.warning("Recovered fields hold unpaired surrogates: %s", broken)
            return self._failure(
                FailureReason.MALFORMED_DOCUMENT,
                f"Invalid document structure (unpaired surrogate escape in {', '.join(broken)}).",
                failed_text,
            )
        return document

    # ----------------------- Helpers -----------------------
    def _first_object(self, text: str) -> tuple[dict[str, Any] | None, str]:
        """Parse candidates in order; also return the text to excerpt."""
        last_tried = text
        for candidate in self.candidates(text):
            last_tried = candidate
            try:
                parsed = json.loads(candidate, strict=False)
            except ValueError as e:
                self.logger.debug("Candidate rejected: %s", e)
                continue
            if isinstance(parsed, dict):
                return parsed, candidate
        return None, last_tried

    def _failure(self, reason: FailureReason, message: str, text: str) -> RecoveryFailure:
        return RecoveryFailure(reason=reason, message=message, excerpt=self.excerpt(text))

    def excerpt(self, text: str) -> str:
        text = text.strip()
        if not text:
            return EMPTY_EXCERPT
        if len(text) <= self.excerpt_length:
            return text
        return text[: self.excerpt_length] + "..."


def recover_document(text: str, excerpt_length: int = 200) -> RecoveredDocument | RecoveryFailure:
    """Recover ``text`` with the default strategy chain."""
    return DocumentRecoverer(excerpt_length=excerpt_length).recover(text)
