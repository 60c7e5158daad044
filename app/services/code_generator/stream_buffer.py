"""Append-only text buffer fed by a chunked text source."""

from __future__ import annotations


class StreamBuffer:
    """Accumulates streamed chunks for a single request.

    The buffer only ever grows: there is no way to rewind or edit it, so every
    extraction over a later snapshot sees a superset of earlier text.
    """

    def __init__(self) -> None:
        self._text = ""
        self.chunk_count = 0

    def append(self, chunk: str) -> None:
        if not chunk:
            return
        self._text += chunk
        self.chunk_count += 1

    @property
    def text(self) -> str:
        return self._text

    def __len__(self) -> int:
        return len(self._text)
