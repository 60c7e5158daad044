"""Per-request pipeline from a chunked text source to field updates and a final document."""

from __future__ import annotations
import inspect
import logging
from typing import AsyncIterable, AsyncIterator, Awaitable, Callable, Iterable, Mapping, Union
from .document_recoverer import DocumentRecoverer
from .field_extractor import PartialFieldExtractor
from .models import (
    CODE_FIELDS,
    FailureReason,
    FieldSpec,
    FieldUpdate,
    RecoveredDocument,
    RecoveryFailure,
    UpstreamTransportError,
)
from .stream_buffer import StreamBuffer
from .update_coalescer import UpdateCoalescer

FinalResult = Union[RecoveredDocument, RecoveryFailure]
PipelineEvent = Union[FieldUpdate, RecoveredDocument, RecoveryFailure]
UpdateSink = Callable[[FieldUpdate], Union[None, Awaitable[None]]]


class CodeStreamPipeline:
    """
    Feeds chunks into a StreamBuffer, re-extracts every field after each chunk
    and forwards changed values; on stream end the recovered document (or the
    failure) supersedes all partial values.

    One instance serves one request. Nothing here is shared across requests.
    """

    def __init__(
        self,
        logger: logging.Logger,
        fields: Iterable[FieldSpec] = CODE_FIELDS,
        seed: Mapping[str, str] | None = None,
        excerpt_length: int = 200,
    ) -> None:
        self.logger = logger
        self.fields = tuple(fields)
        self.buffer = StreamBuffer()
        self.extractor = PartialFieldExtractor()
        self.coalescer = UpdateCoalescer(self.fields, seed)
        self.recoverer = DocumentRecoverer(logger, excerpt_length=excerpt_length)

    async def events(self, source: AsyncIterable[str]) -> AsyncIterator[PipelineEvent]:
        """Yield FieldUpdates while streaming, then exactly one final result."""
        transport_error: UpstreamTransportError | None = None
        try:
            async for chunk in source:
                for update in self.feed(chunk):
                    yield update
        except UpstreamTransportError as e:
            self.logger.error("Chunk source failed after %d chars: %s", len(self.buffer), e)
            transport_error = e

        yield self.finish(transport_error)

    async def run(self, source: AsyncIterable[str], sink: UpdateSink) -> FinalResult:
        """Drive ``events`` and hand each update to ``sink``; return the final result."""
        async for event in self.events(source):
            if isinstance(event, FieldUpdate):
                outcome = sink(event)
                if inspect.isawaitable(outcome):
                    await outcome
            else:
                return event
        raise RuntimeError("pipeline ended without a final result")  # pragma: no cover

    def feed(self, chunk: str) -> list[FieldUpdate]:
        """Append one chunk and return the updates it caused."""
        self.buffer.append(chunk)
        updates = []
        text = self.buffer.text
        for field in self.fields:
            result = self.extractor.extract(text, field)
            update = self.coalescer.update(field.name, result.value)
            if update is not None:
                updates.append(update)
        return updates

    def finish(self, transport_error: UpstreamTransportError | None = None) -> FinalResult:
        """Recover the final document from whatever the buffer holds."""
        text = self.buffer.text
        self.logger.info(
            "Stream ended after %d chunks (%d chars); coalescer %s",
            self.buffer.chunk_count,
            len(text),
            self.coalescer.get_metrics(),
        )
        result = self.recoverer.recover(text)
        if transport_error is None:
            return result

        if isinstance(result, RecoveryFailure):
            self.logger.info("Partial buffer recovery: %s (%s)", result.reason.value, result.message)
            partial = f"{result.reason.value}: {result.message}"
        else:
            self.logger.info("Partial buffer parsed despite the transport failure; discarding it.")
            partial = "parsed but discarded"
        return RecoveryFailure(
            reason=FailureReason.UPSTREAM_TRANSPORT_ERROR,
            message=f"{transport_error} (partial buffer: {partial})",
            excerpt=self.recoverer.excerpt(text),
        )
