"""Code generation orchestration that coordinates prompts, LLM calls and the stream pipeline."""

from __future__ import annotations
import asyncio
import logging
import threading
from typing import AsyncIterator
from pydantic import ValidationError
from app.core.config import (
    GENERATION_INSTRUCTION,
    MODIFICATION_INSTRUCTION,
    VALIDATION_INSTRUCTION,
    settings,
)
from .document_recoverer import DocumentRecoverer
from .models import PromptValidation, UpstreamTransportError
from .openai_client import OpenAICodeClient
from .prompt_builder import PromptBuilder
from .stream_pipeline import CodeStreamPipeline, PipelineEvent

_DONE = object()


class TokenUsage:
    """Token counters filled in once the provider reports usage."""

    def __init__(self) -> None:
        self.prompt_tokens = 0
        self.completion_tokens = 0


class CodeGenerator:
    """Validates prompts and streams generated or modified html/css/js documents."""

    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger
        self.prompt_builder = PromptBuilder()
        self.openai_client = OpenAICodeClient(logger)
        self.logger.info("CodeGenerator initialized.")

    # ----------------------- Public API -----------------------
    def validate_prompt(self, prompt: str) -> PromptValidation:
        """Ask the model whether ``prompt`` can be built client-side only."""

        self.logger.debug("Validating prompt: %s", prompt)
        try:
            text = self.openai_client.complete(
                self.prompt_builder.build_validation_prompt(prompt),
                VALIDATION_INSTRUCTION,
            )
        except UpstreamTransportError as e:
            self.logger.error("Validation call failed: %s", e)
            return PromptValidation(valid=False, reason=f"Error validating prompt: {e}")

        self.logger.debug("Raw validation response: %s", text)
        parsed = DocumentRecoverer(self.logger).parse_object(text)
        if parsed is None:
            return PromptValidation(
                valid=False, reason="Failed to validate prompt: Could not parse AI response."
            )
        try:
            return PromptValidation.model_validate(parsed)
        except ValidationError:
            self.logger.error("Invalid JSON structure received from validation AI: %s", parsed)
            return PromptValidation(
                valid=False,
                reason="Failed to validate prompt: Invalid response structure.",
            )

    def stream_generation(self, prompt: str, usage: TokenUsage) -> AsyncIterator[PipelineEvent]:
        """Stream field updates for a brand new site, then the final result."""

        pipeline = CodeStreamPipeline(self.logger, excerpt_length=settings.excerpt_length)
        source = self._chunks(
            self.prompt_builder.build_generation_prompt(prompt), GENERATION_INSTRUCTION, usage
        )
        return pipeline.events(source)

    def stream_modification(
        self, prompt: str, html: str, css: str, js: str, usage: TokenUsage
    ) -> AsyncIterator[PipelineEvent]:
        """Stream updates for modified code; unchanged fields are not re-emitted."""

        pipeline = CodeStreamPipeline(
            self.logger,
            seed={"html": html, "css": css, "js": js},
            excerpt_length=settings.excerpt_length,
        )
        source = self._chunks(
            self.prompt_builder.build_modification_prompt(prompt, html, css, js),
            MODIFICATION_INSTRUCTION,
            usage,
        )
        return pipeline.events(source)

    # ----------------------- Helpers -----------------------
    async def _chunks(self, prompt: str, instructions: str, usage: TokenUsage) -> AsyncIterator[str]:
        """Run the blocking OpenAI stream in a worker thread and yield its text chunks."""

        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()
        stop = threading.Event()

        def _run_blocking():
            try:
                for item in self.openai_client.stream(prompt, instructions):
                    if stop.is_set():
                        break
                    loop.call_soon_threadsafe(queue.put_nowait, item)
            except Exception as e:
                loop.call_soon_threadsafe(queue.put_nowait, e)
            finally:
                loop.call_soon_threadsafe(queue.put_nowait, _DONE)

        thread_task = asyncio.create_task(asyncio.to_thread(_run_blocking))
        try:
            while True:
                item = await queue.get()
                if item is _DONE:
                    break
                if isinstance(item, Exception):
                    raise item
                token, prompt_tokens, completion_tokens = item
                if prompt_tokens or completion_tokens:
                    usage.prompt_tokens = prompt_tokens
                    usage.completion_tokens = completion_tokens
                if token:
                    yield token
            # ensure the worker finishes
            await thread_task
        finally:
            stop.set()
