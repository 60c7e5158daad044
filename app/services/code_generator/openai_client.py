"""Client wrapper for interacting with OpenAI chat completions."""

from __future__ import annotations

import logging
from typing import Iterator
from dotenv import load_dotenv
from openai import OpenAI, OpenAIError
from app.core.config import settings
from .models import UpstreamTransportError


class OpenAICodeClient:
    """Encapsulates OpenAI one-shot and streaming completions."""

    def __init__(self, logger: logging.Logger) -> None:
        load_dotenv()
        self.logger = logger
        api_key = settings.openai_api_key
        if api_key:
            self.logger.info("OPENAI_API_KEY loaded successfully.")
        else:
            self.logger.warning("WARNING: OPENAI_API_KEY not found in settings or environment.")
        self._client = OpenAI(api_key=api_key)

    def complete(
        self,
        prompt: str,
        instructions: str,
        *,
        model: str = settings.validation_model,
        max_tokens: int = settings.validation_max_tokens,
    ) -> str:
        """Send a single chat completion request and return its text."""
        try:
            response = self._client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": instructions},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=max_tokens,
                temperature=0,
            )
        except OpenAIError as e:
            raise UpstreamTransportError(f"Error contacting the language model: {e}") from e
        if not response.choices:
            raise UpstreamTransportError("The language model returned no choices.")
        choice = response.choices[0]
        if choice.finish_reason == "content_filter":
            raise UpstreamTransportError("Request blocked by the provider's content filter.")
        return (choice.message.content or "").strip()

    def stream(
        self,
        prompt: str,
        instructions: str,
        *,
        model: str = settings.generation_model,
        max_tokens: int = settings.generation_max_tokens,
        temperature: float = settings.generation_temperature,
    ) -> Iterator[tuple[str, int, int]]:
        """Stream completion text, yielding (text, prompt_tokens, completion_tokens).

        Usage arrives only with the final chunk; earlier tuples carry zeros.
        """
        try:
            for chunk in self._client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": instructions},
                    {"role": "user", "content": prompt},
                ],
                stream=True,
                stream_options={"include_usage": True},
                max_tokens=max_tokens,
                temperature=temperature,
            ):
                usage = getattr(chunk, "usage", None)
                if usage is not None:
                    yield "", usage.prompt_tokens, usage.completion_tokens
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                token = choice.delta.content or ""
                if token:
                    yield token, 0, 0
                if choice.finish_reason == "content_filter":
                    self.logger.warning("Generation stream blocked by the content filter.")
                    raise UpstreamTransportError("Content generation blocked by the provider's safety filter.")
                if choice.finish_reason == "length":
                    self.logger.warning("Generation stream hit the max_tokens limit (%d).", max_tokens)
        except OpenAIError as e:
            raise UpstreamTransportError(f"An error occurred during streaming: {e}") from e
