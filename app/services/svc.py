from __future__ import annotations
from typing import AsyncIterator
from sqlalchemy.orm import Session
from app.models.db import CodeGeneration
from app.schemas.api import FieldUpdateEvent, GenerateCodeResponse
from app.services.code_generator.manager import CodeGenerator, TokenUsage
from app.services.code_generator.models import (
    FieldUpdate,
    PromptValidation,
    RecoveredDocument,
    RecoveryFailure,
)
from app.services.code_generator.stream_pipeline import PipelineEvent
import logging


def validate_prompt(generator: CodeGenerator, prompt: str) -> PromptValidation:
    """Check that a prompt can be built with HTML/CSS/JS alone."""
    return generator.validate_prompt(prompt)


def stream_generation(generator: CodeGenerator, prompt: str, usage: TokenUsage) -> AsyncIterator[PipelineEvent]:
    """Stream a new site."""
    return generator.stream_generation(prompt, usage)


def stream_modification(
    generator: CodeGenerator, prompt: str, html: str, css: str, js: str, usage: TokenUsage
) -> AsyncIterator[PipelineEvent]:
    """Stream a modification of the current code."""
    return generator.stream_modification(prompt, html, css, js, usage)


def to_payload(event: PipelineEvent) -> FieldUpdateEvent | GenerateCodeResponse:
    """Convert a pipeline event into the JSON body of one stream frame."""
    if isinstance(event, FieldUpdate):
        return FieldUpdateEvent(field=event.field_name, value=event.value)
    if isinstance(event, RecoveredDocument):
        return GenerateCodeResponse(success=True, html=event.html, css=event.css, js=event.js)
    return GenerateCodeResponse(
        success=False,
        reason=event.reason.value,
        message=event.message,
        excerpt=event.excerpt,
    )


def record_generation(
    db: Session,
    logger: logging.Logger,
    kind: str,
    prompt: str,
    result: RecoveredDocument | RecoveryFailure,
    usage: TokenUsage,
) -> CodeGeneration:
    """Persist the outcome of one generation/modification request."""
    entry = CodeGeneration(
        kind=kind,
        prompt=prompt,
        tokens_sent=usage.prompt_tokens,
        tokens_received=usage.completion_tokens,
    )
    if isinstance(result, RecoveredDocument):
        entry.success = True
        entry.html = result.html
        entry.css = result.css
        entry.js = result.js
    else:
        entry.success = False
        entry.failure_reason = result.reason.value
        entry.message = result.message
    db.add(entry)
    db.commit()
    logger.info(f"Recorded {kind} request (success={entry.success}, tokens={usage.prompt_tokens}/{usage.completion_tokens})")
    return entry
