from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse
import asyncio
from app.models.db import init_db, SessionLocal
from sqlalchemy.orm import Session
from typing import Iterator
from app.schemas.api import (
    GenerateCodeRequest,
    HealthResponse,
    ModifyCodeRequest,
    ValidatePromptResponse,
)
from app.services import svc
from app.services.code_generator.manager import CodeGenerator, TokenUsage
from app.services.code_generator.models import FieldUpdate
import logging

init_db()


def get_db() -> Iterator[Session]:
    """Yield one database session and close it when the caller is done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


logger = logging.getLogger("services")
router = APIRouter()

STREAM_HEADERS = {
    'Cache-Control': 'no-cache',
    'Connection': 'keep-alive',
    'X-Accel-Buffering': 'no',  # Disable buffering for nginx
}


class SingletonGenerator:
    def __init__(self) -> None:
        self.generator: CodeGenerator | None = None  # created on first use


code_generator = SingletonGenerator()


def get_generator() -> CodeGenerator:
    """FastAPI dependency to provide the shared code generator."""
    if code_generator.generator is None:
        code_generator.generator = CodeGenerator(logger)
    return code_generator.generator


def _stream(kind: str, prompt: str, events, usage: TokenUsage) -> StreamingResponse:
    async def frame_generator():
        async for event in events:
            yield f"data: {svc.to_payload(event).model_dump_json()}\n\n"
            if isinstance(event, FieldUpdate):
                continue
            # Final result: save it once the stream is complete
            for db in get_db():
                svc.record_generation(db, logger, kind, prompt, event, usage)

    return StreamingResponse(
        frame_generator(),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )


@router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok")


@router.post("/validate-prompt", response_model=ValidatePromptResponse)
def validate_prompt(req: GenerateCodeRequest, generator: CodeGenerator = Depends(get_generator)):
    if not req.prompt.strip():
        return JSONResponse(
            status_code=400,
            content={
                "valid": False,
                "reason": "Invalid prompt format. Please provide a non-empty text description of your website.",
            },
        )
    result = svc.validate_prompt(generator, req.prompt)
    return ValidatePromptResponse(valid=result.valid, reason=result.reason)


@router.post("/generate-code")
async def generate_code(req: GenerateCodeRequest, generator: CodeGenerator = Depends(get_generator)):
    if not req.prompt.strip():
        return PlainTextResponse(
            "Invalid prompt format. Please provide a non-empty text description of your website.",
            status_code=400,
        )

    validation = await asyncio.to_thread(svc.validate_prompt, generator, req.prompt)
    if not validation.valid:
        reason = validation.reason or "Request cannot be implemented with HTML/CSS/JS alone"
        logger.info(f"Prompt rejected: {reason}")
        return PlainTextResponse(f"Prompt validation failed: {reason}", status_code=400)

    usage = TokenUsage()
    events = svc.stream_generation(generator, req.prompt, usage)
    return _stream("generate", req.prompt, events, usage)


@router.post("/modify-code")
async def modify_code(req: ModifyCodeRequest, generator: CodeGenerator = Depends(get_generator)):
    if not req.prompt.strip():
        return PlainTextResponse("Invalid modification prompt provided.", status_code=400)
    if req.current_html is None or req.current_css is None or req.current_js is None:
        return PlainTextResponse("Missing current code (HTML, CSS, or JS).", status_code=400)

    usage = TokenUsage()
    events = svc.stream_modification(
        generator, req.prompt, req.current_html, req.current_css, req.current_js, usage
    )
    return _stream("modify", req.prompt, events, usage)
