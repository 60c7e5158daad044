import argparse
import asyncio
import logging
import sys
from pathlib import Path

from app.services.code_generator.manager import CodeGenerator, TokenUsage
from app.services.code_generator.models import FieldUpdate, RecoveredDocument

OUTPUT_FILES = {"html": "index.html", "css": "style.css", "js": "script.js"}


async def generate_site(description: str, out_dir: Path, logger: logging.Logger) -> bool:
    generator = CodeGenerator(logger)
    validation = generator.validate_prompt(description)
    if not validation.valid:
        logger.error("Prompt validation failed: %s", validation.reason)
        return False

    usage = TokenUsage()
    async for event in generator.stream_generation(description, usage):
        if isinstance(event, FieldUpdate):
            logger.info("%s: %d chars", event.field_name, len(event.value))
            continue
        if not isinstance(event, RecoveredDocument):
            logger.error("Generation failed (%s): %s", event.reason.value, event.message)
            logger.error("Response started with: %s", event.excerpt)
            return False
        out_dir.mkdir(parents=True, exist_ok=True)
        for field, filename in OUTPUT_FILES.items():
            (out_dir / filename).write_text(getattr(event, field), encoding="utf-8")
        logger.info(
            "Wrote %s (tokens: %d sent, %d received)",
            out_dir,
            usage.prompt_tokens,
            usage.completion_tokens,
        )
    return True


def main():
    logging.basicConfig(
        level=logging.INFO,                        # show INFO and above
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stdout,                         # send to terminal
    )
    parser = argparse.ArgumentParser(description="Generate a static website from a description.")
    parser.add_argument("description")
    parser.add_argument("--out", default="site", help="Output directory")
    args = parser.parse_args()

    logger = logging.getLogger("create_site")
    ok = asyncio.run(generate_site(args.description, Path(args.out), logger))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
