#!/usr/bin/env python3
"""Generate a slide deck plan (and images) from a Markdown file."""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import structlog  # noqa: E402
from pydantic import ValidationError  # noqa: E402

from paper2slides.config import configure_logging, get_settings  # noqa: E402
from paper2slides.errors import Paper2SlidesError  # noqa: E402
from paper2slides.pipeline import (  # noqa: E402
    PipelineConfig,
    PipelineOrchestrator,
    ProgressEvent,
    SlideBlueprint,
)
from paper2slides.providers import validate_provider_settings  # noqa: E402

logger = structlog.get_logger(__name__)


def print_progress(event: ProgressEvent) -> None:
    """Write a one-line progress update to stderr."""
    print(f"[{event.stage.value}] {event.progress:3d}% - {event.message}", file=sys.stderr)


def confirm_in_terminal(blueprints: list[SlideBlueprint]) -> bool:
    """Show the planned slides and ask whether to continue."""
    print("\nPlanned slides:", file=sys.stderr)
    for blueprint in blueprints:
        marker = " [image]" if blueprint.image_prompt else ""
        print(f"  {blueprint.slide_number:2d}. ({blueprint.layout.value}) {blueprint.title}{marker}", file=sys.stderr)
    answer = input("Continue with generation? [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def build_config(args: argparse.Namespace) -> PipelineConfig:
    """Overlay command-line options on the configured defaults."""
    overrides = {
        "theme": args.theme,
        "resolution": args.resolution,
        "length": args.length,
        "mode": args.mode,
        "worker_count": args.workers,
    }
    config = PipelineConfig.from_settings()
    update = {key: value for key, value in overrides.items() if value is not None}
    if args.no_images:
        update["generate_images"] = False
    return PipelineConfig.model_validate({**config.model_dump(), **update})


async def generate(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.no_images:
        settings = settings.model_copy(
            update={"generation": settings.generation.model_copy(update={"generate_images": False})}
        )

    try:
        document = Path(args.input).read_text(encoding="utf-8")
    except OSError as e:
        print(f"Cannot read {args.input}: {e.strerror}", file=sys.stderr)
        return 2

    try:
        config = build_config(args)
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            print(f"Configuration error: {field}: {error['msg']}", file=sys.stderr)
        return 2

    problems = validate_provider_settings(settings)
    if problems:
        for problem in problems:
            print(f"Configuration error: {problem}", file=sys.stderr)
        return 2

    orchestrator = PipelineOrchestrator.from_settings(settings)

    try:
        result = await orchestrator.run(
            document,
            config=config,
            on_progress=None if args.quiet else print_progress,
            confirm_plan=None if args.yes else confirm_in_terminal,
        )
    except Paper2SlidesError as e:
        logger.error("Generation failed", **e.to_dict())
        print(f"Generation failed: {e.message}", file=sys.stderr)
        return 1

    payload = json.dumps(result.to_dict(), indent=2, ensure_ascii=False, default=str)
    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
        print(f"Wrote {result.stats.total_slides} slides to {args.output}", file=sys.stderr)
    else:
        print(payload)
    return 0


def main():
    parser = argparse.ArgumentParser(description="Turn a Markdown document into a slide deck plan")
    parser.add_argument("input", help="Path to the Markdown document")
    parser.add_argument("-o", "--output", help="Write the result JSON here instead of stdout")
    parser.add_argument(
        "--theme",
        choices=["academic", "doraemon", "minimalist", "corporate", "creative"],
        help="Image theme",
    )
    parser.add_argument("--resolution", choices=["1K", "2K", "4K"], help="Image resolution")
    parser.add_argument("--length", choices=["short", "medium", "long"], help="Deck length")
    parser.add_argument("--mode", choices=["fast", "normal"], help="Pipeline mode")
    parser.add_argument("--workers", type=int, help="Concurrent image requests per batch")
    parser.add_argument("--no-images", action="store_true", help="Skip image generation")
    parser.add_argument("-y", "--yes", action="store_true", help="Skip the plan confirmation prompt")
    parser.add_argument("-q", "--quiet", action="store_true", help="Do not print progress")

    args = parser.parse_args()

    configure_logging(get_settings().logging)
    sys.exit(asyncio.run(generate(args)))


if __name__ == "__main__":
    main()
