"""Slide planning: turn a ContentSummary into slide blueprints."""

import dataclasses
import math
from typing import Any

import structlog

from paper2slides.errors import ParseError, ValidationError
from paper2slides.ingestion.models import CodeBlock, ImageReference, TableData
from paper2slides.pipeline.json_extract import extract_json_array
from paper2slides.pipeline.models import (
    ContentSummary,
    LayoutType,
    OutlineSection,
    PipelineConfig,
    SlideBlueprint,
    SlideContent,
)
from paper2slides.pipeline.summarizer import estimate_slide_count
from paper2slides.providers.base import TextBackend, TextGenerationRequest, call_backend

logger = structlog.get_logger(__name__)

DEFAULT_ESTIMATED_TOKENS = 200
QUOTE_MIN_CHARS = 50
IMAGE_PROMPT_CONTEXT_CHARS = 200

PLAN_SYSTEM_PROMPT = (
    "You are an expert presentation designer. Create detailed slide blueprints that are "
    "clear, engaging, and well-structured. Always respond with valid JSON only."
)

PLANNING_PROMPT_TEMPLATE = """
Create a detailed presentation blueprint with {target_count} slides based on the following content summary.

**Content Summary:**
- Main Topics: {main_topics}
- Key Points: {key_points}
- Complexity: {complexity}
- Keywords: {keywords}

**Outline:**
{outline}

**Presentation Settings:**
- Theme: {theme}
- Resolution: {resolution}
- Target Slides: {target_count}

**Required Output Format:**

Provide a JSON array of slide blueprints. Each blueprint should have:

[
  {{
    "slideNumber": 1,
    "title": "Presentation Title",
    "layout": "title",
    "content": {{
      "text": ["Subtitle or tagline", "Author/Date info"]
    }},
    "notes": "Opening slide to introduce the topic",
    "imagePrompt": "A professional hero image representing...",
    "estimatedTokens": 150
  }},
  {{
    "slideNumber": 2,
    "title": "Section Title",
    "layout": "content",
    "content": {{
      "text": ["Bullet point 1", "Bullet point 2", "Bullet point 3"]
    }},
    "notes": "Explain the main concept",
    "imagePrompt": "An illustration showing...",
    "estimatedTokens": 200
  }}
]

**Layout Types:**
- "title": Title slide (first slide only)
- "content": Standard content with bullet points
- "two-column": Two-column layout for comparisons
- "image-focus": Large image with minimal text
- "quote": Featured quote or key statement
- "comparison": Side-by-side comparison

**Guidelines:**
1. First slide MUST be "title" layout
2. Last slide should be a summary/conclusion
3. Use varied layouts for visual interest
4. Each slide should have 3-5 text items (except title and image-focus)
5. Include imagePrompt for slides that would benefit from visuals
6. estimatedTokens: rough token count for slide content (100-300)

Respond with ONLY the JSON array, no additional text.
"""


def format_outline(outline: list[OutlineSection], indent: int = 0) -> str:
    """Render an outline as ``- title: content`` lines, two spaces per level."""
    lines = []
    prefix = "  " * indent
    for section in outline:
        lines.append(f"{prefix}- {section.title}: {section.content}")
        if section.subsections:
            lines.append(format_outline(section.subsections, indent + 1))
    return "\n".join(lines)


def build_planning_prompt(summary: ContentSummary, target_count: int, config: PipelineConfig) -> str:
    """Render the planning prompt."""
    return PLANNING_PROMPT_TEMPLATE.format(
        target_count=target_count,
        main_topics=", ".join(summary.main_topics),
        key_points=", ".join(summary.key_points),
        complexity=summary.complexity.value,
        keywords=", ".join(summary.keywords),
        outline=format_outline(summary.outline),
        theme=config.theme.value,
        resolution=config.resolution.value,
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _text_lines(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(line) for line in value if isinstance(line, str) or _is_number(line)]


def _layout(value: Any) -> LayoutType:
    if isinstance(value, str) and value in {member.value for member in LayoutType}:
        return LayoutType(value)
    return LayoutType.CONTENT


def _image_prompt(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _dicts(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _images(value: Any) -> list[ImageReference]:
    return [
        ImageReference(
            src=item["src"],
            alt=_text(item.get("alt")) or "Image",
            caption=_text(item.get("caption")),
            width=int(item["width"]) if _is_number(item.get("width")) else None,
            height=int(item["height"]) if _is_number(item.get("height")) else None,
        )
        for item in _dicts(value)
        if _text(item.get("src"))
    ]


def _tables(value: Any) -> list[TableData]:
    tables = []
    for item in _dicts(value):
        headers = item.get("headers")
        rows = item.get("rows")
        tables.append(
            TableData(
                headers=_text_lines(headers),
                rows=[_text_lines(row) for row in rows if isinstance(row, list)]
                if isinstance(rows, list)
                else [],
                caption=_text(item.get("caption")),
            )
        )
    return tables


def _code(value: Any) -> list[CodeBlock]:
    return [
        CodeBlock(
            language=_text(item.get("language")) or "text",
            code=item["code"],
            caption=_text(item.get("caption")),
        )
        for item in _dicts(value)
        if _text(item.get("code")) is not None
    ]


def _content(value: Any) -> SlideContent:
    if not isinstance(value, dict):
        return SlideContent()
    return SlideContent(
        text=_text_lines(value.get("text")),
        images=_images(value.get("images")),
        tables=_tables(value.get("tables")),
        code=_code(value.get("code")),
    )


def parse_blueprints(text: str) -> list[SlideBlueprint]:
    """Parse a model response into blueprints.

    Entries without a title or a numeric slide number are dropped.

    Raises:
        ParseError: The response holds no decodable JSON array.
        ValidationError: No usable entries remain.
    """
    items = extract_json_array(text)

    blueprints = []
    for item in items:
        if not isinstance(item, dict):
            continue
        if not _text(item.get("title")) or not _is_number(item.get("slideNumber")):
            continue

        tokens = item.get("estimatedTokens")
        blueprints.append(
            SlideBlueprint(
                slide_number=int(item["slideNumber"]),
                title=item["title"],
                layout=_layout(item.get("layout")),
                content=_content(item.get("content")),
                notes=_text(item.get("notes")) or "",
                image_prompt=_image_prompt(item.get("imagePrompt")),
                estimated_tokens=int(tokens) if _is_number(tokens) else DEFAULT_ESTIMATED_TOKENS,
            )
        )

    if not blueprints:
        raise ValidationError(f"None of {len(items)} planned slides were usable")
    return blueprints


def fallback_blueprints(count: int) -> list[SlideBlueprint]:
    """Generic deck: a title slide followed by ``count - 1`` section slides."""
    blueprints = [
        SlideBlueprint(
            slide_number=1,
            title="Presentation Title",
            layout=LayoutType.TITLE,
            content=SlideContent(text=["Subtitle", "Date"]),
            notes="Title slide",
            estimated_tokens=100,
        )
    ]
    for number in range(2, count + 1):
        blueprints.append(
            SlideBlueprint(
                slide_number=number,
                title=f"Section {number - 1}",
                layout=LayoutType.CONTENT,
                content=SlideContent(text=["Key point 1", "Key point 2", "Key point 3"]),
                notes=f"Content for section {number - 1}",
                estimated_tokens=DEFAULT_ESTIMATED_TOKENS,
            )
        )
    return blueprints


def suggest_layout(blueprint: SlideBlueprint) -> LayoutType:
    """Pick a layout from what the slide carries."""
    content = blueprint.content
    text_count = len(content.text)

    if content.images and text_count <= 2:
        return LayoutType.IMAGE_FOCUS
    if content.tables or text_count == 2:
        return LayoutType.TWO_COLUMN
    if content.code:
        return LayoutType.CONTENT
    if text_count == 1 and len(content.text[0]) > QUOTE_MIN_CHARS:
        return LayoutType.QUOTE
    return LayoutType.CONTENT


def build_image_prompt(blueprint: SlideBlueprint) -> str:
    """Describe an illustration for an image-focused slide."""
    context = " ".join(blueprint.content.text)[:IMAGE_PROMPT_CONTEXT_CHARS]
    return (
        f'A professional, visually appealing illustration for a slide titled "{blueprint.title}". '
        f"The image should represent: {context}. "
        "Style: modern, clean, suitable for business presentations."
    )


def optimize_layout(blueprints: list[SlideBlueprint]) -> list[SlideBlueprint]:
    """Normalize layouts and numbering for a deck.

    The first slide becomes the title slide and the last (in decks of two or
    more) a content slide titled "Summary" when untitled. Content slides,
    including that last one, then get a layout suggested from what they
    carry. Image-focused slides without a prompt get one, and slides are
    renumbered 1..N.

    Returns:
        New blueprints; the input is not modified.
    """
    last = len(blueprints) - 1
    optimized = []

    for position, blueprint in enumerate(blueprints):
        layout = blueprint.layout
        title = blueprint.title

        if position == 0:
            layout = LayoutType.TITLE
        elif position == last:
            layout = LayoutType.CONTENT
            title = title or "Summary"

        updated = dataclasses.replace(blueprint, layout=layout, title=title, slide_number=position + 1)

        if updated.layout == LayoutType.CONTENT:
            updated = dataclasses.replace(updated, layout=suggest_layout(updated))

        if updated.layout == LayoutType.IMAGE_FOCUS and not updated.image_prompt:
            updated = dataclasses.replace(updated, image_prompt=build_image_prompt(updated))

        optimized.append(updated)

    return optimized


class Planner:
    """Plan a deck with a text backend.

    Unusable model output degrades to :func:`fallback_blueprints`; provider
    failures propagate to the caller. Both paths pass through
    :func:`optimize_layout`.
    """

    def __init__(self, text_backend: TextBackend, request_timeout: float | None = None):
        self.backend = text_backend
        self.request_timeout = request_timeout

    async def generate_blueprints(
        self, summary: ContentSummary, config: PipelineConfig
    ) -> list[SlideBlueprint]:
        """Plan slides for a summary.

        Args:
            summary: Document summary.
            config: Run options; length, theme and resolution shape the plan.

        Returns:
            Optimized blueprints numbered 1..N.

        Raises:
            ProviderError: The backend call failed or timed out.
        """
        target_count = estimate_slide_count(summary, config.length)

        request = TextGenerationRequest(
            prompt=build_planning_prompt(summary, target_count, config),
            system_prompt=PLAN_SYSTEM_PROMPT,
            temperature=0.4,
            max_tokens=8192,
        )
        response = await call_backend(
            self.backend.generate_text(request),
            timeout=self.request_timeout,
            provider=self.backend.provider_name,
        )

        try:
            blueprints = parse_blueprints(response.text)
        except (ParseError, ValidationError) as e:
            logger.warning(
                "Plan response unusable, using fallback",
                error=e.message,
                target_count=target_count,
            )
            blueprints = fallback_blueprints(target_count)

        blueprints = optimize_layout(blueprints)
        logger.info("Slides planned", slide_count=len(blueprints), target_count=target_count)
        return blueprints
