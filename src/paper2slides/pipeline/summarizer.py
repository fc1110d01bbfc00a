"""Document analysis: turn an indexed document into a ContentSummary."""

import math
from typing import Any

import structlog

from paper2slides.errors import ParseError, ValidationError
from paper2slides.ingestion.metadata import KeywordExtractor
from paper2slides.pipeline.json_extract import extract_json_object
from paper2slides.pipeline.models import (
    Complexity,
    ContentSummary,
    OutlineSection,
    SlideLength,
)
from paper2slides.providers.base import TextBackend, TextGenerationRequest, call_backend
from paper2slides.retrieval.index import RetrievalIndex

logger = structlog.get_logger(__name__)

MAX_PROMPT_CHARS = 15000
TRUNCATION_MARKER = "\n\n[Content truncated...]"
WORDS_PER_SLIDE = 200
MIN_SLIDES = 5
MAX_SLIDES = 25
MINUTES_PER_SLIDE = 1.5

SUMMARY_SYSTEM_PROMPT = (
    "You are an expert content analyst. Your task is to analyze documents and create "
    "structured summaries for presentation slides. Always respond with valid JSON only."
)

SUMMARY_KEYS = (
    "mainTopics",
    "keyPoints",
    "suggestedSlideCount",
    "estimatedDuration",
    "complexity",
    "keywords",
    "outline",
)

ANALYSIS_PROMPT_TEMPLATE = """
Analyze the following document content and provide a comprehensive summary for creating presentation slides.

**Document Content ({chunk_count} sections):**
{content}

**Required Analysis:**

Provide your analysis in the following JSON format:

{{
  "mainTopics": ["topic1", "topic2", "topic3"],
  "keyPoints": ["point1", "point2", "point3", "point4", "point5"],
  "suggestedSlideCount": 12,
  "estimatedDuration": 15,
  "complexity": "intermediate",
  "keywords": ["keyword1", "keyword2", "keyword3"],
  "outline": [
    {{
      "title": "Introduction",
      "level": 1,
      "content": "Overview of the topic",
      "subsections": [
        {{
          "title": "Background",
          "level": 2,
          "content": "Historical context"
        }}
      ]
    }}
  ]
}}

**Guidelines:**
1. **mainTopics**: 3-5 main themes of the document
2. **keyPoints**: 5-7 most important takeaways
3. **suggestedSlideCount**: Recommended number of slides (10-20)
4. **estimatedDuration**: Presentation time in minutes (assuming 1-2 min per slide)
5. **complexity**: "beginner", "intermediate", or "advanced"
6. **keywords**: 5-10 important keywords
7. **outline**: Hierarchical structure with titles, levels (1-3), and content summaries

Respond with ONLY the JSON object, no additional text.
"""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if isinstance(item, str) or _is_number(item)]


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def build_analysis_prompt(index: RetrievalIndex) -> str:
    """Render the analysis prompt for an index."""
    content = "\n\n".join(chunk.content for chunk in index.chunks)
    if len(content) > MAX_PROMPT_CHARS:
        content = content[:MAX_PROMPT_CHARS] + TRUNCATION_MARKER
    return ANALYSIS_PROMPT_TEMPLATE.format(chunk_count=len(index.chunks), content=content)


def fallback_slide_count(index: RetrievalIndex) -> int:
    """One slide per 200 words, clamped to 5-25."""
    total_words = sum(len(chunk.content.split()) for chunk in index.chunks)
    return _clamp(math.ceil(total_words / WORDS_PER_SLIDE), MIN_SLIDES, MAX_SLIDES)


def validate_outline(sections: list[Any]) -> list[OutlineSection]:
    """Keep outline entries with a title and numeric level, recursively."""
    outline = []
    for section in sections:
        if not isinstance(section, dict):
            continue
        title = section.get("title")
        level = section.get("level")
        if not isinstance(title, str) or not title or not _is_number(level):
            continue

        subsections = section.get("subsections")
        content = section.get("content")
        outline.append(
            OutlineSection(
                title=title,
                level=max(1, int(level)),
                content=content if isinstance(content, str) else "",
                subsections=validate_outline(subsections) if isinstance(subsections, list) else [],
            )
        )
    return outline


def parse_summary(text: str, index: RetrievalIndex) -> ContentSummary:
    """Parse a model response into a ContentSummary.

    Malformed fields are replaced with safe defaults; the index feeds the
    slide-count heuristic when the model gives no usable count.

    Raises:
        ParseError: The response holds no decodable JSON object.
        ValidationError: The object carries none of the summary fields.
    """
    data = extract_json_object(text)
    if not any(key in data for key in SUMMARY_KEYS):
        raise ValidationError("Response JSON has no summary fields")

    raw_count = data.get("suggestedSlideCount")
    slide_count = int(raw_count) if _is_number(raw_count) else fallback_slide_count(index)

    raw_duration = data.get("estimatedDuration")
    duration = (
        int(raw_duration) if _is_number(raw_duration) else math.ceil(slide_count * MINUTES_PER_SLIDE)
    )

    raw_complexity = data.get("complexity")
    complexity = (
        Complexity(raw_complexity)
        if isinstance(raw_complexity, str) and raw_complexity in {member.value for member in Complexity}
        else Complexity.INTERMEDIATE
    )

    outline = data.get("outline")
    return ContentSummary(
        main_topics=_string_list(data.get("mainTopics")),
        key_points=_string_list(data.get("keyPoints")),
        suggested_slide_count=slide_count,
        estimated_duration=duration,
        complexity=complexity,
        keywords=_string_list(data.get("keywords")),
        outline=validate_outline(outline) if isinstance(outline, list) else [],
    )


def fallback_summary(index: RetrievalIndex) -> ContentSummary:
    """Derive a summary from document structure alone."""
    headers = list(dict.fromkeys(header for chunk in index.chunks for header in chunk.metadata.headers))
    all_content = " ".join(chunk.content for chunk in index.chunks)
    slide_count = fallback_slide_count(index)

    return ContentSummary(
        main_topics=headers[:5],
        key_points=headers[:7],
        suggested_slide_count=slide_count,
        estimated_duration=math.ceil(slide_count * MINUTES_PER_SLIDE),
        complexity=Complexity.INTERMEDIATE,
        keywords=KeywordExtractor(num_keywords=10).extract(all_content),
        outline=[
            OutlineSection(title=title, level=1, content=f"Section {position + 1}")
            for position, title in enumerate(headers[:10])
        ],
    )


def estimate_slide_count(summary: ContentSummary, length: SlideLength) -> int:
    """Scale the suggested slide count to a deck length bucket."""
    base = summary.suggested_slide_count
    length = SlideLength(length)

    if length == SlideLength.SHORT:
        return _clamp(math.floor(base * 0.7), 5, 10)
    if length == SlideLength.MEDIUM:
        return _clamp(base, 10, 15)
    return _clamp(math.floor(base * 1.3), 15, 25)


class Summarizer:
    """Analyze an indexed document with a text backend.

    Unusable model output degrades to :func:`fallback_summary`; provider
    failures propagate to the caller.
    """

    def __init__(self, text_backend: TextBackend, request_timeout: float | None = None):
        self.backend = text_backend
        self.request_timeout = request_timeout

    async def generate_summary(self, index: RetrievalIndex) -> ContentSummary:
        """Summarize an indexed document.

        Args:
            index: Built retrieval index.

        Returns:
            Parsed summary, or the structural fallback.

        Raises:
            ProviderError: The backend call failed or timed out.
        """
        request = TextGenerationRequest(
            prompt=build_analysis_prompt(index),
            system_prompt=SUMMARY_SYSTEM_PROMPT,
            temperature=0.3,
            max_tokens=4096,
        )
        response = await call_backend(
            self.backend.generate_text(request),
            timeout=self.request_timeout,
            provider=self.backend.provider_name,
        )

        try:
            summary = parse_summary(response.text, index)
        except (ParseError, ValidationError) as e:
            logger.warning("Summary response unusable, using fallback", error=e.message)
            return fallback_summary(index)

        logger.info(
            "Content summary generated",
            topics=len(summary.main_topics),
            suggested_slide_count=summary.suggested_slide_count,
            complexity=summary.complexity.value,
        )
        return summary
