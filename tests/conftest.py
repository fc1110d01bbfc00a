"""Pytest configuration and fixtures."""

import asyncio
import base64
import json
import os

import pytest

# Set test environment before importing application code
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["AWS_ACCESS_KEY_ID"] = "test"
os.environ["AWS_SECRET_ACCESS_KEY"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"

from paper2slides.errors import ProviderError  # noqa: E402
from paper2slides.ingestion.chunking import MarkdownChunker  # noqa: E402
from paper2slides.pipeline.summarizer import SUMMARY_SYSTEM_PROMPT  # noqa: E402
from paper2slides.providers.base import (  # noqa: E402
    ImageBackendResponse,
    TextGenerationResponse,
    TokenUsage,
)
from paper2slides.retrieval.index import RetrievalIndex  # noqa: E402

SUMMARY_RESPONSE = {
    "mainTopics": ["Neural networks", "Training", "Evaluation"],
    "keyPoints": [
        "Neural networks learn layered representations",
        "Backpropagation computes gradients",
        "Regularization limits overfitting",
    ],
    "suggestedSlideCount": 12,
    "estimatedDuration": 18,
    "complexity": "advanced",
    "keywords": ["neural", "gradient", "layers"],
    "outline": [
        {
            "title": "Introduction",
            "level": 1,
            "content": "Why neural networks matter",
            "subsections": [{"title": "History", "level": 2, "content": "Perceptrons to transformers"}],
        },
        {"title": "Training", "level": 1, "content": "Loss functions and optimizers"},
    ],
}

PLAN_RESPONSE = [
    {
        "slideNumber": 1,
        "title": "Neural Networks in Practice",
        "layout": "title",
        "content": {"text": ["A practical overview", "2026"]},
        "notes": "Opening slide",
        "imagePrompt": "A glowing network of connected nodes",
        "estimatedTokens": 120,
    },
    {
        "slideNumber": 2,
        "title": "How Networks Learn",
        "layout": "content",
        "content": {"text": ["Forward pass", "Loss computation", "Backpropagation"]},
        "notes": "Explain the training loop",
        "estimatedTokens": 220,
    },
    {
        "slideNumber": 3,
        "title": "Architecture",
        "layout": "image-focus",
        "content": {"text": ["Layers stack simple functions"]},
        "notes": "Show a diagram",
        "estimatedTokens": 150,
    },
    {
        "slideNumber": 4,
        "title": "Conclusion",
        "layout": "quote",
        "content": {"text": ["Start simple", "Measure everything", "Iterate"]},
        "notes": "Wrap up",
        "imagePrompt": "A summit at sunrise",
        "estimatedTokens": 180,
    },
]


class FakeTextBackend:
    """Scripted text backend that answers summary and plan prompts separately.

    Each queue is consumed in order and its last entry repeats. Exceptions in
    a queue are raised instead of returned.
    """

    provider_name = "fake-text"

    def __init__(self, summary=None, plan=None, usage=TokenUsage(100, 50, 150)):
        self.queues = {
            "summary": list(summary or [json.dumps(SUMMARY_RESPONSE)]),
            "plan": list(plan or [json.dumps(PLAN_RESPONSE)]),
        }
        self.usage = usage
        self.requests = []

    async def generate_text(self, request):
        kind = "summary" if request.system_prompt == SUMMARY_SYSTEM_PROMPT else "plan"
        self.requests.append((kind, request))

        queue = self.queues[kind]
        outcome = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(outcome, Exception):
            raise outcome
        return TextGenerationResponse(text=outcome, usage=self.usage)

    async def validate_connection(self):
        return True

    def calls(self, kind):
        return [request for recorded, request in self.requests if recorded == kind]


class FakeImageBackend:
    """Image backend that fails a set number of times and tracks concurrency."""

    provider_name = "fake-image"

    def __init__(self, failures=0, always_fail=False, delay=0.0):
        self.failures_left = failures
        self.always_fail = always_fail
        self.delay = delay
        self.requests = []
        self.events = []
        self.active = 0
        self.max_active = 0

    async def generate_image(self, request):
        self.requests.append(request)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.events.append(("start", request.prompt))
        try:
            await asyncio.sleep(self.delay)
            if self.always_fail or self.failures_left > 0:
                self.failures_left -= 1
                raise ProviderError("image backend unavailable", provider=self.provider_name)
            return ImageBackendResponse(
                image_data=base64.b64encode(b"png-bytes").decode("ascii"),
                mime_type="image/png",
            )
        finally:
            self.active -= 1
            self.events.append(("end", request.prompt))


@pytest.fixture
def make_text_backend():
    """Factory for scripted text backends."""
    return FakeTextBackend


@pytest.fixture
def make_image_backend():
    """Factory for scripted image backends."""
    return FakeImageBackend


@pytest.fixture
def summary_response():
    return dict(SUMMARY_RESPONSE)


@pytest.fixture
def plan_response():
    return [dict(item) for item in PLAN_RESPONSE]


@pytest.fixture
def sleep_calls():
    """Delays requested through the no_sleep fixture."""
    return []


@pytest.fixture
def no_sleep(sleep_calls):
    """Awaitable sleep that records the delay and returns immediately."""

    async def _sleep(delay):
        sleep_calls.append(delay)

    return _sleep


@pytest.fixture
def sample_markdown():
    """Markdown document with headings, code, a table and an image."""
    return """# Neural Networks

Neural networks are layered function approximators inspired by biological neurons.

## Training

Training adjusts weights with gradient descent and backpropagation.

```python
loss = criterion(model(x), y)
loss.backward()
```

## Evaluation

| Metric | Value |
|--------|-------|
| Accuracy | 0.93 |
| Recall | 0.88 |

![Learning curve](images/curve.png)

Evaluation compares predictions against held-out labels."""


@pytest.fixture
def sample_index(sample_markdown):
    """Index over the sample document, one chunk per eight lines."""
    chunks = MarkdownChunker(chunk_size=8, overlap_ratio=0.25).chunk(sample_markdown)
    return RetrievalIndex.build(chunks)
