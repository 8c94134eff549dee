"""
Tab Grouper - Test Configuration and Fixtures

Scripted completion clients and a recording sleep so the pipeline can be
exercised without a real model or real waits.
"""

import asyncio
from types import SimpleNamespace
from typing import Any, Optional

import pytest

from grouping_service.pipeline import TabGroupingPipeline


class FakeCompletionClient:
    """
    Completion client that replays a script.

    Each script entry is returned as the response, or raised when it is an
    exception. The last entry repeats once the script runs out.
    """

    def __init__(self, *script: Any, delay: Optional[float] = None):
        self.script = list(script)
        self.delay = delay
        self.requests = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def generate(self, request):
        self.requests.append(request)
        if self.delay is not None and self.calls == 1:
            await asyncio.sleep(self.delay)
        step = self.script[min(self.calls, len(self.script)) - 1]
        if isinstance(step, BaseException):
            raise step
        return step


class RecordingSleep:
    """Async sleep replacement that records requested waits."""

    def __init__(self):
        self.waits = []

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


def gemini_response(text: str) -> SimpleNamespace:
    """Object shaped like a google-genai response without the .text shortcut."""
    part = SimpleNamespace(text=text)
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


@pytest.fixture
def sample_tabs() -> list[dict]:
    return [
        {"id": 1, "title": "Amazon.com: Headphones", "url": "https://www.amazon.com/s?k=headphones"},
        {"id": 2, "title": "BBC News - Home", "url": "https://www.bbc.com/news"},
        {"id": 3, "title": "pytest documentation", "url": "https://docs.pytest.org/"},
    ]


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_pipeline(recording_sleep):
    """Factory for a pipeline over a scripted client with instant retries."""

    def _make(client, timeout: Optional[float] = 5.0) -> TabGroupingPipeline:
        return TabGroupingPipeline(
            client,
            model_name="test-model",
            max_attempts=3,
            base_delay=1.0,
            timeout=timeout,
            sleep=recording_sleep,
        )

    return _make
