"""
PaperInsight Test Configuration

Shared fixtures and test utilities.
"""

import base64
import json
import os
from typing import Any, Generator

import pytest


# Set test environment before any imports
os.environ.setdefault("PAPERINSIGHT_DEBUG", "false")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from paperinsight.core.enums import ResponseMode  # noqa: E402
from paperinsight.llm.base import (  # noqa: E402
    ImageResponse,
    SpeechResponse,
    TextRequest,
    TextResponse,
)


@pytest.fixture(autouse=True)
def reset_settings() -> Generator[None, None, None]:
    """Reset settings and tracers before each test."""
    from paperinsight.config import reset_settings
    from paperinsight.observability import reset_tracers

    reset_settings()
    reset_tracers()
    yield
    reset_settings()
    reset_tracers()


# =============================================================================
# FAKE GENERATIVE SERVICE
# =============================================================================


class FakeService:
    """
    In-memory GenerativeService.

    Each reply slot holds one of:
    - a str (wrapped into the matching response)
    - a response object
    - an exception instance (raised)
    - an async callable taking the call's arguments
    - a list of the above, consumed one per call
    """

    def __init__(self) -> None:
        self.analysis: Any = ""
        self.related: Any = TextResponse(text="", model="fake")
        self.answer: Any = "An answer."
        self.image: Any = ImageResponse(images=[], model="fake")
        self.speech: Any = SpeechResponse(pcm_base64="", sample_rate=24000, model="fake")
        self.text_requests: list[TextRequest] = []
        self.image_prompts: list[str] = []
        self.speech_calls: list[tuple[str, str]] = []
        self.closed = False

    async def _resolve(self, slot: str, *args: Any) -> Any:
        reply = getattr(self, slot)
        if isinstance(reply, list):
            reply = reply.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            reply = await reply(*args)
        if isinstance(reply, str) and slot != "speech":
            return TextResponse(text=reply, model="fake")
        return reply

    async def generate_text(self, request: TextRequest) -> TextResponse:
        self.text_requests.append(request)
        if request.response_mode == ResponseMode.STRUCTURED_JSON:
            return await self._resolve("analysis", request)
        if request.web_search:
            return await self._resolve("related", request)
        return await self._resolve("answer", request)

    async def generate_image(self, prompt: str, sample_count: int = 1) -> ImageResponse:
        self.image_prompts.append(prompt)
        return await self._resolve("image", prompt)

    async def synthesize_speech(self, prompt: str, voice_id: str) -> SpeechResponse:
        self.speech_calls.append((prompt, voice_id))
        return await self._resolve("speech", prompt, voice_id)

    async def aclose(self) -> None:
        self.closed = True

    def requests_of(self, mode: str) -> list[TextRequest]:
        structured = ResponseMode.STRUCTURED_JSON
        if mode == "analysis":
            return [r for r in self.text_requests if r.response_mode == structured]
        if mode == "related":
            return [r for r in self.text_requests if r.web_search]
        return [
            r
            for r in self.text_requests
            if r.response_mode == ResponseMode.FREE_TEXT and not r.web_search
        ]


@pytest.fixture
def fake_service() -> FakeService:
    return FakeService()


# =============================================================================
# SAMPLE PAYLOADS
# =============================================================================


def analysis_json(summary: str = "A randomized trial of drug X.", **overrides: Any) -> str:
    """Well-formed analysis reply."""
    data: dict[str, Any] = {
        "summary": summary,
        "translation": "薬剤Xのランダム化試験。",
        "evidence": {
            "level": 2,
            "design": "Randomized controlled trial",
            "reason": "Single well-powered RCT",
            "quality_score": 8,
            "limitations": "Short follow-up",
        },
    }
    data.update(overrides)
    return json.dumps(data, ensure_ascii=False)


@pytest.fixture
def sample_analysis() -> str:
    return analysis_json()


@pytest.fixture
def pcm_base64() -> str:
    """Ten 16-bit samples of silence."""
    return base64.b64encode(b"\x00\x00" * 10).decode()


@pytest.fixture
def make_analysis():
    """Factory for analysis replies with field overrides."""
    return analysis_json
