"""
Generative Service Base

Request/response records and the protocol the sequencer talks to.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from paperinsight.core.enums import ResponseMode
from paperinsight.core.schemas import GeneratedImage, RelatedSource


@dataclass(frozen=True)
class TextRequest:
    """Text generation request."""

    prompt: str
    response_mode: ResponseMode = ResponseMode.FREE_TEXT
    web_search: bool = False
    system_instruction: str | None = None
    temperature: float | None = None


@dataclass
class TextResponse:
    """Text generation reply."""

    text: str
    model: str
    attributions: list[RelatedSource] = field(default_factory=list)
    raw_response: Any | None = None


@dataclass
class ImageResponse:
    """Image generation reply, one entry per returned prediction."""

    images: list[GeneratedImage]
    model: str


@dataclass
class SpeechResponse:
    """Speech synthesis reply: headerless base64 PCM."""

    pcm_base64: str
    sample_rate: int
    model: str
    mime_type: str | None = None


@runtime_checkable
class GenerativeService(Protocol):
    """The three remote capabilities the sequencer uses."""

    async def generate_text(self, request: TextRequest) -> TextResponse:
        """Generate text, optionally JSON-only and/or web-grounded."""
        ...

    async def generate_image(self, prompt: str, sample_count: int = 1) -> ImageResponse:
        """Generate raster images from a prompt."""
        ...

    async def synthesize_speech(self, prompt: str, voice_id: str) -> SpeechResponse:
        """Read prompt aloud with a prebuilt voice."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
