"""
PaperInsight Generative Service Layer

Typed access to the Gemini text, image and speech endpoints.
"""

from paperinsight.llm.base import (
    GenerativeService,
    ImageResponse,
    SpeechResponse,
    TextRequest,
    TextResponse,
)
from paperinsight.llm.factory import create_service
from paperinsight.llm.gemini_provider import (
    GeminiProvider,
    extract_attributions,
    extract_text,
)

__all__ = [
    # Base
    "GenerativeService",
    "TextRequest",
    "TextResponse",
    "ImageResponse",
    "SpeechResponse",
    # Gemini
    "GeminiProvider",
    "extract_text",
    "extract_attributions",
    # Factory
    "create_service",
]
