"""
Service Factory

Builds the generative service from configuration.

A missing API key is only logged here; the provider raises
MissingAPIKeyError on its first remote call.
"""

import logging

from paperinsight.config import Settings, get_settings
from paperinsight.llm.base import GenerativeService
from paperinsight.llm.gemini_provider import GeminiProvider

logger = logging.getLogger(__name__)


def create_service(
    settings: Settings | None = None, api_key: str | None = None
) -> GenerativeService:
    """
    Create the Gemini-backed generative service.

    Args:
        settings: Settings to use. Defaults to the global settings.
        api_key: Explicit API key, overriding the environment.

    Returns:
        GenerativeService owning its own HTTP transport.
    """
    settings = settings or get_settings()
    gemini = settings.gemini
    if not (api_key or gemini.api_key):
        logger.warning("No Gemini API key configured; remote calls will fail until one is set")
    logger.info(
        "Using Gemini models text=%s image=%s tts=%s",
        gemini.text_model,
        gemini.image_model,
        gemini.tts_model,
    )
    return GeminiProvider(settings=gemini, api_key=api_key)
