"""
Google Gemini Provider

Text, image (Imagen) and speech generation against the Gemini REST API
(v1beta). All calls go through BackoffTransport, so HTTP 429 is retried
with exponential backoff before anything surfaces here.

API Key: Get from https://aistudio.google.com/apikey
"""

from __future__ import annotations

import logging
import re
from typing import Any

from pydantic import ValidationError

from paperinsight.config import GeminiSettings, get_settings
from paperinsight.core.enums import ResponseMode
from paperinsight.core.exceptions import (
    MalformedResponseError,
    MissingAPIKeyError,
    RateLimitError,
    TransportError,
)
from paperinsight.core.schemas import GeneratedImage, RelatedSource
from paperinsight.llm.base import ImageResponse, SpeechResponse, TextRequest, TextResponse
from paperinsight.observability import SpanKind, get_tracer
from paperinsight.transport import RATE_LIMIT_STATUS, BackoffTransport

logger = logging.getLogger(__name__)

_RATE_RE = re.compile(r"rate=(\d+)")


def _first_candidate(data: dict[str, Any]) -> dict[str, Any]:
    candidates = data.get("candidates") or []
    return candidates[0] if candidates and isinstance(candidates[0], dict) else {}


def _parts(candidate: dict[str, Any]) -> list[dict[str, Any]]:
    content = candidate.get("content") or {}
    return [p for p in content.get("parts") or [] if isinstance(p, dict)]


def extract_text(data: dict[str, Any]) -> str:
    """Concatenate the text parts of the first candidate ("" when absent)."""
    parts = _parts(_first_candidate(data))
    return "".join(p["text"] for p in parts if isinstance(p.get("text"), str))


def extract_attributions(data: dict[str, Any]) -> list[RelatedSource]:
    """
    Grounding sources of the first candidate, in service order.

    Older responses carry groundingAttributions; current ones carry
    groundingChunks. Both hold a `web` object with uri and title.
    """
    metadata = _first_candidate(data).get("groundingMetadata") or {}
    entries = metadata.get("groundingAttributions") or metadata.get("groundingChunks") or []
    sources = []
    for entry in entries:
        web = entry.get("web") if isinstance(entry, dict) else None
        if isinstance(web, dict):
            sources.append(RelatedSource(uri=web.get("uri"), title=web.get("title")))
    return sources


class GeminiProvider:
    """Gemini REST client implementing GenerativeService."""

    def __init__(
        self,
        settings: GeminiSettings | None = None,
        transport: BackoffTransport | None = None,
        api_key: str | None = None,
    ) -> None:
        """
        Args:
            settings: Gemini settings; defaults to the global settings.
            transport: Pre-built transport (tests, shared clients). When
                omitted one is created from settings and owned here.
            api_key: Overrides the key from settings. A missing key is only
                reported when a call is attempted.
        """
        self._settings = settings or get_settings().gemini
        self._api_key = api_key or self._settings.api_key
        self._owns_transport = transport is None
        self._transport = transport or BackoffTransport(
            base_url=self._settings.base_url,
            timeout=self._settings.timeout,
            max_retries=self._settings.max_retries,
            backoff_base=self._settings.backoff_base,
        )
        self._tracer = get_tracer("paperinsight.llm.gemini")

    @property
    def name(self) -> str:
        return "gemini"

    def _headers(self) -> dict[str, str]:
        if not self._api_key:
            raise MissingAPIKeyError("GEMINI_API_KEY")
        return {"x-goog-api-key": self._api_key}

    async def _call(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST and decode JSON, mapping failures onto the error taxonomy."""
        headers = self._headers()
        response = await self._transport.send(endpoint, payload, headers=headers)

        if response.status_code == RATE_LIMIT_STATUS:
            raise RateLimitError(endpoint=endpoint, attempts=self._transport.max_retries + 1)
        if not response.is_success:
            raise TransportError(
                f"HTTP {response.status_code}: {response.text[:200]}",
                endpoint=endpoint,
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError("Service returned non-JSON body", response.text) from e
        if not isinstance(data, dict):
            raise MalformedResponseError("Service returned non-object JSON", response.text)
        return data

    async def generate_text(self, request: TextRequest) -> TextResponse:
        """generateContent on the text model."""
        model = self._settings.text_model
        payload: dict[str, Any] = {"contents": [{"parts": [{"text": request.prompt}]}]}

        generation_config: dict[str, Any] = {}
        if request.response_mode == ResponseMode.STRUCTURED_JSON:
            generation_config["responseMimeType"] = "application/json"
        if request.temperature is not None:
            generation_config["temperature"] = request.temperature
        if generation_config:
            payload["generationConfig"] = generation_config
        if request.web_search:
            payload["tools"] = [{"google_search": {}}]
        if request.system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": request.system_instruction}]}

        with self._tracer.span(
            "generate_text",
            kind=SpanKind.CLIENT,
            attributes={
                "model": model,
                "mode": request.response_mode.value,
                "web_search": request.web_search,
            },
        ) as span:
            data = await self._call(f"models/{model}:generateContent", payload)
            text = extract_text(data)
            attributions = extract_attributions(data) if request.web_search else []
            span.set_attribute("text_length", len(text))
            span.set_attribute("source_count", len(attributions))

        return TextResponse(text=text, model=model, attributions=attributions, raw_response=data)

    async def generate_image(self, prompt: str, sample_count: int = 1) -> ImageResponse:
        """predict on the Imagen model."""
        model = self._settings.image_model
        payload = {"instances": [{"prompt": prompt}], "parameters": {"sampleCount": sample_count}}

        with self._tracer.span(
            "generate_image", kind=SpanKind.CLIENT, attributes={"model": model}
        ) as span:
            data = await self._call(f"models/{model}:predict", payload)
            try:
                images = [
                    GeneratedImage(
                        data_base64=p["bytesBase64Encoded"],
                        mime_type=p.get("mimeType") or "image/png",
                    )
                    for p in data.get("predictions") or []
                    if isinstance(p, dict) and p.get("bytesBase64Encoded")
                ]
            except ValidationError as e:
                raise MalformedResponseError(
                    f"Image prediction is malformed: {e.error_count()} invalid field(s)", str(data)
                ) from e
            span.set_attribute("image_count", len(images))

        return ImageResponse(images=images, model=model)

    async def synthesize_speech(self, prompt: str, voice_id: str) -> SpeechResponse:
        """generateContent on the TTS model with AUDIO modality."""
        model = self._settings.tts_model
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {"voiceConfig": {"prebuiltVoiceConfig": {"voiceName": voice_id}}},
            },
        }

        with self._tracer.span(
            "synthesize_speech",
            kind=SpanKind.CLIENT,
            attributes={"model": model, "voice": voice_id},
        ):
            data = await self._call(f"models/{model}:generateContent", payload)

        inline = next(
            (
                p["inlineData"]
                for p in _parts(_first_candidate(data))
                if isinstance(p.get("inlineData"), dict)
            ),
            None,
        )
        if not inline or not isinstance(inline.get("data"), str) or not inline["data"]:
            raise MalformedResponseError("Speech reply carries no inline audio", str(data)[:500])

        mime_type = inline.get("mimeType") if isinstance(inline.get("mimeType"), str) else None
        sample_rate = self._settings.speech_sample_rate
        match = _RATE_RE.search(mime_type) if mime_type else None
        if match and int(match.group(1)) > 0:
            sample_rate = int(match.group(1))
        elif match:
            logger.warning("Ignoring invalid speech sample rate in %r", mime_type)

        return SpeechResponse(
            pcm_base64=inline["data"], sample_rate=sample_rate, model=model, mime_type=mime_type
        )

    async def aclose(self) -> None:
        if self._owns_transport:
            await self._transport.aclose()
