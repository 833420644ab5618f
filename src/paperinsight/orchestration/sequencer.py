"""
Orchestration Sequencer

Drives the five session operations against a GenerativeService and applies
their outcomes to an explicit SessionState:

- analyze:           full replace of the AnalysisResult
- search_related:    merge of related_info into the current result, if still current
- generate_image:    replace of the single image slot
- synthesize_speech: encode + play, gated by audio_playing
- ask_question:      append user turn, then exactly one model turn

analyze, generate_image and ask_question share the `loading` gate; a call
made while another one is in flight is a no-op returning None.
search_related runs as a background task started by analyze and never
surfaces errors. No operation lets a domain error escape: failures become
transient status messages.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine

from paperinsight.audio import AudioSink, MemorySink, encode
from paperinsight.config import get_settings
from paperinsight.core.enums import ChatRole, Operation, ResponseMode
from paperinsight.core.exceptions import PaperInsightError
from paperinsight.core.schemas import (
    AnalysisResult,
    AudioBlob,
    ChatMessage,
    GeneratedImage,
    RelatedInfo,
    SessionSettings,
    SessionState,
)
from paperinsight.llm.base import GenerativeService, TextRequest
from paperinsight.observability import get_tracer
from paperinsight.orchestration import prompts
from paperinsight.parsing import ResponseDefaults, normalize

logger = logging.getLogger(__name__)

ANALYSIS_TEMPERATURE = 0.1

MSG_EMPTY_DOCUMENT = "Please enter the text of a paper."
MSG_ANALYZING = "Analysing the paper..."
MSG_SEARCHING = "Looking up related work..."
MSG_IMAGE = "Generating an illustration..."
MSG_IMAGE_FAILED = "Image generation failed."
MSG_SPEECH_FAILED = "Speech synthesis failed."


class Sequencer:
    """
    One user session.

    Usage:
        async with Sequencer(create_service(), owns_service=True) as session:
            result = await session.analyze(paper_text)
            await session.drain()  # wait for related-work search
            reply = await session.ask_question("What was the sample size?")
    """

    def __init__(
        self,
        service: GenerativeService,
        settings: SessionSettings | None = None,
        state: SessionState | None = None,
        sink: AudioSink | None = None,
        status_clear_seconds: float | None = None,
        owns_service: bool = False,
    ) -> None:
        """
        Args:
            service: Remote text/image/speech capability.
            settings: User settings; defaults come from configuration.
            state: Existing state to drive; a fresh one otherwise.
            sink: Where synthesized speech is played.
            status_clear_seconds: Lifetime of transient status messages.
            owns_service: Close the service when the session closes.
        """
        defaults = get_settings().session
        self._service = service
        self._settings = settings or SessionSettings(
            summary_length=defaults.summary_length,
            voice_id=defaults.voice_id,
            web_search_enabled=defaults.web_search_enabled,
            target_language=defaults.target_language,
        )
        self._state = state or SessionState()
        self._sink: AudioSink = sink or MemorySink()
        self._status_clear_seconds = (
            defaults.status_clear_seconds if status_clear_seconds is None else status_clear_seconds
        )
        self._owns_service = owns_service
        self._tasks: set[asyncio.Task[Any]] = set()
        self._status_timer: asyncio.TimerHandle | None = None
        self._closed = False
        self._tracer = get_tracer("paperinsight.orchestration")

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def settings(self) -> SessionSettings:
        return self._settings

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def defaults(self) -> ResponseDefaults:
        return ResponseDefaults.for_language(self._settings.target_language)

    def update_settings(self, **changes: Any) -> SessionSettings:
        """Replace settings with a validated copy carrying `changes`."""
        self._settings = SessionSettings(**{**self._settings.model_dump(), **changes})
        return self._settings

    # -------------------------------------------------------------------------
    # Status messages
    # -------------------------------------------------------------------------

    def _cancel_status_timer(self) -> None:
        if self._status_timer is not None:
            self._status_timer.cancel()
            self._status_timer = None

    def _show_status(self, message: str) -> None:
        """Progress message; stays until replaced or cleared."""
        self._cancel_status_timer()
        self._state.status_message = message

    def _flash_status(self, message: str) -> None:
        """Transient message; cleared after status_clear_seconds."""
        self._show_status(message)
        if self._status_clear_seconds > 0:
            loop = asyncio.get_running_loop()
            self._status_timer = loop.call_later(
                self._status_clear_seconds, self._clear_status, message
            )

    def _clear_status(self, only_if: str | None = None) -> None:
        if only_if is not None and self._state.status_message != only_if:
            return
        self._cancel_status_timer()
        self._state.status_message = ""

    # -------------------------------------------------------------------------
    # Background tasks
    # -------------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for background work (related-work search) to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def analyze(self, document: str) -> AnalysisResult | None:
        """
        Analyse a paper and replace the session's result.

        On success the previous image is dropped (it illustrated the previous
        paper) and, when web search is enabled, related-work search starts in
        the background. On failure the previous result is left as it was.
        """
        if self._closed or self._state.loading:
            return None
        if not document.strip():
            self._flash_status(MSG_EMPTY_DOCUMENT)
            return None

        self._state.loading = True
        self._show_status(MSG_ANALYZING)
        request = TextRequest(
            prompt=prompts.analysis_prompt(document, self._settings),
            response_mode=ResponseMode.STRUCTURED_JSON,
            temperature=ANALYSIS_TEMPERATURE,
        )
        try:
            with self._tracer.span(
                Operation.ANALYZE.value, attributes={"document_chars": len(document)}
            ) as span:
                response = await self._service.generate_text(request)
                payload = normalize(response.text, self.defaults)
                span.set_attribute("backfilled", sorted(payload.backfilled))
        except PaperInsightError as e:
            logger.error("Analysis failed: %s", e)
            if not self._closed:
                self._flash_status(f"Analysis error: {e.message}")
            return None
        finally:
            self._state.loading = False

        if self._closed:
            return None

        result = payload.to_result()
        self._state.result = result
        self._state.image = None
        self._clear_status(only_if=MSG_ANALYZING)
        logger.info(
            "Committed analysis %s (evidence level %d)", result.result_id, payload.evidence.level
        )

        if self._settings.web_search_enabled and payload.has_generated_summary:
            self._spawn(self.search_related(result))
        return result

    async def search_related(self, result: AnalysisResult) -> RelatedInfo | None:
        """
        Best-effort web-grounded related-work digest for `result`.

        The digest is merged only while `result` is still the session's
        current analysis. Every failure is logged and dropped.
        """
        if self._closed or result.is_empty:
            return None

        self._show_status(MSG_SEARCHING)
        request = TextRequest(
            prompt=prompts.related_work_prompt(result.summary, self._settings.target_language),
            web_search=True,
        )
        try:
            with self._tracer.span(
                Operation.SEARCH_RELATED.value, attributes={"result_id": result.result_id}
            ):
                response = await self._service.generate_text(request)
        except Exception as e:
            logger.warning("Related-work search failed for %s: %s", result.result_id, e)
            return None
        finally:
            # A newer analysis owns the status line once it has replaced `result`.
            if not self._closed and self._state.result.result_id == result.result_id:
                self._clear_status(only_if=MSG_SEARCHING)

        if not response.text:
            logger.info("Related-work search for %s returned no text", result.result_id)
            return None
        if self._closed or self._state.result.result_id != result.result_id:
            logger.info("Discarding stale related-work result for %s", result.result_id)
            return None

        info = RelatedInfo(text=response.text, sources=response.attributions)
        self._state.result = self._state.result.with_related_info(info)
        return info

    async def generate_image(self) -> GeneratedImage | None:
        """Illustrate the current summary; a failure keeps the previous image."""
        summary = self._state.result.summary
        if self._closed or self._state.loading or not summary:
            return None

        self._state.loading = True
        self._show_status(MSG_IMAGE)
        try:
            with self._tracer.span(Operation.GENERATE_IMAGE.value):
                response = await self._service.generate_image(prompts.image_prompt(summary))
        except PaperInsightError as e:
            logger.error("Image generation failed: %s", e)
            if not self._closed:
                self._flash_status(MSG_IMAGE_FAILED)
            return None
        finally:
            self._state.loading = False

        if self._closed:
            return None
        if not response.images:
            logger.warning("Image endpoint returned no predictions")
            self._flash_status(MSG_IMAGE_FAILED)
            return None

        self._state.image = response.images[0]
        self._clear_status(only_if=MSG_IMAGE)
        return self._state.image

    async def synthesize_speech(self) -> AudioBlob | None:
        """
        Read the current summary aloud through the sink.

        While a playback is active further calls are no-ops.
        """
        summary = self._state.result.summary
        if self._closed or self._state.audio_playing or not summary:
            return None

        self._state.audio_playing = True
        try:
            with self._tracer.span(
                Operation.SYNTHESIZE_SPEECH.value, attributes={"voice": self._settings.voice_id}
            ) as span:
                response = await self._service.synthesize_speech(
                    prompts.speech_prompt(summary), self._settings.voice_id
                )
                blob = encode(response.pcm_base64, response.sample_rate)
                span.set_attribute("bytes", len(blob))
                if self._closed:
                    return None
                self._state.last_audio = blob
                await self._sink.play(blob)
            return blob
        except PaperInsightError as e:
            logger.error("Speech synthesis failed: %s", e)
            if not self._closed:
                self._flash_status(MSG_SPEECH_FAILED)
            return None
        finally:
            self._state.audio_playing = False

    async def ask_question(self, question: str) -> ChatMessage | None:
        """
        Ask a follow-up question about the current summary.

        Appends the user turn immediately and exactly one model turn when
        the call settles, an apology if it failed.
        """
        question = question.strip()
        if self._closed or self._state.loading or not question:
            return None

        self._state.chat.append(ChatMessage(role=ChatRole.USER, text=question))
        self._state.loading = True
        defaults = self.defaults
        request = TextRequest(
            prompt=prompts.question_prompt(self._state.result.summary, question),
            system_instruction=prompts.expert_instruction(self._settings.target_language),
        )
        try:
            with self._tracer.span(Operation.ASK_QUESTION.value):
                response = await self._service.generate_text(request)
            answer = response.text.strip() or defaults.no_answer
        except Exception as e:
            logger.error("Question failed: %s", e)
            answer = defaults.chat_apology
        finally:
            self._state.loading = False

        if self._closed:
            return None
        reply = ChatMessage(role=ChatRole.MODEL, text=answer)
        self._state.chat.append(reply)
        return reply

    # -------------------------------------------------------------------------
    # Teardown
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        """Stop background work and suppress any completion still pending."""
        if self._closed:
            return
        self._closed = True
        self._cancel_status_timer()

        pending = list(self._tasks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        if self._owns_service:
            await self._service.aclose()

    async def __aenter__(self) -> Sequencer:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
