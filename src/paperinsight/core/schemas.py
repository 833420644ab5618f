"""
PaperInsight Core Schemas

Pydantic models for the session's domain records.

Key Design Principles:
1. Records produced by the remote service are immutable (frozen=True)
2. Merges produce copies (model_copy) so readers never observe partial updates
3. Evidence and summary are committed together or not at all
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field

from paperinsight.core.enums import ChatRole, SummaryLength


# =============================================================================
# SETTINGS - User-editable, per session
# =============================================================================


class SessionSettings(BaseModel):
    """
    User-editable settings that feed prompt building.

    Held in memory for the lifetime of one session; nothing persists them.
    """

    model_config = ConfigDict(frozen=True)

    summary_length: SummaryLength = Field(default=SummaryLength.DETAILED)
    voice_id: str = Field(default="Aoede", min_length=1)
    web_search_enabled: bool = Field(default=True)
    target_language: str = Field(default="日本語", min_length=1)


# =============================================================================
# EVIDENCE ASSESSMENT
# =============================================================================


class EvidenceAssessment(BaseModel):
    """
    Evidence-quality rating assigned by the model.

    Levels follow the usual 1 (systematic review / meta-analysis) to
    6 (expert opinion / unknown) ordering. quality_score 0 is reserved for
    the "could not assess" sentinel.
    """

    model_config = ConfigDict(frozen=True)

    level: int = Field(..., ge=1, le=6, description="Evidence level, 1 = strongest")
    design: str = Field(..., min_length=1, description="Study design label")
    reason: str = Field(..., min_length=1, description="Why this level was assigned")
    quality_score: int = Field(..., ge=0, le=10, description="Overall quality, 1-10")
    limitations: str = Field(..., min_length=1)


# =============================================================================
# RELATED WORK
# =============================================================================


class RelatedSource(BaseModel):
    """Grounding attribution returned by a web-search-augmented call."""

    model_config = ConfigDict(frozen=True)

    uri: str | None = None
    title: str | None = None


class RelatedInfo(BaseModel):
    """Web-grounded digest of work related to the analysed paper."""

    model_config = ConfigDict(frozen=True)

    text: str
    sources: list[RelatedSource] = Field(default_factory=list)


# =============================================================================
# ANALYSIS RESULT
# =============================================================================


class AnalysisResult(BaseModel):
    """
    Outcome of the most recent successful analysis.

    Invariants:
    - result_id changes on every wholesale replacement and is preserved by
      with_related_info(), so late merges can detect that they are stale
    - evidence is None only for the empty result a session starts with
    """

    model_config = ConfigDict(frozen=True)

    result_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    summary: str = ""
    translation: str = ""
    evidence: EvidenceAssessment | None = None
    related_info: RelatedInfo | None = None

    @property
    def is_empty(self) -> bool:
        return not self.summary

    def with_related_info(self, related_info: RelatedInfo) -> AnalysisResult:
        """Copy of this result carrying related_info; nothing else changes."""
        return self.model_copy(update={"related_info": related_info})


class StructuredPayload(BaseModel):
    """
    Normalized analysis reply.

    Every leaf is populated; `backfilled` names the leaves that were
    replaced with defaults (dotted for evidence fields, e.g. "evidence.level").
    """

    model_config = ConfigDict(frozen=True)

    summary: str
    translation: str
    evidence: EvidenceAssessment
    backfilled: frozenset[str] = Field(default_factory=frozenset)

    @property
    def has_generated_summary(self) -> bool:
        return "summary" not in self.backfilled

    def to_result(self) -> AnalysisResult:
        """Build a fresh AnalysisResult (new result_id, no related info yet)."""
        return AnalysisResult(
            summary=self.summary, translation=self.translation, evidence=self.evidence
        )


# =============================================================================
# CHAT
# =============================================================================


class ChatMessage(BaseModel):
    """One turn of the follow-up conversation."""

    model_config = ConfigDict(frozen=True)

    role: ChatRole
    text: str


# =============================================================================
# MEDIA
# =============================================================================


class GeneratedImage(BaseModel):
    """The single live illustration of a session."""

    model_config = ConfigDict(frozen=True)

    data_base64: str = Field(..., min_length=1)
    mime_type: str = "image/png"

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data_base64}"


@dataclass(frozen=True)
class AudioBlob:
    """Playable audio container."""

    data: bytes
    sample_rate: int
    mime_type: str = "audio/wav"

    def __len__(self) -> int:
        return len(self.data)


# =============================================================================
# SESSION STATE
# =============================================================================


@dataclass
class SessionState:
    """
    Mutable state of one user session.

    `loading` gates the primary operations (analyze, image, chat);
    `audio_playing` gates speech playback independently.
    """

    result: AnalysisResult = field(default_factory=AnalysisResult)
    chat: list[ChatMessage] = field(default_factory=list)
    image: GeneratedImage | None = None
    last_audio: AudioBlob | None = None
    loading: bool = False
    audio_playing: bool = False
    status_message: str = ""
