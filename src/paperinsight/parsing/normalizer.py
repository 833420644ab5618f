"""
Response Normalizer

Turns the analysis reply of the text model into a StructuredPayload.

The model is asked for bare JSON but regularly wraps it in ```json fences or
a sentence of prose. Normalization:

1. strips fence markers and surrounding whitespace
2. parses strictly; if that fails, parses the outermost {...} block
3. validates every leaf and substitutes the locale's default for any leaf
   that is missing, blank, or of the wrong type

Unparseable text raises MalformedResponseError; a parsed reply never comes
back with an empty leaf.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from paperinsight.core.exceptions import MalformedResponseError
from paperinsight.core.schemas import EvidenceAssessment, StructuredPayload

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)

# Keys the model has been seen using for each evidence leaf.
_EVIDENCE_KEYS: dict[str, tuple[str, ...]] = {
    "level": ("level",),
    "design": ("design",),
    "reason": ("reason",),
    "quality_score": ("quality_score", "qualityScore"),
    "limitations": ("limitations",),
}

_JAPANESE_NAMES = {"日本語", "japanese", "ja", "ja-jp"}


# =============================================================================
# DEFAULTS
# =============================================================================


@dataclass(frozen=True)
class ResponseDefaults:
    """Fallback values shown when the model omits or garbles a field."""

    summary: str
    translation: str
    evidence: EvidenceAssessment
    no_answer: str
    chat_apology: str

    @classmethod
    def for_language(cls, target_language: str) -> ResponseDefaults:
        if target_language.strip().lower() in _JAPANESE_NAMES:
            return JAPANESE_DEFAULTS
        return ENGLISH_DEFAULTS


JAPANESE_DEFAULTS = ResponseDefaults(
    summary="要約を生成できませんでした。",
    translation="翻訳を生成できませんでした。",
    evidence=EvidenceAssessment(
        level=6, design="不明", reason="解析不能", quality_score=0, limitations="なし"
    ),
    no_answer="回答を生成できませんでした。",
    chat_apology="すみません、対話中にエラーが発生しました。",
)

ENGLISH_DEFAULTS = ResponseDefaults(
    summary="The summary could not be generated.",
    translation="The translation could not be generated.",
    evidence=EvidenceAssessment(
        level=6,
        design="unknown",
        reason="could not be assessed",
        quality_score=0,
        limitations="none",
    ),
    no_answer="No answer could be generated.",
    chat_apology="Sorry, something went wrong while answering.",
)


class _ReplyText(BaseModel):
    """Top-level text leaves of the analysis reply."""

    model_config = ConfigDict(str_strip_whitespace=True)

    summary: str = Field(..., min_length=1)
    translation: str = Field(..., min_length=1)


class _ReplyEvidence(EvidenceAssessment):
    """
    EvidenceAssessment as accepted from the model.

    Blank strings are rejected after stripping, and quality_score 0 is left
    to the "could not assess" sentinel.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    quality_score: int = Field(..., ge=1, le=10)


# =============================================================================
# PARSING
# =============================================================================


def strip_code_fences(text: str) -> str:
    """Remove ``` / ```json markers and trim."""
    return _FENCE_RE.sub("", text).strip()


def _outermost_object(text: str) -> str | None:
    """Slice from the first '{' to its matching '}' (string-aware)."""
    start = text.find("{")
    if start == -1:
        return None
    depth = 0
    in_string = False
    escaped = False
    for i, c in enumerate(text[start:], start):
        if in_string:
            if escaped:
                escaped = False
            elif c == "\\":
                escaped = True
            elif c == '"':
                in_string = False
        elif c == '"':
            in_string = True
        elif c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def parse_json_object(raw_text: str) -> dict[str, Any]:
    """
    Parse the JSON object embedded in a model reply.

    Raises:
        MalformedResponseError: No JSON object could be parsed.
    """
    cleaned = strip_code_fences(raw_text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        block = _outermost_object(cleaned)
        if block is None:
            raise MalformedResponseError("Reply contains no JSON object", raw_text) from None
        try:
            data = json.loads(block)
        except json.JSONDecodeError as e:
            raise MalformedResponseError(f"Reply is not valid JSON: {e}", raw_text) from e

    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Expected a JSON object, got {type(data).__name__}", raw_text
        )
    return data


# =============================================================================
# VALIDATION WITH DEFAULTS
# =============================================================================


def _validate_leaves(
    model_cls: type[BaseModel],
    candidate: dict[str, Any],
    defaults: dict[str, Any],
    prefix: str = "",
    result_cls: type[BaseModel] | None = None,
) -> tuple[BaseModel, set[str]]:
    """
    Validate candidate, replacing each missing or rejected leaf by its default.

    Once defaults are substituted the candidate is validated as `result_cls`
    (default: `model_cls`), which must accept every default value.
    """
    backfilled: set[str] = set()
    for name in model_cls.model_fields:
        if candidate.get(name) is None:
            candidate[name] = defaults[name]
            backfilled.add(prefix + name)

    try:
        return model_cls.model_validate(candidate), backfilled
    except ValidationError as e:
        for error in e.errors():
            name = str(error["loc"][0])
            candidate[name] = defaults[name]
            backfilled.add(prefix + name)

    return (result_cls or model_cls).model_validate(candidate), backfilled


def _evidence_candidate(raw: dict[str, Any]) -> dict[str, Any]:
    candidate: dict[str, Any] = {}
    for name, keys in _EVIDENCE_KEYS.items():
        for key in keys:
            value = raw.get(key)
            if value is not None:
                candidate[name] = value.strip() if isinstance(value, str) else value
                break
    return candidate


def normalize(raw_text: str, defaults: ResponseDefaults = JAPANESE_DEFAULTS) -> StructuredPayload:
    """
    Normalize an analysis reply.

    Args:
        raw_text: Candidate text returned by the model.
        defaults: Locale defaults for missing leaves.

    Returns:
        StructuredPayload with every leaf populated.

    Raises:
        MalformedResponseError: The text holds no parseable JSON object.
    """
    data = parse_json_object(raw_text)

    text, backfilled = _validate_leaves(
        _ReplyText,
        {"summary": data.get("summary"), "translation": data.get("translation")},
        {"summary": defaults.summary, "translation": defaults.translation},
    )

    raw_evidence = data.get("evidence")
    if isinstance(raw_evidence, dict):
        validated, evidence_backfilled = _validate_leaves(
            _ReplyEvidence,
            _evidence_candidate(raw_evidence),
            defaults.evidence.model_dump(),
            prefix="evidence.",
            result_cls=EvidenceAssessment,
        )
        evidence = EvidenceAssessment(**validated.model_dump())
        backfilled |= evidence_backfilled
    else:
        evidence = defaults.evidence
        backfilled |= {"evidence"} | {f"evidence.{name}" for name in _EVIDENCE_KEYS}

    if backfilled:
        logger.info("Backfilled defaults for: %s", ", ".join(sorted(backfilled)))

    return StructuredPayload(
        summary=text.summary,
        translation=text.translation,
        evidence=evidence,
        backfilled=frozenset(backfilled),
    )
