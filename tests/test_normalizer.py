"""
Tests for analysis reply normalization.

Covers fence stripping, the outermost-object fallback, per-leaf default
backfilling and the error raised for text with no JSON in it.
"""

import json

import pytest

from paperinsight.core.exceptions import MalformedResponseError
from paperinsight.parsing import (
    ENGLISH_DEFAULTS,
    JAPANESE_DEFAULTS,
    ResponseDefaults,
    normalize,
    parse_json_object,
    strip_code_fences,
)


class TestStripCodeFences:
    def test_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence_and_whitespace(self):
        assert strip_code_fences('  ```\n{"a": 1}```  ') == '{"a": 1}'

    def test_no_fence_untouched(self):
        assert strip_code_fences('{"a": 1}') == '{"a": 1}'


class TestParseJsonObject:
    def test_strict_parse(self):
        assert parse_json_object('{"summary": "x"}') == {"summary": "x"}

    def test_object_wrapped_in_prose(self):
        raw = 'Here is the analysis:\n{"summary": "has } brace", "n": {"k": 1}}\nHope it helps.'
        assert parse_json_object(raw) == {"summary": "has } brace", "n": {"k": 1}}

    def test_garbage_raises(self):
        with pytest.raises(MalformedResponseError) as exc_info:
            parse_json_object("I could not read the paper, sorry.")
        assert exc_info.value.raw_text == "I could not read the paper, sorry."

    def test_unbalanced_object_raises(self):
        with pytest.raises(MalformedResponseError):
            parse_json_object('{"summary": "x"')

    def test_top_level_array_rejected(self):
        with pytest.raises(MalformedResponseError, match="list"):
            parse_json_object('[{"summary": "x"}]')


class TestNormalize:
    """Tests for normalize()."""

    def test_complete_reply(self, sample_analysis):
        payload = normalize(sample_analysis)
        assert payload.summary == "A randomized trial of drug X."
        assert payload.evidence.level == 2
        assert payload.evidence.quality_score == 8
        assert payload.backfilled == frozenset()
        assert payload.has_generated_summary

    def test_fenced_reply_with_only_summary(self):
        payload = normalize('```json\n{"summary":"x"}\n```', ENGLISH_DEFAULTS)
        assert payload.summary == "x"
        assert payload.translation == ENGLISH_DEFAULTS.translation
        assert payload.evidence == ENGLISH_DEFAULTS.evidence
        assert "translation" in payload.backfilled
        assert "evidence" in payload.backfilled
        assert "summary" not in payload.backfilled

    def test_garbage_raises_and_returns_nothing(self):
        with pytest.raises(MalformedResponseError):
            normalize("The model refused to answer.")

    def test_quality_score_camel_case_alias(self, make_analysis):
        raw = make_analysis(
            evidence={
                "level": 1,
                "design": "Meta-analysis",
                "reason": "Pooled RCTs",
                "qualityScore": 9,
                "limitations": "Heterogeneity",
            }
        )
        payload = normalize(raw)
        assert payload.evidence.quality_score == 9
        assert payload.backfilled == frozenset()

    def test_invalid_leaf_backfilled_individually(self, make_analysis):
        raw = make_analysis(
            evidence={
                "level": "high",
                "design": "Cohort",
                "reason": "Prospective",
                "quality_score": 7,
                "limitations": "Confounding",
            }
        )
        payload = normalize(raw, ENGLISH_DEFAULTS)
        assert payload.evidence.level == ENGLISH_DEFAULTS.evidence.level
        assert payload.evidence.design == "Cohort"
        assert payload.evidence.quality_score == 7
        assert payload.backfilled == frozenset({"evidence.level"})

    def test_out_of_range_level_backfilled(self, make_analysis):
        raw = make_analysis(
            evidence={
                "level": 9,
                "design": "Case series",
                "reason": "No control",
                "quality_score": 3,
                "limitations": "Small n",
            }
        )
        payload = normalize(raw)
        assert payload.evidence.level == JAPANESE_DEFAULTS.evidence.level
        assert "evidence.level" in payload.backfilled

    def test_zero_quality_score_backfilled(self, make_analysis):
        raw = make_analysis(
            evidence={
                "level": 2,
                "design": "  Randomized trial  ",
                "reason": "Blinded",
                "quality_score": 0,
                "limitations": "Short follow-up",
            }
        )
        payload = normalize(raw, ENGLISH_DEFAULTS)
        assert payload.evidence.quality_score == ENGLISH_DEFAULTS.evidence.quality_score
        assert payload.evidence.level == 2
        assert payload.evidence.design == "Randomized trial"
        assert payload.backfilled == frozenset({"evidence.quality_score"})

    def test_numeric_string_level_accepted(self, make_analysis):
        raw = make_analysis(
            evidence={
                "level": "3",
                "design": "Case-control",
                "reason": "Retrospective",
                "quality_score": 5,
                "limitations": "Recall bias",
            }
        )
        assert normalize(raw).evidence.level == 3

    def test_blank_summary_is_backfilled(self, make_analysis):
        payload = normalize(make_analysis(summary="   "), ENGLISH_DEFAULTS)
        assert payload.summary == ENGLISH_DEFAULTS.summary
        assert not payload.has_generated_summary

    def test_wrong_type_summary_is_backfilled(self):
        raw = json.dumps({"summary": ["a", "b"], "translation": "t"})
        payload = normalize(raw, ENGLISH_DEFAULTS)
        assert payload.summary == ENGLISH_DEFAULTS.summary
        assert payload.translation == "t"

    def test_evidence_not_an_object_uses_sentinel(self, make_analysis):
        payload = normalize(make_analysis(evidence="strong"), ENGLISH_DEFAULTS)
        assert payload.evidence == ENGLISH_DEFAULTS.evidence
        assert {"evidence", "evidence.level", "evidence.quality_score"} <= payload.backfilled

    def test_text_is_stripped(self, make_analysis):
        payload = normalize(make_analysis(summary="  padded  "))
        assert payload.summary == "padded"

    def test_no_leaf_is_ever_empty(self):
        payload = normalize("{}")
        assert payload.summary
        assert payload.translation
        assert payload.evidence.design
        assert payload.evidence.reason
        assert payload.evidence.limitations


class TestResponseDefaults:
    @pytest.mark.parametrize("language", ["日本語", "Japanese", " ja ", "ja-JP"])
    def test_japanese_names(self, language):
        assert ResponseDefaults.for_language(language) is JAPANESE_DEFAULTS

    @pytest.mark.parametrize("language", ["English", "Español", "fr"])
    def test_other_languages_fall_back_to_english(self, language):
        assert ResponseDefaults.for_language(language) is ENGLISH_DEFAULTS

    def test_sentinel_evidence(self):
        assert ENGLISH_DEFAULTS.evidence.level == 6
        assert ENGLISH_DEFAULTS.evidence.quality_score == 0
