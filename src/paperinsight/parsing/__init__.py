"""
PaperInsight Parsing Layer

Normalization of semi-structured model output.
"""

from paperinsight.parsing.normalizer import (
    ENGLISH_DEFAULTS,
    JAPANESE_DEFAULTS,
    ResponseDefaults,
    normalize,
    parse_json_object,
    strip_code_fences,
)

__all__ = [
    "normalize",
    "parse_json_object",
    "strip_code_fences",
    "ResponseDefaults",
    "JAPANESE_DEFAULTS",
    "ENGLISH_DEFAULTS",
]
