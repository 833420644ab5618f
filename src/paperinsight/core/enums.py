"""
PaperInsight Core Enumerations
"""

from enum import Enum


class SummaryLength(str, Enum):
    """How much detail the analysis summary should carry."""

    CONCISE = "concise"
    DETAILED = "detailed"


class ChatRole(str, Enum):
    """Author of a chat message."""

    USER = "user"
    MODEL = "model"


class ResponseMode(str, Enum):
    """Output format requested from the text endpoint."""

    STRUCTURED_JSON = "structured-json"
    FREE_TEXT = "free-text"


class Operation(str, Enum):
    """Sequencer operations, used for tracing and logging."""

    ANALYZE = "analyze"
    SEARCH_RELATED = "search_related"
    GENERATE_IMAGE = "generate_image"
    SYNTHESIZE_SPEECH = "synthesize_speech"
    ASK_QUESTION = "ask_question"
