"""
Prompt builders for the session operations.

Pure functions of their inputs; no I/O.
"""

from paperinsight.core.enums import SummaryLength
from paperinsight.core.schemas import SessionSettings

# Characters of the summary used to seed related-work search and illustration.
RELATED_TOPIC_CHARS = 80
IMAGE_TOPIC_CHARS = 150

ANALYSIS_STRUCTURE = """{
  "summary": "summary of the paper",
  "translation": "translation of the paper's key passages",
  "evidence": {
    "level": integer 1-6 (1 = systematic review/meta-analysis, 6 = expert opinion),
    "design": "study design name",
    "reason": "rationale for the level",
    "quality_score": integer 1-10,
    "limitations": "main limitations"
  }
}"""

EXPERT_PERSONA = (
    "You are an expert reader of advanced academic papers. Using the background "
    "information provided, answer honestly and in detail in {language}."
)


def analysis_prompt(document: str, settings: SessionSettings) -> str:
    """Prompt asking for the structured JSON analysis of a paper."""
    detail = "in detail" if settings.summary_length == SummaryLength.DETAILED else "concisely"
    return (
        "Analyse the following paper and reply in JSON.\n"
        f"Write the summary {detail}, in {settings.target_language}.\n"
        "Follow this structure exactly:\n"
        f"{ANALYSIS_STRUCTURE}\n\n"
        f"Paper:\n{document}"
    )


def related_work_prompt(summary: str, target_language: str) -> str:
    """Prompt for a web-grounded digest of recent related findings."""
    topic = summary[:RELATED_TOPIC_CHARS]
    return (
        f'Summarise, in {target_language}, the latest findings and criticism related '
        f'to this research topic: "{topic}"'
    )


def image_prompt(summary: str) -> str:
    """Illustration prompt seeded with the start of the summary."""
    return f"Professional scientific infographic illustrating: {summary[:IMAGE_TOPIC_CHARS]}"


def speech_prompt(summary: str) -> str:
    """Read-aloud prompt for the summary."""
    return f"Read the following paper summary aloud. {summary}"


def question_prompt(summary: str, question: str) -> str:
    """Chat turn with the summary as context."""
    return f"Summary: {summary}\nQuestion: {question}"


def expert_instruction(target_language: str) -> str:
    """System instruction for follow-up questions."""
    return EXPERT_PERSONA.format(language=target_language)
