"""
PaperInsight

Orchestration layer for an academic-paper assistant backed by Gemini:
structured summaries, evidence assessment, related work, illustration,
read-aloud audio and follow-up chat.
"""

__version__ = "0.1.0"
__author__ = "PaperInsight Team"

from paperinsight.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
