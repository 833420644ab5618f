"""
PaperInsight Orchestration

Session sequencing of analysis, related-work search, illustration,
speech and follow-up chat.
"""

from paperinsight.orchestration.sequencer import Sequencer

__all__ = ["Sequencer"]
