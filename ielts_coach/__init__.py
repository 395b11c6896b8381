"""
IELTS speaking coach: rehearse the speaking test with an automated examiner.

Continuous speech capture, silence-based turn-taking, a conversational
language model as examiner, spoken replies, and a rubric-scored critique
at the end of the session.
"""

__version__ = "1.0.0"

# Main entry points
from .dialogue.orchestrator import DialogueOrchestrator
from .dialogue.models import ConversationTurn, AnalysisReport

__all__ = ["DialogueOrchestrator", "ConversationTurn", "AnalysisReport"]
