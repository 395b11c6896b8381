"""
End-of-session analysis: turns the finished conversation into a scored report.
"""
import asyncio
import logging
from typing import Sequence

from .models import AnalysisReport, ConversationTurn
from .oracle import OracleClient
from .prompts import ExaminerPrompts
from ..errors import ServiceError

logger = logging.getLogger("analysis")


def format_report(report: AnalysisReport) -> AnalysisReport:
    """Re-derive paragraphs and scores from the report text. Idempotent."""
    return AnalysisReport.from_text(report.raw_text, error=report.error)


class SessionAnalyzer:
    """
    Runs the rubric analysis once capture has stopped.

    Service failures become an inline "Error: ..." report so the stop
    sequence always completes.
    """

    def __init__(self, oracle: OracleClient):
        self.oracle = oracle

    async def analyze(self, history: Sequence[ConversationTurn]) -> AnalysisReport:
        if not history:
            logger.info("Nothing to analyze: session ended with an empty history")
            return AnalysisReport.from_text(ExaminerPrompts.fallback_messages()["empty_session"])

        try:
            report = await asyncio.to_thread(self.oracle.analyze, tuple(history))
        except ServiceError as e:
            logger.error("Session analysis failed: %s", e)
            return AnalysisReport.from_text(f"Error: {e.description}", error=e.description)

        report = format_report(report)
        logger.info("Analysis complete: criteria=%s overall=%s", report.criteria, report.overall_band)
        return report
