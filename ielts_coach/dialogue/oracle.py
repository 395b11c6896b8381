"""
Conversational oracle: examiner turns and session analysis over chat completions.
"""
import logging
from typing import Dict, List, Optional, Sequence

from .models import AnalysisReport, ConversationTurn, Role
from .prompts import ExaminerPrompts, PromptProfile
from ..config import ANALYSIS_MAX_TOKENS, QUESTION_MAX_TOKENS, TEMPERATURE, TURN_MAX_TOKENS
from ..infrastructure.llm import ChatCompletionsClient

logger = logging.getLogger("oracle")

SPEAKER_LABELS = {Role.USER: "You", Role.ASSISTANT: "AI", Role.SYSTEM: "System"}


def render_transcript(history: Sequence[ConversationTurn]) -> str:
    """Render turns as alternating "You: ..." / "AI: ..." lines."""
    return "\n".join(f"{SPEAKER_LABELS[turn.role]}: {turn.content}" for turn in history)


class OracleClient:
    """
    Sends conversation context to the language model and returns one reply.

    No server-side session is assumed: every call carries the complete
    history it was given.
    """

    def __init__(self,
                 llm_client: ChatCompletionsClient,
                 profile: PromptProfile,
                 temperature: float = TEMPERATURE,
                 turn_max_tokens: int = TURN_MAX_TOKENS,
                 analysis_max_tokens: int = ANALYSIS_MAX_TOKENS):
        self.llm_client = llm_client
        self.profile = profile
        self.temperature = temperature
        self.turn_max_tokens = turn_max_tokens
        self.analysis_max_tokens = analysis_max_tokens

    def build_messages(self, history: Sequence[ConversationTurn],
                       new_user_message: str) -> List[Dict[str, str]]:
        """[system priming] + history + [new user message]."""
        messages = [{"role": Role.SYSTEM.value, "content": self.profile.system_prompt}]
        messages.extend(turn.as_message() for turn in history)
        messages.append({"role": Role.USER.value, "content": new_user_message})
        return messages

    def converse(self, history: Sequence[ConversationTurn], new_user_message: str) -> Optional[str]:
        """
        Get the examiner's next reply.

        Returns:
            Reply text, or None if the service returned no choices

        Raises:
            ServiceError: If the request does not succeed
        """
        messages = self.build_messages(history, new_user_message)
        logger.info("Converse: %d history turns, model=%s", len(history), self.profile.model)
        reply = self.llm_client.complete(
            self.profile.model,
            messages,
            max_tokens=self.turn_max_tokens,
            temperature=self.temperature,
        )
        logger.debug("Examiner reply: %r", reply)
        return reply

    def analyze(self, history: Sequence[ConversationTurn]) -> AnalysisReport:
        """
        Score the whole conversation against the four speaking criteria.

        Raises:
            ServiceError: If the request does not succeed
        """
        prompt = ExaminerPrompts.session_analysis(render_transcript(history))
        logger.info("Analyze: %d turns, model=%s", len(history), self.profile.analysis_model)
        text = self.llm_client.complete(
            self.profile.analysis_model,
            [{"role": Role.USER.value, "content": prompt}],
            max_tokens=self.analysis_max_tokens,
            temperature=self.temperature,
        )
        if not text:
            return AnalysisReport.from_text(ExaminerPrompts.fallback_messages()["no_analysis"])
        return AnalysisReport.from_text(text)

    def random_question(self) -> Optional[str]:
        """Ask for one IELTS speaking question."""
        question = self.llm_client.complete(
            self.profile.question_model,
            [{"role": Role.USER.value, "content": ExaminerPrompts.random_question()}],
            max_tokens=QUESTION_MAX_TOKENS,
            temperature=self.temperature,
        )
        logger.info("Drill question: %r", question)
        return question

    def analyze_answer(self, question: str, answer: str) -> AnalysisReport:
        """Score a single spoken answer to `question`."""
        text = self.llm_client.complete(
            self.profile.analysis_model,
            [{"role": Role.USER.value, "content": ExaminerPrompts.answer_analysis(question, answer)}],
            max_tokens=self.analysis_max_tokens,
            temperature=self.temperature,
        )
        if not text:
            return AnalysisReport.from_text(ExaminerPrompts.fallback_messages()["no_analysis"])
        return AnalysisReport.from_text(text)
