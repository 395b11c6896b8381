"""
Examiner prompt templates and dialogue variants.

This module contains all the prompt templates used by the speaking coach,
keeping them separate from the orchestration logic for easier editing.
"""
from dataclasses import dataclass
from typing import Dict


class ExaminerPrompts:
    """Collection of examiner-related prompts."""

    @staticmethod
    def examiner_system_prompt() -> str:
        """System priming for the formal examiner variant."""
        return (
            "You are an IELTS examiner conducting a speaking test. Engage naturally with the user, "
            "providing thoughtful and relevant responses. Make sure to stay on topic based on the "
            "user's input, and ask follow-up questions wherever appropriate. Maintain the context of "
            "the entire conversation to ensure coherence."
        )

    @staticmethod
    def partner_system_prompt() -> str:
        """System priming for the friendlier conversation-partner variant."""
        return (
            "You are a friendly English conversation partner helping a learner prepare for the "
            "IELTS speaking test. Keep your replies short and natural, respond to what the learner "
            "actually said, and follow up with one question at a time. Keep the whole conversation "
            "in mind so the dialogue stays coherent."
        )

    @staticmethod
    def greeting() -> str:
        """Opening message sent on the learner's behalf when a session starts."""
        return (
            "Hello, let's start the conversation. Please ask me a question or tell me something "
            "about yourself."
        )

    @staticmethod
    def score_format() -> str:
        """Required shape of every analysis reply."""
        return """Here is the format:

**Fluency and Coherence:**
[feedback]
Score: [score]/9

**Lexical Resource:**
[feedback]
Score: [score]/9

**Grammatical Range and Accuracy:**
[feedback]
Score: [score]/9

**Pronunciation:**
[feedback]
Score: [score]/9

**Overall Band Score:** [score]/9"""

    @staticmethod
    def session_analysis(transcript: str) -> str:
        """Rubric prompt for a whole conversation."""
        return f"""
Analyze the following conversation based on IELTS Speaking criteria, including Fluency and Coherence, Lexical Resource, Grammatical Range and Accuracy, and Pronunciation. For each criterion, provide detailed feedback and offer specific suggestions for improvement. When possible, suggest alternative words or phrases that could enhance the response. For example, recommend using "however" instead of "but" to improve the lexical resource. Give a score out of 9 for each criterion and an overall band score. Use paragraphs where necessary.

{ExaminerPrompts.score_format()}

Here is the conversation:
{transcript}
        """.strip()

    @staticmethod
    def answer_analysis(question: str, answer: str) -> str:
        """Rubric prompt for a single question and its spoken answer."""
        return f"""
Analyze the following text based on IELTS Speaking criteria and provide feedback, including a score out of 9 for each criterion. Use paragraphs where necessary:

Question: {question}

Response: {answer}

{ExaminerPrompts.score_format()}
        """.strip()

    @staticmethod
    def random_question() -> str:
        return "Please provide a random question from the IELTS Speaking test. Here is the format: Question"

    @staticmethod
    def fallback_messages() -> Dict[str, str]:
        """Text shown when the service answers without content."""
        return {
            "no_reply": "No response available.",
            "no_analysis": "No analysis result available.",
            "no_question": "No question available.",
            "empty_session": "No conversation to analyze.",
        }


@dataclass(frozen=True)
class PromptProfile:
    """One dialogue variant: model choice plus system prompt wording."""
    name: str
    model: str
    system_prompt: str
    analysis_model: str = "gpt-4"
    question_model: str = "gpt-3.5-turbo"

    @classmethod
    def from_preset(cls, preset_name: str) -> "PromptProfile":
        """Create a profile from a preset name."""
        presets = {
            "examiner": cls(
                name="examiner",
                model="gpt-4",
                system_prompt=ExaminerPrompts.examiner_system_prompt(),
            ),
            "partner": cls(
                name="partner",
                model="gpt-3.5-turbo",
                system_prompt=ExaminerPrompts.partner_system_prompt(),
                analysis_model="gpt-3.5-turbo",
            ),
        }
        if preset_name not in presets:
            raise ValueError(
                f"Unknown profile {preset_name!r}. Options: {', '.join(sorted(presets))}"
            )
        return presets[preset_name]

    def with_model(self, model: str) -> "PromptProfile":
        """Same wording, every request routed to `model`."""
        return PromptProfile(
            name=self.name,
            model=model,
            system_prompt=self.system_prompt,
            analysis_model=model,
            question_model=model,
        )
