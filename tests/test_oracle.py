import pytest

from ielts_coach.dialogue.models import ConversationHistory, Role
from ielts_coach.dialogue.oracle import OracleClient, render_transcript
from ielts_coach.dialogue.prompts import ExaminerPrompts, PromptProfile
from ielts_coach.dialogue.testing import MockLLMClient, SAMPLE_ANALYSIS
from ielts_coach.errors import ServiceError


def _history():
    history = ConversationHistory()
    history.append(Role.ASSISTANT, "What do you do?")
    history.append(Role.USER, "I work as a teacher")
    history.append(Role.ASSISTANT, "Why teaching?")
    return history.snapshot()


def test_converse_sends_system_history_and_new_message_in_order():
    llm = MockLLMClient(["Because I like people."])
    oracle = OracleClient(llm, PromptProfile.from_preset("examiner"))

    reply = oracle.converse(_history(), "Because it matters")

    assert reply == "Because I like people."
    request = llm.request_history[0]
    assert request["model"] == "gpt-4"
    assert request["max_tokens"] == 150
    assert request["temperature"] == 0.7
    messages = request["messages"]
    assert messages[0] == {"role": "system", "content": ExaminerPrompts.examiner_system_prompt()}
    assert [m["content"] for m in messages[1:]] == [
        "What do you do?", "I work as a teacher", "Why teaching?", "Because it matters"
    ]
    assert messages[-1]["role"] == "user"


def test_partner_profile_changes_model_and_wording_only():
    llm = MockLLMClient(["ok"])
    oracle = OracleClient(llm, PromptProfile.from_preset("partner"))
    oracle.converse((), "hello")

    request = llm.request_history[0]
    assert request["model"] == "gpt-3.5-turbo"
    assert request["messages"][0]["content"] == ExaminerPrompts.partner_system_prompt()


def test_unknown_profile_is_rejected():
    with pytest.raises(ValueError):
        PromptProfile.from_preset("drill-sergeant")


def test_model_override_applies_to_every_request():
    profile = PromptProfile.from_preset("examiner").with_model("gpt-4o-mini")
    assert profile.model == profile.analysis_model == profile.question_model == "gpt-4o-mini"
    assert profile.system_prompt == ExaminerPrompts.examiner_system_prompt()


def test_analyze_uses_large_budget_and_speaker_labels():
    llm = MockLLMClient([SAMPLE_ANALYSIS])
    oracle = OracleClient(llm, PromptProfile.from_preset("examiner"))

    report = oracle.analyze(_history())

    request = llm.request_history[0]
    assert request["max_tokens"] == 2048
    prompt = request["messages"][0]["content"]
    assert "AI: What do you do?\nYou: I work as a teacher\nAI: Why teaching?" in prompt
    assert "Overall Band Score" in prompt
    assert len(report.criteria) == 4
    assert report.overall_band == 6.0


def test_analyze_without_content_gives_placeholder_report():
    oracle = OracleClient(MockLLMClient([None]), PromptProfile.from_preset("examiner"))
    report = oracle.analyze(_history())
    assert report.raw_text == "No analysis result available."


def test_service_errors_propagate_to_caller():
    oracle = OracleClient(MockLLMClient([ServiceError("Bad Gateway", 502)]),
                          PromptProfile.from_preset("examiner"))
    with pytest.raises(ServiceError):
        oracle.converse((), "hello")


def test_random_question_uses_small_budget():
    llm = MockLLMClient(["Describe your hometown."])
    oracle = OracleClient(llm, PromptProfile.from_preset("examiner"))

    assert oracle.random_question() == "Describe your hometown."
    assert llm.request_history[0]["max_tokens"] == 50


def test_render_transcript_empty_history():
    assert render_transcript(()) == ""
