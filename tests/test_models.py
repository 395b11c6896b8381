import dataclasses

import pytest

from ielts_coach.dialogue.models import (
    AnalysisReport, ConversationHistory, ConversationTurn, Role, split_paragraphs
)
from ielts_coach.dialogue.schemas import CRITERIA, parse_analysis_scores
from ielts_coach.dialogue.testing import SAMPLE_ANALYSIS


def test_history_preserves_insertion_order():
    history = ConversationHistory()
    history.append(Role.ASSISTANT, "What do you do?")
    history.append(Role.USER, "I work as a teacher")
    history.append("assistant", "Why teaching?")

    assert [t.role for t in history] == [Role.ASSISTANT, Role.USER, Role.ASSISTANT]
    assert history.messages()[1] == {"role": "user", "content": "I work as a teacher"}
    assert history.count(Role.USER) == 1


def test_history_snapshot_is_not_affected_by_later_appends():
    history = ConversationHistory()
    history.append(Role.USER, "hello")
    snapshot = history.snapshot()
    history.append(Role.ASSISTANT, "hi")

    assert len(snapshot) == 1
    assert len(history) == 2


def test_turns_are_immutable():
    turn = ConversationTurn(Role.USER, "hello")
    with pytest.raises(dataclasses.FrozenInstanceError):
        turn.content = "changed"


def test_two_blank_line_separated_sections_render_two_paragraphs():
    report = AnalysisReport.from_text("First section\nline two\n\nSecond section")

    assert report.paragraphs == (("First section", "line two"), ("Second section",))
    assert report.to_html() == "<p>First section<br>line two</p><p>Second section</p>"


def test_paragraph_split_ignores_extra_blank_lines_and_crlf():
    assert split_paragraphs("a\r\n\r\n\r\nb\n") == (("a",), ("b",))
    assert split_paragraphs("   \n\n ") == ()


def test_formatting_is_idempotent():
    report = AnalysisReport.from_text(SAMPLE_ANALYSIS)
    again = AnalysisReport.from_text(report.to_text())

    assert again.paragraphs == report.paragraphs
    assert again.criteria == report.criteria


def test_html_escapes_text():
    report = AnalysisReport.from_text("use <b> tags")
    assert report.to_html() == "<p>use &lt;b&gt; tags</p>"


def test_empty_report_is_well_formed():
    report = AnalysisReport.from_text("")
    assert report.paragraphs == ()
    assert report.criteria == {}
    assert report.overall_band is None
    assert report.to_html() == "<p></p>"
    assert report.ok


def test_scores_parsed_from_sample_analysis():
    criteria, overall = parse_analysis_scores(SAMPLE_ANALYSIS)

    assert set(criteria) == set(CRITERIA)
    assert criteria["Grammatical Range and Accuracy"] == 5.0
    assert overall == 6.0


def test_scores_with_half_bands_and_numbered_headings():
    text = (
        "1. Fluency and Coherence\nGood.\nScore: 6.5/9\n\n"
        "2. Lexical Resource\nFine.\nScore: 7/9\n\n"
        "Overall Band Score: 6.5/9"
    )
    criteria, overall = parse_analysis_scores(text)

    assert criteria == {"Fluency and Coherence": 6.5, "Lexical Resource": 7.0}
    assert overall == 6.5


def test_space_only_line_stays_inside_its_paragraph():
    assert split_paragraphs("Score: 6/9\n  \nNext line") == (("Score: 6/9", "  ", "Next line"),)
    assert split_paragraphs("  indented\n\nplain") == (("indented",), ("plain",))
