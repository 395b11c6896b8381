"""
Data models for the dialogue system.
"""
import html
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from .schemas import parse_analysis_scores


class Role(str, Enum):
    """Speaker of a conversation turn."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True)
class ConversationTurn:
    """One exchanged message. Immutable once created."""
    role: Role
    content: str

    def as_message(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class Utterance:
    """A finalized unit of recognized speech."""
    text: str
    timestamp: float = field(default_factory=time.time)


class ConversationHistory:
    """
    Ordered, append-only record of exchanged turns.

    Insertion order defines the context sent to the oracle. Entries are
    never replaced or removed; a new session gets a new history.
    """

    def __init__(self):
        self._turns: List[ConversationTurn] = []

    def append(self, role: Role, content: str) -> ConversationTurn:
        turn = ConversationTurn(role=Role(role), content=content)
        self._turns.append(turn)
        return turn

    def snapshot(self) -> Tuple[ConversationTurn, ...]:
        """Frozen view of the history at this instant."""
        return tuple(self._turns)

    def messages(self) -> List[Dict[str, str]]:
        return [turn.as_message() for turn in self._turns]

    def count(self, role: Role) -> int:
        return sum(1 for turn in self._turns if turn.role == role)

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[ConversationTurn]:
        return iter(tuple(self._turns))

    def __getitem__(self, index):
        return self._turns[index]


def split_paragraphs(text: str) -> Tuple[Tuple[str, ...], ...]:
    """
    Break text into paragraphs on empty lines.

    Each paragraph is a tuple of its lines, kept as written; a line holding
    only spaces does not end a paragraph. Empty input yields no paragraphs.
    """
    normalized = text.replace("\r\n", "\n").strip()
    if not normalized:
        return ()
    return tuple(
        tuple(block.strip("\n").split("\n"))
        for block in normalized.split("\n\n")
        if block.strip()
    )


@dataclass(frozen=True)
class AnalysisReport:
    """Rubric-based critique of a finished session. Read-only after creation."""
    raw_text: str = ""
    paragraphs: Tuple[Tuple[str, ...], ...] = ()
    criteria: Dict[str, float] = field(default_factory=dict)
    overall_band: Optional[float] = None
    error: Optional[str] = None

    @classmethod
    def from_text(cls, text: str, error: Optional[str] = None) -> "AnalysisReport":
        criteria, overall = parse_analysis_scores(text)
        return cls(
            raw_text=text,
            paragraphs=split_paragraphs(text),
            criteria=criteria,
            overall_band=overall,
            error=error,
        )

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_html(self) -> str:
        """Paragraphs become <p> blocks, line breaks inside become <br>."""
        if not self.paragraphs:
            return "<p></p>"
        return "".join(
            "<p>" + "<br>".join(html.escape(line) for line in lines) + "</p>"
            for lines in self.paragraphs
        )

    def to_text(self) -> str:
        return "\n\n".join("\n".join(lines) for lines in self.paragraphs)
