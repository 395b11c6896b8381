"""
Session state and analysis parsing for the dialogue system.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class SessionState(str, Enum):
    """Top-level orchestrator state."""
    IDLE = "idle"
    RECORDING = "recording"
    ANALYZING = "analyzing"


class RecordingPhase(str, Enum):
    """Sub-phases of the Recording state."""
    WAITING_FOR_USER = "waiting_for_user"
    PROCESSING_TURN = "processing_turn"
    PLAYING_RESPONSE = "playing_response"


@dataclass
class DialogueState:
    """Owned by the orchestrator; nothing else mutates it."""
    state: SessionState = SessionState.IDLE
    phase: Optional[RecordingPhase] = None
    generation: int = 0

    @property
    def recording(self) -> bool:
        return self.state == SessionState.RECORDING

    @property
    def waiting_for_user(self) -> bool:
        return self.recording and self.phase == RecordingPhase.WAITING_FOR_USER

    def begin_session(self) -> int:
        """Enter Recording/WaitingForUser under a fresh generation."""
        self.generation += 1
        self.state = SessionState.RECORDING
        self.phase = RecordingPhase.WAITING_FOR_USER
        return self.generation

    def enter_phase(self, phase: RecordingPhase) -> None:
        self.phase = phase

    def begin_analysis(self) -> None:
        self.state = SessionState.ANALYZING
        self.phase = None

    def finish(self) -> None:
        self.state = SessionState.IDLE
        self.phase = None

    def is_current(self, generation: int) -> bool:
        """True while the session that issued `generation` is still recording."""
        return self.recording and self.generation == generation

    def describe(self) -> str:
        if self.phase is None:
            return self.state.value
        return f"{self.state.value}/{self.phase.value}"


CRITERIA = (
    "Fluency and Coherence",
    "Lexical Resource",
    "Grammatical Range and Accuracy",
    "Pronunciation",
)

SCORE_PATTERN = re.compile(r"Score:?\**:?\s*\[?(\d+(?:\.\d+)?)\]?\s*/\s*9", re.IGNORECASE)
OVERALL_PATTERN = re.compile(r"Overall Band Score:?\**:?\s*\[?(\d+(?:\.\d+)?)\]?\s*/\s*9", re.IGNORECASE)


def _criterion_heading(name: str) -> "re.Pattern[str]":
    # Headings look like "**Lexical Resource:**", "2. Lexical Resource" or "## Lexical Resource"
    return re.compile(r"^[\s*#\d.\-]*" + re.escape(name), re.IGNORECASE | re.MULTILINE)


def parse_analysis_scores(text: str) -> Tuple[Dict[str, float], Optional[float]]:
    """
    Extract per-criterion scores and the overall band from analysis text.

    Each criterion's score is the first "Score: n/9" between its heading and
    the next heading (or the overall line). Missing pieces are simply absent.

    Returns:
        (criteria, overall_band)
    """
    overall_match = OVERALL_PATTERN.search(text)
    overall = float(overall_match.group(1)) if overall_match else None
    overall_at = overall_match.start() if overall_match else len(text)

    headings = []
    for name in CRITERIA:
        match = _criterion_heading(name).search(text)
        if match:
            headings.append((match.start(), name))
    headings.sort()

    criteria: Dict[str, float] = {}
    for i, (start, name) in enumerate(headings):
        end = headings[i + 1][0] if i + 1 < len(headings) else overall_at
        if end <= start:
            end = len(text)
        match = SCORE_PATTERN.search(text, start, end)
        if match:
            criteria[name] = float(match.group(1))

    return criteria, overall
