"""
Error taxonomy for the speaking coach.

Capability and credential errors are fatal at startup. Service and playback
errors are recoverable and are turned into transcript text by the code that
issued the failing call.
"""
from typing import Optional


class UnsupportedCapability(RuntimeError):
    """The platform cannot capture speech (no audio stack or no input device)."""


class MissingCredential(ValueError):
    """No API credential was configured."""


class ServiceError(RuntimeError):
    """An oracle request failed at the network or HTTP level."""

    def __init__(self, description: str, status: Optional[int] = None):
        super().__init__(description)
        self.description = description
        self.status = status

    def __str__(self) -> str:
        return self.description


class PlaybackError(RuntimeError):
    """Speech synthesis or playback could not complete."""


class InvalidTransition(RuntimeError):
    """An orchestrator operation was called from a state that does not allow it."""
