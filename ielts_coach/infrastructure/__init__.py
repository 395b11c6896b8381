"""Infrastructure components for the speaking coach.

This module contains low-level technical components: the chat completions
REST client and the audio/speech backends.
"""

from .llm import ChatCompletionsClient

__all__ = ["ChatCompletionsClient"]
