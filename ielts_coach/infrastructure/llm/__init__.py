"""Language model REST client."""

from .client import ChatCompletionsClient

__all__ = ["ChatCompletionsClient"]
