"""AI provider adapters."""

from focus_feed.adapters.llm.base_provider import BaseAIProvider
from focus_feed.adapters.llm.claude_provider import ClaudeProvider
from focus_feed.adapters.llm.mock_provider import MockAIProvider

__all__ = ["BaseAIProvider", "ClaudeProvider", "MockAIProvider"]
