"""LLM adapters."""

from wiki_autoupdate.adapters.llm.claude_client import ClaudeClient

__all__ = ["ClaudeClient"]
