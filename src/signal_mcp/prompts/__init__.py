"""Prompt templates for explaining signal results."""

from signal_mcp.prompts.templates import get_prompt, list_prompts

__all__ = ["get_prompt", "list_prompts"]
