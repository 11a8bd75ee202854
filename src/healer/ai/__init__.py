"""Language model access, heal prompts and response parsing."""

from .output_parser import SnippetParser
from .prompts import build_heal_messages, messages_to_text

__all__ = ["SnippetParser", "build_heal_messages", "messages_to_text"]
