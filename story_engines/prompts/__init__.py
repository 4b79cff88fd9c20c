"""
Story Engines Prompts Module
Prompt templates shared by the enhancement engines.
"""

from .engine import ENGINE_USER_PROMPT_TEMPLATE

__all__ = [
    "ENGINE_USER_PROMPT_TEMPLATE",
]
