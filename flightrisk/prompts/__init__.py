"""
Prompts package - Manages AI prompt configurations
"""

from .manager import PromptManager, get_prompt_manager

__all__ = [
    "PromptManager",
    "get_prompt_manager"
]
