"""
Agent package for Copysmith: the Gemini gateway and the source researcher.
"""

from .gemini_client import (
    ChatSession,
    GeminiClient,
    LLMError,
    LLMNotConfiguredError,
    ProviderError,
)
from .source_researcher import SourceResearcher

__all__ = [
    'ChatSession',
    'GeminiClient',
    'LLMError',
    'LLMNotConfiguredError',
    'ProviderError',
    'SourceResearcher',
]
