"""
Copysmith - Gemini-backed content and topic-idea generation.
"""

__version__ = "1.0.0"
