"""Generative text adapters."""

from .gemini import GeminiClient, GenerationRequest

__all__ = ["GeminiClient", "GenerationRequest"]
