"""Prompt construction for extraction and generation."""

from .builder import ExtractionPromptBuilder, build_source_text

__all__ = ["ExtractionPromptBuilder", "build_source_text"]
