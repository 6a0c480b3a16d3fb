"""Prompt and request construction for the generative vendor."""

from .builder import InlineMedia, build_prompt, build_request, generation_config

__all__ = ["InlineMedia", "build_prompt", "build_request", "generation_config"]
