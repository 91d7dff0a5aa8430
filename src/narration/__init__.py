"""Agent narration through an external text-generation API."""

from src.narration.prompts import (
    bias_label,
    build_esg_prompt,
    build_negotiation_prompt,
    parse_negotiation,
)
from src.narration.service import GeminiNarrator, Narrator, ScriptedNarrator

__all__ = [
    "Narrator",
    "GeminiNarrator",
    "ScriptedNarrator",
    "bias_label",
    "build_negotiation_prompt",
    "build_esg_prompt",
    "parse_negotiation",
]
