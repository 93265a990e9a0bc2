"""LLM access and narrative generation."""

from .narrative import (
    FallbackNarrativeGenerator,
    LLMNarrativeGenerator,
    NarrativeGenerator,
    RuleBasedNarrativeGenerator,
    build_narrative_generator,
)
from .providers import LLMClient, RetryConfig, extract_json_object

__all__ = [
    "FallbackNarrativeGenerator",
    "LLMNarrativeGenerator",
    "NarrativeGenerator",
    "RuleBasedNarrativeGenerator",
    "build_narrative_generator",
    "LLMClient",
    "RetryConfig",
    "extract_json_object",
]
