"""LLM infrastructure module — concrete profession classifier implementations."""

from .openrouter_profession_classifier import OpenRouterProfessionClassifier

__all__ = [
    "OpenRouterProfessionClassifier",
]
