"""External obligation suggestion sources."""

from .base import (
    ObligationSuggester,
    StaticObligationSuggester,
    Suggestion,
    YamlObligationSuggester,
)

__all__ = [
    "ObligationSuggester",
    "StaticObligationSuggester",
    "Suggestion",
    "YamlObligationSuggester",
]
