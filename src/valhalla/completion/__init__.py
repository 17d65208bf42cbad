"""Type resolution and completion candidates."""

from valhalla.completion.candidates import (
    CandidateKind,
    SuggestionCandidate,
    suggest_method,
    suggest_property,
)
from valhalla.completion.context import CompletionContext, CompletionRequest
from valhalla.completion.engine import CompletionEngine
from valhalla.completion.keywords import DEFAULT_KEYWORDS, Keyword, load_keywords
from valhalla.completion.resolver import TypeResolver

__all__ = [
    "CandidateKind",
    "CompletionContext",
    "CompletionEngine",
    "CompletionRequest",
    "DEFAULT_KEYWORDS",
    "Keyword",
    "SuggestionCandidate",
    "TypeResolver",
    "load_keywords",
    "suggest_method",
    "suggest_property",
]
