"""Suggestion candidates and the builders shared by completion predicates."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from valhalla.scopes.models import Scope, ScopeKind


class CandidateKind(str, Enum):
    """Icon/category tag shown next to a suggestion."""

    IMPORT = "import"
    CLASS = "class"
    INTERFACE = "interface"
    STRUCT = "struct"
    ENUM = "enum"
    VALUE = "value"
    VARIABLE = "variable"
    METHOD = "method"
    PROPERTY = "property"
    KEYWORD = "keyword"


@dataclass
class SuggestionCandidate:
    """One entry of a completion list.

    Exactly one of ``text`` and ``snippet`` is inserted; snippets use
    ``${n:name}`` placeholders and a final ``$n`` tab stop.
    """

    display_text: str
    kind: CandidateKind
    text: str | None = None
    snippet: str | None = None
    left_label: str | None = None
    description: str | None = None
    sort_key: int = 0

    @property
    def insert_text(self) -> str:
        return self.snippet if self.snippet is not None else (self.text or "")

    def to_dict(self) -> dict[str, Any]:
        """Autocomplete-style wire shape."""
        data: dict[str, Any] = {"displayText": self.display_text, "type": self.kind.value}
        if self.snippet is not None:
            data["snippet"] = self.snippet
        else:
            data["text"] = self.text if self.text is not None else self.display_text
        if self.left_label:
            data["leftLabel"] = self.left_label
        if self.description:
            data["description"] = self.description
        data["sortKey"] = self.sort_key
        return data


def suggest_method(scope: Scope) -> SuggestionCandidate:
    """Call snippet for a method or constructor Scope.

    ``void draw (int x, out Rect r)`` becomes ``draw (${1:x}, out ${2:r});$3``.
    """
    placeholders = []
    for index, param in enumerate(scope.parameters, start=1):
        modifier = f"{param.modifier} " if param.modifier else ""
        placeholders.append(f"{modifier}${{{index}:{param.name}}}")
    name = scope.name or ""
    snippet = f"{name} ({', '.join(placeholders)});${len(placeholders) + 1}"

    is_ctor = scope.kind == ScopeKind.CONSTRUCTOR
    left_label = None
    if scope.return_type:
        left_label = ("static " if scope.is_static else "") + scope.return_type

    description = scope.documentation.short
    if not description:
        if is_ctor:
            owner = scope.parent.name if scope.parent is not None else name
            description = f"Creates a new instance of {owner}."
        else:
            description = f"The {name} method."

    return SuggestionCandidate(
        display_text=name,
        kind=CandidateKind.CLASS if is_ctor else CandidateKind.METHOD,
        snippet=snippet,
        left_label=left_label,
        description=description,
    )


def suggest_property(scope: Scope) -> SuggestionCandidate:
    name = scope.name or ""
    label = ("(static) " if scope.is_static else "") + (scope.value_type or "")
    return SuggestionCandidate(
        display_text=name,
        kind=CandidateKind.PROPERTY,
        text=name,
        left_label=label or None,
        description=scope.documentation.short,
    )


def suggest_member(scope: Scope) -> SuggestionCandidate | None:
    """Method snippet or property identifier; None for other kinds."""
    if scope.kind == ScopeKind.METHOD:
        return suggest_method(scope)
    if scope.kind == ScopeKind.PROPERTY:
        return suggest_property(scope)
    return None
