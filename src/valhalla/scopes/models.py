"""Scope tree data model.

A unit of source text is parsed into a tree of ``Scope`` nodes rooted at a
``global`` scope. Every declaration with a lexical body (namespaces, types,
methods, property accessors, anonymous blocks) and every member declaration
(fields, abstract/extern methods) becomes a Scope. Local variables are not
Scopes; they live on the Scope that declares them.

Lines are 0-based and ranges are half-open: ``[start_line, end_line)``.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ScopeKind(str, Enum):
    """Kind tag of a Scope node."""

    GLOBAL = "global"
    NAMESPACE = "namespace"
    CLASS = "class"
    INTERFACE = "interface"
    STRUCT = "struct"
    ENUM = "enum"
    METHOD = "method"
    CONSTRUCTOR = "constructor"
    PROPERTY = "property"
    BLOCK = "block"
    VOID = "void"  # VoidType sentinel only


TYPE_KINDS = frozenset({ScopeKind.CLASS, ScopeKind.INTERFACE, ScopeKind.STRUCT})
CONTAINER_KINDS = frozenset({ScopeKind.GLOBAL, ScopeKind.NAMESPACE})
MEMBER_HOST_KINDS = frozenset(
    {
        ScopeKind.GLOBAL,
        ScopeKind.NAMESPACE,
        ScopeKind.CLASS,
        ScopeKind.INTERFACE,
        ScopeKind.STRUCT,
        ScopeKind.ENUM,
    }
)
BODY_KINDS = frozenset({ScopeKind.METHOD, ScopeKind.CONSTRUCTOR, ScopeKind.BLOCK})


@dataclass(frozen=True, slots=True)
class Parameter:
    """One formal parameter of a method or constructor."""

    name: str
    type: str
    modifier: str | None = None  # out, ref, params


@dataclass(frozen=True, slots=True)
class LocalVariable:
    """A variable declared directly inside a Scope body."""

    name: str
    type: str
    declared_at_line: int
    short_doc: str | None = None


@dataclass(frozen=True, slots=True)
class Documentation:
    """Text of a declaration's leading doc comment."""

    short: str | None = None
    long: str | None = None


@dataclass(eq=False)
class Scope:
    """One node of the symbol tree.

    Equality is identity: the parent back-reference makes structural
    comparison recursive. Use ``to_dict()`` to compare trees.
    """

    kind: ScopeKind
    unit: str
    name: str | None = None
    start_line: int = 0
    end_line: int = 0
    is_external: bool = False
    parent: Scope | None = field(default=None, repr=False)
    children: list[Scope] = field(default_factory=list, repr=False)

    modifier: str | None = None
    return_type: str | None = None
    value_type: str | None = None
    inherits: str | None = None
    parameters: list[Parameter] = field(default_factory=list)
    enum_values: list[str] = field(default_factory=list)
    locals: list[LocalVariable] = field(default_factory=list, repr=False)
    documentation: Documentation = field(default_factory=Documentation, repr=False)
    usings: list[str] = field(default_factory=list, repr=False)

    @property
    def range(self) -> tuple[int, int]:
        return (self.start_line, self.end_line)

    @property
    def is_static(self) -> bool:
        return self.modifier == "static"

    @property
    def declared_type(self) -> str | None:
        """Type a member evaluates to: value type for properties, return type otherwise."""
        return self.value_type or self.return_type

    @property
    def inherits_list(self) -> list[str]:
        if not self.inherits:
            return []
        return [base.strip() for base in self.inherits.split(",") if base.strip()]

    @property
    def qualified_name(self) -> str | None:
        """Dotted name including enclosing namespaces (``Foo.Bar`` for nested namespaces)."""
        if self.name is None:
            return None
        parts = [self.name]
        node = self.parent
        while node is not None and node.kind == ScopeKind.NAMESPACE and node.name:
            parts.append(node.name)
            node = node.parent
        return ".".join(reversed(parts))

    def contains(self, row: int) -> bool:
        return self.start_line <= row < self.end_line

    def add_child(self, child: Scope) -> Scope:
        child.parent = self
        self.children.append(child)
        return child

    def walk(self) -> Iterator[Scope]:
        """Depth-first pre-order iteration over this node and its descendants."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def to_dict(self) -> dict[str, Any]:
        """Structural snapshot without the parent back-reference."""
        data: dict[str, Any] = {
            "kind": self.kind.value,
            "name": self.name,
            "unit": self.unit,
            "range": [self.start_line, self.end_line],
            "external": self.is_external,
        }
        if self.modifier:
            data["modifier"] = self.modifier
        if self.return_type:
            data["return_type"] = self.return_type
        if self.value_type:
            data["value_type"] = self.value_type
        if self.inherits:
            data["inherits"] = self.inherits
        if self.parameters:
            data["parameters"] = [
                {"name": p.name, "type": p.type, "modifier": p.modifier} for p in self.parameters
            ]
        if self.enum_values:
            data["enum_values"] = list(self.enum_values)
        if self.locals:
            data["locals"] = [
                {"name": v.name, "type": v.type, "line": v.declared_at_line} for v in self.locals
            ]
        if self.usings:
            data["usings"] = list(self.usings)
        if self.documentation.short or self.documentation.long:
            data["documentation"] = {
                "short": self.documentation.short,
                "long": self.documentation.long,
            }
        data["children"] = [child.to_dict() for child in self.children]
        return data


VOID_TYPE = Scope(kind=ScopeKind.VOID, unit="", name="void")
"""Sentinel returned when a type cannot be resolved. Has no members."""


def is_void(scope: Scope) -> bool:
    return scope.kind == ScopeKind.VOID
