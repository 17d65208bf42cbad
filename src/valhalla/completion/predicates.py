"""Context predicates run at every Scope of a completion traversal.

Each predicate is a pure function ``(scope, ctx, state) -> list[SuggestionCandidate]``.
``RULES`` fixes their order; ``PREDICATES`` is the same table keyed by the
scope kind a predicate applies to, which is what the engine dispatches on.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from valhalla.completion.candidates import (
    CandidateKind,
    SuggestionCandidate,
    suggest_member,
    suggest_method,
)
from valhalla.completion.context import CompletionContext
from valhalla.completion.resolver import TypeResolver
from valhalla.scopes.models import Scope, ScopeKind

ALL_KINDS = frozenset(kind for kind in ScopeKind if kind != ScopeKind.VOID)
_CANDIDATE_KINDS = frozenset(kind.value for kind in CandidateKind)


@dataclass
class TraversalState:
    """Per-request facts established while walking the registry.

    ``enclosing_type`` and ``current_scope`` are set by the engine before the
    predicates of a Scope run, so predicates only ever read them.
    """

    resolver: TypeResolver
    roots: list[Scope]
    enclosing_type: Scope | None = None
    current_scope: Scope | None = None


Predicate = Callable[[Scope, CompletionContext, TraversalState], list[SuggestionCandidate]]


def _in_cursor_unit(scope: Scope, ctx: CompletionContext) -> bool:
    return not scope.is_external and scope.unit == ctx.unit_id and scope.contains(ctx.row)


def _innermost_at_cursor(scope: Scope, ctx: CompletionContext) -> bool:
    if not _in_cursor_unit(scope, ctx):
        return False
    return not any(child.contains(ctx.row) for child in scope.children)


def _enclosing_chain(scope: Scope) -> list[Scope]:
    """``scope`` followed by its ancestors, innermost first."""
    chain = []
    node: Scope | None = scope
    while node is not None:
        chain.append(node)
        node = node.parent
    return chain


def _kind_of(scope: Scope) -> CandidateKind:
    if scope.kind.value in _CANDIDATE_KINDS:
        return CandidateKind(scope.kind.value)
    return CandidateKind.CLASS


# =============================================================================
# Predicates
# =============================================================================


def namespace_import(
    scope: Scope, ctx: CompletionContext, state: TraversalState
) -> list[SuggestionCandidate]:
    """``using Gt`` -> ``Gtk;``. Nested namespaces are offered with their dotted name."""
    if not ctx.in_using:
        return []
    name = scope.qualified_name
    if not name or ctx.prefix not in name:
        return []
    return [
        SuggestionCandidate(
            display_text=name,
            kind=CandidateKind.IMPORT,
            text=f"{name};",
            description=f"The {name} namespace.",
        )
    ]


def type_name(
    scope: Scope, ctx: CompletionContext, state: TraversalState
) -> list[SuggestionCandidate]:
    if not ctx.wants_type_name or not scope.name or not scope.name.startswith(ctx.trim_line):
        return []
    return [
        SuggestionCandidate(
            display_text=scope.name,
            kind=_kind_of(scope),
            text=scope.name,
            description=scope.documentation.short or f"The {scope.name} {scope.kind.value}.",
        )
    ]


def base_type(
    scope: Scope, ctx: CompletionContext, state: TraversalState
) -> list[SuggestionCandidate]:
    """Classes and interfaces after ``class X :``."""
    if not ctx.wants_base_type or not scope.name or not ctx.name_matches(scope.name):
        return []
    return [SuggestionCandidate(display_text=scope.name, kind=_kind_of(scope), text=scope.name)]


def struct_name(
    scope: Scope, ctx: CompletionContext, state: TraversalState
) -> list[SuggestionCandidate]:
    if not ctx.wants_struct_name or not scope.name or not ctx.name_matches(scope.name):
        return []
    return [
        SuggestionCandidate(
            display_text=scope.name,
            kind=CandidateKind.STRUCT,
            text=f"{scope.name} ",
            description=scope.documentation.short or f"The {scope.name} struct.",
        )
    ]


def struct_literal(
    scope: Scope, ctx: CompletionContext, state: TraversalState
) -> list[SuggestionCandidate]:
    """``Value v = `` -> ``Value ($1);``."""
    if not scope.name or ctx.wants_struct_literal_of != scope.name:
        return []
    return [
        SuggestionCandidate(
            display_text=scope.name,
            kind=CandidateKind.STRUCT,
            snippet=f"{scope.name} ($1);",
        )
    ]


def constructors(
    scope: Scope, ctx: CompletionContext, state: TraversalState
) -> list[SuggestionCandidate]:
    """Constructor snippets after ``Type var = new ``.

    A class qualifies when it is named ``Type`` or when the last dotted
    component of one of its base types is ``Type``.
    """
    wanted = ctx.new_type
    if wanted is None or not scope.name:
        return []
    bases = {base.rsplit(".", 1)[-1] for base in scope.inherits_list}
    if scope.name != wanted and wanted not in bases:
        return []
    result = []
    for child in scope.children:
        if child.kind != ScopeKind.CONSTRUCTOR:
            continue
        candidate = suggest_method(child)
        if ctx.prefix in candidate.display_text:
            result.append(candidate)
    return result


def local_variables(
    scope: Scope, ctx: CompletionContext, state: TraversalState
) -> list[SuggestionCandidate]:
    """Locals visible at the cursor, most recently declared first.

    Runs once, at the innermost Scope holding the cursor, and collects the
    locals of that Scope and every Scope around it. An inner declaration
    hides an outer one of the same name.
    """
    if not _innermost_at_cursor(scope, ctx) or ctx.after_bare_dot:
        return []
    visible = [var for node in _enclosing_chain(scope) for var in node.locals]
    seen: set[str] = set()
    result = []
    for var in sorted(visible, key=lambda v: v.declared_at_line, reverse=True):
        if var.name in seen:
            continue
        if ctx.prefix:
            if not var.name.startswith(ctx.prefix):
                continue
        elif var.declared_at_line > ctx.row:
            continue
        seen.add(var.name)
        result.append(
            SuggestionCandidate(
                display_text=var.name,
                kind=CandidateKind.VARIABLE,
                text=var.name,
                left_label=var.type,
                description=var.short_doc,
            )
        )
    return result


def member_access(
    scope: Scope, ctx: CompletionContext, state: TraversalState
) -> list[SuggestionCandidate]:
    """Members of the type a dotted receiver chain evaluates to.

    Runs at the innermost Scope holding the cursor. The first link is the
    nearest local of that name, searched outwards, or ``this`` for the
    enclosing class. Direct ``this.`` members are left to ``this_member``.
    """
    if not _innermost_at_cursor(scope, ctx):
        return []
    chain = ctx.member_chain()
    if not chain:
        return []
    head, rest = chain[0], ".".join(chain[1:])

    if head == "this":
        if state.enclosing_type is None or not rest:
            return []
        target = state.resolver.resolve_type(
            state.enclosing_type, rest, ctx.usings, roots=state.roots
        )
    else:
        var = next(
            (v for node in _enclosing_chain(scope) for v in node.locals if v.name == head),
            None,
        )
        if var is None:
            return []
        target = state.resolver.resolve_type(var.type, rest, ctx.usings, roots=state.roots)

    result = []
    for member in target.children:
        if not member.name or not member.name.startswith(ctx.prefix):
            continue
        candidate = suggest_member(member)
        if candidate is not None:
            result.append(candidate)
    return result


def this_member(
    scope: Scope, ctx: CompletionContext, state: TraversalState
) -> list[SuggestionCandidate]:
    """Members of the enclosing class after ``this.``."""
    enclosing = state.enclosing_type
    if enclosing is None or scope.parent is not enclosing:
        return []
    if scope.kind == ScopeKind.CONSTRUCTOR or not scope.name:
        return []
    if not ctx.line.endswith(f"this.{ctx.prefix}") or ctx.prefix not in scope.name:
        return []
    candidate = suggest_member(scope)
    if candidate is None:
        candidate = SuggestionCandidate(
            display_text=scope.name, kind=_kind_of(scope), text=scope.name
        )
    return [candidate]


def static_member(
    scope: Scope, ctx: CompletionContext, state: TraversalState
) -> list[SuggestionCandidate]:
    """Global functions, functions of imported namespaces and ``Class.static_method``."""
    parent = scope.parent
    if parent is None or not scope.name:
        return []
    if parent.kind == ScopeKind.GLOBAL:
        visible = ctx.name_matches(scope.name)
    elif parent.kind == ScopeKind.NAMESPACE:
        visible = parent.qualified_name in ctx.usings and ctx.name_matches(scope.name)
    elif parent.kind == ScopeKind.CLASS and parent.name:
        visible = (
            scope.is_static
            and ctx.ends_with_access(parent.name)
            and scope.name.startswith(ctx.prefix)
        )
    else:
        visible = False
    return [suggest_method(scope)] if visible else []


def enum_names_and_values(
    scope: Scope, ctx: CompletionContext, state: TraversalState
) -> list[SuggestionCandidate]:
    """The enum's name, or its values after ``Enum.``."""
    if not scope.name:
        return []
    if ctx.ends_with_access(scope.name):
        return [
            SuggestionCandidate(display_text=value, kind=CandidateKind.VALUE, text=value)
            for value in scope.enum_values
            if value.startswith(ctx.prefix)
        ]
    if ctx.name_matches(scope.name):
        return [
            SuggestionCandidate(
                display_text=scope.name,
                kind=CandidateKind.ENUM,
                text=scope.name,
                description=scope.documentation.short or f"The {scope.name} enum.",
            )
        ]
    return []


# =============================================================================
# Dispatch table
# =============================================================================


@dataclass(frozen=True)
class Rule:
    """A predicate, the scope kinds it runs on and whether its output goes first."""

    predicate: Predicate
    kinds: frozenset[ScopeKind]
    prepend: bool = False


_CLASS_LIKE = frozenset({ScopeKind.CLASS, ScopeKind.INTERFACE})

RULES: tuple[Rule, ...] = (
    Rule(namespace_import, frozenset({ScopeKind.NAMESPACE})),
    Rule(type_name, _CLASS_LIKE),
    Rule(base_type, _CLASS_LIKE),
    Rule(struct_name, frozenset({ScopeKind.STRUCT})),
    Rule(struct_literal, frozenset({ScopeKind.STRUCT})),
    Rule(constructors, frozenset({ScopeKind.CLASS})),
    Rule(local_variables, ALL_KINDS),
    Rule(member_access, ALL_KINDS),
    Rule(this_member, ALL_KINDS, prepend=True),
    Rule(static_member, frozenset({ScopeKind.METHOD})),
    Rule(enum_names_and_values, frozenset({ScopeKind.ENUM})),
)

PREDICATES: dict[ScopeKind, tuple[Rule, ...]] = {
    kind: tuple(rule for rule in RULES if kind in rule.kinds) for kind in ALL_KINDS
}
