"""Type resolution over the scope registry.

Resolves a type name plus a dotted member path to the Scope of the resulting
type. For example, with ``Point p`` and ``class Point { public Line edge; }``,
``resolve_type("Point", "edge", usings)`` returns the ``Line`` class Scope.

Resolution Algorithm:
1. Normalize the type name and split it into (qualifier, short name).
2. Pass 1 (restricted): enter global roots, the namespace named by the
   qualifier, or (without a qualifier) namespaces listed in ``usings``; look
   for a class/interface/struct named like the short name.
3. Pass 2 (exhaustive): if pass 1 found nothing, enter every namespace.
4. Walk the member path one segment at a time, continuing from each member's
   declared type without a qualifier.

Anything unresolved yields ``VOID_TYPE``; the resolver never raises.
"""

from __future__ import annotations

import re
from collections.abc import Collection

import structlog

from valhalla.scopes.models import CONTAINER_KINDS, TYPE_KINDS, VOID_TYPE, Scope, ScopeKind
from valhalla.scopes.registry import ScopeRegistry

logger = structlog.get_logger()

_CALL_ARGS = re.compile(r"\([^()]*\)")
_GENERIC_ARGS = re.compile(r"<[^<>]*>")
_OWNERSHIP = re.compile(r"\b(?:owned|unowned|weak)\s+")


def erase_calls(expr: str) -> str:
    """Remove call argument lists and whitespace: ``a.b (x, y).c`` -> ``a.b.c``."""
    previous = None
    while previous != expr:
        previous = expr
        expr = _CALL_ARGS.sub("", expr)
    return re.sub(r"\s+", "", expr)


def normalize_type_name(type_name: str) -> str:
    """Strip ownership, nullability, array and generic decorations."""
    name = _OWNERSHIP.sub("", type_name).strip()
    previous = None
    while previous != name:
        previous = name
        name = _GENERIC_ARGS.sub("", name)
    return name.replace("?", "").replace("*", "").split("[", 1)[0].strip()


class TypeResolver:
    """Resolves type references against a registry snapshot.

    Usage::

        resolver = TypeResolver(registry)
        scope = resolver.resolve_type("Point", "edge.start", ["GLib"])
    """

    def __init__(self, registry: ScopeRegistry) -> None:
        self._registry = registry

    def resolve_type(
        self,
        type_ref: str | Scope | None,
        member_path: str,
        usings: Collection[str],
        *,
        roots: list[Scope] | None = None,
    ) -> Scope:
        """Resolve ``type_ref`` and then ``member_path`` inside it.

        Args:
            type_ref: Type name (optionally namespace-qualified) or a type Scope.
            member_path: Dotted member chain, may contain call syntax.
            usings: Namespaces visible without qualification.
            roots: Registry snapshot to search; taken fresh when omitted.

        Returns:
            The resulting type Scope, or ``VOID_TYPE``.
        """
        if roots is None:
            roots = self._registry.all_scopes()
        path = erase_calls(member_path) if member_path else ""

        if isinstance(type_ref, Scope):
            current: Scope = type_ref
        else:
            current = self._lookup(type_ref or "", usings, roots)

        for segment in (s for s in path.split(".") if s):
            if current.kind == ScopeKind.VOID:
                break
            member = _find_member(current, segment)
            if member is None or not member.declared_type:
                return VOID_TYPE
            current = self._lookup(member.declared_type, usings, roots)
        return current

    def _lookup(self, type_name: str, usings: Collection[str], roots: list[Scope]) -> Scope:
        name = normalize_type_name(type_name)
        if not name:
            return VOID_TYPE
        qualifier, _, short_name = name.rpartition(".")

        found = _search(roots, short_name, qualifier or None, usings, exhaustive=False)
        if found is None:
            found = _search(roots, short_name, qualifier or None, usings, exhaustive=True)
            if found is not None:
                logger.debug("type_resolved_exhaustive", type=name, unit=found.unit)
        return found if found is not None else VOID_TYPE


def _find_member(type_scope: Scope, name: str) -> Scope | None:
    for child in type_scope.children:
        if child.name == name and child.kind != ScopeKind.CONSTRUCTOR:
            return child
    return None


def _search(
    roots: list[Scope],
    short_name: str,
    qualifier: str | None,
    usings: Collection[str],
    *,
    exhaustive: bool,
) -> Scope | None:
    """First class/interface/struct named ``short_name`` in an entered container."""
    stack = [(root, True) for root in reversed(roots)]
    while stack:
        scope, visible = stack.pop()
        if scope.kind in TYPE_KINDS:
            if visible and scope.name == short_name:
                return scope
            continue
        if scope.kind not in CONTAINER_KINDS:
            continue
        if not exhaustive and scope.kind == ScopeKind.NAMESPACE:
            # Outer namespaces are still descended into so `using Foo.Bar`
            # reaches a `Bar` nested in `Foo`, but their own types stay hidden.
            qualified = scope.qualified_name
            visible = qualified == qualifier if qualifier else qualified in usings
        stack.extend((child, visible) for child in reversed(scope.children))
    return None
