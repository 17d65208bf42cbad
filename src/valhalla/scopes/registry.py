"""Process-wide store of parsed units.

The registry keeps two groups of units: read-only interface declarations
(.vapi) and live-edited sources. ``all_scopes()`` enumerates declarations
first, then live units, each group in first-insertion order. Completion
predicates that take the first matching Scope therefore prefer library
symbols over in-progress edits.

Replacing a unit is a single dict assignment, and ``all_scopes()`` returns a
fresh list, so a traversal that snapshots once never sees a half-replaced
unit.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from valhalla.core.errors import InternalError
from valhalla.scopes.models import Scope, ScopeKind

logger = structlog.get_logger()


class ScopeRegistry:
    """Holds the scope forest of every known unit.

    Usage::

        registry = ScopeRegistry()
        registry.upsert_unit(path, build(text, path))
        for root in registry.all_scopes():
            ...
    """

    def __init__(self) -> None:
        self._external: dict[str, list[Scope]] = {}
        self._live: dict[str, list[Scope]] = {}

    def upsert_unit(self, unit_id: str, scopes: Iterable[Scope]) -> None:
        """Replace every Scope previously registered for ``unit_id``.

        The group (declaration or live) comes from the scopes themselves, so a
        live reparse never touches a declaration unit of the same id, and vice
        versa.

        Raises:
            InternalError: If a scope belongs to another unit or the scopes
                mix declaration and live origins.
        """
        new_scopes = list(scopes)
        for scope in new_scopes:
            if scope.unit != unit_id:
                raise InternalError.unexpected(
                    "scope registered under a foreign unit",
                    unit=unit_id,
                    scope_unit=scope.unit,
                )
        origins = {scope.is_external for scope in new_scopes}
        if len(origins) > 1:
            raise InternalError.unexpected("unit mixes declaration and live scopes", unit=unit_id)

        external = origins.pop() if origins else unit_id in self._external
        group = self._external if external else self._live
        replaced = unit_id in group
        group[unit_id] = new_scopes
        logger.debug(
            "unit_registered",
            unit=unit_id,
            external=external,
            replaced=replaced,
            scopes=len(new_scopes),
        )

    def remove_unit(self, unit_id: str, *, external: bool = False) -> bool:
        """Forget a unit. Returns True if it was registered."""
        group = self._external if external else self._live
        return group.pop(unit_id, None) is not None

    def all_scopes(self) -> list[Scope]:
        """Snapshot of every top-level Scope: declarations first, then live units."""
        result: list[Scope] = []
        for scopes in self._external.values():
            result.extend(scopes)
        for scopes in self._live.values():
            result.extend(scopes)
        return result

    def scopes_for(self, unit_id: str, *, external: bool = False) -> list[Scope]:
        group = self._external if external else self._live
        return list(group.get(unit_id, []))

    def usings_for(self, unit_id: str) -> list[str]:
        """Namespaces named by the ``using`` directives of a live unit, in order."""
        usings: list[str] = []
        for scope in self._live.get(unit_id, []):
            if scope.kind == ScopeKind.GLOBAL:
                usings.extend(scope.usings)
        return usings

    def units(self, *, external: bool | None = None) -> list[str]:
        if external is None:
            return [*self._external, *self._live]
        return list(self._external if external else self._live)

    def clear(self) -> None:
        self._external.clear()
        self._live.clear()

    def __len__(self) -> int:
        return len(self._external) + len(self._live)

    def __contains__(self, unit_id: object) -> bool:
        return unit_id in self._external or unit_id in self._live
