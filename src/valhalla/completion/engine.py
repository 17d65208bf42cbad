"""Completion engine: walks the registry and ranks candidates for a cursor.

Flow of one request:
1. Build the cursor context (prefix, trimmed line, visible namespaces).
2. Snapshot ``registry.all_scopes()`` once and walk it depth first with an
   explicit stack, running the predicates registered for each Scope's kind.
3. Prepend keywords valid in the innermost Scope at the cursor.
4. Drop enum names when enum values were offered, move exact matches to the
   front and number the result.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence

import structlog

from valhalla.completion.candidates import CandidateKind, SuggestionCandidate
from valhalla.completion.context import CompletionContext, CompletionRequest
from valhalla.completion.keywords import DEFAULT_KEYWORDS, Keyword
from valhalla.completion.predicates import PREDICATES, TraversalState
from valhalla.completion.resolver import TypeResolver
from valhalla.config.models import CompletionConfig
from valhalla.scopes.models import Scope, ScopeKind
from valhalla.scopes.registry import ScopeRegistry

logger = structlog.get_logger()


class CompletionEngine:
    """Produces ordered suggestions for a completion request.

    Usage::

        engine = CompletionEngine(registry)
        candidates = await engine.complete(
            CompletionRequest(unit_id=path, row=12, column=6, line="    p.", prefix="")
        )
    """

    def __init__(
        self,
        registry: ScopeRegistry,
        resolver: TypeResolver | None = None,
        keywords: Sequence[Keyword] = DEFAULT_KEYWORDS,
        config: CompletionConfig | None = None,
    ) -> None:
        self._registry = registry
        self._resolver = resolver or TypeResolver(registry)
        self._keywords = tuple(keywords)
        self._config = config or CompletionConfig()

    def usings_for(self, unit_id: str) -> list[str]:
        """Default namespaces followed by the unit's ``using`` directives."""
        return [*self._config.default_usings, *self._registry.usings_for(unit_id)]

    async def complete(self, request: CompletionRequest) -> list[SuggestionCandidate]:
        """Suggestions for ``request``, best first.

        On a blank line the result depends on ``empty_line_policy``: with
        ``pending`` the returned awaitable never completes (callers bound it
        with ``asyncio.wait_for``); with ``empty`` it completes with ``[]``.
        """
        ctx = CompletionContext.from_request(request, self.usings_for(request.unit_id))
        if ctx.is_empty:
            logger.debug(
                "completion_empty_line",
                unit=request.unit_id,
                row=request.row,
                policy=self._config.empty_line_policy,
            )
            if self._config.empty_line_policy == "empty":
                return []
            await asyncio.get_running_loop().create_future()

        start = time.perf_counter()
        candidates = self.collect(ctx)
        logger.debug(
            "completion_resolved",
            unit=request.unit_id,
            row=request.row,
            prefix=ctx.prefix,
            candidates=len(candidates),
            elapsed_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return candidates

    def collect(self, ctx: CompletionContext) -> list[SuggestionCandidate]:
        """Run the traversal and ranking for an already-built context."""
        roots = self._registry.all_scopes()
        state = TraversalState(resolver=self._resolver, roots=roots)
        front: list[SuggestionCandidate] = []
        found: list[SuggestionCandidate] = []

        stack: list[Scope] = list(reversed(roots))
        while stack:
            scope = stack.pop()
            self._track_cursor(scope, ctx, state)
            for rule in PREDICATES.get(scope.kind, ()):
                produced = rule.predicate(scope, ctx, state)
                (front if rule.prepend else found).extend(produced)
            stack.extend(reversed(scope.children))

        candidates = [*self._keyword_candidates(ctx, state.current_scope), *front, *found]

        if any(c.kind == CandidateKind.VALUE for c in candidates):
            candidates = [c for c in candidates if c.kind != CandidateKind.ENUM]
        if ctx.prefix:
            candidates.sort(key=lambda c: c.display_text != ctx.prefix)
        for index, candidate in enumerate(candidates):
            candidate.sort_key = index
        return candidates

    @staticmethod
    def _track_cursor(scope: Scope, ctx: CompletionContext, state: TraversalState) -> None:
        if scope.is_external or scope.unit != ctx.unit_id or not scope.contains(ctx.row):
            return
        if state.enclosing_type is None and scope.kind == ScopeKind.CLASS:
            state.enclosing_type = scope
        # Pre-order with disjoint siblings: the last containing Scope is the deepest.
        state.current_scope = scope

    def _keyword_candidates(
        self, ctx: CompletionContext, current: Scope | None
    ) -> list[SuggestionCandidate]:
        if current is None or ctx.after_bare_dot:
            return []
        return [
            SuggestionCandidate(
                display_text=kw.name,
                kind=CandidateKind.KEYWORD,
                snippet=kw.snippet,
                description=f"The {kw.name} keyword.",
            )
            for kw in self._keywords
            if kw.applies_to(current.kind) and kw.name.startswith(ctx.prefix)
        ]
