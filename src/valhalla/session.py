"""Analysis session: wires builder, registry, resolver and completion engine.

The session owns the registry. Interface-declaration units are loaded by an
asynchronous initialization task; ``complete()`` waits for it so the first
request already sees library symbols.

Usage::

    session = AnalysisSession(load_config())
    session.start()
    session.feed_unit("main.vala", text)
    candidates = await session.complete(request)
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Sequence
from enum import Enum
from pathlib import Path

import structlog

from valhalla.completion.candidates import SuggestionCandidate
from valhalla.completion.context import CompletionRequest
from valhalla.completion.engine import CompletionEngine
from valhalla.completion.keywords import DEFAULT_KEYWORDS, Keyword, load_keywords
from valhalla.completion.resolver import TypeResolver
from valhalla.config.models import ValhallaConfig
from valhalla.core.errors import DeclarationError, ErrorCode, UnitError
from valhalla.core.logging import request_context
from valhalla.scopes.builder import build
from valhalla.scopes.models import Scope
from valhalla.scopes.registry import ScopeRegistry

logger = structlog.get_logger()


class SessionState(Enum):
    """Declaration-loading state."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"


class AnalysisSession:
    """Entry point for feeding units and requesting completions."""

    def __init__(
        self,
        config: ValhallaConfig | None = None,
        registry: ScopeRegistry | None = None,
        keywords: Sequence[Keyword] | None = None,
    ) -> None:
        self.config = config or ValhallaConfig()
        self.registry = registry if registry is not None else ScopeRegistry()
        self.resolver = TypeResolver(self.registry)
        if keywords is None:
            path = self.config.completion.keywords_path
            keywords = load_keywords(path) if path else DEFAULT_KEYWORDS
        self.engine = CompletionEngine(
            self.registry,
            self.resolver,
            keywords,
            self.config.completion,
        )
        self._state = SessionState.IDLE
        self._load_task: asyncio.Task[int] | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    # -------------------------------------------------------------------------
    # Units
    # -------------------------------------------------------------------------

    def feed_unit(self, unit_id: str, text: str, *, external: bool = False) -> list[Scope]:
        """Parse ``text`` and replace the unit's scopes in the registry.

        Raises:
            UnitError: If the text exceeds ``declarations.max_unit_bytes``.
        """
        limit = self.config.declarations.max_unit_bytes
        size = len(text.encode("utf-8"))
        if size > limit:
            raise UnitError.too_large(unit_id, size, limit)
        scopes = build(text, unit_id, external=external)
        self.registry.upsert_unit(unit_id, scopes)
        return scopes

    def feed_path(self, path: str | Path, *, external: bool | None = None) -> list[Scope]:
        """Read a file and feed it. Declaration files are detected by suffix.

        Raises:
            UnitError: If the file cannot be read or is too large.
        """
        path = Path(path)
        if external is None:
            external = path.suffix == self.config.declarations.extension
        if not external and path.suffix not in self.config.completion.source_extensions:
            logger.warning("unit_unrecognized_extension", path=str(path), suffix=path.suffix)
        text = self._read_unit(path)
        return self.feed_unit(str(path), text, external=external)

    def _read_unit(self, path: Path) -> str:
        limit = self.config.declarations.max_unit_bytes
        try:
            size = path.stat().st_size
            if size > limit:
                raise UnitError.too_large(str(path), size, limit)
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise UnitError.unreadable(str(path), str(e)) from e

    # -------------------------------------------------------------------------
    # Declarations
    # -------------------------------------------------------------------------

    def _list_declarations(self, directory: Path) -> list[Path]:
        if not directory.is_dir():
            raise DeclarationError.directory_not_found(str(directory))
        extension = self.config.declarations.extension
        try:
            return sorted(p for p in directory.iterdir() if p.suffix == extension and p.is_file())
        except OSError as e:
            raise DeclarationError.unreadable(str(directory), str(e)) from e

    async def load_declarations(self, directory: str | Path | None = None) -> int:
        """Feed every declaration file of ``directory`` as an external unit.

        Falls back to ``declarations.directory``. A missing or unreadable
        directory is logged and leaves the registry without declarations;
        unreadable or oversize files are logged and skipped.

        Returns:
            Number of units loaded.
        """
        if directory is None:
            directory = self.config.declarations.directory
        if directory is None:
            logger.debug("declarations_disabled")
            return 0

        root = Path(directory).expanduser()
        try:
            paths = await asyncio.to_thread(self._list_declarations, root)
        except DeclarationError as e:
            event = (
                "declarations_dir_missing"
                if e.code == ErrorCode.DECLARATIONS_DIR_NOT_FOUND
                else "declarations_dir_unreadable"
            )
            logger.warning(event, **e.details)
            return 0

        loaded = 0
        for path in paths:
            try:
                text = await asyncio.to_thread(self._read_unit, path)
                self.feed_unit(str(path), text, external=True)
            except UnitError as e:
                logger.warning("declaration_skipped", error=e.error_name, **e.details)
                continue
            loaded += 1

        logger.info("declarations_loaded", directory=str(root), units=loaded)
        return loaded

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self, directory: str | Path | None = None) -> asyncio.Task[int]:
        """Schedule the declaration load on the running loop (idempotent)."""
        if self._load_task is None:
            self._state = SessionState.LOADING
            self._load_task = asyncio.create_task(self.load_declarations(directory))
            self._load_task.add_done_callback(self._on_loaded)
        return self._load_task

    def _on_loaded(self, task: asyncio.Task[int]) -> None:
        self._state = SessionState.READY

    async def ready(self) -> int:
        """Wait for the declaration load; starts it when nobody did."""
        return await self.start()

    async def close(self) -> None:
        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._load_task

    async def complete(self, request: CompletionRequest) -> list[SuggestionCandidate]:
        """Suggestions for ``request`` once declarations are loaded."""
        with request_context():
            await self.ready()
            return await self.engine.complete(request)
