"""Tests for the analysis session: unit feeding, declaration loading, lifecycle."""

from __future__ import annotations

from pathlib import Path

import pytest

from valhalla.completion.candidates import CandidateKind
from valhalla.completion.context import CompletionRequest
from valhalla.config.models import CompletionConfig, DeclarationsConfig, ValhallaConfig
from valhalla.core.errors import ErrorCode, UnitError
from valhalla.core.logging import get_request_id
from valhalla.session import AnalysisSession, SessionState

TIMER_VAPI = (
    "namespace GLib {\n"
    "    public class Timer {\n"
    "        public Timer ();\n"
    "        public void start ();\n"
    "        public double elapsed (out ulong microseconds = null);\n"
    "    }\n"
    "}\n"
)

MAIN = "void main () {\n    GLib.Timer t = new GLib.Timer ();\n    t.\n}\n"


def _small_units(limit: int) -> ValhallaConfig:
    return ValhallaConfig(declarations=DeclarationsConfig(max_unit_bytes=limit))


class TestFeed:
    """feed_unit / feed_path."""

    def test_feed_unit_registers_live_scopes(self) -> None:
        session = AnalysisSession()

        roots = session.feed_unit("main.vala", MAIN)

        assert session.registry.scopes_for("main.vala") == roots
        assert roots[0].children[0].name == "main"
        assert not roots[0].is_external

    def test_refeed_replaces(self) -> None:
        session = AnalysisSession()
        session.feed_unit("main.vala", "class A {}\n")

        session.feed_unit("main.vala", "class B {}\n")

        (root,) = session.registry.scopes_for("main.vala")
        assert [c.name for c in root.children] == ["B"]

    def test_given_oversize_text_when_feed_then_too_large(self) -> None:
        # Given
        session = AnalysisSession(_small_units(8))

        # When
        with pytest.raises(UnitError) as exc_info:
            session.feed_unit("main.vala", MAIN)

        # Then
        assert exc_info.value.code == ErrorCode.UNIT_TOO_LARGE
        assert exc_info.value.details["limit"] == 8
        assert "main.vala" not in session.registry

    def test_feed_path_detects_declarations(self, tmp_path: Path) -> None:
        vapi = tmp_path / "glib-2.0.vapi"
        vapi.write_text(TIMER_VAPI)
        session = AnalysisSession()

        (root,) = session.feed_path(vapi)

        assert root.is_external
        assert session.registry.units(external=True) == [str(vapi)]

    def test_feed_path_explicit_origin(self, tmp_path: Path) -> None:
        source = tmp_path / "lib.vapi"
        source.write_text(TIMER_VAPI)
        session = AnalysisSession()

        (root,) = session.feed_path(source, external=False)

        assert not root.is_external

    def test_feed_path_unknown_suffix_still_parsed(self, tmp_path: Path) -> None:
        source = tmp_path / "main.txt"
        source.write_text("class A {}\n")
        session = AnalysisSession()

        (root,) = session.feed_path(source)

        assert not root.is_external
        assert root.children[0].name == "A"

    def test_feed_path_missing_file(self, tmp_path: Path) -> None:
        session = AnalysisSession()

        with pytest.raises(UnitError) as exc_info:
            session.feed_path(tmp_path / "missing.vala")

        assert exc_info.value.code == ErrorCode.UNIT_UNREADABLE
        assert exc_info.value.retryable

    def test_feed_path_oversize_file(self, tmp_path: Path) -> None:
        source = tmp_path / "big.vala"
        source.write_text(MAIN)
        session = AnalysisSession(_small_units(8))

        with pytest.raises(UnitError) as exc_info:
            session.feed_path(source)

        assert exc_info.value.code == ErrorCode.UNIT_TOO_LARGE


class TestLoadDeclarations:
    """Bulk .vapi loading."""

    @pytest.mark.asyncio
    async def test_loads_only_declaration_files(self, tmp_path: Path) -> None:
        (tmp_path / "gtk.vapi").write_text("namespace Gtk {\n}\n")
        (tmp_path / "glib.vapi").write_text(TIMER_VAPI)
        (tmp_path / "notes.txt").write_text("class Nope {}\n")
        session = AnalysisSession()

        loaded = await session.load_declarations(tmp_path)

        assert loaded == 2
        assert session.registry.units(external=True) == [
            str(tmp_path / "glib.vapi"),
            str(tmp_path / "gtk.vapi"),
        ]

    @pytest.mark.asyncio
    async def test_directory_from_config(self, tmp_path: Path) -> None:
        (tmp_path / "glib.vapi").write_text(TIMER_VAPI)
        config = ValhallaConfig(declarations=DeclarationsConfig(directory=str(tmp_path)))

        assert await AnalysisSession(config).load_declarations() == 1

    @pytest.mark.asyncio
    async def test_no_directory_configured(self) -> None:
        assert await AnalysisSession().load_declarations() == 0

    @pytest.mark.asyncio
    async def test_missing_directory_loads_nothing(self, tmp_path: Path) -> None:
        session = AnalysisSession()

        loaded = await session.load_declarations(tmp_path / "nope")

        assert loaded == 0
        assert len(session.registry) == 0

    @pytest.mark.asyncio
    async def test_oversize_declaration_skipped(self, tmp_path: Path) -> None:
        (tmp_path / "big.vapi").write_text(TIMER_VAPI)
        (tmp_path / "small.vapi").write_text("namespace A {\n}\n")
        session = AnalysisSession(_small_units(32))

        loaded = await session.load_declarations(tmp_path)

        assert loaded == 1
        assert session.registry.units(external=True) == [str(tmp_path / "small.vapi")]


class TestLifecycle:
    """start / ready / complete / close."""

    @pytest.mark.asyncio
    async def test_start_is_idempotent_and_ready_waits(self, tmp_path: Path) -> None:
        (tmp_path / "glib.vapi").write_text(TIMER_VAPI)
        session = AnalysisSession()
        assert session.state == SessionState.IDLE

        task = session.start(tmp_path)

        assert session.start() is task
        assert session.state == SessionState.LOADING
        assert await session.ready() == 1
        assert session.state == SessionState.READY

    @pytest.mark.asyncio
    async def test_given_declarations_when_complete_then_library_members(
        self, tmp_path: Path
    ) -> None:
        # Given
        (tmp_path / "glib.vapi").write_text(TIMER_VAPI)
        session = AnalysisSession()
        session.start(tmp_path)
        session.feed_unit("main.vala", MAIN)

        # When
        result = await session.complete(
            CompletionRequest(unit_id="main.vala", row=2, column=6, line="    t.", prefix="")
        )

        # Then
        assert [c.display_text for c in result] == ["start", "elapsed"]
        assert result[1].snippet == "elapsed (out ${1:microseconds});$2"
        assert get_request_id() is None

    @pytest.mark.asyncio
    async def test_custom_keyword_table(self, tmp_path: Path) -> None:
        table = tmp_path / "keywords.yaml"
        table.write_text("- name: zap\n  scopes: [method]\n")
        config = ValhallaConfig(completion=CompletionConfig(keywords_path=str(table)))
        session = AnalysisSession(config)
        session.feed_unit("main.vala", "void main () {\n    za\n}\n")

        result = await session.complete(
            CompletionRequest(unit_id="main.vala", row=1, column=6, line="    za")
        )

        assert [(c.display_text, c.kind) for c in result] == [("zap", CandidateKind.KEYWORD)]
        assert result[0].snippet == "zap "

    @pytest.mark.asyncio
    async def test_close_cancels_pending_load(self, tmp_path: Path) -> None:
        session = AnalysisSession()
        task = session.start(tmp_path)

        await session.close()

        assert task.cancelled()

    @pytest.mark.asyncio
    async def test_close_without_start(self) -> None:
        await AnalysisSession().close()
