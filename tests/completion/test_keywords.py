"""Tests for the keyword table."""

from pathlib import Path

import pytest

from valhalla.completion.keywords import DEFAULT_KEYWORDS, load_keywords
from valhalla.core.errors import ConfigError, ErrorCode
from valhalla.scopes.models import ScopeKind


class TestDefaultKeywords:
    def test_names_are_unique(self) -> None:
        names = [kw.name for kw in DEFAULT_KEYWORDS]
        assert len(names) == len(set(names))

    def test_statements_only_in_bodies(self) -> None:
        foreach = next(kw for kw in DEFAULT_KEYWORDS if kw.name == "foreach")

        assert foreach.applies_to(ScopeKind.METHOD)
        assert foreach.applies_to(ScopeKind.BLOCK)
        assert not foreach.applies_to(ScopeKind.CLASS)
        assert "${1:var}" in foreach.snippet

    def test_declarations_at_top_level(self) -> None:
        namespace = next(kw for kw in DEFAULT_KEYWORDS if kw.name == "namespace")

        assert namespace.applies_to(ScopeKind.GLOBAL)
        assert not namespace.applies_to(ScopeKind.METHOD)

    def test_no_keyword_for_void(self) -> None:
        assert not any(kw.applies_to(ScopeKind.VOID) for kw in DEFAULT_KEYWORDS)


class TestLoadKeywords:
    """YAML keyword tables."""

    def test_given_valid_table_when_load_then_keywords(self, tmp_path: Path) -> None:
        # Given
        path = tmp_path / "keywords.yaml"
        path.write_text(
            "- name: foreach\n"
            "  scopes: [method, block]\n"
            "  snippet: 'foreach ($1) {}'\n"
            "- name: public\n"
            "  scopes: [class]\n"
        )

        # When
        keywords = load_keywords(path)

        # Then
        assert [kw.name for kw in keywords] == ["foreach", "public"]
        assert keywords[0].scopes == frozenset({ScopeKind.METHOD, ScopeKind.BLOCK})
        assert keywords[0].snippet == "foreach ($1) {}"
        assert keywords[1].snippet == "public "

    def test_unknown_scope_kind(self, tmp_path: Path) -> None:
        path = tmp_path / "keywords.yaml"
        path.write_text("- name: x\n  scopes: [lambda]\n")

        with pytest.raises(ConfigError) as exc_info:
            load_keywords(path)

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE
        assert exc_info.value.details["field"] == "keywords[0]"

    def test_void_is_not_a_keyword_scope(self, tmp_path: Path) -> None:
        path = tmp_path / "keywords.yaml"
        path.write_text("- name: x\n  scopes: [void]\n")

        with pytest.raises(ConfigError):
            load_keywords(path)

    def test_top_level_must_be_list(self, tmp_path: Path) -> None:
        path = tmp_path / "keywords.yaml"
        path.write_text("name: x\n")

        with pytest.raises(ConfigError) as exc_info:
            load_keywords(path)

        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "keywords.yaml"
        path.write_text("- name: [unclosed\n")

        with pytest.raises(ConfigError) as exc_info:
            load_keywords(path)

        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_keywords(tmp_path / "nope.yaml")

        assert exc_info.value.code == ErrorCode.CONFIG_FILE_NOT_FOUND
