"""Language keyword table for completion.

Each keyword lists the scope kinds it is offered in. The completion engine
prepends every keyword whose kinds include the kind of the innermost scope at
the cursor and whose name starts with the typed prefix.

A custom table is a YAML list::

    - name: foreach
      scopes: [method, constructor, block]
      snippet: "foreach (${1:var} ${2:item} in ${3:collection}) {\\n\\t$4\\n}"
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from valhalla.core.errors import ConfigError
from valhalla.scopes.models import ScopeKind

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class Keyword:
    """A keyword with the scope kinds it applies to and its insertion snippet."""

    name: str
    scopes: frozenset[ScopeKind]
    snippet: str

    def applies_to(self, kind: ScopeKind) -> bool:
        return kind in self.scopes


_TOP = frozenset({ScopeKind.GLOBAL, ScopeKind.NAMESPACE})
_TYPES = frozenset({ScopeKind.CLASS, ScopeKind.INTERFACE, ScopeKind.STRUCT})
_DECLS = _TOP | _TYPES
_BODIES = frozenset({ScopeKind.METHOD, ScopeKind.CONSTRUCTOR, ScopeKind.BLOCK})


def _kw(name: str, scopes: frozenset[ScopeKind], snippet: str | None = None) -> Keyword:
    return Keyword(name=name, scopes=scopes, snippet=snippet if snippet is not None else f"{name} ")


DEFAULT_KEYWORDS: tuple[Keyword, ...] = (
    # Declarations
    _kw("namespace", _TOP, "namespace ${1:Name} {\n\t$2\n}"),
    _kw("class", _DECLS, "class ${1:Name} : ${2:Object} {\n\t$3\n}"),
    _kw("interface", _DECLS, "interface ${1:Name} {\n\t$2\n}"),
    _kw("struct", _DECLS, "struct ${1:Name} {\n\t$2\n}"),
    _kw("enum", _DECLS, "enum ${1:Name} {\n\t$2\n}"),
    _kw("errordomain", _DECLS, "errordomain ${1:Name} {\n\t$2\n}"),
    _kw("delegate", _DECLS),
    _kw("signal", _TYPES),
    _kw("construct", _TYPES, "construct {\n\t$1\n}"),
    # Modifiers
    _kw("public", _DECLS),
    _kw("private", _DECLS),
    _kw("protected", _TYPES),
    _kw("internal", _DECLS),
    _kw("static", _DECLS),
    _kw("abstract", _DECLS),
    _kw("virtual", _TYPES),
    _kw("override", _TYPES),
    _kw("async", _DECLS),
    _kw("const", _DECLS | _BODIES),
    _kw("owned", _DECLS | _BODIES),
    _kw("unowned", _DECLS | _BODIES),
    _kw("weak", _TYPES),
    # Property accessors
    _kw("get", frozenset({ScopeKind.PROPERTY}), "get;"),
    _kw("set", frozenset({ScopeKind.PROPERTY}), "set;"),
    _kw("default", frozenset({ScopeKind.PROPERTY}), "default = ${1:value};"),
    # Statements
    _kw("if", _BODIES, "if (${1:condition}) {\n\t$2\n}"),
    _kw("else", _BODIES, "else {\n\t$1\n}"),
    _kw("switch", _BODIES, "switch (${1:value}) {\n\tcase ${2:label}:\n\t\t$3\n\t\tbreak;\n}"),
    _kw("case", _BODIES, "case ${1:label}:"),
    _kw("for", _BODIES, "for (${1:int} ${2:i} = 0; $2 < ${3:count}; $2++) {\n\t$4\n}"),
    _kw("foreach", _BODIES, "foreach (${1:var} ${2:item} in ${3:collection}) {\n\t$4\n}"),
    _kw("while", _BODIES, "while (${1:condition}) {\n\t$2\n}"),
    _kw("do", _BODIES, "do {\n\t$1\n} while (${2:condition});"),
    _kw("break", _BODIES, "break;"),
    _kw("continue", _BODIES, "continue;"),
    _kw("return", _BODIES),
    _kw("yield", _BODIES),
    _kw("var", _BODIES, "var ${1:name} = $2;"),
    _kw("new", _BODIES),
    _kw("this", _BODIES),
    _kw("base", _BODIES),
    _kw("try", _BODIES, "try {\n\t$1\n} catch (${2:Error} ${3:e}) {\n\t$4\n}"),
    _kw("catch", _BODIES, "catch (${1:Error} ${2:e}) {\n\t$3\n}"),
    _kw("finally", _BODIES, "finally {\n\t$1\n}"),
    _kw("throw", _BODIES, "throw new ${1:Error} ($2);"),
    _kw("lock", _BODIES, "lock (${1:resource}) {\n\t$2\n}"),
    _kw("delete", _BODIES, "delete ${1:pointer};"),
    _kw("null", _BODIES, "null"),
    _kw("true", _BODIES, "true"),
    _kw("false", _BODIES, "false"),
)


class _KeywordEntry(BaseModel):
    name: str = Field(min_length=1)
    scopes: list[str] = Field(min_length=1)
    snippet: str | None = None

    @field_validator("scopes")
    @classmethod
    def validate_scopes(cls, v: list[str]) -> list[str]:
        known = {kind.value for kind in ScopeKind if kind != ScopeKind.VOID}
        unknown = [s for s in v if s not in known]
        if unknown:
            raise ValueError(f"unknown scope kinds: {', '.join(unknown)}")
        return v


def load_keywords(path: str | Path) -> tuple[Keyword, ...]:
    """Read a keyword table from YAML.

    Raises:
        ConfigError: If the file is missing, is not a YAML list, or an entry
            is invalid (including unknown scope kinds).
    """
    path = Path(path).expanduser()
    if not path.exists():
        raise ConfigError.file_not_found(str(path))
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, list):
        raise ConfigError.parse_error(str(path), "keyword table must be a list")

    keywords: list[Keyword] = []
    for index, raw in enumerate(data):
        try:
            entry = _KeywordEntry.model_validate(raw)
        except ValidationError as e:
            first = e.errors()[0]
            raise ConfigError.invalid_value(f"keywords[{index}]", raw, first["msg"]) from e
        keywords.append(
            _kw(entry.name, frozenset(ScopeKind(s) for s in entry.scopes), entry.snippet)
        )

    logger.debug("keywords_loaded", path=str(path), count=len(keywords))
    return tuple(keywords)
