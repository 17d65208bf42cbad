"""Line-oriented scope builder for Vala source text.

Turns one unit of source text into a tree of ``Scope`` nodes. This is a
regex scanner, not a grammar: it cuts each logical line into statements,
classifies the declaration each statement starts with (if any), then walks
the statement's braces to open and close scopes.

Design:
- Comments and string/char literals are removed before matching, so braces
  inside them never affect nesting. ``/** */`` comments are kept as pending
  documentation for the next declaration.
- Declaration headers own the first ``{`` of their statement. Headers without a
  brace and without ``;`` wait for a ``{`` at the start of the next line.
- Every other ``{`` opens an anonymous ``block`` scope.
- Anything unrecognized is skipped. Unclosed scopes run to end of unit and
  stray ``}`` are ignored, so the builder never fails on mid-edit text.

Usage::

    roots = build(text, "/home/me/src/main.vala")
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import structlog

from valhalla.scopes.models import (
    MEMBER_HOST_KINDS,
    Documentation,
    LocalVariable,
    Parameter,
    Scope,
    ScopeKind,
)

logger = structlog.get_logger()

# =============================================================================
# Patterns
# =============================================================================

_MODIFIER_WORDS = (
    "public",
    "private",
    "protected",
    "internal",
    "static",
    "abstract",
    "virtual",
    "override",
    "async",
    "extern",
    "inline",
    "sealed",
    "new",
    "const",
    "unowned",
    "owned",
    "weak",
    "signal",
    "delegate",
    "dynamic",
    "partial",
)
_VISIBILITY = frozenset({"public", "private", "protected", "internal"})
_MOD = r"(?:(?:" + "|".join(_MODIFIER_WORDS) + r")\s+)*"
_TYPE = r"[A-Za-z_][\w.]*(?:\s*<[^;{}()=]*>)?\**\??(?:\[[,\s]*\])*\??"

# Words that can sit where a type would in a statement but never are one.
_NON_TYPES = frozenset(
    {
        "return",
        "new",
        "throw",
        "delete",
        "else",
        "yield",
        "case",
        "goto",
        "typeof",
        "sizeof",
        "await",
        "lock",
        "if",
        "while",
        "for",
        "foreach",
        "switch",
        "catch",
        "using",
        "do",
        "try",
        "break",
        "continue",
        "default",
        "namespace",
        "class",
        "interface",
        "struct",
        "enum",
        "errordomain",
        "this",
        "base",
        "in",
        "is",
        "as",
        *_MODIFIER_WORDS,
    }
)

_USING = re.compile(r"^\s*using\s+([\w.\s,]+?)\s*;")
_LEADING_ATTRIBUTES = re.compile(r"^\s*(?:\[[^\]]*\]\s*)+")
_NAMESPACE = re.compile(rf"^\s*{_MOD}namespace\s+(?P<name>[\w.]+)\s*(?=\{{|$)")
_TYPE_DECL = re.compile(
    rf"^\s*(?P<mods>{_MOD})(?P<kind>class|interface|struct|enum|errordomain)\s+"
    r"(?P<name>[A-Za-z_]\w*)(?=\s*(?:[:<{]|$))\s*(?:<[^{:]*>)?\s*"
    r"(?::\s*(?P<inherits>[^{;]+?))?\s*(?=\{|$)"
)
_PARAMS = r"[^{};]*?"
_SIGNATURE_TAIL = r"(?:throws\s+[\w.,\s]+?)?\s*(?:(?P<end>[{;]).*)?$"
_METHOD = re.compile(
    rf"^\s*(?P<mods>{_MOD})(?P<type>{_TYPE})\s+(?P<name>[A-Za-z_]\w*)\s*(?:<[^>(]*>)?\s*"
    rf"\((?P<params>{_PARAMS})\)\s*{_SIGNATURE_TAIL}"
)
_PROPERTY = re.compile(
    rf"^\s*(?P<mods>{_MOD})(?P<type>{_TYPE})\s+(?P<name>[A-Za-z_]\w*)\s*\{{"
)
_FIELD = re.compile(
    rf"^\s*(?P<mods>{_MOD})(?P<type>{_TYPE})\s+(?P<name>[A-Za-z_]\w*)\s*(?:\[[^\]]*\])?\s*"
    r"(?:=\s*(?P<init>.*))?;\s*$"
)
_LOCAL = re.compile(
    rf"^\s*(?:(?:const|unowned|owned|weak|static)\s+)*(?P<type>{_TYPE})\s+"
    r"(?P<name>[A-Za-z_]\w*)\s*=\s*(?P<init>[^;]*);"
)
_LOCAL_LIST = re.compile(
    rf"^\s*(?:(?:const|unowned|owned|weak|static)\s+)*(?P<type>{_TYPE})\s+"
    r"(?P<names>[A-Za-z_]\w*(?:\s*,\s*[A-Za-z_]\w*)*)\s*;"
)
_FOREACH = re.compile(
    rf"^\s*foreach\s*\(\s*(?:(?:unowned|owned|weak)\s+)?(?P<type>{_TYPE})\s+"
    r"(?P<name>[A-Za-z_]\w*)\s+in\s"
)
_FOR = re.compile(rf"^\s*for\s*\(\s*(?P<type>{_TYPE})\s+(?P<name>[A-Za-z_]\w*)\s*=")
_CATCH = re.compile(
    rf"^\s*(?:\}}\s*)?catch\s*\(\s*(?P<type>{_TYPE})\s+(?P<name>[A-Za-z_]\w*)\s*\)"
)
# A line that begins a signature whose parameter list may continue below.
_SIGNATURE_START = re.compile(rf"^\s*{_MOD}(?:{_TYPE}\s+)?[A-Za-z_][\w.]*\s*(?:<[^>(]*>)?\s*\(")

_NEW_EXPR = re.compile(r"^new\s+(?P<type>[\w.]+(?:\s*<[^;{}()]*>)?)")
_CAST_EXPR = re.compile(r"^\((?P<type>[A-Z][\w.]*)\)")
_AS_EXPR = re.compile(r"\bas\s+(?P<type>[\w.]+)\s*$")

_MAX_JOINED_LINES = 16


# =============================================================================
# Comment / literal stripping
# =============================================================================


@dataclass
class _Cleaner:
    """Removes comments and literal contents, line by line.

    Keeps block-comment and verbatim-string state across lines. Closed
    ``/** */`` comments are left in ``pending_doc`` for the builder.
    """

    in_comment: bool = False
    in_verbatim: bool = False
    comment_is_doc: bool = False
    comment_lines: list[str] = field(default_factory=list)
    pending_doc: Documentation | None = None

    def clean(self, raw: str) -> tuple[str, str | None]:
        """Return (code, trailing ``//`` comment text) for one raw line."""
        out: list[str] = []
        trailing: str | None = None
        i = 0
        n = len(raw)
        while i < n:
            if self.in_comment:
                end = raw.find("*/", i)
                if end < 0:
                    self.comment_lines.append(raw[i:])
                    break
                self.comment_lines.append(raw[i:end])
                self.in_comment = False
                if self.comment_is_doc:
                    self.pending_doc = _parse_doc(self.comment_lines)
                i = end + 2
                continue
            if self.in_verbatim:
                end = raw.find('"""', i)
                if end < 0:
                    break
                self.in_verbatim = False
                out.append('""')
                i = end + 3
                continue
            if raw.startswith("//", i):
                trailing = raw[i + 2 :].strip() or None
                break
            if raw.startswith("/*", i):
                self.in_comment = True
                self.comment_is_doc = raw.startswith("/**", i) and not raw.startswith("/**/", i)
                self.comment_lines = []
                i += 3 if self.comment_is_doc else 2
                continue
            if raw.startswith('"""', i):
                self.in_verbatim = True
                i += 3
                continue
            ch = raw[i]
            if ch in "\"'":
                i = _skip_literal(raw, i)
                out.append(ch * 2)
                continue
            out.append(ch)
            i += 1
        return "".join(out), trailing

    def take_doc(self) -> Documentation | None:
        doc, self.pending_doc = self.pending_doc, None
        return doc


def _skip_literal(raw: str, start: int) -> int:
    """Index just past the literal opened at ``start`` (or end of line)."""
    quote = raw[start]
    i = start + 1
    while i < len(raw):
        if raw[i] == "\\":
            i += 2
            continue
        if raw[i] == quote:
            return i + 1
        i += 1
    return len(raw)


def _parse_doc(lines: list[str]) -> Documentation | None:
    text_lines = [line.strip().lstrip("*").strip() for line in lines]
    paragraphs: list[list[str]] = [[]]
    for line in text_lines:
        if not line:
            if paragraphs[-1]:
                paragraphs.append([])
            continue
        paragraphs[-1].append(line)
    paragraphs = [p for p in paragraphs if p]
    if not paragraphs:
        return None
    short_lines = [line for line in paragraphs[0] if not line.startswith("@")]
    short = " ".join(short_lines) or None
    long = "\n".join(line for line in text_lines if line) or None
    return Documentation(short=short, long=long)


# =============================================================================
# Declaration parsing helpers
# =============================================================================


def _split_top_level(text: str, sep: str = ",") -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch in "(<[":
            depth += 1
        elif ch in ")>]":
            depth = max(0, depth - 1)
        if ch == sep and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def _split_statements(code: str) -> list[str]:
    """Cut a line after every `;` and `{` and around every `}` outside parentheses.

    Braces opened after an `=` (array initializers, lambdas) stay inside their
    statement.
    """
    segments: list[str] = []
    start = 0
    depth = 0
    nested = 0
    assigning = False
    for i, ch in enumerate(code):
        if ch in "([":
            depth += 1
        elif ch in ")]":
            depth = max(0, depth - 1)
        elif depth:
            continue
        elif ch == "=":
            assigning = True
        elif ch == "{" and assigning:
            nested += 1
        elif ch == "}" and nested:
            nested -= 1
        elif ch == "}":
            segments.extend((code[start:i], "}"))
            start = i + 1
            assigning = False
        elif ch == "{" or (ch == ";" and not nested):
            segments.append(code[start : i + 1])
            start = i + 1
            assigning = False
    segments.append(code[start:])
    return [s for s in segments if s.strip()]


def _parse_parameters(text: str) -> list[Parameter]:
    params: list[Parameter] = []
    for raw in _split_top_level(text):
        raw = _LEADING_ATTRIBUTES.sub("", raw)
        raw = _split_top_level(raw, "=")[0] if "=" in raw else raw
        tokens = raw.split()
        if not tokens or tokens[0] == "...":
            continue
        modifier = None
        if tokens[0] in ("out", "ref", "params", "owned", "unowned") and len(tokens) > 2:
            modifier = tokens.pop(0)
        if len(tokens) < 2:
            continue
        params.append(Parameter(name=tokens[-1], type=" ".join(tokens[:-1]), modifier=modifier))
    return params


def _pick_modifier(mods: str) -> str | None:
    words = mods.split()
    if "static" in words:
        return "static"
    for word in words:
        if word not in _VISIBILITY:
            return word
    return None


def _infer_type(declared: str, init: str | None) -> str:
    """Declared type, or a best guess from the initializer for ``var``."""
    if declared != "var" or not init:
        return declared
    init = init.strip()
    if m := _NEW_EXPR.match(init):
        return re.sub(r"\s+", "", m.group("type"))
    if m := _CAST_EXPR.match(init):
        return m.group("type")
    if m := _AS_EXPR.search(init):
        return m.group("type")
    if init.startswith('""'):
        return "string"
    if init in ("true", "false"):
        return "bool"
    if re.fullmatch(r"-?\d+", init):
        return "int"
    if re.fullmatch(r"-?\d+\.\d*[fF]?", init):
        return "double"
    return declared


def _is_type_word(type_text: str) -> bool:
    return type_text.split("<", 1)[0].strip() not in _NON_TYPES


# =============================================================================
# Builder
# =============================================================================


@dataclass
class _Header:
    """A declaration waiting to own the next ``{``."""

    scope: Scope
    locals: list[LocalVariable] = field(default_factory=list)


@dataclass
class _Line:
    """One logical line: a physical line, or a signature joined across lines."""

    row: int
    end_row: int
    code: str
    trailing: str | None
    doc: Documentation | None


class _ScopeBuilder:
    """Single-use builder for one unit."""

    def __init__(self, text: str, unit: str, external: bool) -> None:
        self._lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
        self._unit = unit
        self._external = external
        self._root = Scope(
            kind=ScopeKind.GLOBAL,
            unit=unit,
            start_line=0,
            end_line=max(len(self._lines), 1),
            is_external=external,
        )
        self._stack: list[Scope] = [self._root]
        self._pending_header: _Header | None = None
        self._pending_block_locals: list[LocalVariable] = []
        self._pending_doc: Documentation | None = None
        self._closed_on_line: list[Scope] = []
        self._enums_reading: set[int] = set()
        self._enum_text: list[str] = []

    def build(self) -> Scope:
        for line in self._logical_lines():
            self._process(line)
        # Unclosed scopes run to end of unit.
        for scope in self._stack[1:]:
            scope.end_line = len(self._lines)
        return self._root

    def _logical_lines(self) -> list[_Line]:
        cleaner = _Cleaner()
        cleaned: list[tuple[str, str | None, Documentation | None]] = []
        for raw in self._lines:
            code, trailing = cleaner.clean(raw)
            cleaned.append((code, trailing, cleaner.take_doc()))

        result: list[_Line] = []
        row = 0
        while row < len(cleaned):
            code, trailing, doc = cleaned[row]
            end_row = self._signature_end(cleaned, row)
            if end_row > row:
                code = " ".join(part[0].strip() for part in cleaned[row : end_row + 1])
            result.append(_Line(row=row, end_row=end_row, code=code, trailing=trailing, doc=doc))
            row = end_row + 1
        return result

    def _signature_end(
        self, cleaned: list[tuple[str, str | None, Documentation | None]], row: int
    ) -> int:
        """Last row of a signature whose parameter list spans several lines."""
        code = cleaned[row][0]
        depth = code.count("(") - code.count(")")
        if depth <= 0 or "{" in code or not _SIGNATURE_START.match(code):
            return row
        end_row = row
        while depth > 0:
            end_row += 1
            if end_row >= len(cleaned) or end_row - row > _MAX_JOINED_LINES:
                return row
            part = cleaned[end_row][0]
            depth += part.count("(") - part.count(")")
            if depth > 0 and ("{" in part or ";" in part):
                return row
        return end_row

    # -------------------------------------------------------------------------
    # Per-line processing
    # -------------------------------------------------------------------------

    def _process(self, line: _Line) -> None:
        if line.doc is not None:
            self._pending_doc = line.doc
        self._closed_on_line = []
        # Members after a header's `{` belong to the scope it opens.
        for segment in _split_statements(line.code):
            self._process_statement(segment, line)

    def _process_statement(self, segment: str, line: _Line) -> None:
        code = _LEADING_ATTRIBUTES.sub("", segment)
        stripped = code.strip()
        if not stripped:
            # Blank, comment-only or attribute-only: documentation carries over.
            return
        doc, self._pending_doc = self._pending_doc, None

        if not stripped.startswith("{"):
            self._pending_header = None
            self._pending_block_locals = []

        top = self._stack[-1]
        header: _Header | None = None

        if id(top) in self._enums_reading:
            pass
        elif m := _USING.match(code):
            self._root.usings.extend(n.strip() for n in m.group(1).split(",") if n.strip())
            return
        elif top.kind in MEMBER_HOST_KINDS:
            header, leaf = self._classify_member(top, code, line, doc or Documentation())
            if leaf is not None:
                top.add_child(leaf)
                if code.count("{") == code.count("}"):
                    return
        else:
            self._classify_body(top, code, line, doc)

        if not self._walk_braces(code, line, header) and header is not None:
            # Header with its brace on a following line.
            self._pending_header = header

    def _classify_member(
        self, top: Scope, code: str, line: _Line, doc: Documentation
    ) -> tuple[_Header | None, Scope | None]:
        """Classify a line directly inside a namespace or type body.

        Returns a header that will own the line's (or the next line's) first
        brace, or a leaf member that ends with ``;``.
        """
        if m := _NAMESPACE.match(code):
            return _Header(self._new(ScopeKind.NAMESPACE, m.group("name"), line, doc)), None

        if m := _TYPE_DECL.match(code):
            kind = m.group("kind")
            scope_kind = ScopeKind.ENUM if kind == "errordomain" else ScopeKind(kind)
            scope = self._new(scope_kind, m.group("name"), line, doc)
            scope.modifier = _pick_modifier(m.group("mods"))
            if inherits := m.group("inherits"):
                scope.inherits = re.sub(r"\s+", " ", inherits).strip()
            return _Header(scope), None

        if top.kind in (ScopeKind.CLASS, ScopeKind.STRUCT) and top.name:
            ctor = re.match(
                rf"^\s*(?P<mods>{_MOD})(?P<name>{re.escape(top.name)}(?:\.\w+)?)\s*"
                rf"\((?P<params>{_PARAMS})\)\s*{_SIGNATURE_TAIL}",
                code,
            )
            if ctor:
                scope = self._new(ScopeKind.CONSTRUCTOR, ctor.group("name"), line, doc)
                scope.modifier = _pick_modifier(ctor.group("mods"))
                scope.parameters = _parse_parameters(ctor.group("params"))
                return self._signature(scope, ctor.group("end"))

        if (m := _METHOD.match(code)) and _is_type_word(m.group("type")):
            scope = self._new(ScopeKind.METHOD, m.group("name"), line, doc)
            scope.modifier = _pick_modifier(m.group("mods"))
            scope.return_type = m.group("type").strip()
            scope.parameters = _parse_parameters(m.group("params"))
            return self._signature(scope, m.group("end"))

        if (m := _PROPERTY.match(code)) and _is_type_word(m.group("type")):
            scope = self._new(ScopeKind.PROPERTY, m.group("name"), line, doc)
            scope.modifier = _pick_modifier(m.group("mods"))
            scope.value_type = m.group("type").strip()
            return _Header(scope), None

        if (m := _FIELD.match(code)) and _is_type_word(m.group("type")):
            scope = self._new(ScopeKind.PROPERTY, m.group("name"), line, doc)
            scope.modifier = _pick_modifier(m.group("mods"))
            scope.value_type = m.group("type").strip()
            return None, scope

        return None, None

    @staticmethod
    def _signature(scope: Scope, end: str | None) -> tuple[_Header | None, Scope | None]:
        if end == ";":
            return None, scope
        params_as_locals = [
            LocalVariable(name=p.name, type=p.type, declared_at_line=scope.start_line)
            for p in scope.parameters
        ]
        return _Header(scope, params_as_locals), None

    def _classify_body(
        self, top: Scope, code: str, line: _Line, doc: Documentation | None
    ) -> None:
        """Collect local declarations inside a method, constructor or block body."""
        short_doc = line.trailing or (doc.short if doc else None)

        loop_var = _FOREACH.match(code) or _FOR.match(code) or _CATCH.match(code)
        if loop_var and _is_type_word(loop_var.group("type")):
            # Belongs to the block this line opens.
            self._pending_block_locals = [
                LocalVariable(
                    name=loop_var.group("name"),
                    type=loop_var.group("type").strip(),
                    declared_at_line=line.row,
                    short_doc=short_doc,
                )
            ]
            return

        if (m := _LOCAL.match(code)) and _is_type_word(m.group("type")):
            top.locals.append(
                LocalVariable(
                    name=m.group("name"),
                    type=_infer_type(m.group("type").strip(), m.group("init")),
                    declared_at_line=line.row,
                    short_doc=short_doc,
                )
            )
        elif (m := _LOCAL_LIST.match(code)) and _is_type_word(m.group("type")):
            for name in m.group("names").split(","):
                top.locals.append(
                    LocalVariable(
                        name=name.strip(),
                        type=m.group("type").strip(),
                        declared_at_line=line.row,
                        short_doc=short_doc,
                    )
                )

    def _new(self, kind: ScopeKind, name: str, line: _Line, doc: Documentation) -> Scope:
        return Scope(
            kind=kind,
            unit=self._unit,
            name=name,
            start_line=line.row,
            end_line=line.end_row + 1,
            is_external=self._external,
            documentation=doc,
        )

    # -------------------------------------------------------------------------
    # Braces
    # -------------------------------------------------------------------------

    def _walk_braces(self, code: str, line: _Line, header: _Header | None) -> bool:
        """Open and close scopes for every brace of a statement.

        Returns True if ``header`` took the statement's first opening brace.
        """
        header_used = False
        for ch in code:
            top = self._stack[-1]
            reading_enum = id(top) in self._enums_reading
            if ch == "{":
                if reading_enum:
                    self._flush_enum(top)
                    self._enums_reading.discard(id(top))
                if header is not None and not header_used:
                    self._open(header.scope, line, header.locals)
                    header_used = True
                elif self._pending_header is not None:
                    pending, self._pending_header = self._pending_header, None
                    self._open(pending.scope, line, pending.locals)
                else:
                    block = Scope(
                        kind=ScopeKind.BLOCK,
                        unit=self._unit,
                        start_line=line.row,
                        is_external=self._external,
                    )
                    self._open(block, line, self._pending_block_locals)
                    self._pending_block_locals = []
            elif ch == "}":
                if reading_enum:
                    self._flush_enum(top)
                self._close(line)
            elif reading_enum:
                if ch == ";":
                    self._flush_enum(top)
                    self._enums_reading.discard(id(top))
                else:
                    self._enum_text.append(ch)
        top = self._stack[-1]
        if id(top) in self._enums_reading:
            self._flush_enum(top)
        return header_used

    def _open(self, scope: Scope, line: _Line, locals_: list[LocalVariable]) -> None:
        parent = self._stack[-1]
        # `} else {`: the sibling closed on this line gives the line up, unless
        # it started on this line too and would be left empty.
        for sibling in self._closed_on_line:
            if sibling.parent is not parent:
                continue
            if sibling.start_line < scope.start_line < sibling.end_line:
                sibling.end_line = scope.start_line
        scope.locals.extend(locals_)
        parent.add_child(scope)
        self._stack.append(scope)
        if scope.kind == ScopeKind.ENUM:
            self._enums_reading.add(id(scope))
            self._enum_text = []

    def _close(self, line: _Line) -> None:
        if len(self._stack) <= 1:
            return
        scope = self._stack.pop()
        scope.end_line = line.end_row + 1
        self._enums_reading.discard(id(scope))
        self._closed_on_line.append(scope)

    def _flush_enum(self, scope: Scope) -> None:
        text = "".join(self._enum_text)
        self._enum_text = []
        for piece in text.split(","):
            piece = _LEADING_ATTRIBUTES.sub("", piece)
            m = re.match(r"\s*([A-Za-z_]\w*)", piece)
            if m and m.group(1) not in scope.enum_values:
                scope.enum_values.append(m.group(1))


def build(source_text: str, unit_id: str, *, external: bool = False) -> list[Scope]:
    """Parse one unit into its scope tree.

    Args:
        source_text: Full text of the unit.
        unit_id: File path or synthetic name identifying the unit.
        external: True for read-only interface-declaration units.

    Returns:
        A single-element list holding the unit's ``global`` root.
    """
    root = _ScopeBuilder(source_text, unit_id, external).build()
    logger.debug(
        "unit_parsed",
        unit=unit_id,
        external=external,
        lines=root.end_line,
        scopes=sum(1 for _ in root.walk()) - 1,
    )
    return [root]
