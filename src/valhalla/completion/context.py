"""Completion request and the per-request cursor context derived from it."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_IDENTIFIER_TAIL = re.compile(r"\w*$")
_NEW_INSTANCE = re.compile(r"([\w.]+) [\w.]+ = new ")
_CALL_ARGS = re.compile(r"\([^()]*\)")
_DOT_SPACING = re.compile(r"\s*\.\s*")


def normalize_prefix(prefix: str | None, line: str) -> str:
    """Identifier characters at the end of ``prefix`` (or of ``line`` when None).

    Editors report the character before the cursor when no word is being
    typed, so a prefix of ``"."`` or ``" "`` becomes ``""``.
    """
    source = line if prefix is None else prefix
    match = _IDENTIFIER_TAIL.search(source)
    return match.group(0) if match else ""


@dataclass(frozen=True)
class CompletionRequest:
    """Cursor position and the text before it.

    ``line`` holds the current line up to the cursor. ``prefix`` is the word
    being typed; when omitted it is taken from the end of ``line``.
    """

    unit_id: str
    row: int
    column: int
    line: str
    prefix: str | None = None

    @property
    def normalized_prefix(self) -> str:
        return normalize_prefix(self.prefix, self.line)


@dataclass(frozen=True)
class CompletionContext:
    """Everything predicates need to know about the cursor, computed once."""

    unit_id: str
    row: int
    line: str
    prefix: str
    usings: tuple[str, ...] = ()
    trim_line: str = field(init=False)
    new_type: str | None = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "trim_line", self.line.strip())
        match = _NEW_INSTANCE.search(self.line)
        object.__setattr__(self, "new_type", match.group(1) if match else None)

    @classmethod
    def from_request(cls, request: CompletionRequest, usings: list[str]) -> CompletionContext:
        return cls(
            unit_id=request.unit_id,
            row=request.row,
            line=request.line,
            prefix=request.normalized_prefix,
            usings=tuple(dict.fromkeys(usings)),
        )

    @property
    def is_empty(self) -> bool:
        return not self.trim_line

    @property
    def after_bare_dot(self) -> bool:
        """A dot with nothing typed after it: only members make sense."""
        return not self.prefix and self.trim_line.endswith(".")

    @property
    def in_using(self) -> bool:
        return self.trim_line.startswith("using ")

    @property
    def wants_type_name(self) -> bool:
        """The whole line is a capitalized word being typed."""
        return bool(self.prefix) and self.trim_line == self.prefix and self.prefix[0].isupper()

    @property
    def wants_struct_name(self) -> bool:
        return bool(self.prefix) and self.trim_line == self.prefix

    @property
    def wants_base_type(self) -> bool:
        t = self.trim_line
        return ("class " in t or "interface " in t) and (" : " in t or t.endswith(" :"))

    @property
    def wants_struct_literal_of(self) -> str | None:
        """Declared type of ``Struct v = `` (optionally with the prefix typed)."""
        suffix = " =" + (f" {self.prefix}" if self.prefix else "")
        if not self.trim_line.endswith(suffix):
            return None
        return self.trim_line.split(" ", 1)[0]

    def name_matches(self, name: str | None) -> bool:
        """Plain-name filter: starts with the prefix, never after a bare dot."""
        if not name or self.after_bare_dot:
            return False
        return name.startswith(self.prefix)

    def ends_with_access(self, receiver: str) -> bool:
        """True when the line ends with ``receiver.`` plus the prefix."""
        return self.trim_line.endswith(f"{receiver}.{self.prefix}")

    def member_chain(self) -> list[str] | None:
        """Dotted receiver chain before the final ``.prefix``.

        ``x = foo (bar.baz (1).ed`` with prefix ``ed`` yields ``["bar", "baz"]``.
        Returns None when the line does not end with a member access.
        """
        tail = f".{self.prefix}"
        line = self.trim_line
        if not line.endswith(tail):
            return None

        depth = 0
        start = 0
        for i in range(len(line) - 1, -1, -1):
            ch = line[i]
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
            if depth == 1 or ch == "=":
                start = i + 1
                break

        expr = line[start : len(line) - len(tail)]
        previous = None
        while previous != expr:
            previous = expr
            expr = _CALL_ARGS.sub("", expr)
        expr = _DOT_SPACING.sub(".", expr).strip()
        if not expr:
            return None
        # `return p.` -> `p`
        expr = expr.split()[-1]
        parts = expr.split(".")
        if not all(parts):
            return None
        return parts
