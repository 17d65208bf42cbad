"""Tests for suggestion candidate builders."""

from valhalla.completion.candidates import (
    CandidateKind,
    SuggestionCandidate,
    suggest_member,
    suggest_method,
    suggest_property,
)
from valhalla.scopes.models import Documentation, Parameter, Scope, ScopeKind


def _method(name: str = "draw", **kwargs: object) -> Scope:
    return Scope(kind=ScopeKind.METHOD, unit="u.vala", name=name, **kwargs)  # type: ignore


class TestSuggestMethod:
    """Call snippets for methods and constructors."""

    def test_placeholders_keep_parameter_modifiers(self) -> None:
        scope = _method(
            return_type="void",
            parameters=[
                Parameter(name="x", type="int"),
                Parameter(name="r", type="Rect", modifier="out"),
            ],
        )

        candidate = suggest_method(scope)

        assert candidate.snippet == "draw (${1:x}, out ${2:r});$3"
        assert candidate.kind == CandidateKind.METHOD
        assert candidate.left_label == "void"
        assert candidate.description == "The draw method."

    def test_no_parameters(self) -> None:
        assert suggest_method(_method(return_type="int")).snippet == "draw ();$1"

    def test_static_label_and_doc(self) -> None:
        scope = _method(
            "create",
            return_type="Factory",
            modifier="static",
            documentation=Documentation(short="Makes one."),
        )

        candidate = suggest_method(scope)

        assert candidate.left_label == "static Factory"
        assert candidate.description == "Makes one."

    def test_constructor(self) -> None:
        owner = Scope(kind=ScopeKind.CLASS, unit="u.vala", name="Foo")
        ctor = owner.add_child(
            Scope(
                kind=ScopeKind.CONSTRUCTOR,
                unit="u.vala",
                name="Foo.with_size",
                parameters=[Parameter(name="size", type="int")],
            )
        )

        candidate = suggest_method(ctor)

        assert candidate.kind == CandidateKind.CLASS
        assert candidate.snippet == "Foo.with_size (${1:size});$2"
        assert candidate.left_label is None
        assert candidate.description == "Creates a new instance of Foo."


class TestSuggestProperty:
    def test_plain(self) -> None:
        scope = Scope(kind=ScopeKind.PROPERTY, unit="u.vala", name="width", value_type="int")

        candidate = suggest_property(scope)

        assert candidate.text == "width"
        assert candidate.left_label == "int"
        assert candidate.description is None

    def test_static(self) -> None:
        scope = Scope(
            kind=ScopeKind.PROPERTY,
            unit="u.vala",
            name="count",
            value_type="uint",
            modifier="static",
        )

        assert suggest_property(scope).left_label == "(static) uint"


class TestSuggestMember:
    def test_dispatch_by_kind(self) -> None:
        prop = Scope(kind=ScopeKind.PROPERTY, unit="u.vala", name="p", value_type="int")
        block = Scope(kind=ScopeKind.BLOCK, unit="u.vala")

        assert suggest_member(_method()).kind == CandidateKind.METHOD  # type: ignore[union-attr]
        assert suggest_member(prop).kind == CandidateKind.PROPERTY  # type: ignore[union-attr]
        assert suggest_member(block) is None


class TestSuggestionCandidate:
    """Wire shape of a candidate."""

    def test_snippet_candidate_to_dict(self) -> None:
        candidate = SuggestionCandidate(
            display_text="draw",
            kind=CandidateKind.METHOD,
            snippet="draw ();$1",
            left_label="void",
            description="The draw method.",
            sort_key=3,
        )

        assert candidate.to_dict() == {
            "displayText": "draw",
            "type": "method",
            "snippet": "draw ();$1",
            "leftLabel": "void",
            "description": "The draw method.",
            "sortKey": 3,
        }
        assert candidate.insert_text == "draw ();$1"

    def test_text_defaults_to_display_text(self) -> None:
        candidate = SuggestionCandidate(display_text="RED", kind=CandidateKind.VALUE)

        assert candidate.to_dict() == {
            "displayText": "RED",
            "type": "value",
            "text": "RED",
            "sortKey": 0,
        }
        assert candidate.insert_text == ""
