"""Scope tree: model, builder and registry."""

from valhalla.scopes.builder import build
from valhalla.scopes.models import (
    VOID_TYPE,
    Documentation,
    LocalVariable,
    Parameter,
    Scope,
    ScopeKind,
    is_void,
)
from valhalla.scopes.registry import ScopeRegistry

__all__ = [
    "build",
    "Documentation",
    "LocalVariable",
    "Parameter",
    "Scope",
    "ScopeKind",
    "ScopeRegistry",
    "VOID_TYPE",
    "is_void",
]
