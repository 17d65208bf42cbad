"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import sys
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of valhalla modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("valhalla"):
        del sys.modules[module_name]

from valhalla.completion.engine import CompletionEngine  # noqa: E402
from valhalla.completion.resolver import TypeResolver  # noqa: E402
from valhalla.config.models import CompletionConfig  # noqa: E402
from valhalla.scopes.builder import build  # noqa: E402
from valhalla.scopes.registry import ScopeRegistry  # noqa: E402


@pytest.fixture
def registry() -> ScopeRegistry:
    return ScopeRegistry()


@pytest.fixture
def feed(registry: ScopeRegistry):  # type: ignore[no-untyped-def]
    """Parse text into the registry: ``feed("main.vala", text, external=False)``."""

    def _feed(unit_id: str, text: str, *, external: bool = False) -> None:
        registry.upsert_unit(unit_id, build(text, unit_id, external=external))

    return _feed


@pytest.fixture
def resolver(registry: ScopeRegistry) -> TypeResolver:
    return TypeResolver(registry)


@pytest.fixture
def engine(registry: ScopeRegistry, resolver: TypeResolver) -> CompletionEngine:
    return CompletionEngine(registry, resolver, config=CompletionConfig())
