"""Root conftest.py for the pwrtest monorepo.

Puts every package's ``src`` directory on the import path, registers the
shared markers, and marks tests that use mocks or patched modules with
``uses_mock``.
"""

from __future__ import annotations

import ast
import inspect
import sys
import textwrap
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from _pytest.config import Config
    from _pytest.nodes import Item


PROJECT_ROOT = Path(__file__).parent
for pkg_dir in PROJECT_ROOT.glob("pwrtest-*/src"):
    if str(pkg_dir) not in sys.path:
        sys.path.insert(0, str(pkg_dir))


def pytest_configure(config: Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "uses_mock: Test uses mocking (auto-detected or manually marked)",
    )
    config.addinivalue_line(
        "markers",
        "integration: Integration test requiring a real WT3000",
    )
    config.addinivalue_line(
        "markers",
        "slow: Slow-running test",
    )


class MockDetector(ast.NodeVisitor):
    """AST visitor that spots unittest.mock usage in a test function."""

    MOCK_NAMES = frozenset({"MagicMock", "Mock", "patch", "create_autospec", "PropertyMock"})

    def __init__(self) -> None:
        self.uses_mock = False

    def visit_Call(self, node: ast.Call) -> None:
        func = node.func
        name = func.id if isinstance(func, ast.Name) else getattr(func, "attr", None)
        if name in self.MOCK_NAMES:
            self.uses_mock = True
        self.generic_visit(node)

    def visit_Attribute(self, node: ast.Attribute) -> None:
        # patch.dict(...), patch.object(...)
        if isinstance(node.value, ast.Name) and node.value.id == "patch":
            self.uses_mock = True
        self.generic_visit(node)


def _uses_mock(item: Item) -> bool:
    obj = getattr(item, "obj", None)
    if obj is None:
        return False
    try:
        source = inspect.getsource(obj)
    except (OSError, TypeError):
        return False
    try:
        tree = ast.parse(textwrap.dedent(source))
    except SyntaxError:
        return False
    detector = MockDetector()
    detector.visit(tree)
    return detector.uses_mock


def pytest_collection_modifyitems(config: Config, items: list[Item]) -> None:
    """Add the ``uses_mock`` marker to tests that patch or mock."""
    for item in items:
        if item.get_closest_marker("uses_mock") is None and _uses_mock(item):
            item.add_marker(pytest.mark.uses_mock)


def pytest_report_header(config: Config) -> list[str]:
    """Add the suite name to the pytest header."""
    return ["pwrtest monorepo test suite"]
