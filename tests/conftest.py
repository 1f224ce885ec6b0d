from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.fake_engine import FakeEngine
from tests._fixtures.source_tree import SourceTreeBuilder


@pytest.fixture
def source_tree(tmp_path: Path) -> SourceTreeBuilder:
    """Provide a reusable source root builder rooted at the pytest tmp_path."""
    return SourceTreeBuilder(tmp_path)


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()
