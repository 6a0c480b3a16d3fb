"""
Global test configuration with support for different test types.
"""

from datetime import datetime
import os

import pytest

from fitscan.core.types import InterpretationContext
from fitscan.pipeline.result_builder import ResultBuilder
from fitscan.tables import FallbackTables, default_tables, tables_from


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_fitscan_env(request, monkeypatch):
    """Ensure a clean FITSCAN_* environment for each test.

    Escape hatch: mark a test with @pytest.mark.allow_env_pollution to keep
    the current environment unchanged.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("FITSCAN_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def fresh_table_cache():
    """Drop cached custom tables so file-based tests never leak into each other."""
    yield
    tables_from.cache_clear()


# --- Shared Fixtures ---


@pytest.fixture
def tables() -> FallbackTables:
    """The bundled fallback tables."""
    return default_tables()


@pytest.fixture
def builder(tables) -> ResultBuilder:
    return ResultBuilder(tables)


@pytest.fixture
def diagnostic_builder(tables) -> ResultBuilder:
    return ResultBuilder(tables, enable_diagnostics=True)


@pytest.fixture
def morning() -> datetime:
    return datetime(2024, 5, 14, 8, 30)


@pytest.fixture
def context(morning) -> InterpretationContext:
    return InterpretationContext(now=morning)


@pytest.fixture
def body_context(morning) -> InterpretationContext:
    return InterpretationContext(
        now=morning, weight_kg=70, height_cm=175, age=30, gender="male"
    )


def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "integration: End-to-end interpretation scenarios with stubbed transports",
        "contract: Invariants every result envelope must satisfy",
        "allow_env_pollution: Keep FITSCAN_* variables for this test",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)
