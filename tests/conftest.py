"""Shared fixtures and helpers for tests."""

from pathlib import Path

import pytest

from content_graph.core.decoding import DecodeContext, decode_locales
from content_graph.core.localization import LocaleGraph
from content_graph.core.registry import ContentTypeRegistry
from content_graph.db import InMemoryPersistence
from tests.content_models import Cat, Dog
from tests.payloads import LOCALES

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def locale_graph() -> LocaleGraph:
    return LocaleGraph(decode_locales(LOCALES))


@pytest.fixture
def registry() -> ContentTypeRegistry:
    return ContentTypeRegistry([Cat, Dog])


@pytest.fixture
def ctx(locale_graph: LocaleGraph, registry: ContentTypeRegistry) -> DecodeContext:
    """A single-locale decode pass in the default locale."""
    return DecodeContext(locale_graph=locale_graph, registry=registry, implied_locale="en-US")


@pytest.fixture
def sync_ctx(locale_graph: LocaleGraph, registry: ContentTypeRegistry) -> DecodeContext:
    return DecodeContext(locale_graph=locale_graph, registry=registry)


@pytest.fixture
def in_memory_persistence() -> InMemoryPersistence:
    return InMemoryPersistence()
