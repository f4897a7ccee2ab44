"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from flashdrill.content.models import Card, CardMetadata, Rating  # noqa: E402
from flashdrill.content.parser import LessonTextParser  # noqa: E402
from flashdrill.delivery.card_store import CardRepository, LessonLibrary  # noqa: E402
from flashdrill.delivery.state_store import MemoryStateStore  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)
        elif "smoke" in path:
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def sample_text():
    """Two small lessons in the lesson text format."""
    return (
        "=== Pozdravy\n"
        "ahoj = hello\n"
        "dobrý deň [doobeda] = good morning\n"
        "dobrý deň [poobede] = good evening [from noon]\n"
        "\n"
        "=== Deutsch #de-DE# [Grundlagen]\n"
        "jeden = eins\n"
        "dva = zwei\n"
    )


@pytest.fixture
def parser():
    return LessonTextParser(default_language="en-GB")


@pytest.fixture
def store():
    return MemoryStateStore()


@pytest.fixture
def repository(store):
    repo = CardRepository(store)
    repo.load()
    return repo


@pytest.fixture
def library(store, repository, parser):
    return LessonLibrary(store=store, repository=repository, parser=parser)


@pytest.fixture
def make_card():
    """Factory for cards with a given score."""

    def _make(
        question: str = "q",
        score: float = 1.0,
        section: str = "S",
        answer: str = "a",
        last_rating: Rating | None = None,
        is_builtin: bool = False,
    ) -> Card:
        return Card(
            section=section,
            language="en-GB",
            question=question,
            answer=answer,
            metadata=CardMetadata(
                score=score, last_rating=last_rating, is_builtin=is_builtin
            ),
        )

    return _make
