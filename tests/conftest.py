"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from pathlib import Path

import pytest
from sqlalchemy.orm import sessionmaker

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Settings  # noqa: E402
from src.db.database import build_engine  # noqa: E402
from src.db.models import Base  # noqa: E402
from src.engine.models import Challenge, ChallengeStatus, Submission, SubmissionStatus  # noqa: E402
from src.engine.service import LessonEngine  # noqa: E402
from src.lessons.workflow import LessonWorkflow  # noqa: E402
from tests.fakes import FakeGateway  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (in-memory database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def test_settings():
    """Settings isolated from the developer's environment and .env file."""
    return Settings(_env_file=None, openrouter_api_key="test-key", database_url="sqlite://")


@pytest.fixture
def lesson_engine(fake_gateway, test_settings):
    return LessonEngine.from_gateway(fake_gateway, test_settings)


# ========================================
# Database
# ========================================


@pytest.fixture
def session_factory():
    """In-memory SQLite session factory with all tables created."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    yield factory
    engine.dispose()


@pytest.fixture
def workflow(lesson_engine, session_factory):
    return LessonWorkflow(lesson_engine, session_factory=session_factory, auto_recompute=False)


# ========================================
# Domain samples
# ========================================


@pytest.fixture
def make_challenge():
    def _make(index: int = 0, status: ChallengeStatus = ChallengeStatus.PENDING, plan_id: str = "plan-1"):
        return Challenge(
            id=f"challenge-{index}",
            plan_id=plan_id,
            order_index=index,
            title=f"Challenge {index + 1}",
            description="Describe the idea.",
            success_criteria="Uses the correct definition.",
            hints=["Start small"],
            status=status,
        )

    return _make


@pytest.fixture
def make_submission():
    def _make(challenge_id: str, status: SubmissionStatus, score=None, user_id: str = "user-1"):
        return Submission(
            id=f"sub-{challenge_id}-{status.value}-{score}",
            challenge_id=challenge_id,
            user_id=user_id,
            content="My answer",
            status=status,
            score=score,
        )

    return _make
