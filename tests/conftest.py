"""
Shared fixtures: fake repositories and an API client wired to them.

Usage:
    def test_something(api, fake_progress_repo):
        fake_progress_repo.seed([make_progress(0, 1)])
        response = api.post("/progress/advance-day")
"""

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from api.deps import (
    get_audit_repo,
    get_completion_repo,
    get_curriculum_repo,
    get_current_user,
    get_user_progress_repo,
)
from backend.main import create_app
from backend.settings import Settings
from tests.fakes import (
    DEFAULT_USER_ID,
    FakeCurriculumRepository,
    FakeExerciseCompletionRepository,
    FakeProgressAuditRepository,
    FakeUserProgressRepository,
    make_program,
)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(environment="test", _env_file=None)


@pytest.fixture
def program():
    """Two milestones of 3 and 4 workout days."""
    return make_program([3, 4])


@pytest.fixture
def fake_curriculum_repo(program) -> FakeCurriculumRepository:
    repo = FakeCurriculumRepository()
    repo.seed([program])
    return repo


@pytest.fixture
def fake_progress_repo() -> FakeUserProgressRepository:
    return FakeUserProgressRepository()


@pytest.fixture
def fake_completion_repo() -> FakeExerciseCompletionRepository:
    return FakeExerciseCompletionRepository()


@pytest.fixture
def fake_audit_repo() -> FakeProgressAuditRepository:
    return FakeProgressAuditRepository()


@pytest.fixture
def api(
    test_settings,
    fake_curriculum_repo,
    fake_progress_repo,
    fake_completion_repo,
    fake_audit_repo,
) -> Iterator[TestClient]:
    """
    TestClient for a fresh app with auth and every repository overridden.

    Requests are made as DEFAULT_USER_ID.
    """
    app = create_app(settings=test_settings)

    async def _current_user() -> str:
        return DEFAULT_USER_ID

    app.dependency_overrides[get_current_user] = _current_user
    app.dependency_overrides[get_curriculum_repo] = lambda: fake_curriculum_repo
    app.dependency_overrides[get_user_progress_repo] = lambda: fake_progress_repo
    app.dependency_overrides[get_completion_repo] = lambda: fake_completion_repo
    app.dependency_overrides[get_audit_repo] = lambda: fake_audit_repo

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
