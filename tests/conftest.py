"""Pytest fixtures. DB 없이 실행: 가짜 세션 팩토리 + 메모리 저장소로 Repository 함수 대체."""

import os

import pytest
from fastapi.testclient import TestClient

# CI에서 DATABASE_URL이 주입되면 그대로 사용. 로컬에서 비어 있으면 DB 없이 부팅 가능하도록 빈 문자열.
if not os.environ.get("DATABASE_URL"):
    os.environ["DATABASE_URL"] = ""
# Settings Fail-fast 대비: 테스트 시 필수 Auth env 설정
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-for-pytest-0123456789")
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-google-client-id")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "test-google-client-secret")
os.environ.setdefault("APP_URL", "https://debrief.test")

from debrief.core.database import override_db_for_testing  # noqa: E402
from tests.fakes import (  # noqa: E402
    PATCH_TARGETS,
    FakeSession,
    FakeSessionMaker,
    FakeStore,
    PreSlugDatabase,
)


@pytest.fixture
def fake_db():
    """transaction()/get_db가 가짜 세션 팩토리를 쓰도록 교체. 종료 시 원복."""
    maker = FakeSessionMaker()
    override_db_for_testing(async_session_maker_instance=maker)
    yield maker
    override_db_for_testing()


@pytest.fixture
def fake_store(monkeypatch: pytest.MonkeyPatch, fake_db: FakeSessionMaker) -> FakeStore:
    store = FakeStore()
    for module, names in PATCH_TARGETS.items():
        for attr, method in names:
            monkeypatch.setattr(f"{module}.{attr}", getattr(store, method))
    return store


@pytest.fixture
def pre_slug_db():
    """Repository는 실제 함수 그대로, DB만 slug 컬럼이 없는 스키마로 교체."""
    db = PreSlugDatabase()
    override_db_for_testing(async_session_maker_instance=db)
    yield db
    override_db_for_testing()


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def client() -> TestClient:
    """FastAPI TestClient. lifespan 미실행(DB·Redis 없이)."""
    from debrief.main import app

    return TestClient(app)
