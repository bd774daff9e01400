import asyncio
import json
import uuid
from pathlib import Path

import jwt
import pytest
from fastapi.testclient import TestClient

from tubely.core.config import get_settings
from tubely.core.db import create_engine, create_session_factory, create_tables
from tubely.db.models import Video
from tubely.main import create_app

JWT_SECRET = "test-secret"


class FakeProbe:
    """Stands in for ffprobe; records the files it was asked to inspect."""

    def __init__(self, output: str = "", error: Exception | None = None):
        self.output = output
        self.error = error
        self.calls: list[Path] = []
        self.existed: list[bool] = []

    @classmethod
    def with_streams(cls, *streams: dict) -> "FakeProbe":
        return cls(output=json.dumps({"streams": list(streams)}))

    def probe_streams(self, path: Path) -> str:
        self.calls.append(path)
        self.existed.append(Path(path).exists())
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture(autouse=True)
def configure_environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("TUBELY_S3_BUCKET", "TUBELY_S3_REGION", "TUBELY_S3_ENDPOINT_URL", "TUBELY_STORAGE_BACKEND"):
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setenv("TUBELY_ENV", "test")
    monkeypatch.setenv("TUBELY_LOG_LEVEL", "debug")
    monkeypatch.setenv("TUBELY_DB_URL", f"sqlite+aiosqlite:///{tmp_path / 'tubely_test.db'}")
    monkeypatch.setenv("TUBELY_ASSETS_ROOT", str(tmp_path / "assets"))
    monkeypatch.setenv("TUBELY_STORAGE_MODE", "local")
    monkeypatch.setenv("TUBELY_PORT", "8080")
    monkeypatch.setenv("TUBELY_JWT_SECRET", JWT_SECRET)

    get_settings.cache_clear()
    settings = get_settings()

    async def _setup() -> None:
        engine = create_engine(settings)
        try:
            await create_tables(engine)
        finally:
            await engine.dispose()

    asyncio.run(_setup())

    yield

    get_settings.cache_clear()


@pytest.fixture()
def settings():
    return get_settings()


@pytest.fixture()
def run_db(settings):
    """Run ``fn(session)`` on a fresh engine inside its own event loop."""

    def _run(fn):
        async def _main():
            engine = create_engine(settings)
            factory = create_session_factory(engine)
            try:
                async with factory() as session:
                    return await fn(session)
            finally:
                await engine.dispose()

        return asyncio.run(_main())

    return _run


@pytest.fixture()
def seed_video(run_db):
    def _seed(*, user_id: str | None = None, title: str = "Boots and cats") -> Video:
        video = Video(id=str(uuid.uuid4()), user_id=user_id or str(uuid.uuid4()), title=title)

        async def _insert(session):
            session.add(video)
            await session.commit()
            await session.refresh(video)
            return video

        return run_db(_insert)

    return _seed


@pytest.fixture()
def fetch_video(run_db):
    def _fetch(video_id: str) -> Video | None:
        async def _get(session):
            return await session.get(Video, video_id)

        return run_db(_get)

    return _fetch


@pytest.fixture()
def fake_probe():
    return FakeProbe


@pytest.fixture()
def client(configure_environment):
    app = create_app()
    with TestClient(app) as client:
        yield client


def build_token(user_id: str) -> str:
    return jwt.encode({"sub": user_id}, JWT_SECRET, algorithm="HS256")


@pytest.fixture()
def auth_headers():
    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {build_token(user_id)}"}

    return _headers
