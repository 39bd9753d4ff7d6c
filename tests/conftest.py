import os

import pytest

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_AUTO_CREATE"] = "1"
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("REFRESH_SECRET_KEY", "test-refresh-secret-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel, Session, create_engine  # noqa: E402

from main import app  # noqa: E402
from vidtube.storage import UploadResult, get_uploader  # noqa: E402

PASSWORD = "Secret123"


class FakeUploader:
    """Records uploads instead of storing them; videos report a fixed duration."""

    def __init__(self):
        self.uploads = []

    def upload(self, file, folder):
        self.uploads.append((folder, file.filename))
        duration = 42.5 if folder == "videos" else None
        return UploadResult(
            url=f"https://cdn.test/{folder}/{len(self.uploads)}-{file.filename}",
            duration=duration,
        )


class Api:
    """Small helpers over TestClient for the flows most tests need."""

    def __init__(self, client: TestClient):
        self.client = client

    def register(self, username: str, email: str | None = None, password: str = PASSWORD, **files):
        files = files or {"avatar": ("avatar.png", b"png-bytes", "image/png")}
        return self.client.post(
            "/api/v1/users/register",
            data={
                "username": username,
                "email": email or f"{username.lower()}@example.com",
                "fullname": f"{username.capitalize()} Example",
                "password": password,
            },
            files=files,
        )

    def login(self, username: str, password: str = PASSWORD) -> dict:
        r = self.client.post("/api/v1/users/login", json={"username": username, "password": password})
        assert r.status_code == 200, r.text
        # Authenticate explicitly per request rather than through the shared cookie jar.
        self.client.cookies.clear()
        return {"Authorization": f"Bearer {r.json()['data']['accessToken']}"}

    def signup(self, username: str) -> tuple[dict, dict]:
        r = self.register(username)
        assert r.status_code == 201, r.text
        return r.json()["data"], self.login(username)

    def publish_video(self, headers: dict, title: str = "My video", description: str = "About it", publish: bool = True) -> dict:
        r = self.client.post(
            "/api/v1/videos/",
            headers=headers,
            data={"title": title, "description": description},
            files={"videoFile": ("clip.mp4", b"mp4-bytes", "video/mp4")},
        )
        assert r.status_code == 201, r.text
        video = r.json()["data"]
        if publish:
            r = self.client.patch(f"/api/v1/videos/toggle/publish/{video['id']}", headers=headers)
            assert r.status_code == 200, r.text
            video["isPublished"] = True
        return video


@pytest.fixture
def uploader():
    return FakeUploader()


@pytest.fixture
def client(uploader):
    app.dependency_overrides[get_uploader] = lambda: uploader
    # Each lifespan opens a fresh in-memory database.
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def api(client):
    return Api(client)


@pytest.fixture
def session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as s:
        yield s
    engine.dispose()
