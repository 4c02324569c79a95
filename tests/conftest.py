import pytest
from fastapi.testclient import TestClient

from app.core.settings import Settings
from app.services.object_store import ObjectStore
from upload_helpers import FakeS3Client


@pytest.fixture
def anyio_backend():
    # Force anyio onto asyncio (no Trio needed)
    return "asyncio"


@pytest.fixture
def fake_s3():
    return FakeS3Client()


# -------------------------
# Settings / store
# -------------------------
@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        CLOUDFLARE_R2_ENDPOINT="https://account.r2.cloudflarestorage.com",
        CLOUDFLARE_R2_ACCESS_KEY="test",
        CLOUDFLARE_R2_SECRET_KEY="test",
        CLOUDFLARE_R2_BUCKET="listing-media-test",
        CLOUDFLARE_R2_PUBLIC_URL="https://cdn.example.com/",
        TEMP_DIR=str(tmp_path / "temp"),
    )


@pytest.fixture
def unconfigured_settings(tmp_path):
    return Settings(
        _env_file=None,
        CLOUDFLARE_R2_ENDPOINT=None,
        CLOUDFLARE_R2_ACCESS_KEY=None,
        CLOUDFLARE_R2_SECRET_KEY=None,
        CLOUDFLARE_R2_BUCKET=None,
        CLOUDFLARE_R2_PUBLIC_URL=None,
        TEMP_DIR=str(tmp_path / "temp"),
    )


@pytest.fixture
def store(test_settings, fake_s3):
    return ObjectStore.from_settings(test_settings, client=fake_s3)


# -------------------------
# HTTP
# -------------------------
@pytest.fixture
def client(store, test_settings):
    from app.dependencies import get_object_store, get_settings
    from app.main import app

    app.dependency_overrides[get_object_store] = lambda: store
    app.dependency_overrides[get_settings] = lambda: test_settings
    yield TestClient(app)
    app.dependency_overrides.clear()
