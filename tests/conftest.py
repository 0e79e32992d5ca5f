import os

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-key")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ.setdefault("INDEXNOW_KEY", "test-indexnow-key")
os.environ.setdefault("RESEND_API_KEY", "test-resend-key")
os.environ.setdefault("AUDD_API_TOKEN", "test-audd-token")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT", "10000/minute")

import pytest
from fastapi.testclient import TestClient

from musicscan.database.supabase_client import get_supabase, get_service_supabase
from musicscan.modules.auth.service import clear_auth_cache
from tests.fakes import FakeSupabase

ADMIN_ID = "00000000-0000-0000-0000-00000000000a"
USER_ID = "00000000-0000-0000-0000-00000000000b"
OTHER_ID = "00000000-0000-0000-0000-00000000000c"


@pytest.fixture(autouse=True)
def _clear_auth_cache():
    clear_auth_cache()
    yield
    clear_auth_cache()


@pytest.fixture
def db():
    fake = FakeSupabase()
    fake.auth.add_user(ADMIN_ID, "admin@musicscan.app", token="admin-token")
    fake.auth.add_user(USER_ID, "fan@example.com", token="user-token")
    fake.auth.add_user(OTHER_ID, "other@example.com", token="other-token")
    fake.insert_rows("user_roles", {"user_id": ADMIN_ID, "role": "admin"})
    return fake


@pytest.fixture
def app(db):
    from musicscan.main import app as fastapi_app
    fastapi_app.dependency_overrides[get_supabase] = lambda: db
    fastapi_app.dependency_overrides[get_service_supabase] = lambda: db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def admin_headers():
    return {"Authorization": "Bearer admin-token"}


@pytest.fixture
def user_headers():
    return {"Authorization": "Bearer user-token"}


@pytest.fixture
def cron_headers():
    return {"X-Cron-Secret": "test-cron-secret"}
