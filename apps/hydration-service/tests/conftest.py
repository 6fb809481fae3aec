"""Shared pytest conftest for hydration-service tests.
Environment is fixed before the app is imported; everything else is a fixture.
"""

import base64
import os

TEST_KEY_B64 = base64.b64encode(bytes(range(32))).decode()

os.environ["ENCRYPTION_KEY"] = TEST_KEY_B64
os.environ["JWT_SECRET"] = "test-secret"
os.environ["INTERNAL_API_KEY"] = "test-internal-key"
os.environ["DECRYPT_URL"] = ""

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from jose import jwt  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from hydration.decryptor import encrypt_value  # noqa: E402
from hydration.dependencies import get_upstream_client  # noqa: E402
from hydration.encryption import import_key  # noqa: E402
from hydration.main import app  # noqa: E402

_JWT_SECRET = "test-secret"
ZERO_NONCE = bytes(12)


def corrupt_tag(wire: str) -> str:
    """Change the last data character of the tag segment, keeping its length."""
    nonce, ct, tag = wire.split("^")
    data = tag.rstrip("$")
    replacement = "A" if data[-1] != "A" else "w"
    return "^".join([nonce, ct, data[:-1] + replacement + tag[len(data):]])


def _make_token(user_id="cust-1", username="nurse.joy") -> str:
    payload = {
        "sub": user_id,
        "username": username,
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    return jwt.encode(payload, _JWT_SECRET, algorithm="HS256")


class FakeUpstream:
    """In-memory stand-in for UpstreamClient."""

    def __init__(self, group_data=None, names=None, nurses=None, rooms=None,
                 groups=None, error=None):
        self.group_data = group_data or {}
        self.names = names or {}
        self.nurses = nurses or {}
        self.rooms = rooms or {}
        self.groups = groups or {}
        self.error = error
        self.calls = []

    async def _answer(self, call, value):
        self.calls.append(call)
        if self.error is not None:
            raise self.error
        return value

    async def get_user_group(self, cust_id):
        return await self._answer(("group", cust_id), self.groups.get(cust_id, ""))

    async def get_group_data(self, group):
        return await self._answer(("data", group), self.group_data)

    async def get_names(self, group):
        return await self._answer(("names", group), self.names)

    async def get_nurses(self, group):
        return await self._answer(("nurses", group), self.nurses)

    async def get_rooms(self, group):
        return await self._answer(("rooms", group), self.rooms)


# ── Fixtures ──────────────────────────────────────────────


@pytest.fixture(autouse=True)
def reset_app():
    app.state.key_handle = None
    yield
    app.dependency_overrides.clear()
    app.state.key_handle = None


@pytest.fixture
def key():
    return import_key(TEST_KEY_B64)


@pytest.fixture
def seal_text(key):
    """Encrypt a plaintext string into a wire value under the test key."""
    def _fn(plaintext, nonce=None):
        return encrypt_value(plaintext, key, nonce)
    return _fn


@pytest.fixture
def api():
    """TestClient for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {_make_token()}"}


@pytest.fixture
def internal_headers():
    return {"X-Internal-Api-Key": "test-internal-key"}


@pytest.fixture
def upstream():
    """Install a FakeUpstream as the app's upstream client and return it."""
    fake = FakeUpstream()
    app.dependency_overrides[get_upstream_client] = lambda: fake
    return fake
