"""
Pytest configuration and shared fixtures.
"""

import hashlib
import hmac
import os
import sys

import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


WEBHOOK_SECRET = "test_secret"


# ============================================================================
# Environment Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def mock_env(monkeypatch):
    """Set up test environment variables."""
    for name in ("JENKINS_PASSWORD", "SLACK_WEBHOOK_URL", "NODE_ENV", "ENVIRONMENT", "WEBHOOK_AUTH_BYPASS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("JENKINS_URL", "http://jenkins.test/")
    monkeypatch.setenv("JENKINS_USERNAME", "admin")
    monkeypatch.setenv("JENKINS_API_TOKEN", "token123")
    monkeypatch.setenv("WEBHOOK_SECRET", WEBHOOK_SECRET)
    monkeypatch.setenv("NOTIFY_WEBHOOK_URL", "http://chat.test/hooks/jenkins")
    monkeypatch.setenv("QUEUE_POLL_INTERVAL", "0.01")
    monkeypatch.setenv("QUEUE_POLL_TIMEOUT", "0.2")
    monkeypatch.setenv("APP_ENV", "test")


@pytest.fixture
def settings():
    from jenkins_bridge.core.config import Settings
    return Settings()


# ============================================================================
# Redis Fixtures
# ============================================================================

class FakeRedis:
    """In-memory stand-in for the redis.asyncio client."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail = False
        self.ping_failures = 0
        self.closed = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("Connection refused")

    async def ping(self):
        if self.ping_failures > 0:
            self.ping_failures -= 1
            raise RedisConnectionError("Connection refused")
        self._check()
        return True

    async def set(self, name, value, ex=None):
        self._check()
        self.calls.append(("set", name))
        self.data[name] = value
        self.ttls[name] = ex
        return True

    async def get(self, name):
        self._check()
        self.calls.append(("get", name))
        return self.data.get(name)

    async def delete(self, *names):
        self._check()
        deleted = 0
        for name in names:
            self.calls.append(("delete", name))
            if self.data.pop(name, None) is not None:
                self.ttls.pop(name, None)
                deleted += 1
        return deleted

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest_asyncio.fixture
async def job_store(fake_redis):
    """A connected JobStore backed by FakeRedis."""
    from jenkins_bridge.state.jobs import JobStore

    store = JobStore(
        "redis://unused:6379",
        3600,
        max_reconnect_attempts=3,
        backoff_base=0.001,
        client=fake_redis,
    )
    await store.connect()
    yield store
    await store.close()


# ============================================================================
# Helpers
# ============================================================================

def sign(body: bytes, secret: str = WEBHOOK_SECRET, algo: str = "sha256", prefix: bool = True) -> str:
    digest = hmac.new(secret.encode(), body, getattr(hashlib, algo)).hexdigest()
    return f"{algo}={digest}" if prefix else digest


@pytest.fixture
def callback_info():
    from jenkins_bridge.models.tracked import CallbackInfo
    return CallbackInfo(channel="#deployments", thread_id="1700000000.123", user_id="U123ABC")


@pytest.fixture
def sign_body():
    """HMAC signer using the test webhook secret."""
    return sign
