from __future__ import annotations

from pathlib import Path
import sys


import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
# This avoids ModuleNotFoundError for imports like `import transcoder...` under pytest import modes
# that don't automatically prepend the cwd/rootdir to sys.path.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))
TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """
    Keep developer settings (local.env, exported variables) out of the tests.
    """
    for name in ("REDIS_URL", "KEY_PREFIX", "DEBUG_LOG_DOCUMENTS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def redis_server():
    from fake_redis import FakeRedisServer

    return FakeRedisServer()


@pytest.fixture
def fake_redis(monkeypatch: pytest.MonkeyPatch, redis_server):
    """
    Route redis.asyncio.from_url (as used by the gateway) to in-memory clients
    that share one keyspace. Returns the clients handed out and the URLs asked for.
    """
    import store.gateway as gateway_module
    from fake_redis import FakeRedis

    clients: list[FakeRedis] = []
    urls: list[str] = []

    def _from_url(url: str, **kwargs):
        urls.append(url)
        client = FakeRedis(redis_server)
        clients.append(client)
        return client

    monkeypatch.setattr(gateway_module.redis_async, "from_url", _from_url)
    return {"clients": clients, "urls": urls}
