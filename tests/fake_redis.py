from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any

from redis.exceptions import ResponseError, WatchError


class FakeRedisServer:
    """
    In-memory keyspace shared by several FakeRedis clients (one per session).

    Every write bumps a per-key version; EXEC fails with WatchError when a
    watched key's version moved, like a real server.
    """

    def __init__(self) -> None:
        self.hashes: dict[str, dict[str, str]] = {}
        self.json_docs: dict[str, str] = {}
        self.versions: dict[str, int] = {}
        self.commands: list[tuple[Any, ...]] = []
        # Invoked after a pipeline issues WATCH, before it queues anything.
        self.on_watch: Callable[[str], Awaitable[None]] | None = None

    def touch(self, key: str) -> None:
        self.versions[key] = self.versions.get(key, 0) + 1

    def unlink(self, key: str) -> int:
        existed = key in self.hashes or key in self.json_docs
        self.hashes.pop(key, None)
        self.json_docs.pop(key, None)
        if existed:
            self.touch(key)
        return int(existed)

    def hset(self, key: str, mapping: dict[str, str]) -> int:
        current = self.hashes.setdefault(key, {})
        added = sum(1 for k in mapping if k not in current)
        current.update({str(k): str(v) for k, v in mapping.items()})
        self.touch(key)
        return added


class FakePipeline:
    def __init__(self, server: FakeRedisServer) -> None:
        self._server = server
        self._watched: dict[str, int] = {}
        self._queued: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []
        self._in_multi = False

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self._watched.clear()
        self._queued.clear()

    async def watch(self, *keys: str) -> bool:
        for key in keys:
            self._watched[key] = self._server.versions.get(key, 0)
        if self._server.on_watch is not None:
            hook, self._server.on_watch = self._server.on_watch, None
            for key in keys:
                await hook(key)
        return True

    def multi(self) -> None:
        self._in_multi = True

    def unlink(self, key: str) -> "FakePipeline":
        self._queued.append(("unlink", (key,), {}))
        return self

    def hset(self, key: str, mapping: dict[str, str]) -> "FakePipeline":
        self._queued.append(("hset", (key,), {"mapping": mapping}))
        return self

    async def execute(self) -> list[Any]:
        for key, version in self._watched.items():
            if self._server.versions.get(key, 0) != version:
                raise WatchError("Watched variable changed.")
        results = []
        for name, args, kwargs in self._queued:
            self._server.commands.append((name.upper(), *args))
            results.append(getattr(self._server, name)(*args, **kwargs))
        self._watched.clear()
        self._queued.clear()
        return results


class FakeRedis:
    """Subset of redis.asyncio.Redis used by RedisStoreGateway."""

    def __init__(self, server: FakeRedisServer | None = None) -> None:
        self.server = server or FakeRedisServer()
        self.closed = False

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        self.closed = True

    async def unlink(self, *keys: str) -> int:
        self.server.commands.append(("UNLINK", *keys))
        return sum(self.server.unlink(k) for k in keys)

    async def hgetall(self, key: str) -> dict[str, str]:
        return dict(self.server.hashes.get(key, {}))

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self.server)

    async def execute_command(self, *args: Any) -> Any:
        self.server.commands.append(tuple(args))
        name = str(args[0]).upper()
        if name == "PING":
            return True
        if name == "JSON.SET":
            key, path, raw = args[1], args[2], args[3]
            if path not in ("$", "."):
                raise ResponseError("only root paths are supported by the fake")
            json.loads(raw)
            self.server.json_docs[key] = raw
            self.server.touch(key)
            return "OK"
        if name == "JSON.GET":
            return self.server.json_docs.get(args[1])
        raise ResponseError(f"unknown command '{args[0]}'")
