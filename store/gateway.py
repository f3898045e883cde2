from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from redis import asyncio as redis_async
from redis.exceptions import WatchError

from errors import GatewayNotOpenError, WriteConflictError
from settings import get_settings

from .interfaces import StoreGateway

logger = logging.getLogger(__name__)


class RedisStoreGateway(StoreGateway):
    """
    Thin wrapper around a redis.asyncio client.

    Transport errors from redis-py propagate unchanged. The only translated
    error is WatchError, surfaced as WriteConflictError by replace_flat_record.
    """

    def __init__(self) -> None:
        self._redis: redis_async.Redis | None = None

    @property
    def is_open(self) -> bool:
        return self._redis is not None

    @property
    def _client(self) -> redis_async.Redis:
        if self._redis is None:
            raise GatewayNotOpenError()
        return self._redis

    async def open(self, address: str | None = None) -> None:
        if self._redis is not None:
            # Reopening replaces the session; release the old connection first.
            await self.close()
        url = address or get_settings().redis_url
        client = redis_async.from_url(url, decode_responses=True)
        try:
            await client.ping()
        except Exception:
            await client.aclose()
            raise
        self._redis = client
        logger.info("STORE OPEN: connected to %s", _redact(url))

    async def close(self) -> None:
        client = self._client
        self._redis = None
        await client.aclose()
        logger.info("STORE CLOSE: connection released")

    async def execute(self, command: Sequence[str | int | float]) -> Any:
        return await self._client.execute_command(*command)

    async def unlink(self, key: str) -> None:
        await self._client.unlink(key)

    async def read_flat_record(self, key: str) -> dict[str, str]:
        return await self._client.hgetall(key)

    async def replace_flat_record(self, key: str, fields: Mapping[str, str]) -> None:
        # The pipeline holds its own connection from WATCH through EXEC, so the
        # guard covers exactly this transaction.
        async with self._client.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                pipe.multi()
                pipe.unlink(key)
                if fields:
                    pipe.hset(key, mapping=dict(fields))
                await pipe.execute()
            except WatchError as e:
                logger.warning("STORE REPLACE: write conflict on %s", key)
                raise WriteConflictError(key) from e
        logger.debug("STORE REPLACE: %s (%d fields)", key, len(fields))


def _redact(url: str) -> str:
    """
    Hide the password part of a redis:// URL for logging.
    """
    scheme, sep, rest = url.partition("://")
    if not sep or "@" not in rest:
        return url
    creds, _, host = rest.rpartition("@")
    user = creds.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}" if user else f"{scheme}://***@{host}"
