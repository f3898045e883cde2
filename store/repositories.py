from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

from pydantic import BaseModel

from json_store import dump_document, load_document
from settings import get_settings
from transcoder import Schema, from_flat_record, from_store_document, to_flat_record, to_store_document

from .interfaces import StoreGateway

logger = logging.getLogger(__name__)


class AsyncDocumentRepository(Protocol):
    async def save(self, entity_id: str, data: Mapping[str, Any] | BaseModel) -> str: ...
    async def fetch(self, entity_id: str) -> dict[str, Any]: ...
    async def remove(self, entity_id: str) -> None: ...


class _KeyedRepository:
    def __init__(self, gateway: StoreGateway, schema: Schema, prefix: str) -> None:
        settings = get_settings()
        self._gateway = gateway
        self._schema = schema
        self._prefix = ":".join(p for p in (settings.key_prefix, prefix.strip(":")) if p)
        self._log_documents = settings.debug_log_documents

    @property
    def schema(self) -> Schema:
        return self._schema

    def key_for(self, entity_id: str) -> str:
        return f"{self._prefix}:{entity_id}" if self._prefix else entity_id

    async def remove(self, entity_id: str) -> None:
        await self._gateway.unlink(self.key_for(entity_id))


class JsonDocumentRepository(_KeyedRepository, AsyncDocumentRepository):
    """
    Persists documents as RedisJSON values: encode + JSON.SET on save,
    JSON.GET + decode on fetch.
    """

    async def save(self, entity_id: str, data: Mapping[str, Any] | BaseModel) -> str:
        key = self.key_for(entity_id)
        doc = to_store_document(self._schema, data)
        await self._gateway.execute(["JSON.SET", key, "$", dump_document(doc)])
        if self._log_documents:
            logger.debug("JSON SAVE: %s -> %s", key, doc)
        else:
            logger.debug("JSON SAVE: %s", key)
        return key

    async def fetch(self, entity_id: str) -> dict[str, Any]:
        key = self.key_for(entity_id)
        raw = await self._gateway.execute(["JSON.GET", key])
        doc = load_document(raw)
        if doc is None:
            return {}
        return from_store_document(self._schema, doc)


class HashRepository(_KeyedRepository, AsyncDocumentRepository):
    """
    Persists documents as hashes. Saves go through the watch-guarded replace,
    so a concurrent writer on the same key raises WriteConflictError.
    """

    async def save(self, entity_id: str, data: Mapping[str, Any] | BaseModel) -> str:
        key = self.key_for(entity_id)
        record = to_flat_record(self._schema, data)
        await self._gateway.replace_flat_record(key, record)
        if self._log_documents:
            logger.debug("HASH SAVE: %s -> %s", key, record)
        else:
            logger.debug("HASH SAVE: %s", key)
        return key

    async def fetch(self, entity_id: str) -> dict[str, Any]:
        fields = await self._gateway.read_flat_record(self.key_for(entity_id))
        return from_flat_record(self._schema, fields)
