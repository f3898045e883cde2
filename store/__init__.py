from __future__ import annotations

from .gateway import RedisStoreGateway
from .interfaces import StoreGateway
from .repositories import AsyncDocumentRepository, HashRepository, JsonDocumentRepository

__all__ = [
    "StoreGateway",
    "RedisStoreGateway",
    "AsyncDocumentRepository",
    "JsonDocumentRepository",
    "HashRepository",
]
