from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol


class StoreGateway(Protocol):
    """
    Session-scoped access to the key-value store. Every call may suspend on I/O.
    """

    async def open(self, address: str | None = None) -> None: ...

    async def close(self) -> None: ...

    async def execute(self, command: Sequence[str | int | float]) -> Any:
        """Run a raw command and return the store's reply as-is."""
        ...

    async def unlink(self, key: str) -> None:
        """Delete `key`; a missing key is not an error."""
        ...

    async def read_flat_record(self, key: str) -> dict[str, str]:
        """Return the hash stored at `key` (empty dict when absent)."""
        ...

    async def replace_flat_record(self, key: str, fields: Mapping[str, str]) -> None:
        """Atomically replace the hash at `key`; raises WriteConflictError on contention."""
        ...
