from __future__ import annotations

from typing import Any

from json_store import safe_dumps


class DocumentStoreError(Exception):
    """Base exception for transcoding and store gateway failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TranscodeError(DocumentStoreError):
    """A value could not be converted between application and store form."""


class TypeMismatchError(TranscodeError):
    def __init__(self, expected: str, value: Any, *, source: str | None = None):
        where = f" from {source}" if source else ""
        super().__init__(f"Expected {expected}{where} but received: {safe_dumps(value)}")
        self.expected = expected
        self.value = value


class CardinalityError(TranscodeError):
    def __init__(self, path: str):
        super().__init__(f'Expected path to point to a single value but found many: "{path}"')
        self.path = path


class NullInArrayError(TranscodeError):
    def __init__(self, container: Any, *, source: str | None = None):
        where = f" from {source}" if source else ""
        super().__init__(
            f"Expected a string[]{where} but received an array or object containing null: {safe_dumps(container)}"
        )
        self.container = container


class UndefinedInArrayError(TranscodeError):
    def __init__(self, container: Any):
        super().__init__(f"Expected a string[] but received an array containing undefined: {safe_dumps(container)}")
        self.container = container


class InvalidPathError(TranscodeError):
    def __init__(self, expression: str, reason: str):
        super().__init__(f'Invalid path "{expression}": {reason}')
        self.expression = expression
        self.reason = reason


class GatewayError(DocumentStoreError):
    """Failure raised by the store gateway itself (transport errors are not wrapped)."""


class WriteConflictError(GatewayError):
    """
    Raised when an atomic replace is aborted because another session modified
    the key between WATCH and EXEC. Safe to retry.
    """

    def __init__(self, key: str):
        super().__init__(f'Watch error when setting HASH "{key}": key was modified concurrently')
        self.key = key


class GatewayNotOpenError(GatewayError):
    def __init__(self) -> None:
        super().__init__("Store gateway is not open; call open() first")
