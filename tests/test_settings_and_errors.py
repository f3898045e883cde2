from __future__ import annotations

from pathlib import Path

from errors import TypeMismatchError, WriteConflictError
from json_store import dump_document, load_document, safe_dumps
from settings import get_settings


def test_settings_defaults():
    s = get_settings()
    assert s.redis_url == "redis://localhost:6379"
    assert s.key_prefix == ""
    assert s.debug_log_documents is False


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("REDIS_URL", " redis://db:6379/2 ")
    monkeypatch.setenv("KEY_PREFIX", "tenant:")
    monkeypatch.setenv("DEBUG_LOG_DOCUMENTS", "yes")
    s = get_settings()
    assert s.redis_url == "redis://db:6379/2"
    assert s.key_prefix == "tenant"
    assert s.debug_log_documents is True


def test_settings_reads_local_env_file(tmp_path: Path):
    (tmp_path / "local.env").write_text("REDIS_URL=redis://dotenv:6379\n", encoding="utf-8")
    assert get_settings().redis_url == "redis://dotenv:6379"


def test_json_helpers():
    assert dump_document({"a": [1, "é"]}) == '{"a":[1,"é"]}'
    assert load_document('{"a":1}') == {"a": 1}
    assert load_document(b"[1]") == [1]
    assert load_document(None) is None
    assert load_document("  ") is None


def test_safe_dumps_never_raises():
    circular: dict = {}
    circular["self"] = circular
    assert "self" in safe_dumps(circular)
    assert safe_dumps({1: "a", "b": 2})
    assert safe_dumps(object()).startswith('"<object object')


def test_error_messages_name_expected_and_actual():
    err = TypeMismatchError("a number", "12", source="the store")
    assert err.message == 'Expected a number from the store but received: "12"'
    assert str(WriteConflictError("k")).startswith('Watch error when setting HASH "k"')
