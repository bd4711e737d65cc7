"""Unit tests for the file-backed TokenStore."""
import json
import stat

import pytest

from storyclip.credentials import CREDENTIALS_FILENAME, TokenStore


@pytest.fixture
def store(tmp_path, monkeypatch):
    monkeypatch.delenv("CLICKUP_API_TOKEN", raising=False)
    return TokenStore(tmp_path / "home")


class TestTokenStore:
    def test_empty_store_returns_none(self, store):
        assert store.get() is None

    def test_set_then_get(self, store):
        store.set("pk_123")
        assert store.get() == "pk_123"

    def test_token_persisted_to_file(self, store):
        store.set(" pk_abc ")
        data = json.loads((store.home_dir / CREDENTIALS_FILENAME).read_text())
        assert data == {"clickup_token": "pk_abc"}

    def test_file_is_owner_only(self, store):
        store.set("pk_123")
        mode = stat.S_IMODE(store.path.stat().st_mode)
        assert mode == 0o600

    def test_clear_removes_token(self, store):
        store.set("pk_123")
        store.clear()
        assert store.get() is None

    def test_clear_on_empty_store_is_noop(self, store):
        store.clear()
        assert not store.path.exists()

    def test_env_fallback(self, store, monkeypatch):
        monkeypatch.setenv("CLICKUP_API_TOKEN", "env-token")
        assert store.get() == "env-token"
        store.set("pk_file")
        assert store.get() == "pk_file"

    def test_empty_token_rejected(self, store):
        with pytest.raises(ValueError):
            store.set("   ")

    def test_corrupt_file_treated_as_empty(self, store):
        store.home_dir.mkdir(parents=True)
        store.path.write_text("{broken", encoding="utf-8")
        assert store.get() is None

    def test_no_tmp_files_remain(self, store):
        store.set("pk_123")
        assert list(store.home_dir.glob("*.cred.tmp")) == []
