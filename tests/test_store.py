"""Tests for the key-value store backends."""

from pathlib import Path

import pytest

from vwise.config import StoreConfig
from vwise.errors import InvalidArgument
from vwise.store import FileStore, KeyValueStore, MemoryStore, open_store


class TestMemoryStore:
    def test_get_set_remove(self):
        store = MemoryStore()
        assert store.get("k") is None
        store.set("k", b"v")
        assert store.get("k") == b"v"
        store.remove("k")
        assert store.get("k") is None

    def test_remove_missing_is_noop(self):
        MemoryStore().remove("nothing")

    def test_satisfies_protocol(self):
        assert isinstance(MemoryStore(), KeyValueStore)


class TestFileStore:
    def test_creates_root(self, tmp_path: Path):
        FileStore(tmp_path / "a" / "b")
        assert (tmp_path / "a" / "b").is_dir()

    def test_persists_across_instances(self, tmp_path: Path):
        FileStore(tmp_path).set("vwise_workspace:abc", b'{"id": "abc"}')
        assert FileStore(tmp_path).get("vwise_workspace:abc") == b'{"id": "abc"}'

    def test_unsafe_keys_stay_inside_root(self, tmp_path: Path):
        store = FileStore(tmp_path / "store")
        store.set("../escape/key", b"x")
        assert store.get("../escape/key") == b"x"
        assert not (tmp_path / "escape").exists()
        assert store.keys() == ["../escape/key"]

    def test_remove(self, tmp_path: Path):
        store = FileStore(tmp_path)
        store.set("k", b"v")
        store.remove("k")
        assert store.get("k") is None
        store.remove("k")  # already gone
        assert store.keys() == []

    def test_satisfies_protocol(self, tmp_path: Path):
        assert isinstance(FileStore(tmp_path), KeyValueStore)


class TestOpenStore:
    def test_memory(self):
        assert isinstance(open_store(StoreConfig(backend="memory")), MemoryStore)

    def test_file(self, tmp_path: Path):
        store = open_store(StoreConfig(backend="file", path=tmp_path / "s"))
        assert isinstance(store, FileStore)
        assert store.root == tmp_path / "s"

    def test_unknown_backend(self):
        with pytest.raises(InvalidArgument, match="Unknown store backend"):
            open_store(StoreConfig(backend="redis"))
