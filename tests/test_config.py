"""Tests for configuration loading."""

import pytest
from pathlib import Path

from vwise.config import load_config

ENV_KEYS = ["VWISE_STORE", "VWISE_STORE_DIR", "VWISE_NAMESPACE", "VWISE_LOG_LEVEL"]


@pytest.fixture(autouse=True)
def clean_env(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestConfig:
    def test_defaults(self):
        config = load_config()
        assert config.store.backend == "file"
        assert config.store.path.name == "store"
        assert config.namespace == "vwise"
        assert config.log_level == "INFO"

    def test_env_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("VWISE_STORE", "memory")
        monkeypatch.setenv("VWISE_STORE_DIR", str(tmp_path / "data"))
        monkeypatch.setenv("VWISE_NAMESPACE", "scratch")

        config = load_config()
        assert config.store.backend == "memory"
        assert config.store.path == tmp_path / "data"
        assert config.namespace == "scratch"

    def test_toml_file(self, tmp_path: Path):
        toml_path = tmp_path / "vwise.toml"
        toml_path.write_text("""
namespace = "desk"
log_level = "DEBUG"

[store]
backend = "memory"
path = "/tmp/vwise-store"
""")
        config = load_config(toml_path)
        assert config.store.backend == "memory"
        assert config.store.path == Path("/tmp/vwise-store")
        assert config.namespace == "desk"
        assert config.log_level == "DEBUG"

    def test_toml_in_cwd(self, tmp_path: Path):
        (tmp_path / "vwise.toml").write_text('namespace = "found"\n')
        assert load_config().namespace == "found"

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("VWISE_STORE", "file")
        toml_path = tmp_path / "vwise.toml"
        toml_path.write_text("""
[store]
backend = "memory"
""")
        config = load_config(toml_path)
        assert config.store.backend == "file"  # env wins
