"""Tests for the python -m vwise entry point."""

import pytest
from pathlib import Path

from vwise.__main__ import main


@pytest.fixture(autouse=True)
def file_store(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("VWISE_STORE", "file")
    monkeypatch.setenv("VWISE_STORE_DIR", str(tmp_path / "store"))
    monkeypatch.delenv("VWISE_NAMESPACE", raising=False)
    return tmp_path / "store"


class TestCLI:
    def test_list_empty(self, capsys):
        main(["list"])
        assert "No workspaces." in capsys.readouterr().out

    def test_create_then_list_and_show(self, capsys):
        main(["create", "Lab", "notes"])
        workspace_id = capsys.readouterr().out.strip()

        main([])
        out = capsys.readouterr().out
        assert workspace_id in out
        assert "Lab notes" in out
        assert "(0 panels)" in out

        main(["show", workspace_id])
        assert f"Lab notes [{workspace_id}]" in capsys.readouterr().out

    def test_remove(self, capsys):
        main(["create"])
        workspace_id = capsys.readouterr().out.strip()
        main(["remove", workspace_id])
        main(["list"])
        assert "No workspaces." in capsys.readouterr().out

    def test_reset(self, capsys, file_store: Path):
        main(["create", "A"])
        main(["create", "B"])
        main(["reset"])
        capsys.readouterr()
        assert list(file_store.iterdir()) == []

    def test_show_unknown_id(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["show", "ghost"])
        assert exc.value.code == 1
        assert "Unable to find workspace with id ghost" in capsys.readouterr().err

    def test_unknown_command(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["bogus"])
        assert exc.value.code == 1
        assert "Usage" in capsys.readouterr().out

    def test_show_requires_id(self):
        with pytest.raises(SystemExit):
            main(["show"])
