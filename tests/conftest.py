from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def fake_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    return home


@pytest.fixture
def dotfiles(tmp_path: Path) -> Path:
    """A dotfiles checkout holding one plain file and one template."""

    root = tmp_path / "dotfiles"
    root.mkdir()
    (root / "zshrc").write_text("export EDITOR=vim\n")
    (root / "gitconfig").write_text("[user]\n  email = {{ email }}\n")
    return root
