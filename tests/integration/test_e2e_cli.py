from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from dotlink.cli import app

runner = CliRunner()


def _write_config(dotfiles: Path, files: str) -> Path:
    config_path = dotfiles / "dotlink.toml"
    config_path.write_text(
        f"""
[settings]
cache_directory = "state/cache"
cache_file = "state/deployed.toml"

[variables]
host = "laptop"

[files]
{files}
"""
    )
    return config_path


def test_cli_full_cycle(tmp_path: Path, fake_home: Path) -> None:
    dotfiles = tmp_path / "dotfiles"
    (dotfiles / "nvim").mkdir(parents=True)
    (dotfiles / "nvim" / "init.lua").write_text("vim.o.number = true\n")
    (dotfiles / "profile").write_text("export HOST={{ host }}\n")

    config_path = _write_config(
        dotfiles,
        '"nvim" = "~/.config/nvim"\n'
        'profile = { target = "~/.profile", type = "template", prepend = "# generated\\n" }\n',
    )

    deploy_result = runner.invoke(app, ["--verbose", "deploy", "--config", str(config_path)])
    assert deploy_result.exit_code == 0

    nvim_link = fake_home / ".config" / "nvim"
    assert nvim_link.is_symlink()
    assert (nvim_link / "init.lua").read_text() == "vim.o.number = true\n"
    assert (fake_home / ".profile").read_text() == "# generated\nexport HOST=laptop\n"
    assert (dotfiles / "state" / "cache" / "profile").exists()
    assert (dotfiles / "state" / "deployed.toml").exists()

    status_result = runner.invoke(app, ["status", "--config", str(config_path)])
    assert status_result.exit_code == 0
    assert "keep" in status_result.stdout


def test_cli_moves_and_prunes(tmp_path: Path, fake_home: Path) -> None:
    dotfiles = tmp_path / "dotfiles"
    dotfiles.mkdir()
    (dotfiles / "zshrc").write_text("setopt autocd\n")
    (dotfiles / "tmux.conf").write_text("set -g mouse on\n")

    config_path = _write_config(dotfiles, 'zshrc = "~/.zshrc"\n"tmux.conf" = "~/.tmux.conf"\n')
    assert runner.invoke(app, ["deploy", "--config", str(config_path)]).exit_code == 0

    _write_config(dotfiles, 'zshrc = "~/.config/zsh/.zshrc"\n')
    status_result = runner.invoke(app, ["status", "--config", str(config_path)])
    assert "delete" in status_result.stdout
    assert "create" in status_result.stdout

    deploy_result = runner.invoke(app, ["deploy", "--config", str(config_path)])
    assert deploy_result.exit_code == 0

    assert not (fake_home / ".zshrc").exists()
    assert not (fake_home / ".tmux.conf").exists()
    assert (fake_home / ".config" / "zsh" / ".zshrc").read_text() == "setopt autocd\n"
    assert (dotfiles / "tmux.conf").read_text() == "set -g mouse on\n"
