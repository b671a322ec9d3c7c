"""Persistence of the deployed state for dotlink."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Mapping

from tomli_w import dump as toml_dump


class ManifestError(RuntimeError):
    """Raised when the deployed-state file cannot be read."""


class Manifest:
    """Records which symlinks and templates are currently deployed."""

    def __init__(
        self,
        path: Path,
        symlinks: dict[Path, Path] | None = None,
        templates: dict[Path, Path] | None = None,
    ) -> None:
        self.path = path
        self._symlinks: dict[Path, Path] = symlinks or {}
        self._templates: dict[Path, Path] = templates or {}

    @classmethod
    def load(cls, path: Path) -> "Manifest":
        if not path.exists():
            return cls(path)

        try:
            with path.open("rb") as handle:
                data = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ManifestError(f"Deployed-state file '{path}' is corrupt: {exc}") from exc

        return cls(
            path,
            symlinks=cls._read_table(path, data, "symlinks"),
            templates=cls._read_table(path, data, "templates"),
        )

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "symlinks": self._table_to_dict(self._symlinks),
            "templates": self._table_to_dict(self._templates),
        }
        with self.path.open("wb") as handle:
            toml_dump(payload, handle)

    def symlinks(self) -> dict[Path, Path]:
        return dict(sorted(self._symlinks.items()))

    def templates(self) -> dict[Path, Path]:
        return dict(sorted(self._templates.items()))

    def record_symlink(self, source: Path, target: Path) -> None:
        self._symlinks[Path(source)] = Path(target)

    def record_template(self, source: Path, target: Path) -> None:
        self._templates[Path(source)] = Path(target)

    def forget_symlink(self, source: Path) -> None:
        self._symlinks.pop(Path(source), None)

    def forget_template(self, source: Path) -> None:
        self._templates.pop(Path(source), None)

    @staticmethod
    def _read_table(path: Path, data: Mapping[str, object], name: str) -> dict[Path, Path]:
        table = data.get(name, {})
        if not isinstance(table, Mapping):
            raise ManifestError(f"Deployed-state file '{path}' has an invalid [{name}] section")
        return {Path(source): Path(str(target)) for source, target in table.items()}

    @staticmethod
    def _table_to_dict(table: Mapping[Path, Path]) -> dict[str, str]:
        return {source.as_posix(): str(target) for source, target in sorted(table.items())}
