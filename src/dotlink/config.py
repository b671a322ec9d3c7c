"""TOML configuration loading for dotlink."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .models import Owner, SymbolicTarget, TemplateTarget

DEFAULT_CONFIG_FILENAME = "dotlink.toml"


class ConfigError(RuntimeError):
    """Raised when a configuration file cannot be parsed or validated."""


def _expand_path(raw: str | os.PathLike[str] | Path, *, base_dir: Path, resolve: bool = True) -> Path:
    """Return an absolute ``Path`` by expanding env vars and user segments.

    Deployment targets are expanded with ``resolve=False`` so an existing
    symlink at the target is not followed.
    """

    text = str(raw)
    expanded = Path(os.path.expandvars(text)).expanduser()
    if not expanded.is_absolute():
        expanded = base_dir / expanded
    if resolve:
        return expanded.resolve(strict=False)
    return Path(os.path.normpath(expanded))


class Settings(BaseModel):
    """Global configuration options."""

    model_config = ConfigDict(frozen=True)

    cache_directory: Path
    cache_file: Path

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any], *, base_dir: Path) -> "Settings":
        cache_directory = _expand_path(raw.get("cache_directory", ".dotlink/cache"), base_dir=base_dir)
        cache_file = _expand_path(raw.get("cache_file", ".dotlink/cache.toml"), base_dir=base_dir)
        return cls(cache_directory=cache_directory, cache_file=cache_file)


class FileEntry(BaseModel):
    """A single ``[files]`` entry as written in the configuration file."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    target: str
    type: Literal["symbolic", "template"] = "symbolic"
    owner: Owner | None = None
    append: str | None = None
    prepend: str | None = None

    @model_validator(mode="after")
    def _decoration_requires_template(self) -> "FileEntry":
        if self.type == "symbolic" and (self.append is not None or self.prepend is not None):
            raise ValueError("'append' and 'prepend' are only valid for template entries")
        return self


class Config(BaseModel):
    """Fully parsed configuration file."""

    model_config = ConfigDict(frozen=True)

    config_path: Path
    settings: Settings
    symlinks: Dict[Path, SymbolicTarget] = Field(default_factory=dict)
    templates: Dict[Path, TemplateTarget] = Field(default_factory=dict)
    variables: Dict[str, Any] = Field(default_factory=dict)

    @property
    def base_dir(self) -> Path:
        """Directory holding the dotfiles, i.e. the one containing the config."""

        return self.config_path.parent

    def source_path(self, source: Path) -> Path:
        """Return the absolute path of a managed ``source``."""

        return self.base_dir / source


def load_config(path: Path | None = None) -> Config:
    """Load and validate a configuration file.

    Args:
        path: Optional path to the TOML file, or to the directory holding it.
            Defaults to ``dotlink.toml`` in the current working directory.
    """

    config_path = _resolve_config_path(path)
    base_dir = config_path.parent

    try:
        with config_path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Configuration file '{config_path}' is not valid TOML: {exc}") from exc

    files_section = data.get("files") or {}
    if not isinstance(files_section, Mapping):
        raise ConfigError("[files] must be a table mapping source paths to targets")

    symlinks: Dict[Path, SymbolicTarget] = {}
    templates: Dict[Path, TemplateTarget] = {}
    for raw_source, raw_entry in files_section.items():
        source = _parse_source(raw_source)
        if source in symlinks or source in templates:
            raise ConfigError(f"Source '{source}' is listed more than once")

        entry = _parse_entry(source, raw_entry)
        target = _expand_path(entry.target, base_dir=base_dir, resolve=False)
        if entry.type == "template":
            templates[source] = TemplateTarget(
                target=target,
                owner=entry.owner,
                append=entry.append,
                prepend=entry.prepend,
            )
        else:
            symlinks[source] = SymbolicTarget(target=target, owner=entry.owner)

    variables = data.get("variables") or {}
    if not isinstance(variables, Mapping):
        raise ConfigError("[variables] must be a table")

    settings = Settings.from_raw(data.get("settings", {}), base_dir=base_dir)

    return Config(
        config_path=config_path,
        settings=settings,
        symlinks=symlinks,
        templates=templates,
        variables=dict(variables),
    )


def _parse_source(raw: str) -> Path:
    candidate = Path(raw)
    if candidate.is_absolute():
        raise ConfigError(f"Source '{candidate}' must be relative to the configuration directory")
    if ".." in candidate.parts:
        raise ConfigError(f"Source '{candidate}' must not escape the configuration directory")
    return candidate


def _parse_entry(source: Path, raw: Any) -> FileEntry:
    if isinstance(raw, str):
        raw = {"target": raw}
    try:
        return FileEntry.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid entry for '{source}': {exc}") from exc


def _resolve_config_path(path: Path | None) -> Path:
    if path is None:
        path = Path.cwd() / DEFAULT_CONFIG_FILENAME
    else:
        path = Path(path)

    if not path.exists():
        raise ConfigError(f"Configuration file '{path}' does not exist")
    if path.is_dir():
        candidate = path / DEFAULT_CONFIG_FILENAME
        if not candidate.exists():
            raise ConfigError(f"Expected to find '{DEFAULT_CONFIG_FILENAME}' inside '{path}', but none was located")
        path = candidate

    return path.resolve(strict=False)
