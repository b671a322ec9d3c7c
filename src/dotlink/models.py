"""Shared models and enums for dotlink."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class Owner(BaseModel):
    """User and optional group that should own a deployed artifact."""

    model_config = ConfigDict(frozen=True)

    user: str
    group: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _parse_shorthand(cls, raw: Any) -> Any:
        # "user" or "user:group"
        if isinstance(raw, str):
            user, _, group = raw.partition(":")
            return {"user": user, "group": group or None}
        return raw

    def __str__(self) -> str:
        return self.user if self.group is None else f"{self.user}:{self.group}"


class SymbolicTarget(BaseModel):
    """Where a symlink should be created and who should own it."""

    model_config = ConfigDict(frozen=True)

    target: Path
    owner: Owner | None = None


class TemplateTarget(BaseModel):
    """Destination of a rendered template plus literal text around it."""

    model_config = ConfigDict(frozen=True)

    target: Path
    owner: Owner | None = None
    append: str | None = None
    prepend: str | None = None


class ArtifactKind(str, Enum):
    """Kinds of artifacts deployed by dotlink."""

    SYMLINK = "symlink"
    TEMPLATE = "template"


class DeployAction(str, Enum):
    """Outcome of deploying or removing a single artifact."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    DELETED = "deleted"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class DeployResult:
    """Result emitted for every artifact touched by a deploy pass."""

    kind: ArtifactKind
    source: Path
    target: Path
    action: DeployAction
    details: str | None = None
