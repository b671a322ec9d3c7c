"""Reconciliation of desired and deployed dotfile state.

``FileState`` holds the desired and the currently deployed symlinks and
templates as sorted, duplicate-free tuples and answers three questions:
which artifacts must be removed, which must be created, and which are already
in place.

Two descriptions refer to the same artifact when their source path and their
target path are equal. Owner, append and prepend are not part of that
identity, so a change to them alone never turns an artifact into a
delete + create pair.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, NamedTuple, TypeVar

from .models import SymbolicTarget, TemplateTarget

logger = logging.getLogger(__name__)


class _Description:
    """Identity, hashing and ordering shared by both description kinds."""

    __slots__ = ()

    def key(self) -> tuple[Path, Path]:
        """Return ``(source, target path)``.

        Paths compare as ``pathlib`` values, so ``a/./b`` and ``a//b`` match ``a/b``.
        """

        return (self.source, self.target.target)  # type: ignore[attr-defined]

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.key() == other.key()  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash(self.key())

    def __lt__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.key() < other.key()  # type: ignore[attr-defined]

    def __le__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.key() <= other.key()  # type: ignore[attr-defined]

    def __gt__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.key() > other.key()  # type: ignore[attr-defined]

    def __ge__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.key() >= other.key()  # type: ignore[attr-defined]


@dataclass(frozen=True, slots=True, eq=False)
class SymlinkDescription(_Description):
    """A symlink at ``target.target`` pointing back to ``source``."""

    source: Path
    target: SymbolicTarget

    def __str__(self) -> str:
        return f'symlink "{self.source}" -> "{self.target.target}"'


@dataclass(frozen=True, slots=True, eq=False)
class TemplateDescription(_Description):
    """A rendered copy of ``source`` written to ``target.target``.

    ``cache`` is where the last rendered output for ``source`` is kept.
    """

    source: Path
    target: TemplateTarget
    cache: Path

    def apply_actions(self, content: str) -> str:
        """Attach the configured prepend/append text to rendered ``content``."""

        if self.target.append is not None:
            content = content + self.target.append
        if self.target.prepend is not None:
            content = self.target.prepend + content
        return content

    def __str__(self) -> str:
        return f'template "{self.source}" -> "{self.target.target}"'


class FileSets(NamedTuple):
    """Symlinks and templates falling into one classification."""

    symlinks: list[SymlinkDescription]
    templates: list[TemplateDescription]


_D = TypeVar("_D", SymlinkDescription, TemplateDescription)


@dataclass(frozen=True, slots=True)
class FileState:
    """Desired and existing deployments of a single reconciliation pass."""

    desired_symlinks: tuple[SymlinkDescription, ...]
    desired_templates: tuple[TemplateDescription, ...]
    existing_symlinks: tuple[SymlinkDescription, ...]
    existing_templates: tuple[TemplateDescription, ...]

    @classmethod
    def from_mappings(
        cls,
        desired_symlinks: Mapping[Path, SymbolicTarget],
        desired_templates: Mapping[Path, TemplateTarget],
        existing_symlinks: Mapping[Path, Path],
        existing_templates: Mapping[Path, Path],
        cache_root: Path,
    ) -> "FileState":
        """Build the aggregate from raw ``source -> target`` mappings.

        Deployed artifacts carry no owner or template decoration, so the
        existing mappings only hold the target path.
        """

        cache_root = Path(cache_root)
        state = cls(
            desired_symlinks=symlinks_to_set(desired_symlinks),
            desired_templates=templates_to_set(desired_templates, cache_root),
            existing_symlinks=symlinks_to_set(
                {source: SymbolicTarget(target=target) for source, target in existing_symlinks.items()}
            ),
            existing_templates=templates_to_set(
                {source: TemplateTarget(target=target) for source, target in existing_templates.items()},
                cache_root,
            ),
        )
        logger.debug(
            "Built file state: %d/%d desired symlinks/templates, %d/%d existing",
            len(state.desired_symlinks),
            len(state.desired_templates),
            len(state.existing_symlinks),
            len(state.existing_templates),
        )
        return state

    def deleted_files(self) -> FileSets:
        """Artifacts that are deployed but no longer desired."""

        return FileSets(
            _difference(self.existing_symlinks, self.desired_symlinks),
            _difference(self.existing_templates, self.desired_templates),
        )

    def new_files(self) -> FileSets:
        """Artifacts that are desired but not deployed yet."""

        return FileSets(
            _difference(self.desired_symlinks, self.existing_symlinks),
            _difference(self.desired_templates, self.existing_templates),
        )

    def old_files(self) -> FileSets:
        """Artifacts that are both desired and deployed.

        The desired descriptions are returned so callers see the current
        owner and template decoration.
        """

        return FileSets(
            _intersection(self.desired_symlinks, self.existing_symlinks),
            _intersection(self.desired_templates, self.existing_templates),
        )


def symlinks_to_set(symlinks: Mapping[Path, SymbolicTarget]) -> tuple[SymlinkDescription, ...]:
    return _ordered(SymlinkDescription(source=Path(source), target=target) for source, target in symlinks.items())


def templates_to_set(templates: Mapping[Path, TemplateTarget], cache_root: Path) -> tuple[TemplateDescription, ...]:
    return _ordered(
        TemplateDescription(source=Path(source), target=target, cache=cache_root / source)
        for source, target in templates.items()
    )


def _ordered(items: Iterable[_D]) -> tuple[_D, ...]:
    return tuple(sorted(set(items)))


def _difference(left: tuple[_D, ...], right: tuple[_D, ...]) -> list[_D]:
    excluded = set(right)
    return [item for item in left if item not in excluded]


def _intersection(left: tuple[_D, ...], right: tuple[_D, ...]) -> list[_D]:
    present = set(right)
    return [item for item in left if item in present]
