"""High level orchestration of a dotlink deploy pass."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from .config import Config
from .file_state import FileState, SymlinkDescription, TemplateDescription
from .filesystem import (
    apply_owner,
    create_symlink,
    exists,
    read_bytes,
    remove_path,
    symlink_points_to,
    write_text_atomic,
)
from .manifest import Manifest
from .models import ArtifactKind, DeployAction, DeployResult, Owner
from .templating import render_file

logger = logging.getLogger(__name__)


class DeployError(RuntimeError):
    """Raised when a deploy pass cannot be carried out."""


class Deployer:
    """Applies the difference between configuration and deployed state."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.manifest = Manifest.load(config.settings.cache_file)

    def plan(self) -> FileState:
        return FileState.from_mappings(
            self.config.symlinks,
            self.config.templates,
            self.manifest.symlinks(),
            self.manifest.templates(),
            self.config.settings.cache_directory,
        )

    def deploy(self, *, force: bool = False, dry_run: bool = False) -> list[DeployResult]:
        state = self.plan()
        new = state.new_files()
        old = state.old_files()
        self._ensure_sources_exist([*new.symlinks, *old.symlinks, *new.templates, *old.templates])
        return self._run(state, force=force, dry_run=dry_run)

    def undeploy(self, *, force: bool = False, dry_run: bool = False) -> list[DeployResult]:
        state = FileState.from_mappings(
            {},
            {},
            self.manifest.symlinks(),
            self.manifest.templates(),
            self.config.settings.cache_directory,
        )
        return self._run(state, force=force, dry_run=dry_run)

    # ------------------------------------------------------------------
    # Internal helpers

    def _run(self, state: FileState, *, force: bool, dry_run: bool) -> list[DeployResult]:
        results: list[DeployResult] = []
        deleted = state.deleted_files()
        new = state.new_files()
        old = state.old_files()
        rendered = {item.source: self._render(item) for item in (*new.templates, *old.templates)}

        try:
            results.extend(self._delete_symlink(item, force=force, dry_run=dry_run) for item in deleted.symlinks)
            results.extend(self._delete_template(item, force=force, dry_run=dry_run) for item in deleted.templates)

            results.extend(self._create_symlink(item, force=force, dry_run=dry_run) for item in new.symlinks)
            results.extend(
                self._create_template(item, rendered[item.source], force=force, dry_run=dry_run)
                for item in new.templates
            )

            results.extend(self._refresh_symlink(item, force=force, dry_run=dry_run) for item in old.symlinks)
            results.extend(
                self._refresh_template(item, rendered[item.source], force=force, dry_run=dry_run)
                for item in old.templates
            )
        finally:
            if not dry_run:
                self.manifest.save()
        return results

    def _ensure_sources_exist(self, descriptions: Iterable[SymlinkDescription | TemplateDescription]) -> None:
        for description in descriptions:
            source = self.config.source_path(description.source)
            if not exists(source):
                raise DeployError(f"Source path '{source}' does not exist")

    def _delete_symlink(self, description: SymlinkDescription, *, force: bool, dry_run: bool) -> DeployResult:
        source = self.config.source_path(description.source)
        target = description.target.target

        if not exists(target):
            action, details = DeployAction.DELETED, "Target was already missing"
        elif symlink_points_to(target, source):
            action, details = DeployAction.DELETED, None
        elif force:
            action, details = DeployAction.DELETED, "Removed foreign target (--force)"
        else:
            action, details = DeployAction.SKIPPED, "Target is no longer a symlink to the source; left in place"

        if not dry_run:
            if action is DeployAction.DELETED:
                remove_path(target)
            self.manifest.forget_symlink(description.source)
        return self._report(ArtifactKind.SYMLINK, description, action, details)

    def _delete_template(self, description: TemplateDescription, *, force: bool, dry_run: bool) -> DeployResult:
        target = description.target.target
        current = read_bytes(target)
        cached = read_bytes(description.cache)

        if not exists(target):
            action, details = DeployAction.DELETED, "Target was already missing"
        elif current is not None and current == cached:
            action, details = DeployAction.DELETED, None
        elif force:
            action, details = DeployAction.DELETED, "Removed modified target (--force)"
        else:
            action, details = DeployAction.SKIPPED, "Target was modified since it was deployed; left in place"

        if not dry_run:
            if action is DeployAction.DELETED:
                remove_path(target)
            remove_path(description.cache)
            self.manifest.forget_template(description.source)
        return self._report(ArtifactKind.TEMPLATE, description, action, details)

    def _create_symlink(self, description: SymlinkDescription, *, force: bool, dry_run: bool) -> DeployResult:
        source = self.config.source_path(description.source)
        target = description.target.target

        if symlink_points_to(target, source):
            action, details = DeployAction.UNCHANGED, "Symlink was already in place"
        elif exists(target) and not force:
            action, details = DeployAction.SKIPPED, "Target already exists; use --force to replace it"
        else:
            action, details = DeployAction.CREATED, None

        if not dry_run and action is not DeployAction.SKIPPED:
            if action is DeployAction.CREATED:
                create_symlink(target, source)
            self._apply_owner(target, description.target.owner)
            self.manifest.record_symlink(description.source, target)
        return self._report(ArtifactKind.SYMLINK, description, action, details)

    def _create_template(
        self, description: TemplateDescription, content: str, *, force: bool, dry_run: bool
    ) -> DeployResult:
        target = description.target.target
        current = read_bytes(target)
        expected = content.encode("utf-8")

        if current == expected:
            action, details = DeployAction.UNCHANGED, "Target already holds the rendered content"
        elif exists(target) and not force:
            action, details = DeployAction.SKIPPED, "Target already exists; use --force to replace it"
        else:
            action, details = DeployAction.CREATED, None

        if not dry_run and action is not DeployAction.SKIPPED:
            write_text_atomic(description.cache, content)
            if action is DeployAction.CREATED:
                write_text_atomic(target, content)
            self._apply_owner(target, description.target.owner)
            self.manifest.record_template(description.source, target)
        return self._report(ArtifactKind.TEMPLATE, description, action, details)

    def _refresh_symlink(self, description: SymlinkDescription, *, force: bool, dry_run: bool) -> DeployResult:
        source = self.config.source_path(description.source)
        target = description.target.target

        if symlink_points_to(target, source):
            action, details = DeployAction.UNCHANGED, None
        elif not exists(target):
            action, details = DeployAction.UPDATED, "Recreated missing symlink"
        elif force:
            action, details = DeployAction.UPDATED, "Replaced foreign target (--force)"
        else:
            action, details = DeployAction.SKIPPED, "Target was replaced by something else; use --force"

        if not dry_run and action is not DeployAction.SKIPPED:
            if action is DeployAction.UPDATED:
                create_symlink(target, source)
            self._apply_owner(target, description.target.owner)
        return self._report(ArtifactKind.SYMLINK, description, action, details)

    def _refresh_template(
        self, description: TemplateDescription, content: str, *, force: bool, dry_run: bool
    ) -> DeployResult:
        target = description.target.target
        current = read_bytes(target)
        expected = content.encode("utf-8")
        cached = read_bytes(description.cache)

        if current == expected:
            action, details = DeployAction.UNCHANGED, None
        elif not exists(target):
            action, details = DeployAction.UPDATED, "Recreated missing target"
        elif current is not None and current == cached:
            action, details = DeployAction.UPDATED, None
        elif force:
            action, details = DeployAction.UPDATED, "Overwrote modified target (--force)"
        else:
            action, details = DeployAction.SKIPPED, "Target was modified since it was deployed; use --force"

        if not dry_run and action is not DeployAction.SKIPPED:
            if cached != expected:
                write_text_atomic(description.cache, content)
            if action is DeployAction.UPDATED:
                write_text_atomic(target, content)
            self._apply_owner(target, description.target.owner)
        return self._report(ArtifactKind.TEMPLATE, description, action, details)

    def _render(self, description: TemplateDescription) -> str:
        source = self.config.source_path(description.source)
        return description.apply_actions(render_file(source, self.config.variables))

    def _apply_owner(self, path: Path, owner: Owner | None) -> None:
        if owner is None:
            return
        try:
            apply_owner(path, owner)
        except PermissionError:
            raise DeployError(
                f"Unable to set ownership of '{path}' to '{owner}'. Re-run with elevated privileges."
            ) from None
        except KeyError as exc:
            raise DeployError(f"Unknown user or group in owner '{owner}' for '{path}'") from exc

    @staticmethod
    def _report(
        kind: ArtifactKind,
        description: SymlinkDescription | TemplateDescription,
        action: DeployAction,
        details: str | None,
    ) -> DeployResult:
        if action is DeployAction.SKIPPED:
            logger.warning("Skipped %s: %s", description, details)
        else:
            logger.debug("%s %s", action.value.capitalize(), description)
        return DeployResult(
            kind=kind,
            source=description.source,
            target=description.target.target,
            action=action,
            details=details,
        )
