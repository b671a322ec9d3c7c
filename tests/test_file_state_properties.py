from __future__ import annotations

from pathlib import Path

from hypothesis import given
from hypothesis import strategies as st

from dotlink.file_state import FileState
from dotlink.models import Owner, SymbolicTarget, TemplateTarget

sources = st.sampled_from(["a", "b", "c", "d", "dir/e", "dir/f"])
targets = st.sampled_from(["t1", "t2", "home/t3"])
mappings = st.dictionaries(sources, targets, max_size=6)
owners = st.one_of(st.none(), st.builds(Owner, user=st.sampled_from(["root", "me"])))
decorations = st.one_of(st.none(), st.text(max_size=5))


def _keys(mapping: dict[str, str]) -> set[tuple[Path, Path]]:
    return {(Path(source), Path(target)) for source, target in mapping.items()}


def _assert_increasing(keys: list[tuple[Path, Path]]) -> None:
    assert all(left < right for left, right in zip(keys, keys[1:]))


@given(desired=mappings, existing=mappings, owner=owners)
def test_symlink_partitions_follow_set_algebra(
    desired: dict[str, str], existing: dict[str, str], owner: Owner | None
) -> None:
    state = FileState.from_mappings(
        {Path(source): SymbolicTarget(target=Path(target), owner=owner) for source, target in desired.items()},
        {},
        {Path(source): Path(target) for source, target in existing.items()},
        {},
        Path("cache"),
    )
    desired_keys, existing_keys = _keys(desired), _keys(existing)

    deleted = [item.key() for item in state.deleted_files().symlinks]
    new = [item.key() for item in state.new_files().symlinks]
    old = [item.key() for item in state.old_files().symlinks]

    assert set(deleted) == existing_keys - desired_keys
    assert set(new) == desired_keys - existing_keys
    assert set(old) == desired_keys & existing_keys

    combined = deleted + new + old
    assert len(combined) == len(set(combined))
    assert set(combined) == desired_keys | existing_keys

    for keys in (deleted, new, old):
        _assert_increasing(keys)


@given(desired=mappings, existing=mappings, append=decorations, prepend=decorations)
def test_template_partitions_ignore_decoration(
    desired: dict[str, str],
    existing: dict[str, str],
    append: str | None,
    prepend: str | None,
) -> None:
    state = FileState.from_mappings(
        {},
        {
            Path(source): TemplateTarget(target=Path(target), append=append, prepend=prepend)
            for source, target in desired.items()
        },
        {},
        {Path(source): Path(target) for source, target in existing.items()},
        Path("cache"),
    )
    desired_keys, existing_keys = _keys(desired), _keys(existing)

    old = state.old_files().templates
    assert {item.key() for item in old} == desired_keys & existing_keys
    assert all(item.target.append == append and item.target.prepend == prepend for item in old)
    assert all(item.cache == Path("cache") / item.source for item in old)
    assert {item.key() for item in state.deleted_files().templates} == existing_keys - desired_keys
    assert {item.key() for item in state.new_files().templates} == desired_keys - existing_keys
    assert state.deleted_files().symlinks == []
