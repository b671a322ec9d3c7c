from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from dotlink.file_state import TemplateDescription
from dotlink.models import Owner, SymbolicTarget, TemplateTarget


def _description(**extra: object) -> TemplateDescription:
    return TemplateDescription(
        source=Path("gitconfig"),
        target=TemplateTarget(target=Path("/home/me/.gitconfig"), **extra),
        cache=Path("cache/gitconfig"),
    )


def test_apply_actions_with_append_and_prepend() -> None:
    assert _description(append="A", prepend="P").apply_actions("B") == "PBA"


def test_apply_actions_without_decoration_is_identity() -> None:
    assert _description().apply_actions("base\n") == "base\n"


def test_apply_actions_append_only() -> None:
    assert _description(append="\n# local\n").apply_actions("B") == "B\n# local\n"


def test_apply_actions_prepend_only_is_literal() -> None:
    assert _description(prepend="  ").apply_actions("  B  ") == "    B  "


def test_apply_actions_empty_strings_still_apply() -> None:
    assert _description(append="", prepend="").apply_actions("B") == "B"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("root", Owner(user="root")),
        ("root:wheel", Owner(user="root", group="wheel")),
        ({"user": "me", "group": "staff"}, Owner(user="me", group="staff")),
    ],
)
def test_owner_accepts_shorthand(raw: object, expected: Owner) -> None:
    assert Owner.model_validate(raw) == expected


def test_owner_renders_user_and_group() -> None:
    assert str(Owner(user="root")) == "root"
    assert str(Owner(user="root", group="wheel")) == "root:wheel"


def test_targets_are_immutable() -> None:
    target = SymbolicTarget(target=Path("/tmp/link"))

    with pytest.raises(ValidationError):
        target.target = Path("/tmp/other")  # type: ignore[misc]
