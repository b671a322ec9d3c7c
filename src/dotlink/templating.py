"""Template rendering for dotlink."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from jinja2 import Environment, StrictUndefined, TemplateError


class TemplateRenderError(RuntimeError):
    """Raised when a template cannot be rendered."""


_environment = Environment(
    undefined=StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
)


def render_template(text: str, variables: Mapping[str, Any], *, name: str = "<string>") -> str:
    """Render ``text`` with ``variables``; undefined variables are errors."""

    try:
        return _environment.from_string(text).render(**variables)
    except TemplateError as exc:
        raise TemplateRenderError(f"Failed to render template '{name}': {exc}") from exc


def render_file(path: Path, variables: Mapping[str, Any]) -> str:
    """Read ``path`` as UTF-8 and render it."""

    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise TemplateRenderError(f"Failed to render template '{path}': not valid UTF-8 ({exc.reason})") from exc
    return render_template(text, variables, name=str(path))
