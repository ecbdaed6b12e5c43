from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

from jinja2 import Environment, FileSystemLoader


def _default_template_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "templates"


def render_template(
    template_name: str,
    filters: dict[str, Callable[..., Any]] | None = None,
    **kwargs: Any,
) -> str:
    template_dir = _default_template_dir()
    env = Environment(loader=FileSystemLoader(str(template_dir)), trim_blocks=True, lstrip_blocks=True)
    env.filters.update(filters or {})
    template = env.get_template(template_name)
    return template.render(**kwargs).rstrip("\n")
