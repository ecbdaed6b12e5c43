from __future__ import annotations

import os
import re
from datetime import datetime, timezone
from pathlib import Path

from glmbatch.errors import FilesystemError, SecurityError

DEFAULT_OUTPUT_DIR = Path.home() / "Downloads" / "glm-images"
IMAGE_EXTENSION = ".png"
MAX_FILENAME_LENGTH = 200
MAX_PROMPT_SLUG_LENGTH = 50
MAX_UNIQUE_ATTEMPTS = 10_000

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE = re.compile(r"\s+")
_UNDERSCORES = re.compile(r"_+")


def expand_path(path: str | Path) -> Path:
    return Path(path).expanduser().resolve()


def default_output_directory() -> Path:
    env_dir = os.environ.get("OUTPUT_DIRECTORY", "").strip()
    if env_dir:
        return expand_path(env_dir)
    return DEFAULT_OUTPUT_DIR


def ensure_directory(directory: Path) -> None:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(f"Could not create output directory {directory}: {exc}") from exc


def sanitize_filename(filename: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("_", filename)
    cleaned = _WHITESPACE.sub("_", cleaned)
    cleaned = _UNDERSCORES.sub("_", cleaned)
    return cleaned.strip("_")[:MAX_FILENAME_LENGTH]


def generate_filename(prompt: str, *, now: datetime | None = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H-%M-%S")
    slug = sanitize_filename(prompt)[:MAX_PROMPT_SLUG_LENGTH] or "image"
    return f"{stamp}_{slug}{IMAGE_EXTENSION}"


def unique_filepath(directory: Path, filename: str) -> Path:
    ensure_directory(directory)
    candidate = directory / filename
    if not candidate.exists():
        return candidate
    stem, suffix = Path(filename).stem, Path(filename).suffix
    for counter in range(1, MAX_UNIQUE_ATTEMPTS + 1):
        candidate = directory / f"{stem}_{counter}{suffix}"
        if not candidate.exists():
            return candidate
    raise FilesystemError(
        f"Could not find a free filename for {filename} in {directory} after {MAX_UNIQUE_ATTEMPTS} attempts"
    )


def is_within_directory(path: Path, directory: Path) -> bool:
    resolved_path = str(path.resolve())
    resolved_dir = str(directory.resolve())
    return resolved_path == resolved_dir or resolved_path.startswith(resolved_dir.rstrip(os.sep) + os.sep)


def resolve_output_path(
    directory: str | Path,
    suggested_filename: str | None = None,
    prompt: str | None = None,
) -> Path:
    """Pick a fresh, contained path for an image inside ``directory``.

    A suggested filename is sanitized and given a ``.png`` extension; without
    one (or when nothing survives sanitizing) the name is built from the
    current UTC time and the prompt. Existing files are never overwritten:
    ``_1``, ``_2``, ... are appended before the extension until the name is
    free. The final path is re-checked against the resolved directory, and
    anything that lands outside it raises SecurityError.

    Nothing in here awaits, so concurrent jobs on one event loop cannot pick
    the same name between the existence check and the write that follows.
    """
    directory = Path(directory)
    filename = ""
    if suggested_filename:
        filename = sanitize_filename(suggested_filename)
        if filename and not filename.endswith(IMAGE_EXTENSION):
            filename += IMAGE_EXTENSION
    if not filename:
        filename = generate_filename(prompt or "image")

    filepath = unique_filepath(directory, filename)
    if not is_within_directory(filepath, directory):
        raise SecurityError("Invalid output path: path traversal detected")
    return filepath.resolve()
