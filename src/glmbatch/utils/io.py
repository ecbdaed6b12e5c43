from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import yaml

from glmbatch.errors import FilesystemError

_YAML_INT_TAG = "tag:yaml.org,2002:int"


class ConfigLoader(yaml.SafeLoader):
    """SafeLoader without YAML 1.1 base-60 integers, so ``16:9`` stays a string."""


ConfigLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _YAML_INT_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
ConfigLoader.add_implicit_resolver(
    _YAML_INT_TAG,
    re.compile(r"^(?:[-+]?0b[0-1_]+|[-+]?0[0-7_]+|[-+]?(?:0|[1-9][0-9_]*)|[-+]?0x[0-9a-fA-F_]+)$"),
    list("-+0123456789"),
)


def write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def read_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.load(handle, Loader=ConfigLoader)


def read_document(path: Path) -> Any:
    """Load a batch document: ``.json`` with the json module, anything else as YAML."""
    if path.suffix.lower() == ".json":
        return read_json(path)
    return read_yaml(path)


def write_bytes(path: Path, data: bytes) -> None:
    try:
        with path.open("xb") as handle:
            handle.write(data)
    except OSError as exc:
        raise FilesystemError(f"Could not write image to {path}: {exc}") from exc
