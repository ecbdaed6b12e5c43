from __future__ import annotations

import json
import os
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator
from yaml import YAMLError

from glmbatch.errors import ConfigurationError
from glmbatch.models import Job
from glmbatch.schemas import BATCH_CONFIG_SCHEMA
from glmbatch.utils.io import read_document
from glmbatch.utils.paths import default_output_directory, expand_path

DEFAULT_CONCURRENCY = 3

DEFAULT_CONFIG = {
    "output_directory": None,
    "concurrency": DEFAULT_CONCURRENCY,
    "client": {
        "model": "glm-image",
        "base_url": "https://api.z.ai/api/paas/v4",
        "timeout_s": 120,
        "download_timeout_s": 60,
        "default_quality": "hd",
    },
}


@dataclass(frozen=True)
class ClientSettings:
    api_key: str
    model: str = "glm-image"
    base_url: str = "https://api.z.ai/api/paas/v4"
    timeout_s: float = 120
    download_timeout_s: float = 60
    default_quality: str = "hd"


@dataclass
class BatchConfig:
    jobs: list[Job]
    concurrency: int
    output_directory: Path
    client: dict[str, Any]
    source_path: Path | None = None


def load_config(path: Path) -> BatchConfig:
    path = path.expanduser().resolve()
    try:
        user_cfg = read_document(path)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Config file not found: {path}") from exc
    except (OSError, json.JSONDecodeError, YAMLError) as exc:
        raise ConfigurationError(f"Could not parse config file {path}: {exc}") from exc
    config = parse_config(user_cfg)
    config.source_path = path
    return config


def parse_config(data: Any) -> BatchConfig:
    """Validate a raw batch document and turn it into a BatchConfig.

    The document is merged over DEFAULT_CONFIG and then checked against
    BATCH_CONFIG_SCHEMA; all schema violations are reported together.
    """
    if not isinstance(data, dict):
        raise ConfigurationError('Config must be a mapping containing a non-empty "jobs" array')
    if not isinstance(data.get("jobs"), list) or not data["jobs"]:
        raise ConfigurationError('Config must contain a non-empty "jobs" array')

    # An explicit null concurrency means "use the default", same as leaving it out.
    data = {key: value for key, value in data.items() if not (key == "concurrency" and value is None)}
    merged = resolve_config(data)
    validator = Draft202012Validator(BATCH_CONFIG_SCHEMA)
    errors = [
        f"{_format_location(err.absolute_path)}: {err.message}"
        for err in sorted(validator.iter_errors(merged), key=lambda err: list(map(str, err.absolute_path)))
    ]
    if errors:
        raise ConfigurationError("Invalid batch config:\n  " + "\n  ".join(errors))

    output_directory = merged.get("output_directory")
    return BatchConfig(
        jobs=[Job.from_dict(job) for job in merged["jobs"]],
        concurrency=merged["concurrency"],
        output_directory=expand_path(output_directory) if output_directory else default_output_directory(),
        client=merged["client"],
    )


def resolve_config(overrides: dict[str, Any] | None = None) -> dict[str, Any]:
    """Resolve a config dict by applying overrides to defaults."""
    base = deepcopy(DEFAULT_CONFIG)
    if overrides:
        return _deep_merge(base, overrides)
    return base


def load_settings(client_cfg: dict[str, Any] | None = None, api_key: str | None = None) -> ClientSettings:
    client_cfg = {**DEFAULT_CONFIG["client"], **(client_cfg or {})}
    return ClientSettings(
        api_key=api_key or os.environ.get("Z_AI_API_KEY", "").strip(),
        model=client_cfg["model"],
        base_url=os.environ.get("Z_AI_BASE_URL", "").strip() or client_cfg["base_url"],
        timeout_s=client_cfg["timeout_s"],
        download_timeout_s=client_cfg["download_timeout_s"],
        default_quality=client_cfg["default_quality"],
    )


def _format_location(path: Any) -> str:
    parts = [f"[{part}]" if isinstance(part, int) else f".{part}" for part in path]
    return "config" + "".join(parts)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key in base.keys() | override.keys():
        if key in base and key in override:
            if isinstance(base[key], dict) and isinstance(override[key], dict):
                result[key] = _deep_merge(base[key], override[key])
            else:
                result[key] = override[key]
        elif key in base:
            result[key] = base[key]
        else:
            result[key] = override[key]
    return result
