JOB_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "required": ["prompt"],
    "properties": {
        "prompt": {"type": "string", "minLength": 1, "pattern": "\\S"},
        "quality": {"type": "string", "enum": ["hd", "standard"]},
        # Unknown presets are reported per job by the size resolver.
        "size_preset": {"type": "string"},
        "custom_size": {"type": "string"},
        "output_filename": {"type": "string"},
    },
}

CLIENT_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "required": ["model", "base_url", "timeout_s", "download_timeout_s", "default_quality"],
    "properties": {
        "model": {"type": "string", "minLength": 1},
        "base_url": {"type": "string", "minLength": 1},
        "timeout_s": {"type": "number", "exclusiveMinimum": 0},
        "download_timeout_s": {"type": "number", "exclusiveMinimum": 0},
        "default_quality": {"type": "string", "enum": ["hd", "standard"]},
    },
}

BATCH_CONFIG_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "required": ["jobs", "concurrency", "client"],
    "properties": {
        "jobs": {
            "type": "array",
            "items": JOB_SCHEMA,
            "minItems": 1,
        },
        "output_directory": {"type": ["string", "null"]},
        "concurrency": {"type": "integer", "minimum": 1},
        "client": CLIENT_SCHEMA,
    },
}
