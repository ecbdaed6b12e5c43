from __future__ import annotations

import json

from glmbatch.models import BatchResult
from glmbatch.utils.templates import render_template

REPORT_FORMATS = ("text", "json")
PROMPT_PREVIEW_CHARS = 50
RULE_WIDTH = 60


def ellipsize(text: str, limit: int = PROMPT_PREVIEW_CHARS) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def format_batch_result(result: BatchResult, fmt: str = "text") -> str:
    if fmt == "json":
        return json.dumps(result.to_dict(), indent=2)
    if fmt != "text":
        raise ValueError(f"Unknown report format {fmt!r}; expected one of {', '.join(REPORT_FORMATS)}")
    return render_template(
        "report.txt.j2",
        filters={"ellipsize": ellipsize},
        result=result,
        rule="=" * RULE_WIDTH,
        thin_rule="-" * RULE_WIDTH,
    )
