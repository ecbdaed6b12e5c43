from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from glmbatch.config import BatchConfig, load_config, load_settings
from glmbatch.errors import ConfigurationError
from glmbatch.models import QUALITIES, Job
from glmbatch.pipeline.batch import run_batch, run_job
from glmbatch.pipeline.report import REPORT_FORMATS, format_batch_result
from glmbatch.utils.io import write_json
from glmbatch.utils.parallel import ProgressCallback
from glmbatch.utils.paths import default_output_directory, expand_path
from glmbatch.utils.size import DIVISOR, MAX_DIMENSION, MAX_TOTAL_PIXELS, MIN_DIMENSION, RECOMMENDED_SIZES
from glmbatch.utils.zai_client import ZAIClient

console = Console(stderr=True)


def main(argv: Sequence[str] | None = None) -> None:
    load_dotenv()
    parser = argparse.ArgumentParser(prog="glm-batch", description="Batch image generation with Z.AI glm-image.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run every job in a batch config file.")
    run_parser.add_argument("config", type=Path)
    run_parser.add_argument("--format", choices=REPORT_FORMATS, default="text")
    run_parser.add_argument("--out", type=Path, help="Output directory (overrides the config file).")
    run_parser.add_argument("--concurrency", type=int, help="Jobs per window (overrides the config file).")
    run_parser.add_argument("--progress", choices=("log", "bar", "none"), default="log")
    run_parser.add_argument("--save-report", type=Path, help="Also write the JSON report to this path.")

    generate_parser = subparsers.add_parser("generate", help="Generate a single image.")
    generate_parser.add_argument("--prompt", required=True)
    generate_parser.add_argument("--quality", choices=QUALITIES)
    size_group = generate_parser.add_mutually_exclusive_group()
    size_group.add_argument("--size-preset", choices=tuple(RECOMMENDED_SIZES))
    size_group.add_argument("--custom-size")
    generate_parser.add_argument("--filename")
    generate_parser.add_argument("--out", type=Path)

    subparsers.add_parser("sizes", help="List size presets and custom size rules.")

    args = parser.parse_args(argv)

    if args.command == "run":
        code = run_config(
            args.config,
            fmt=args.format,
            out_dir=args.out,
            concurrency=args.concurrency,
            progress=args.progress,
            save_report=args.save_report,
        )
    elif args.command == "generate":
        code = run_generate(
            Job(
                prompt=args.prompt,
                quality=args.quality,
                size_preset=args.size_preset,
                custom_size=args.custom_size,
                output_filename=args.filename,
            ),
            out_dir=args.out,
        )
    else:
        code = run_sizes()
    raise SystemExit(code)


def run_config(
    config_path: Path,
    *,
    fmt: str = "text",
    out_dir: Path | None = None,
    concurrency: int | None = None,
    progress: str = "log",
    save_report: Path | None = None,
) -> int:
    settings = load_settings()
    if not settings.api_key:
        console.print("[red]Error: Z_AI_API_KEY environment variable is required[/red]")
        return 1
    try:
        config = load_config(config_path)
    except ConfigurationError as exc:
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 1
    if out_dir is not None:
        config.output_directory = expand_path(out_dir)
    if concurrency is not None:
        config.concurrency = concurrency

    console.print(f"Processing batch config: {escape(str(config_path))}", highlight=False)
    try:
        result = asyncio.run(_run_batch(config, progress))
    except ConfigurationError as exc:
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 1

    print(format_batch_result(result, fmt))
    if save_report is not None:
        write_json(save_report, result.to_dict())
    return 1 if result.failed else 0


async def _run_batch(config: BatchConfig, progress: str):
    settings = load_settings(config.client)
    on_progress: ProgressCallback | None = None
    if progress == "log":
        on_progress = _log_progress
    async with ZAIClient(settings, config.output_directory) as client:
        return await run_batch(
            client,
            config.jobs,
            config.concurrency,
            on_progress=on_progress,
            progress_desc="Image jobs" if progress == "bar" else None,
        )


def _log_progress(completed: int, total: int) -> None:
    console.print(f"Progress: {completed}/{total} jobs completed", highlight=False)


def run_generate(job: Job, *, out_dir: Path | None = None) -> int:
    settings = load_settings()
    if not settings.api_key:
        console.print("[red]Error: Z_AI_API_KEY environment variable is required[/red]")
        return 1
    directory = expand_path(out_dir) if out_dir is not None else default_output_directory()
    result = asyncio.run(_generate_one(settings, directory, job))
    if result.success:
        payload = {"success": True, "filepath": result.filepath, "url": result.url}
    else:
        payload = {"success": False, "error": result.error}
    print(json.dumps(payload, indent=2))
    return 0 if result.success else 1


async def _generate_one(settings, directory: Path, job: Job):
    async with ZAIClient(settings, directory) as client:
        return await run_job(client, job)


def run_sizes() -> int:
    for preset, size in RECOMMENDED_SIZES.items():
        print(f"{preset:>5}  {size}")
    print()
    print(
        f"Custom sizes: WIDTHxHEIGHT, each side {MIN_DIMENSION}-{MAX_DIMENSION}px, "
        f"divisible by {DIVISOR}, at most {MAX_TOTAL_PIXELS:,} pixels in total."
    )
    return 0


if __name__ == "__main__":
    main()
