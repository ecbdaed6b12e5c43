from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape

from glmbatch.config import DEFAULT_CONCURRENCY
from glmbatch.errors import ConfigurationError
from glmbatch.models import BatchResult, Job, JobResult
from glmbatch.utils.image_service import ImageService
from glmbatch.utils.parallel import ProgressCallback, gather_in_windows
from glmbatch.utils.size import require_size

console = Console(stderr=True)


async def run_job(service: ImageService, job: Job) -> JobResult:
    """Run one job end to end. Never raises; failures land in the result."""
    try:
        # ValidationError is caught below, before any network call.
        size = require_size(job.size_preset, job.custom_size)

        result = await service.generate_image(
            prompt=job.prompt,
            quality=job.quality,
            size=size,
            output_filename=job.output_filename,
        )
        if not result.success:
            return JobResult.failed(job, result.error or "Unknown error")
        return JobResult(job=job, success=True, filepath=result.filepath, url=result.url)
    except Exception as exc:  # noqa: BLE001 - one job must never abort the batch
        return JobResult.failed(job, str(exc) or type(exc).__name__)


async def run_batch(
    service: ImageService,
    jobs: Sequence[Job],
    concurrency: int | None = DEFAULT_CONCURRENCY,
    *,
    on_progress: ProgressCallback | None = None,
    progress_desc: str | None = None,
) -> BatchResult:
    """Attempt every job once, ``concurrency`` jobs per window, in input order.

    Raises ConfigurationError before any job runs when the job list is empty
    or the concurrency is not a positive integer. ``None`` means the default.
    """
    if not jobs:
        raise ConfigurationError('Config must contain a non-empty "jobs" array')
    if concurrency is None:
        concurrency = DEFAULT_CONCURRENCY
    if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
        raise ConfigurationError(f"Concurrency must be a positive integer, got {concurrency!r}")

    console.print(f"[cyan]Running {len(jobs)} jobs, {concurrency} at a time.[/cyan]")
    tasks = [lambda job=job: run_job(service, job) for job in jobs]
    results = await gather_in_windows(
        concurrency,
        tasks,
        on_window=on_progress,
        progress_desc=progress_desc,
    )

    batch = BatchResult(results=tuple(results))
    for result in batch.results:
        if not result.success:
            prompt = escape(repr(result.job.prompt[:50]))
            console.print(f"[yellow]Job failed: {prompt}: {escape(result.error or '')}[/yellow]", highlight=False)
    colour = "green" if batch.failed == 0 else "red"
    console.print(f"[{colour}]{batch.successful}/{batch.total} jobs succeeded.[/{colour}]")
    return batch
