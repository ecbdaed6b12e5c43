from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tqdm import tqdm

T = TypeVar("T")

ProgressCallback = Callable[[int, int], None]


def split_windows(count: int, size: int) -> list[range]:
    if size < 1:
        raise ValueError("Window size must be at least 1")
    return [range(start, min(start + size, count)) for start in range(0, count, size)]


async def gather_in_windows(
    limit: int,
    tasks: list[Callable[[], Awaitable[T]]],
    *,
    on_window: ProgressCallback | None = None,
    progress_desc: str | None = None,
) -> list[T]:
    """Run task factories in consecutive windows of ``limit``.

    Every task in a window is started together and the window is awaited in
    full before the next one starts. Results come back in input order, slot
    by slot, regardless of which task finished first. ``on_window`` receives
    ``(completed, total)`` after each window.
    """
    if not tasks:
        return []

    results: list[T | None] = [None] * len(tasks)
    bar = tqdm(total=len(tasks), desc=progress_desc) if progress_desc else None
    try:
        for window in split_windows(len(tasks), limit):
            values = await asyncio.gather(*(tasks[idx]() for idx in window))
            for idx, value in zip(window, values):
                results[idx] = value
            if bar is not None:
                bar.update(len(window))
            if on_window is not None:
                on_window(window.stop, len(tasks))
    finally:
        if bar is not None:
            bar.close()

    return results  # type: ignore[return-value]
