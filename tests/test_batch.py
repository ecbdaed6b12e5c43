from __future__ import annotations

import asyncio
import unittest

from glmbatch.errors import ConfigurationError
from glmbatch.models import GenerateImageResult, Job
from glmbatch.pipeline.batch import run_batch, run_job
from glmbatch.utils.image_service import ImageService
from glmbatch.utils.parallel import split_windows


class FakeImageService(ImageService):
    """Records calls; each prompt may carry a delay, a failure or an exception."""

    def __init__(self, delays: dict[str, float] | None = None, fail: set[str] | None = None, explode: set[str] | None = None):
        self.delays = delays or {}
        self.fail = fail or set()
        self.explode = explode or set()
        self.calls: list[dict[str, str | None]] = []
        self.events: list[tuple[str, str]] = []

    async def generate_image(self, prompt, quality=None, size=None, output_filename=None) -> GenerateImageResult:
        self.calls.append({"prompt": prompt, "quality": quality, "size": size, "output_filename": output_filename})
        self.events.append(("start", prompt))
        await asyncio.sleep(self.delays.get(prompt, 0))
        self.events.append(("end", prompt))
        if prompt in self.explode:
            raise RuntimeError(f"boom: {prompt}")
        if prompt in self.fail:
            return GenerateImageResult(success=False, error="API Error: content policy")
        return GenerateImageResult(success=True, filepath=f"/out/{prompt}.png", url=f"https://cdn.example/{prompt}.png")


class TestRunJob(unittest.IsolatedAsyncioTestCase):
    async def test_success_carries_path_and_url(self) -> None:
        service = FakeImageService()
        job = Job(prompt="fox", quality="standard", size_preset="16:9", output_filename="fox")
        result = await run_job(service, job)
        self.assertTrue(result.success)
        self.assertEqual(result.filepath, "/out/fox.png")
        self.assertEqual(result.url, "https://cdn.example/fox.png")
        self.assertEqual(
            service.calls,
            [{"prompt": "fox", "quality": "standard", "size": "1728x960", "output_filename": "fox"}],
        )

    async def test_invalid_size_skips_service(self) -> None:
        service = FakeImageService()
        result = await run_job(service, Job(prompt="fox", custom_size="1000x1000"))
        self.assertFalse(result.success)
        self.assertIn("out of range", result.error)
        self.assertEqual(service.calls, [])

    async def test_unknown_preset_fails_without_service_call(self) -> None:
        service = FakeImageService()
        result = await run_job(service, Job(prompt="fox", size_preset="5:4"))
        self.assertFalse(result.success)
        self.assertIn('Invalid size preset: "5:4"', result.error)
        self.assertEqual(service.calls, [])

    async def test_service_failure_is_recorded(self) -> None:
        result = await run_job(FakeImageService(fail={"fox"}), Job(prompt="fox"))
        self.assertFalse(result.success)
        self.assertEqual(result.error, "API Error: content policy")

    async def test_exception_is_captured(self) -> None:
        result = await run_job(FakeImageService(explode={"fox"}), Job(prompt="fox"))
        self.assertFalse(result.success)
        self.assertEqual(result.error, "boom: fox")


class TestRunBatch(unittest.IsolatedAsyncioTestCase):
    async def test_seven_jobs_run_in_windows_of_three(self) -> None:
        prompts = [f"job{idx}" for idx in range(7)]
        # Later jobs in each window finish first.
        delays = {prompt: 0.03 - 0.01 * (idx % 3) for idx, prompt in enumerate(prompts)}
        service = FakeImageService(delays=delays)
        progress: list[tuple[int, int]] = []

        result = await run_batch(
            service,
            [Job(prompt=prompt) for prompt in prompts],
            3,
            on_progress=lambda done, total: progress.append((done, total)),
        )

        self.assertEqual([r.job.prompt for r in result.results], prompts)
        self.assertEqual((result.total, result.successful, result.failed), (7, 7, 0))
        self.assertEqual(progress, [(3, 7), (6, 7), (7, 7)])

        windows = _windows_from_events(service.events)
        self.assertEqual(windows, [prompts[0:3], prompts[3:6], prompts[6:7]])

    async def test_failures_do_not_abort_batch(self) -> None:
        jobs = [Job(prompt="a"), Job(prompt="b"), Job(prompt="c", custom_size="nope"), Job(prompt="d")]
        service = FakeImageService(fail={"a"}, explode={"d"})
        result = await run_batch(service, jobs, 2)
        self.assertEqual([r.success for r in result.results], [False, True, False, False])
        self.assertEqual(result.successful + result.failed, result.total)
        self.assertEqual(result.failed, 3)

    async def test_all_invalid_sizes_never_call_service(self) -> None:
        jobs = [Job(prompt=f"p{idx}", custom_size="1023x1024") for idx in range(5)]
        service = FakeImageService()
        result = await run_batch(service, jobs, 2)
        self.assertEqual((result.successful, result.failed, result.total), (0, 5, 5))
        self.assertEqual(service.calls, [])

    async def test_empty_job_list_is_rejected(self) -> None:
        service = FakeImageService()
        with self.assertRaises(ConfigurationError):
            await run_batch(service, [], 3)
        self.assertEqual(service.calls, [])

    async def test_non_positive_concurrency_is_rejected(self) -> None:
        service = FakeImageService()
        for value in (0, -2, True, 1.5):
            with self.subTest(value=value):
                with self.assertRaises(ConfigurationError):
                    await run_batch(service, [Job(prompt="a")], value)
        self.assertEqual(service.calls, [])

    async def test_missing_concurrency_uses_default(self) -> None:
        service = FakeImageService()
        progress: list[tuple[int, int]] = []
        await run_batch(
            service,
            [Job(prompt=str(idx)) for idx in range(4)],
            None,
            on_progress=lambda done, total: progress.append((done, total)),
        )
        self.assertEqual(progress, [(3, 4), (4, 4)])


class TestSplitWindows(unittest.TestCase):
    def test_partitions(self) -> None:
        self.assertEqual([len(w) for w in split_windows(7, 3)], [3, 3, 1])
        self.assertEqual([list(w) for w in split_windows(2, 5)], [[0, 1]])
        self.assertEqual(split_windows(0, 3), [])

    def test_rejects_zero(self) -> None:
        with self.assertRaises(ValueError):
            split_windows(3, 0)


def _windows_from_events(events: list[tuple[str, str]]) -> list[list[str]]:
    """Group starts into windows: a new window begins when a start follows an end."""
    windows: list[list[str]] = []
    in_flight = 0
    for kind, prompt in events:
        if kind == "start":
            if in_flight == 0:
                windows.append([])
            windows[-1].append(prompt)
            in_flight += 1
        else:
            in_flight -= 1
    return windows


if __name__ == "__main__":
    unittest.main()
