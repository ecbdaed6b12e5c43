from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

QUALITIES = ("hd", "standard")


@dataclass(frozen=True)
class Job:
    prompt: str
    quality: str | None = None
    size_preset: str | None = None
    custom_size: str | None = None
    output_filename: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Job":
        return cls(
            prompt=data["prompt"],
            quality=data.get("quality"),
            size_preset=data.get("size_preset"),
            custom_size=data.get("custom_size"),
            output_filename=data.get("output_filename"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass(frozen=True)
class GenerateImageResult:
    """Outcome of a single call to the image service."""

    success: bool
    filepath: str | None = None
    url: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class JobResult:
    job: Job
    success: bool
    filepath: str | None = None
    url: str | None = None
    error: str | None = None

    @classmethod
    def failed(cls, job: Job, error: str) -> "JobResult":
        return cls(job=job, success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"job": self.job.to_dict(), "success": self.success}
        for key in ("filepath", "url", "error"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload


@dataclass(frozen=True)
class BatchResult:
    results: tuple[JobResult, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failed(self) -> int:
        return self.total - self.successful

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "results": [result.to_dict() for result in self.results],
        }
