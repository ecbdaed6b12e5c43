"""Batch client for the Z.AI glm-image text-to-image service."""

from glmbatch.config import BatchConfig, ClientSettings, load_config, load_settings, parse_config
from glmbatch.errors import (
    ConfigurationError,
    FilesystemError,
    GlmBatchError,
    SecurityError,
    ServiceError,
    TransportError,
    ValidationError,
)
from glmbatch.models import BatchResult, GenerateImageResult, Job, JobResult
from glmbatch.pipeline.batch import run_batch, run_job
from glmbatch.pipeline.report import format_batch_result
from glmbatch.utils.paths import resolve_output_path
from glmbatch.utils.size import RECOMMENDED_SIZES, require_size, resolve_size
from glmbatch.utils.zai_client import ZAIClient

__all__ = [
    "BatchConfig",
    "BatchResult",
    "ClientSettings",
    "ConfigurationError",
    "FilesystemError",
    "GenerateImageResult",
    "GlmBatchError",
    "Job",
    "JobResult",
    "RECOMMENDED_SIZES",
    "SecurityError",
    "ServiceError",
    "TransportError",
    "ValidationError",
    "ZAIClient",
    "format_batch_result",
    "load_config",
    "load_settings",
    "parse_config",
    "require_size",
    "resolve_output_path",
    "resolve_size",
    "run_batch",
    "run_job",
]
