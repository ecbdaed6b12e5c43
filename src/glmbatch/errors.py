from __future__ import annotations


class GlmBatchError(Exception):
    """Base class for every error raised by glmbatch."""


class ConfigurationError(GlmBatchError):
    """The batch configuration is unusable; nothing should be attempted."""


class ValidationError(GlmBatchError):
    """A job asked for a size the service would reject."""


class SecurityError(GlmBatchError):
    """A resolved output path escaped its output directory."""


class ServiceError(GlmBatchError):
    """The image service rejected the request or answered with malformed data."""


class TransportError(GlmBatchError):
    """The image service or image URL could not be reached."""


class FilesystemError(GlmBatchError):
    """An output directory or image file could not be created."""
