"""
Abstract interface for the remote image generation service.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from glmbatch.models import GenerateImageResult


class ImageService(ABC):
    """
    A text-to-image backend the batch runner can call.

    Implementations own the network transport and must write the downloaded
    image themselves, choosing the destination with
    ``glmbatch.utils.paths.resolve_output_path``.
    """

    @abstractmethod
    async def generate_image(
        self,
        prompt: str,
        quality: str | None = None,
        size: str | None = None,
        output_filename: str | None = None,
    ) -> GenerateImageResult:
        """
        Generate one image and save it locally.

        Args:
            prompt: Text description of the image to generate
            quality: "hd" or "standard"; the service default when None
            size: Validated "WIDTHxHEIGHT" string
            output_filename: Optional suggested filename (no directory)

        Returns:
            GenerateImageResult with the saved filepath and source URL on
            success, or an error message on failure. Request failures are
            reported in the result rather than raised.
        """
        pass
