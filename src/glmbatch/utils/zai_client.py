from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx
from rich.console import Console
from rich.markup import escape

from glmbatch.config import ClientSettings
from glmbatch.errors import ConfigurationError, GlmBatchError, ServiceError, TransportError
from glmbatch.models import GenerateImageResult
from glmbatch.utils.image_service import ImageService
from glmbatch.utils.io import write_bytes
from glmbatch.utils.paths import resolve_output_path
from glmbatch.utils.size import RECOMMENDED_SIZES

console = Console(stderr=True)

DEFAULT_SIZE = RECOMMENDED_SIZES["1:1"]


class ZAIClient(ImageService):
    """glm-image over the Z.AI images API."""

    def __init__(
        self,
        settings: ClientSettings,
        output_directory: Path,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not settings.api_key:
            raise ConfigurationError("Z_AI_API_KEY is required. Set it via environment variable or settings.")
        self.settings = settings
        self.output_directory = Path(output_directory)
        self.client = httpx.AsyncClient(timeout=settings.timeout_s, transport=transport)

    async def __aenter__(self) -> "ZAIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.settings.api_key}", "Content-Type": "application/json"}

    def build_payload(self, prompt: str, quality: str | None, size: str | None) -> dict[str, Any]:
        return {
            "model": self.settings.model,
            "prompt": prompt,
            "quality": quality or self.settings.default_quality,
            "size": size or DEFAULT_SIZE,
        }

    async def generate_image(
        self,
        prompt: str,
        quality: str | None = None,
        size: str | None = None,
        output_filename: str | None = None,
    ) -> GenerateImageResult:
        try:
            url = await self.images_generate(self.build_payload(prompt, quality, size))
            data = await self.download(url)
            # No await between choosing the path and writing it.
            filepath = resolve_output_path(self.output_directory, output_filename, prompt)
            write_bytes(filepath, data)
        except GlmBatchError as exc:
            return GenerateImageResult(success=False, error=str(exc))
        return GenerateImageResult(success=True, filepath=str(filepath), url=url)

    async def images_generate(self, payload: dict[str, Any]) -> str:
        endpoint = f"{self.settings.base_url.rstrip('/')}/images/generations"
        try:
            resp = await self.client.post(endpoint, headers=self._headers(), json=payload)
        except httpx.HTTPError as exc:
            raise TransportError(f"Network Error: {_describe(exc)}") from exc
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            console.print(
                "[red]glm-image request failed.[/red]"
                f" Status: {resp.status_code}. Body: {escape(resp.text[:500])}",
                highlight=False,
            )
            raise ServiceError(_format_status_error(resp)) from exc

        try:
            body = resp.json()
        except ValueError as exc:
            raise ServiceError("Malformed response from API: body is not JSON") from exc
        return _extract_image_url(body)

    async def download(self, url: str) -> bytes:
        try:
            resp = await self.client.get(url, timeout=self.settings.download_timeout_s)
        except httpx.HTTPError as exc:
            raise TransportError(f"Network Error: {_describe(exc)}") from exc
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ServiceError(_format_status_error(resp)) from exc
        return resp.content


def _extract_image_url(body: Any) -> str:
    data = body.get("data") if isinstance(body, dict) else None
    if not data:
        raise ServiceError("No image URL returned from API")
    first = data[0] if isinstance(data, list) else None
    url = first.get("url") if isinstance(first, dict) else None
    if not isinstance(url, str) or not url:
        raise ServiceError("Malformed response from API: first result has no url")
    return url


def _format_status_error(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return f"API Error: {error['message']}"
    return f"HTTP Error {resp.status_code}: {resp.reason_phrase or 'request failed'}"


def _describe(exc: httpx.HTTPError) -> str:
    return str(exc) or type(exc).__name__
