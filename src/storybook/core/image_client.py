"""Client for the upstream image edit API.

One :meth:`ImageEditClient.edit` call is exactly one HTTP request: a
multipart POST carrying the photo, the prompt, the model and the output size.
The call either returns the base64 image from the response or raises:

- :class:`~storybook.core.errors.UpstreamError` for a non-success status, a
  transport failure, or a response without image data.
- :class:`~storybook.core.errors.UpstreamTimeoutError` when the optional
  per-call timeout expires.  Only that call is cancelled.

There are no retries.  Callers that want them wrap the call themselves.

Usage
-----
::

    async with httpx.AsyncClient() as http:
        client = ImageEditClient(http, api_key="sk-...")
        b64 = await client.edit(
            photo.data, photo.file_name, photo.mime_type,
            prompt, model="gpt-image-1", size="1024x1024",
            timeout_ms=120_000,
        )
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from storybook.core.errors import UpstreamError, UpstreamTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_EDITS_URL = "https://api.openai.com/v1/images/edits"

# Keys that may hold the base64 image inside ``data[0]``, in lookup order.
_IMAGE_KEYS = ("b64_json", "b64_png", "b64")


def _read_json(response: httpx.Response) -> dict[str, Any]:
    """Decode a response body as JSON, keeping the raw text when that fails."""
    try:
        data = response.json()
    except ValueError:
        return {"_raw": response.text}
    if not isinstance(data, dict):
        return {"_raw": response.text}
    return data


def _error_message(data: dict[str, Any]) -> str:
    """Pick the most specific error message an upstream body offers."""
    error = data.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if data.get("message"):
        return str(data["message"])
    raw = data.get("_raw")
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return "Upstream request failed"


def _extract_image(data: dict[str, Any]) -> str | None:
    items = data.get("data")
    if not isinstance(items, list) or not items or not isinstance(items[0], dict):
        return None
    for key in _IMAGE_KEYS:
        value = items[0].get(key)
        if value:
            return str(value)
    return None


class ImageEditClient:
    """Thin async wrapper around the images ``edits`` endpoint.

    The underlying :class:`httpx.AsyncClient` is owned by the caller (the
    application lifespan in production, a mock transport in tests).

    Attributes:
        api_key: Bearer credential sent with every request.
        url: Endpoint receiving the edit requests.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        url: str = DEFAULT_EDITS_URL,
    ) -> None:
        self._http = http_client
        self.api_key = api_key
        self.url = url

    async def edit(
        self,
        image_bytes: bytes,
        file_name: str,
        mime_type: str,
        prompt: str,
        model: str,
        size: str,
        timeout_ms: int | None = None,
    ) -> str:
        """Send one photo to the edit endpoint and return the base64 image.

        Args:
            image_bytes: Raw photo bytes.
            file_name: Name reported for the uploaded part.
            mime_type: Content type of the photo.
            prompt: Edit instruction.
            model: Upstream model identifier.
            size: Output size (e.g. ``"1024x1024"``).
            timeout_ms: Optional deadline for the whole call.

        Returns:
            The base64-encoded image.

        Raises:
            UpstreamTimeoutError: If the deadline expires.
            UpstreamError: On any other upstream failure.
        """
        request = self._send(image_bytes, file_name, mime_type, prompt, model, size)
        if timeout_ms is None:
            return await request
        try:
            return await asyncio.wait_for(request, timeout=timeout_ms / 1000.0)
        except asyncio.TimeoutError as e:
            raise UpstreamTimeoutError(
                f"Images API request timed out after {timeout_ms} ms"
            ) from e

    async def _send(
        self,
        image_bytes: bytes,
        file_name: str,
        mime_type: str,
        prompt: str,
        model: str,
        size: str,
    ) -> str:
        fields = {"model": model, "prompt": prompt, "size": size, "n": "1"}
        # The dall-e models answer with URLs unless asked for base64.
        if model.startswith("dall-e"):
            fields["response_format"] = "b64_json"
        files = {
            "image": (file_name or "photo", image_bytes, mime_type or "application/octet-stream")
        }

        try:
            response = await self._http.post(
                self.url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                data=fields,
                files=files,
            )
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(f"Images API request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Images API request failed: {e}") from e

        data = _read_json(response)
        if not response.is_success:
            message = _error_message(data)
            raise UpstreamError(
                f"Images API error ({response.status_code}): {message}",
                status=response.status_code,
            )

        image = _extract_image(data)
        if image is None:
            raise UpstreamError(
                "Images API response missing base64 image data",
                status=response.status_code,
            )
        return image
