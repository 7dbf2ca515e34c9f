"""Image generation backends.

``openai`` talks to any OpenAI-compatible ``/images/generations`` endpoint
(OpenAI, SiliconFlow, local gateways). ``disabled`` always fails, which the
workflow turns into a reply without an image.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

import httpx

from danmaku.capabilities import ImageAdapter
from danmaku.errors import ImageGenerationFailed
from danmaku.tools import register_image_backend

if TYPE_CHECKING:
    from danmaku.config import ImageConfig

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


class ImageGenerationTool(ImageAdapter):
    """Shared prompt handling for all image backends."""

    def __init__(self, config: ImageConfig):
        self.config = config

    def optimize_prompt(self, prompt: str) -> str:
        """Normalize whitespace and append the configured style keywords.

        Keywords already present (case-insensitive) are not repeated.
        """
        cleaned = _WHITESPACE_RE.sub(" ", prompt).strip().rstrip(",，")
        lowered = cleaned.lower()
        extra = [k for k in self.config.style_keywords if k.lower() not in lowered]
        if not extra:
            return cleaned
        if not cleaned:
            return ", ".join(extra)
        return f"{cleaned}, {', '.join(extra)}"


@register_image_backend("openai")
class OpenAIImageTool(ImageGenerationTool):
    def __init__(self, config: ImageConfig, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(config)
        self._transport = transport

    async def generate(self, prompt: str) -> str:
        headers = {}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        payload = {
            "model": self.config.model,
            "prompt": prompt,
            "size": self.config.size,
            "n": 1,
        }
        url = f"{self.config.base_url.rstrip('/')}/images/generations"

        logger.info(f"Requesting image: model={self.config.model}, size={self.config.size}")
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport) as client:
                resp = await client.post(url, json=payload, headers=headers)
                resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise ImageGenerationFailed(
                f"Image API returned {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ImageGenerationFailed(f"Image API request failed: {e}") from e

        if not isinstance(data, dict):
            raise ImageGenerationFailed(f"Image API returned {type(data).__name__}, expected an object")

        images = data.get("data") or []
        if not images:
            raise ImageGenerationFailed("Image API returned no images")

        first = images[0]
        if not isinstance(first, dict):
            raise ImageGenerationFailed("Image API returned a malformed image entry")
        if first.get("url"):
            return first["url"]
        if first.get("b64_json"):
            return f"data:image/png;base64,{first['b64_json']}"
        raise ImageGenerationFailed("Image API response has neither url nor b64_json")


@register_image_backend("disabled")
class DisabledImageTool(ImageGenerationTool):
    async def generate(self, prompt: str) -> str:
        raise ImageGenerationFailed("Image generation is disabled")
