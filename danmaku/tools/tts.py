"""Speech synthesis backends.

``openai`` posts to an OpenAI-compatible ``/audio/speech`` endpoint and
returns the raw audio body. ``disabled`` always fails, which the workflow
turns into a reply without audio.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from danmaku.capabilities import SpeechAdapter
from danmaku.errors import SpeechSynthesisFailed
from danmaku.tools import register_speech_backend

if TYPE_CHECKING:
    from danmaku.config import TTSConfig

logger = logging.getLogger(__name__)


@register_speech_backend("openai")
class OpenAITTSTool(SpeechAdapter):
    def __init__(self, config: TTSConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport

    async def synthesize(self, text: str) -> bytes:
        if len(text) > self.config.max_chars:
            logger.info(f"Truncating TTS input from {len(text)} to {self.config.max_chars} chars")
            text = text[: self.config.max_chars]

        headers = {}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        payload = {
            "model": self.config.model,
            "input": text,
            "voice": self.config.voice,
            "response_format": self.config.response_format,
        }
        url = f"{self.config.base_url.rstrip('/')}/audio/speech"

        try:
            async with httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport) as client:
                resp = await client.post(url, json=payload, headers=headers)
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SpeechSynthesisFailed(
                f"TTS API returned {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise SpeechSynthesisFailed(f"TTS API request failed: {e}") from e

        audio = resp.content
        if not audio:
            raise SpeechSynthesisFailed("TTS API returned an empty body")
        logger.info(f"Synthesized {len(audio)} bytes of {self.config.response_format} audio")
        return audio


@register_speech_backend("disabled")
class DisabledTTSTool(SpeechAdapter):
    def __init__(self, config: TTSConfig):
        self.config = config

    async def synthesize(self, text: str) -> bytes:
        raise SpeechSynthesisFailed("Speech synthesis is disabled")
