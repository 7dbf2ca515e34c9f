"""Capability interfaces the workflow depends on.

Implementations must be safe to share across concurrent invocations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from danmaku.schemas import Intent


class IntentClassifier:
    async def classify(self, text: str) -> Intent:
        raise NotImplementedError


class ResponseGenerator:
    async def conversation(self, text: str) -> str:
        raise NotImplementedError

    async def singing(self, text: str) -> str:
        raise NotImplementedError

    async def drawing(self, text: str) -> tuple[str, str]:
        """Return ``(reply_text, image_prompt)``."""
        raise NotImplementedError

    async def other(self, text: str) -> str:
        raise NotImplementedError


class ImageAdapter:
    def optimize_prompt(self, prompt: str) -> str:
        """Pure rewrite of a raw prompt. Default: unchanged."""
        return prompt

    async def generate(self, prompt: str) -> str:
        """Return an image reference (URL or data URL)."""
        raise NotImplementedError


class SpeechAdapter:
    async def synthesize(self, text: str) -> bytes:
        raise NotImplementedError
