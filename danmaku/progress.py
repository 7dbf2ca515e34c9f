"""One-way stage notifications from the workflow to an optional observer.

The workflow never waits on, or fails because of, its observer. Delivery is
``send`` on whatever sink the caller attached; errors are logged and dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Protocol

from danmaku.schemas import ProgressEvent, StageName

logger = logging.getLogger(__name__)

STAGE_MESSAGES: dict[str, str] = {
    "intent_analysis": "🤔 正在分析弹幕意图...",
    "response_generation": "💭 正在生成回应内容...",
    "image_generation_start": "🎨 正在为您创作图片，请稍等片刻...",
    "image_prompt_optimization": "✨ 正在优化绘画提示词...",
    "image_generation_progress": "🎨 AI正在努力创作中，精美的画作马上就好...",
    "image_generation_complete": "✨ 图片创作完成！",
    "image_generation_error": "❌ 图片生成失败，请稍后再试",
    "tts_generation": "🎤 正在生成语音回应...",
    "tts_complete": "🔊 语音生成完成！",
    "tts_error": "❌ 语音生成失败",
    "processing_complete": "✅ 处理完成！",
}


class ProgressSink(Protocol):
    def send(self, event: ProgressEvent) -> None: ...


class ProgressStreamClosed(Exception):
    """Raised by ``ProgressStream.send`` once the receiver has gone away."""


class ProgressStream:
    """Queue-backed observer for a single invocation.

    The workflow side calls ``send``; the consumer iterates ``events()``.
    ``maxsize=0`` (the default) means unbounded, so ``send`` never blocks.
    """

    def __init__(self, maxsize: int = 0):
        self._queue: asyncio.Queue[ProgressEvent | None] = asyncio.Queue(maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, event: ProgressEvent) -> None:
        if self._closed:
            raise ProgressStreamClosed(f"receiver closed, dropping '{event.stage}'")
        self._queue.put_nowait(event)  # QueueFull only when bounded

    def finish(self) -> None:
        """Mark the sending side done; ``events()`` ends after draining."""
        if self._closed:
            return
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            logger.warning("Progress stream full, end marker dropped")

    def close(self) -> None:
        """Receiver side is gone. Further sends fail."""
        self._closed = True

    async def events(self) -> AsyncIterator[ProgressEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event


class ProgressChannel:
    """The workflow's handle on an optional observer."""

    def __init__(self, sink: ProgressSink | None = None):
        self._sink = sink

    async def emit(
        self,
        stage: StageName,
        message: str | None = None,
        image_prompt: str | None = None,
    ) -> None:
        if self._sink is None:
            return

        event = ProgressEvent(
            stage=stage,
            message=message if message is not None else STAGE_MESSAGES[stage],
            image_prompt=image_prompt,
        )
        try:
            self._sink.send(event)
        except Exception as e:
            logger.warning(f"Failed to send progress update: {e}")
