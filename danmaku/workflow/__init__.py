"""Danmaku workflow: validates input, runs the stage graph, assembles the result."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from danmaku.agents import DanmakuAgents
from danmaku.errors import InputTooLong
from danmaku.progress import ProgressChannel
from danmaku.schemas import ProcessingResult
from danmaku.tools import resolve_image_backend, resolve_speech_backend
from danmaku.workflow.builder import build_graph

if TYPE_CHECKING:
    from danmaku.capabilities import (
        ImageAdapter,
        IntentClassifier,
        ResponseGenerator,
        SpeechAdapter,
    )
    from danmaku.config import Settings
    from danmaku.progress import ProgressSink

logger = logging.getLogger(__name__)


class DanmakuWorkflow:
    """Turns one danmaku into a reply, an optional image and optional audio.

    Safe to share between concurrent calls: the compiled graph and the
    adapters are read-only, and every call gets its own graph state.
    """

    def __init__(
        self,
        settings: Settings,
        classifier: IntentClassifier,
        generator: ResponseGenerator,
        image: ImageAdapter,
        speech: SpeechAdapter,
    ):
        self.settings = settings
        self.max_length = settings.processing.max_danmaku_length
        self._graph = build_graph(classifier, generator, image, speech)

    @classmethod
    def from_settings(cls, settings: Settings) -> DanmakuWorkflow:
        """Build the production workflow: LLM agents plus configured backends."""
        agents = DanmakuAgents(settings.llm)
        return cls(
            settings,
            classifier=agents,
            generator=agents,
            image=resolve_image_backend(settings.image),
            speech=resolve_speech_backend(settings.tts),
        )

    async def process_danmaku(
        self,
        danmaku_content: str,
        progress_sink: ProgressSink | None = None,
    ) -> ProcessingResult:
        """Run the full pipeline.

        Raises InputTooLong before any stage runs, and ClassificationFailed
        or GenerationFailed from the fatal stages. Image and speech failures
        only show up as progress events and empty result fields.
        """
        logger.info(f"Processing danmaku: {danmaku_content}")

        if len(danmaku_content) > self.max_length:
            raise InputTooLong(len(danmaku_content), self.max_length)

        progress = ProgressChannel(progress_sink)
        initial_state = {
            "danmaku": danmaku_content,
            "progress": progress,
            "intent_type": None,
            "text_response": None,
            "image_prompt": None,
            "image_url": None,
            "audio_data": None,
        }
        final_state = await self._graph.ainvoke(initial_state)

        await progress.emit("processing_complete")
        return ProcessingResult(
            intent_type=final_state["intent_type"],
            text_response=final_state["text_response"],
            audio_data=final_state.get("audio_data"),
            image_url=final_state.get("image_url"),
        )
