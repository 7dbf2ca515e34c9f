"""LangGraph node functions — one async function per pipeline stage.

Fatal stages (intent analysis, response generation) raise ClassificationFailed
or GenerationFailed out of the graph. Degradable stages (image, speech) catch
everything, report it on the progress channel and leave their field unset.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from danmaku.errors import ClassificationFailed, GenerationFailed
from danmaku.schemas import Intent
from danmaku.workflow.state import WorkflowState

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from danmaku.capabilities import (
        ImageAdapter,
        IntentClassifier,
        ResponseGenerator,
        SpeechAdapter,
    )

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Node factories
# ---------------------------------------------------------------------------


def make_intent_node(classifier: IntentClassifier) -> Callable:
    async def intent_analysis(state: WorkflowState) -> dict:
        await state["progress"].emit("intent_analysis")
        try:
            intent = await classifier.classify(state["danmaku"])
        except ClassificationFailed:
            raise
        except Exception as e:
            logger.error(f"Intent analysis failed: {e}", exc_info=True)
            raise ClassificationFailed(f"Intent analysis failed: {e}") from e

        logger.info(f"Detected intent type: {intent.value}")
        return {"intent_type": intent}

    return intent_analysis


def _response_handlers(
    generator: ResponseGenerator,
) -> dict[Intent, Callable[[str], Awaitable[tuple[str, str | None]]]]:
    """Strategy table: intent → coroutine returning (reply, image_prompt)."""

    async def conversation(text: str) -> tuple[str, str | None]:
        return await generator.conversation(text), None

    async def singing(text: str) -> tuple[str, str | None]:
        return await generator.singing(text), None

    async def drawing(text: str) -> tuple[str, str | None]:
        reply, prompt = await generator.drawing(text)
        return reply, prompt

    async def other(text: str) -> tuple[str, str | None]:
        return await generator.other(text), None

    return {
        Intent.CONVERSATION: conversation,
        Intent.SINGING_REQUEST: singing,
        Intent.DRAWING_REQUEST: drawing,
        Intent.OTHER_COMMAND: other,
    }


def make_response_node(intent: Intent, generator: ResponseGenerator) -> Callable:
    """Create the response node for one intent branch."""
    handler = _response_handlers(generator)[intent]

    async def response_node(state: WorkflowState) -> dict:
        await state["progress"].emit("response_generation")
        try:
            reply, image_prompt = await handler(state["danmaku"])
        except GenerationFailed:
            raise
        except Exception as e:
            logger.error(f"Response generation failed ({intent.value}): {e}", exc_info=True)
            raise GenerationFailed(f"Response generation failed: {e}") from e

        return {"text_response": reply, "image_prompt": image_prompt}

    response_node.__name__ = f"respond_{intent.value}"
    return response_node


def make_image_node(image: ImageAdapter) -> Callable:
    """Image sub-pipeline: optimize the prompt, then generate. Never raises."""

    async def image_generation(state: WorkflowState) -> dict:
        progress = state["progress"]
        raw_prompt = state["image_prompt"]

        await progress.emit("image_generation_start", image_prompt=raw_prompt)
        try:
            await progress.emit("image_prompt_optimization")
            optimized = image.optimize_prompt(raw_prompt)

            await progress.emit("image_generation_progress", image_prompt=optimized)
            image_url = await image.generate(optimized)
        except Exception as e:
            logger.error(f"Image generation failed: {e}")
            await progress.emit("image_generation_error")
            return {"image_url": None}

        await progress.emit("image_generation_complete")
        return {"image_url": image_url}

    return image_generation


def make_tts_node(speech: SpeechAdapter) -> Callable:
    """Speech synthesis for the reply text. Never raises."""

    async def tts_generation(state: WorkflowState) -> dict:
        progress = state["progress"]
        await progress.emit("tts_generation")
        try:
            audio = await speech.synthesize(state["text_response"])
        except Exception as e:
            logger.error(f"TTS generation failed: {e}")
            await progress.emit("tts_error")
            return {"audio_data": None}

        await progress.emit("tts_complete")
        return {"audio_data": audio}

    return tts_generation


# ---------------------------------------------------------------------------
# Routing functions
# ---------------------------------------------------------------------------


def route_intent(state: WorkflowState) -> str:
    """Pick the response branch for the classified intent."""
    return state["intent_type"].value


def route_image(state: WorkflowState) -> str:
    """Run the image sub-pipeline whenever the drawing branch produced a prompt, even an empty one."""
    return "image_generation" if state.get("image_prompt") is not None else "tts_generation"
