"""Data models shared by the workflow, its observers and HTTP clients."""

from __future__ import annotations

import base64
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

StageName = Literal[
    "intent_analysis",
    "response_generation",
    "image_generation_start",
    "image_prompt_optimization",
    "image_generation_progress",
    "image_generation_complete",
    "image_generation_error",
    "tts_generation",
    "tts_complete",
    "tts_error",
    "processing_complete",
]


class Intent(str, Enum):
    """What the viewer wants. Decided once per danmaku, never revised."""

    CONVERSATION = "conversation"
    SINGING_REQUEST = "singing_request"
    DRAWING_REQUEST = "drawing_request"
    OTHER_COMMAND = "other_command"


class ProgressEvent(BaseModel):
    """One stage transition, pushed to the observer as it happens."""

    stage: StageName
    message: str
    image_prompt: str | None = None


class ProcessingResult(BaseModel):
    """Outcome of one successful ``process_danmaku`` call.

    ``audio_data`` and ``image_url`` are independently optional: either is
    None when its stage failed (or, for the image, never ran).
    """

    intent_type: Intent
    text_response: str
    audio_data: bytes | None = None
    image_url: str | None = None


# ---------------------------------------------------------------------------
# HTTP models
# ---------------------------------------------------------------------------


class DanmakuRequest(BaseModel):
    """Incoming request body."""

    content: str = Field(min_length=1)


class DanmakuResponse(BaseModel):
    intent_type: Intent
    text_response: str
    audio_base64: str | None = None
    image_url: str | None = None

    @classmethod
    def from_result(cls, result: ProcessingResult) -> DanmakuResponse:
        audio = None
        if result.audio_data is not None:
            audio = base64.b64encode(result.audio_data).decode("ascii")
        return cls(
            intent_type=result.intent_type,
            text_response=result.text_response,
            audio_base64=audio,
            image_url=result.image_url,
        )


class StreamChunk(BaseModel):
    """A single SSE event in the /danmaku/stream response.

    Types:
        progress — a stage transition (stage, message, image_prompt)
        result   — the final DanmakuResponse, under ``result``
        error    — a fatal failure (code, message)
        done     — stream is complete
    """

    type: Literal["progress", "result", "error", "done"]
    stage: str | None = None
    message: str | None = None
    image_prompt: str | None = None
    code: str | None = None
    result: DanmakuResponse | None = None
