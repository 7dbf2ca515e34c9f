"""LangGraph shared state — flows between stage nodes of one invocation."""

from typing import Optional

from typing_extensions import TypedDict

from danmaku.progress import ProgressChannel
from danmaku.schemas import Intent


class WorkflowState(TypedDict):
    """State passed through every node in the graph.

    danmaku        — the viewer's message, already length-checked.
    progress       — this invocation's progress channel (may have no sink).
    intent_type    — set by intent_analysis, never changed afterwards.
    text_response  — set by the response node for the intent.
    image_prompt   — set only by the drawing response node.
    image_url      — set only when image generation succeeded.
    audio_data     — set only when speech synthesis succeeded.
    """

    danmaku: str
    progress: ProgressChannel
    intent_type: Optional[Intent]
    text_response: Optional[str]
    image_prompt: Optional[str]
    image_url: Optional[str]
    audio_data: Optional[bytes]
