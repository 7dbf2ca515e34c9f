"""Graph builder — wires the stage nodes into a LangGraph StateGraph.

START → [intent_analysis] → conditional (route_intent)
  → respond_conversation    ┐
  → respond_singing_request │
  → respond_drawing_request ├→ conditional (route_image)
  → respond_other_command   ┘     → image_generation → tts_generation
                                  → tts_generation
tts_generation → END
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from langgraph.graph import END, StateGraph

from danmaku.schemas import Intent
from danmaku.workflow.nodes import (
    make_image_node,
    make_intent_node,
    make_response_node,
    make_tts_node,
    route_image,
    route_intent,
)
from danmaku.workflow.state import WorkflowState

if TYPE_CHECKING:
    from langgraph.graph.state import CompiledStateGraph

    from danmaku.capabilities import (
        ImageAdapter,
        IntentClassifier,
        ResponseGenerator,
        SpeechAdapter,
    )

logger = logging.getLogger(__name__)


def build_graph(
    classifier: IntentClassifier,
    generator: ResponseGenerator,
    image: ImageAdapter,
    speech: SpeechAdapter,
) -> CompiledStateGraph:
    """Build and compile the danmaku pipeline graph."""
    graph = StateGraph(WorkflowState)

    # One response node per intent; the classified intent picks the edge.
    branches = {intent.value: f"respond_{intent.value}" for intent in Intent}

    graph.add_node("intent_analysis", make_intent_node(classifier))
    for intent in Intent:
        graph.add_node(branches[intent.value], make_response_node(intent, generator))
    graph.add_node("image_generation", make_image_node(image))
    graph.add_node("tts_generation", make_tts_node(speech))

    graph.set_entry_point("intent_analysis")
    graph.add_conditional_edges("intent_analysis", route_intent, branches)

    after_response = {"image_generation": "image_generation", "tts_generation": "tts_generation"}
    for node_name in branches.values():
        graph.add_conditional_edges(node_name, route_image, after_response)

    graph.add_edge("image_generation", "tts_generation")
    graph.add_edge("tts_generation", END)

    logger.info(f"Built danmaku graph: branches={list(branches.values())}")
    return graph.compile()
