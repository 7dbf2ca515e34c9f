"""Intent classifier and reply generator on top of a LangChain chat model.

One model call per operation. Exceptions from the model propagate; the
workflow decides whether they are fatal.
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import TYPE_CHECKING

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import HumanMessage, SystemMessage

from danmaku.agents.prompts import INTENT_PROMPT, system_prompt_for
from danmaku.capabilities import IntentClassifier, ResponseGenerator
from danmaku.schemas import Intent

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

    from danmaku.config import LLMConfig

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")

# Checked in order; first hit wins.
_INTENT_KEYWORDS: list[tuple[Intent, tuple[str, ...]]] = [
    (Intent.DRAWING_REQUEST, ("画", "绘", "draw", "paint")),
    (Intent.SINGING_REQUEST, ("唱", "歌", "sing")),
]


def _extract_content(content) -> str:
    """Normalize message content; Anthropic can return a list of blocks or a string."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, dict):
                parts.append(block.get("text", ""))
            else:
                parts.append(str(block))
        return "".join(parts)
    return str(content)


def _get_llm(config: LLMConfig) -> ChatAnthropic:
    """Create an Anthropic chat model from config."""
    api_key = os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        raise RuntimeError("ANTHROPIC_API_KEY environment variable is not set")
    return ChatAnthropic(model=config.model, max_tokens=config.max_tokens, api_key=api_key)


def parse_intent_label(raw: str) -> Intent | None:
    """Find an intent label in the model's reply. None if there is none."""
    cleaned = raw.strip().lower()
    for intent in Intent:
        if intent.value in cleaned:
            return intent
    return None


def keyword_intent(text: str) -> Intent:
    lowered = text.lower()
    for intent, keywords in _INTENT_KEYWORDS:
        if any(k in lowered for k in keywords):
            return intent
    return Intent.CONVERSATION


def parse_drawing_reply(raw: str, danmaku: str) -> tuple[str, str]:
    """Split the drawing reply JSON into (response, image_prompt).

    Falls back to the raw text as the response and the danmaku itself as
    the prompt when the JSON is missing or incomplete.
    """
    text = _FENCE_RE.sub("", raw.strip())
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Drawing reply is not JSON, using raw text")
        return raw.strip(), danmaku

    if not isinstance(data, dict):
        return raw.strip(), danmaku
    response = str(data.get("response") or "").strip()
    prompt = str(data.get("image_prompt") or "").strip()
    return response or raw.strip(), prompt or danmaku


class DanmakuAgents(IntentClassifier, ResponseGenerator):
    def __init__(self, config: LLMConfig, llm: BaseChatModel | None = None):
        self.config = config
        self._llm = llm

    def _model(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = _get_llm(self.config)
        return self._llm

    async def _ask(self, system_prompt: str, text: str) -> str:
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=text)]
        response = await self._model().ainvoke(messages)
        content = _extract_content(response.content).strip()
        if not content:
            raise ValueError("model returned an empty reply")
        return content

    async def _reply(self, intent: Intent, text: str) -> str:
        prompt = system_prompt_for(intent, self.config.streamer_name)
        return await self._ask(prompt, text)

    async def classify(self, text: str) -> Intent:
        raw = await self._ask(INTENT_PROMPT, text)
        intent = parse_intent_label(raw)
        if intent is None:
            intent = keyword_intent(text)
            logger.warning(f"Could not parse intent label '{raw[:50]}', keyword fallback → {intent.value}")
        return intent

    async def conversation(self, text: str) -> str:
        return await self._reply(Intent.CONVERSATION, text)

    async def singing(self, text: str) -> str:
        return await self._reply(Intent.SINGING_REQUEST, text)

    async def drawing(self, text: str) -> tuple[str, str]:
        raw = await self._reply(Intent.DRAWING_REQUEST, text)
        return parse_drawing_reply(raw, text)

    async def other(self, text: str) -> str:
        return await self._reply(Intent.OTHER_COMMAND, text)
