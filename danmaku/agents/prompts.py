"""Prompt registry — system prompts per intent.

The only place where the streamer persona's instructions are written.
``{streamer_name}`` is filled from config at call time.
"""

from __future__ import annotations

from dataclasses import dataclass

from danmaku.schemas import Intent

_PERSONA = (
    "你是直播间的虚拟主播「{streamer_name}」，性格活泼友善。"
    "你正在回应观众发送的弹幕。回复使用中文，口语化，不超过80字，"
    "不要使用 Markdown。"
)

INTENT_PROMPT = (
    "你是直播弹幕意图分类器。阅读观众的弹幕，判断它属于以下哪一类：\n"
    "- conversation: 聊天、问候、提问、闲聊\n"
    "- singing_request: 请主播唱歌、点歌\n"
    "- drawing_request: 请主播画画、生成图片\n"
    "- other_command: 其他指令或无法归类的请求\n\n"
    "只回复上述四个标签之一，不要输出任何其他内容。"
)


@dataclass(frozen=True)
class ResponsePrompt:
    intent: Intent
    instructions: str


RESPONSE_PROMPTS: dict[Intent, ResponsePrompt] = {
    Intent.CONVERSATION: ResponsePrompt(
        intent=Intent.CONVERSATION,
        instructions="观众在和你聊天。自然地接话，可以适当反问，让聊天继续下去。",
    ),
    Intent.SINGING_REQUEST: ResponsePrompt(
        intent=Intent.SINGING_REQUEST,
        instructions=(
            "观众请你唱歌。用歌唱的语气回应：先热情答应，再即兴唱两三句"
            "和弹幕内容相关的歌词，可以用 ♪ 标记歌词。"
        ),
    ),
    Intent.DRAWING_REQUEST: ResponsePrompt(
        intent=Intent.DRAWING_REQUEST,
        instructions=(
            "观众请你画画。你需要给出两样东西：\n"
            "1. response: 对观众说的话，告诉他你准备画什么\n"
            "2. image_prompt: 给绘图模型的英文提示词，描述画面主体、风格和细节\n\n"
            '只输出 JSON：{"response": "...", "image_prompt": "..."}'
        ),
    ),
    Intent.OTHER_COMMAND: ResponsePrompt(
        intent=Intent.OTHER_COMMAND,
        instructions=(
            "观众发来了一条你无法直接执行的指令。礼貌地说明你现在能做的事"
            "（聊天、唱歌、画画），并邀请观众换个方式互动。"
        ),
    ),
}


def system_prompt_for(intent: Intent, streamer_name: str) -> str:
    """Persona + intent instructions for the reply generator."""
    persona = _PERSONA.format(streamer_name=streamer_name)
    return f"{persona}\n\n{RESPONSE_PROMPTS[intent].instructions}"
