"""LLM-backed intent analysis and reply generation."""

from danmaku.agents.danmaku_agents import DanmakuAgents

__all__ = ["DanmakuAgents"]
