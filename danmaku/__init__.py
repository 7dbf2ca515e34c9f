"""Turns live-stream chat messages (danmaku) into streamer replies."""
