"""Error taxonomy for danmaku processing.

Fatal errors abort a ``process_danmaku`` call and reach the caller.
Degradable errors are raised by the image and speech backends and are
caught by the workflow, which leaves the matching result field empty.
"""


class DanmakuError(Exception):
    """Base class. ``code`` is a stable identifier for API clients."""

    code = "DANMAKU_ERROR"


# ---------------------------------------------------------------------------
# Fatal
# ---------------------------------------------------------------------------


class InputTooLong(DanmakuError):
    code = "INPUT_TOO_LONG"

    def __init__(self, length: int, limit: int):
        super().__init__(f"Danmaku content too long ({length} > {limit} characters)")
        self.length = length
        self.limit = limit


class ClassificationFailed(DanmakuError):
    code = "CLASSIFICATION_FAILED"


class GenerationFailed(DanmakuError):
    code = "GENERATION_FAILED"


# ---------------------------------------------------------------------------
# Degradable
# ---------------------------------------------------------------------------


class ImageGenerationFailed(DanmakuError):
    code = "IMAGE_GENERATION_FAILED"


class SpeechSynthesisFailed(DanmakuError):
    code = "SPEECH_SYNTHESIS_FAILED"
