import pytest

from danmaku.capabilities import (
    ImageAdapter,
    IntentClassifier,
    ResponseGenerator,
    SpeechAdapter,
)
from danmaku.config import ImageConfig, ProcessingConfig, Settings, TTSConfig
from danmaku.schemas import Intent
from danmaku.workflow import DanmakuWorkflow


class FakeClassifier(IntentClassifier):
    def __init__(self, intent=Intent.CONVERSATION, error=None):
        self.intent = intent
        self.error = error
        self.calls = []

    async def classify(self, text):
        self.calls.append(text)
        if self.error:
            raise self.error
        return self.intent


class FakeGenerator(ResponseGenerator):
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    async def _reply(self, kind, text):
        self.calls.append((kind, text))
        if self.error:
            raise self.error
        return f"{kind} reply"

    async def conversation(self, text):
        return await self._reply("conversation", text)

    async def singing(self, text):
        return await self._reply("singing", text)

    async def drawing(self, text):
        return await self._reply("drawing", text), "a cat on the moon"

    async def other(self, text):
        return await self._reply("other", text)


class FakeImage(ImageAdapter):
    def __init__(self, url="https://img.example/cat.png", error=None, optimize_error=None):
        self.url = url
        self.error = error
        self.optimize_error = optimize_error
        self.prompts = []

    def optimize_prompt(self, prompt):
        if self.optimize_error:
            raise self.optimize_error
        return f"{prompt}, high quality"

    async def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.url


class FakeSpeech(SpeechAdapter):
    def __init__(self, audio=b"ID3fake-mp3", error=None):
        self.audio = audio
        self.error = error
        self.texts = []

    async def synthesize(self, text):
        self.texts.append(text)
        if self.error:
            raise self.error
        return self.audio


class RecordingSink:
    def __init__(self):
        self.events = []

    def send(self, event):
        self.events.append(event)

    @property
    def stages(self):
        return [e.stage for e in self.events]


@pytest.fixture
def settings():
    return Settings(
        processing=ProcessingConfig(max_danmaku_length=10),
        image=ImageConfig(backend="disabled"),
        tts=TTSConfig(backend="disabled"),
    )


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_workflow(settings):
    """Build a workflow around fakes; returns (workflow, fakes dict)."""

    def _make(classifier=None, generator=None, image=None, speech=None):
        fakes = {
            "classifier": classifier or FakeClassifier(),
            "generator": generator or FakeGenerator(),
            "image": image or FakeImage(),
            "speech": speech or FakeSpeech(),
        }
        workflow = DanmakuWorkflow(settings, **fakes)
        return workflow, fakes

    return _make
