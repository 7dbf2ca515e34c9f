"""Backend registry — name-based lookup for image and speech backends.

Backends are classes decorated with ``@register_image_backend("name")`` or
``@register_speech_backend("name")``. ``config.yaml`` selects them by name
and the resolvers build an instance from the matching config section.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, TypeVar

if TYPE_CHECKING:
    from danmaku.capabilities import ImageAdapter, SpeechAdapter
    from danmaku.config import ImageConfig, TTSConfig

T = TypeVar("T")

_image_backends: dict[str, type] = {}
_speech_backends: dict[str, type] = {}


def register_image_backend(name: str) -> Callable[[type[T]], type[T]]:
    def decorator(cls: type[T]) -> type[T]:
        _image_backends[name] = cls
        return cls

    return decorator


def register_speech_backend(name: str) -> Callable[[type[T]], type[T]]:
    def decorator(cls: type[T]) -> type[T]:
        _speech_backends[name] = cls
        return cls

    return decorator


def resolve_image_backend(config: ImageConfig) -> ImageAdapter:
    """Instantiate the configured image backend.

    Raises ``ValueError`` if the name is not registered.
    """
    if config.backend not in _image_backends:
        raise ValueError(
            f"Unknown image backend '{config.backend}'. "
            f"Available: {list(_image_backends.keys())}"
        )
    return _image_backends[config.backend](config)


def resolve_speech_backend(config: TTSConfig) -> SpeechAdapter:
    """Instantiate the configured speech backend.

    Raises ``ValueError`` if the name is not registered.
    """
    if config.backend not in _speech_backends:
        raise ValueError(
            f"Unknown tts backend '{config.backend}'. "
            f"Available: {list(_speech_backends.keys())}"
        )
    return _speech_backends[config.backend](config)


def list_image_backends() -> list[str]:
    return list(_image_backends.keys())


def list_speech_backends() -> list[str]:
    return list(_speech_backends.keys())


# Auto-import backends so the registry is populated on first access.
import danmaku.tools.image as _image  # noqa: E402, F401
import danmaku.tools.tts as _tts  # noqa: E402, F401
