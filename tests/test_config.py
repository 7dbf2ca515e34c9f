import pytest

from danmaku import config as config_module
from danmaku.config import Settings, get_config, load_config, reload_config


def test_defaults():
    settings = Settings()
    assert settings.processing.max_danmaku_length == 200
    assert settings.image.backend == "openai"
    assert settings.tts.backend == "openai"
    assert settings.allowed_origins == ["*"]


def test_load_config_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "processing:\n"
        "  max_danmaku_length: 50\n"
        "llm:\n"
        "  streamer_name: 小喵\n"
        "image:\n"
        "  backend: disabled\n"
        "tts:\n"
        "  voice: nova\n"
        "api_key: secret\n",
        encoding="utf-8",
    )

    settings = load_config(str(path))

    assert settings.processing.max_danmaku_length == 50
    assert settings.llm.streamer_name == "小喵"
    assert settings.image.backend == "disabled"
    assert settings.tts.voice == "nova"
    assert get_config() is settings


def test_missing_file_uses_defaults(tmp_path):
    settings = load_config(str(tmp_path / "nope.yaml"))
    assert settings == Settings()


def test_env_var_selects_path(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("processing:\n  max_danmaku_length: 7\n", encoding="utf-8")
    monkeypatch.setenv("DANMAKU_CONFIG", str(path))

    assert load_config().processing.max_danmaku_length == 7


def test_reload_rereads_same_path(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("processing:\n  max_danmaku_length: 10\n", encoding="utf-8")
    load_config(str(path))

    path.write_text("processing:\n  max_danmaku_length: 20\n", encoding="utf-8")

    assert reload_config().processing.max_danmaku_length == 20


def test_unknown_backend_rejected():
    with pytest.raises(ValueError, match="Unknown image backend"):
        Settings(image={"backend": "midjourney"})
    with pytest.raises(ValueError, match="Unknown tts backend"):
        Settings(tts={"backend": "espeak"})


def test_max_length_must_be_positive():
    with pytest.raises(ValueError):
        Settings(processing={"max_danmaku_length": 0})


def test_redacted_masks_api_key():
    assert Settings(api_key="secret").redacted()["api_key"] == "***"
    assert Settings().redacted()["api_key"] is None


def test_api_keys_come_from_environment(monkeypatch):
    monkeypatch.setenv("MY_IMAGE_KEY", "sk-img")
    settings = Settings(image={"api_key_env": "MY_IMAGE_KEY"})
    assert settings.image.api_key == "sk-img"


def test_get_config_before_load(monkeypatch):
    monkeypatch.setattr(config_module, "_settings", None)
    with pytest.raises(RuntimeError):
        get_config()
