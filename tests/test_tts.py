"""Tests de los motores de voz con clientes falsos."""

from types import SimpleNamespace

import httpx
import pytest
from openai import APIConnectionError

from reelsmith.config import TTSSettings
from reelsmith.domain.errors import SynthesisError
from reelsmith.tts import EdgeTTSEngine, OpenAITTSEngine, clean_text_for_tts, create_tts_engine
from reelsmith.tts import base as tts_base


class FakeSpeech:
    def __init__(self, content=b"ID3fake-mp3", error=None):
        self.content = content
        self.error = error
        self.requests = []

    def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(content=self.content)


def make_engine(speech, settings=None):
    client = SimpleNamespace(audio=SimpleNamespace(speech=speech))
    return OpenAITTSEngine(settings or TTSSettings(), client=client)


@pytest.fixture
def fixed_duration(monkeypatch):
    monkeypatch.setattr(tts_base, "measure_duration", lambda path: 20.0)


class TestOpenAITTS:
    def test_single_request_with_defaults(self, tmp_path, fixed_duration):
        speech = FakeSpeech()
        track = make_engine(speech).synthesize("Hello there. Second scene.", tmp_path / "voiceover.mp3")

        assert track.duration == 20.0
        assert track.path.read_bytes() == b"ID3fake-mp3"
        (request,) = speech.requests
        assert request["model"] == "tts-1-hd"
        assert request["voice"] == "onyx"
        assert request["speed"] == 1.0
        assert request["input"] == "Hello there. Second scene."

    def test_empty_audio(self, tmp_path, fixed_duration):
        with pytest.raises(SynthesisError):
            make_engine(FakeSpeech(content=b"")).synthesize("Hello", tmp_path / "v.mp3")

    def test_api_error(self, tmp_path, fixed_duration):
        error = APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/audio/speech"))
        with pytest.raises(SynthesisError):
            make_engine(FakeSpeech(error=error)).synthesize("Hello", tmp_path / "v.mp3")

    def test_blank_text_never_calls_api(self, tmp_path):
        speech = FakeSpeech()
        with pytest.raises(SynthesisError):
            make_engine(speech).synthesize("  **  ", tmp_path / "v.mp3")
        assert speech.requests == []

    def test_zero_duration(self, tmp_path, monkeypatch):
        monkeypatch.setattr(tts_base, "measure_duration", lambda path: 0.0)
        with pytest.raises(SynthesisError):
            make_engine(FakeSpeech()).synthesize("Hello", tmp_path / "v.mp3")

    def test_without_client(self, tmp_path, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(SynthesisError):
            OpenAITTSEngine(TTSSettings()).synthesize("Hello", tmp_path / "v.mp3")


def test_missing_audio_file(tmp_path):
    with pytest.raises(SynthesisError):
        tts_base.measure_duration(tmp_path / "missing.mp3")


def test_clean_text_for_tts():
    text = "Check **this** out!!! https://example.com #trend \U0001F600  now..."
    assert clean_text_for_tts(text) == "Check this out! now."


class TestFactory:
    def test_openai_by_default(self):
        assert isinstance(create_tts_engine(TTSSettings()), OpenAITTSEngine)

    def test_edge(self):
        engine = create_tts_engine(TTSSettings(engine="edge", speed=1.25))
        assert isinstance(engine, EdgeTTSEngine)
        assert engine.voice == "en-US-GuyNeural"
        assert engine.rate == "+25%"
