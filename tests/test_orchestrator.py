"""Tests del orquestador con colaboradores falsos (sin red ni ffmpeg)."""

import threading
import time
from pathlib import Path

import pytest

from reelsmith.domain.errors import AcquisitionError, EncodeError, InvalidTimelineError, SynthesisError
from reelsmith.domain.models import ClipAsset, VoiceTrack
from reelsmith.orchestrator import VideoOrchestrator

from conftest import make_storyboard


class FakeAcquirer:
    """Escribe los archivos de la escena; las primeras escenas terminan las últimas."""

    def __init__(self, fail_on=None, delay=0.02):
        self.fail_on = fail_on
        self.delay = delay
        self.calls = []
        self._lock = threading.Lock()

    def prepare(self, scene, scene_index, workspace):
        with self._lock:
            self.calls.append(scene_index)
        time.sleep(self.delay * (5 - scene_index % 5))
        if scene_index == self.fail_on:
            raise AcquisitionError("sin clip", scene_index=scene_index, query="abstract colorful motion")

        raw = workspace.raw_clip(scene_index)
        raw.write_bytes(b"raw")
        final = workspace.final_clip(scene_index)
        final.write_bytes(b"final")
        return ClipAsset(scene_index, raw, final, scene.duration)


class FakeTTS:
    def __init__(self, duration=20.0, error=None):
        self.duration = duration
        self.error = error
        self.texts = []

    def synthesize(self, text, output_path):
        self.texts.append(text)
        if self.error:
            raise self.error
        Path(output_path).write_bytes(b"mp3")
        return VoiceTrack(Path(output_path), self.duration)


class FakeRenderer:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def render(self, storyboard, clip_paths, voice_path, output_path, subtitles_path=None):
        self.calls.append(dict(clip_paths=list(clip_paths), voice_path=voice_path,
                               output_path=output_path, subtitles_path=subtitles_path))
        Path(subtitles_path).write_text("1\n", encoding="utf-8")
        if self.error:
            raise self.error
        Path(output_path).write_bytes(b"video")
        return str(output_path)


class FakeStoryboardSource:
    def __init__(self, storyboard):
        self.storyboard = storyboard
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        return self.storyboard


def make_orchestrator(settings, acquirer=None, tts=None, renderer=None, source=None):
    return VideoOrchestrator(
        settings,
        storyboard_source=source,
        clip_acquirer=acquirer or FakeAcquirer(),
        tts_engine=tts or FakeTTS(),
        renderer=renderer or FakeRenderer(),
    )


def job_dir(settings, job_id="job1"):
    return Path(settings.paths.temp_dir) / job_id


class TestRenderStoryboard:
    def test_success(self, settings):
        storyboard = make_storyboard([6, 7, 5, 6, 7])
        tts, renderer = FakeTTS(), FakeRenderer()
        orchestrator = make_orchestrator(settings, tts=tts, renderer=renderer)

        path = orchestrator.render_storyboard(storyboard, job_id="job1")

        assert path == str(Path(settings.paths.output_dir) / "job1.mp4")
        assert Path(path).read_bytes() == b"video"
        assert tts.texts == [storyboard.narration_text]

        (call,) = renderer.calls
        assert [p.name for p in call["clip_paths"]] == [f"scene-{i}-final.mp4" for i in range(5)]
        assert call["voice_path"].name == "voiceover.mp3"
        assert call["subtitles_path"] == job_dir(settings) / "subtitles.srt"

    def test_temporaries_removed_after_success(self, settings, storyboard):
        make_orchestrator(settings).render_storyboard(storyboard, job_id="job1")
        assert not job_dir(settings).exists()

    def test_parallelism_is_bounded(self, settings, storyboard):
        settings.max_parallel_clips = 1
        acquirer = FakeAcquirer()
        make_orchestrator(settings, acquirer=acquirer).render_storyboard(storyboard, job_id="job1")
        # con un solo worker las escenas se procesan en orden
        assert acquirer.calls == [0, 1, 2]

    def test_generated_job_ids_are_distinct(self, settings, storyboard):
        orchestrator = make_orchestrator(settings)
        first = orchestrator.render_storyboard(storyboard)
        second = orchestrator.render_storyboard(storyboard)
        assert first != second


class TestFailures:
    def test_invalid_timeline_before_downloads(self, settings):
        acquirer = FakeAcquirer()
        with pytest.raises(InvalidTimelineError):
            make_orchestrator(settings, acquirer=acquirer).render_storyboard(
                make_storyboard([6, 0.4]), job_id="job1"
            )
        assert acquirer.calls == []

    def test_acquisition_failure_aborts_render(self, settings, storyboard):
        tts, renderer = FakeTTS(), FakeRenderer()
        orchestrator = make_orchestrator(settings, acquirer=FakeAcquirer(fail_on=1), tts=tts, renderer=renderer)

        with pytest.raises(AcquisitionError) as exc_info:
            orchestrator.render_storyboard(storyboard, job_id="job1")

        assert exc_info.value.scene_index == 1
        assert tts.texts == []
        assert renderer.calls == []
        assert not job_dir(settings).exists()
        assert not (Path(settings.paths.output_dir) / "job1.mp4").exists()

    def test_synthesis_failure(self, settings, storyboard):
        renderer = FakeRenderer()
        orchestrator = make_orchestrator(settings, tts=FakeTTS(error=SynthesisError("vacío")), renderer=renderer)
        with pytest.raises(SynthesisError):
            orchestrator.render_storyboard(storyboard, job_id="job1")
        assert renderer.calls == []
        assert not job_dir(settings).exists()

    def test_encode_failure_cleans_up(self, settings, storyboard):
        orchestrator = make_orchestrator(settings, renderer=FakeRenderer(error=EncodeError("falló", stderr="x")))
        with pytest.raises(EncodeError):
            orchestrator.render_storyboard(storyboard, job_id="job1")
        assert not job_dir(settings).exists()


def test_produce_video_uses_storyboard_source(settings, storyboard):
    source = FakeStoryboardSource(storyboard)
    orchestrator = make_orchestrator(settings, source=source)

    path = orchestrator.produce_video("the ocean", job_id="job1")

    assert source.prompts == ["the ocean"]
    assert Path(path).name == "job1.mp4"
