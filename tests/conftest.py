"""Fixtures compartidos. Ningún test necesita red ni binario de ffmpeg."""

import subprocess
from pathlib import Path

import pytest

from reelsmith.config import PathSettings, Settings
from reelsmith.domain.models import Scene, Storyboard
from reelsmith.utils.workspace import JobWorkspace


def make_storyboard(durations, title="Test"):
    return Storyboard(
        title=title,
        scenes=[
            Scene(duration=d, narration=f"Scene number {i} narration.", keywords=f"keyword {i}")
            for i, d in enumerate(durations)
        ],
    )


@pytest.fixture
def storyboard():
    """Escenario A: tres escenas de 6, 7 y 5 segundos."""
    return make_storyboard([6, 7, 5])


@pytest.fixture
def settings(tmp_path):
    return Settings(paths=PathSettings(
        temp_dir=str(tmp_path / "temp"),
        output_dir=str(tmp_path / "output"),
    ))


@pytest.fixture
def workspace(tmp_path):
    return JobWorkspace(str(tmp_path / "temp"), str(tmp_path / "output"), job_id="job1").create()


class FakeRun:
    """
    Sustituto de subprocess.run.
    Registra cada comando; ffprobe devuelve `probe_duration` y ffmpeg crea su
    archivo de salida (último argumento) salvo que `fail` esté activo.
    """

    def __init__(self, probe_duration="10.0", fail=False):
        self.calls = []
        self.probe_duration = probe_duration
        self.fail = fail

    def __call__(self, cmd, *args, **kwargs):
        self.calls.append(list(cmd))
        if "ffprobe" in Path(cmd[0]).name:
            return subprocess.CompletedProcess(cmd, 0, stdout=self.probe_duration, stderr="")

        Path(cmd[-1]).write_bytes(b"partial" if self.fail else b"video")
        if self.fail:
            raise subprocess.CalledProcessError(1, cmd, output=b"", stderr=b"Error: boom")
        return subprocess.CompletedProcess(cmd, 0, stdout=b"", stderr=b"")

    @property
    def ffmpeg_calls(self):
        return [c for c in self.calls if "ffprobe" not in Path(c[0]).name]


@pytest.fixture
def fake_run(monkeypatch):
    runner = FakeRun()
    monkeypatch.setattr(subprocess, "run", runner)
    return runner
