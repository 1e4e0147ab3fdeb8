"""
Renderizador de video con FFmpeg.
Normaliza clips al envelope canónico y compone el video final con crossfades,
subtítulos quemados y la voz ajustada a la duración del video.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Union

from pydub import AudioSegment

from ..config import Settings
from ..domain.errors import EncodeError
from ..domain.models import Storyboard
from .filtergraph import AUDIO_LABEL, VIDEO_LABEL, FilterGraph, build_render_graph, format_number
from .subtitles import SubtitleGenerator
from .timeline import Timeline, compute_timeline

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class VideoRenderer:
    """Renderiza videos finales con FFmpeg."""

    AUDIO_EXTENSIONS = (".mp3", ".wav", ".aac", ".m4a")

    def __init__(
        self,
        settings: Optional[Settings] = None,
        ffmpeg_bin: Optional[str] = None,
        ffprobe_bin: Optional[str] = None,
    ):
        """
        Inicializa el renderizador.

        Args:
            settings: Configuración del pipeline (usa defaults si es None)
            ffmpeg_bin: Ejecutable de ffmpeg (por defecto FFMPEG_BINARY o 'ffmpeg')
            ffprobe_bin: Ejecutable de ffprobe (por defecto FFPROBE_BINARY o 'ffprobe')
        """
        self.settings = settings or Settings()
        self.ffmpeg = ffmpeg_bin or os.getenv("FFMPEG_BINARY") or "ffmpeg"
        self.ffprobe = ffprobe_bin or os.getenv("FFPROBE_BINARY") or "ffprobe"
        self.subtitle_gen = SubtitleGenerator()
        self._use_qsv: Optional[bool] = None

    @property
    def use_qsv(self) -> bool:
        """Se resuelve en el primer encode para no lanzar ffmpeg al construir."""
        if self._use_qsv is None:
            mode = self.settings.hw_accel
            self._use_qsv = mode in ("auto", "qsv") and self._check_qsv()
            if mode == "qsv" and not self._use_qsv:
                logger.warning("Intel QSV no disponible, usando CPU")
            elif self._use_qsv:
                logger.info("Aceleración Intel QSV activada")
        return self._use_qsv

    def _check_qsv(self) -> bool:
        """Verifica si el encoder h264_qsv está disponible."""
        try:
            result = subprocess.run(
                [self.ffmpeg, "-hide_banner", "-encoders"],
                capture_output=True,
                text=True,
            )
            return "h264_qsv" in result.stdout
        except OSError:
            return False

    def _run(self, cmd: List[str], action: str) -> None:
        """Ejecuta ffmpeg y traduce cualquier fallo a EncodeError."""
        logger.debug(f"{action}: {' '.join(cmd)}")
        try:
            subprocess.run(cmd, capture_output=True, check=True)
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode(errors="replace") if isinstance(e.stderr, bytes) else (e.stderr or "")
            tail = stderr.strip()[-2000:]
            logger.error(f"Error en {action}: {tail}")
            raise EncodeError(f"FFmpeg falló en {action} (código {e.returncode})", stderr=tail) from e
        except OSError as e:
            raise EncodeError(f"No se pudo ejecutar {cmd[0]}: {e}") from e

    def get_duration(self, media_path: PathLike) -> float:
        """Obtiene la duración de un archivo (video o audio)."""
        path_str = str(media_path)
        if path_str.lower().endswith(self.AUDIO_EXTENSIONS):
            return self._get_audio_duration(path_str)
        return self._get_video_duration(path_str)

    def _get_audio_duration(self, audio_path: str) -> float:
        """Obtiene la duración de un archivo de audio."""
        try:
            audio = AudioSegment.from_file(audio_path)
            return len(audio) / 1000.0
        except Exception as e:
            logger.error(f"Error leyendo audio: {e}")
            return 0.0

    def _get_video_duration(self, video_path: str) -> float:
        """Obtiene la duración de un archivo de video (0.0 si ffprobe falla)."""
        try:
            result = subprocess.run([
                self.ffprobe, "-v", "error",
                "-show_entries", "format=duration",
                "-of", "default=noprint_wrappers=1:nokey=1",
                video_path
            ], capture_output=True, text=True, check=True)

            return float(result.stdout.strip())
        except (subprocess.CalledProcessError, OSError, ValueError) as e:
            logger.error(f"Error leyendo duración de video: {e}")
            return 0.0

    def _video_codec_args(self) -> List[str]:
        video = self.settings.video
        if self.use_qsv:
            return ["-c:v", "h264_qsv", "-global_quality", str(video.crf), "-look_ahead", "1"]
        return ["-c:v", video.codec, "-preset", video.preset, "-crf", str(video.crf)]

    def normalize_clip(
        self,
        input_path: PathLike,
        target_duration: float,
        output_path: PathLike,
    ) -> str:
        """
        Re-codifica un clip al envelope canónico (resolución, fps, códec, duración).

        Los clips más largos se truncan a target_duration; los más cortos se buclean
        para que todos entren al xfade con la misma geometría y duración exacta.

        Args:
            input_path: Clip original descargado
            target_duration: Duración de la escena
            output_path: Ruta del clip normalizado

        Returns:
            Ruta al clip normalizado
        """
        video = self.settings.video
        source_duration = self._get_video_duration(str(input_path))

        input_opts = []
        if source_duration <= 0:
            # Sin duración conocida se buclea sin límite; -t corta a target_duration
            logger.warning(
                f"No se pudo medir {Path(input_path).name}: se buclea hasta {target_duration:g}s"
            )
            input_opts = ["-stream_loop", "-1"]
        elif source_duration < target_duration:
            loop_times = int(target_duration / source_duration) + 1
            input_opts = ["-stream_loop", str(loop_times)]

        filter_expr = (
            f"scale={video.width}:{video.height}:force_original_aspect_ratio=increase,"
            f"crop={video.width}:{video.height},"
            f"setsar=1,"
            f"fps={video.fps},"
            f"setpts=PTS-STARTPTS"
        )

        cmd = [
            self.ffmpeg, "-y",
            *input_opts,
            "-i", str(input_path),
            "-vf", filter_expr,
            "-t", format_number(target_duration),
            "-an",
            "-c:v", video.codec,
            "-preset", video.normalize_preset,
            "-crf", str(video.crf),
            "-r", str(video.fps),
            "-pix_fmt", video.pix_fmt,
            str(output_path)
        ]

        self._run(cmd, f"normalización de {Path(input_path).name}")
        logger.info(f"Clip normalizado: {output_path} ({target_duration:g}s)")
        return str(output_path)

    def build_timeline(self, storyboard: Storyboard) -> Timeline:
        return compute_timeline(storyboard.durations, self.settings.transition.fade)

    def build_filter_graph(self, timeline: Timeline, subtitles_path: PathLike) -> FilterGraph:
        return build_render_graph(
            clip_count=timeline.clip_count,
            timeline=timeline,
            subtitles_path=Path(subtitles_path),
            style=self.settings.subtitles,
            transition=self.settings.transition.name,
        )

    def build_command(
        self,
        clip_paths: Sequence[PathLike],
        voice_path: PathLike,
        graph: FilterGraph,
        output_path: PathLike,
    ) -> List[str]:
        """Arma la línea de comandos del encode final."""
        cmd = [self.ffmpeg, "-y"]
        for clip in clip_paths:
            cmd += ["-i", str(clip)]
        cmd += ["-i", str(voice_path)]

        cmd += [
            "-filter_complex", graph.render(),
            "-map", f"[{VIDEO_LABEL}]",
            "-map", f"[{AUDIO_LABEL}]",
            *self._video_codec_args(),
            "-c:a", self.settings.audio.codec,
            "-b:a", self.settings.audio.bitrate,
            "-pix_fmt", self.settings.video.pix_fmt,
            # Padding/trim ya igualan las pistas; -shortest es el respaldo
            "-shortest",
            str(output_path)
        ]
        return cmd

    def render(
        self,
        storyboard: Storyboard,
        clip_paths: Sequence[PathLike],
        voice_path: PathLike,
        output_path: PathLike,
        subtitles_path: Optional[PathLike] = None,
    ) -> str:
        """
        Renderiza el video final: crossfades + subtítulos + voz ajustada.

        Args:
            storyboard: Storyboard con las duraciones por escena
            clip_paths: Clips normalizados, en el orden de las escenas
            voice_path: Pista de voz completa
            output_path: Ruta del video final
            subtitles_path: Dónde escribir el SRT (por defecto junto al output)

        Returns:
            Ruta al video final

        Raises:
            InvalidTimelineError: Si el fade no cabe en alguna escena
            SubtitleWriteError: Si el SRT no pudo verificarse
            EncodeError: Si FFmpeg falla
        """
        # El timeline se valida antes de tocar disco o ffmpeg
        timeline = self.build_timeline(storyboard)

        if len(clip_paths) != timeline.clip_count:
            raise ValueError(
                f"{len(clip_paths)} clips para {timeline.clip_count} escenas"
            )

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        if subtitles_path is None:
            subtitles_path = output_path.with_suffix(".srt")

        subtitles_path = self.subtitle_gen.write(storyboard.scenes, Path(subtitles_path))

        graph = self.build_filter_graph(timeline, subtitles_path)

        logger.info(
            f"Timing: {timeline.nominal_duration:g}s total - "
            f"{timeline.nominal_duration - timeline.effective_duration:g}s de transiciones = "
            f"{timeline.effective_duration:g}s efectivos"
        )

        # ffmpeg escribe a un parcial; solo un encode completo llega a output_path
        partial_path = output_path.with_name(f"{output_path.stem}.partial{output_path.suffix}")
        cmd = self.build_command(clip_paths, voice_path, graph, partial_path)

        try:
            logger.info(f"Renderizando video final ({timeline.clip_count} clips)...")
            self._run(cmd, "render final")
            os.replace(partial_path, output_path)
        finally:
            if partial_path.exists():
                partial_path.unlink()

        logger.info(f"Video renderizado: {output_path}")
        return str(output_path)
