"""
Orquestador Central
Coordina todos los subsistemas para convertir un prompt en un video final:
Storyboard → Clips (descarga + normalización) → Voz → Render → Limpieza.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn

from .config import Settings, load_settings
from .domain.errors import RenderError
from .domain.models import ClipAsset, RenderJob, Storyboard
from .infrastructure.clips import ClipAcquirer
from .infrastructure.pexels import PexelsClient
from .llm.openai_client import StoryboardGenerator
from .tts import BaseTTSEngine, create_tts_engine
from .utils.workspace import JobWorkspace
from .video.renderer import VideoRenderer
from .video.timeline import compute_timeline

logger = logging.getLogger(__name__)
console = Console()


class VideoOrchestrator:
    """
    El 'Director de Orquesta'.
    Recibe un prompt (o un storyboard ya hecho) y coordina su producción.
    Cualquier fallo aborta el render; los temporales se borran siempre.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        storyboard_source: Optional[StoryboardGenerator] = None,
        clip_acquirer: Optional[ClipAcquirer] = None,
        tts_engine: Optional[BaseTTSEngine] = None,
        renderer: Optional[VideoRenderer] = None,
    ):
        self.settings = settings or load_settings()

        # Componentes lazy-loaded (se pueden inyectar)
        self._storyboard_source = storyboard_source
        self._clip_acquirer = clip_acquirer
        self._tts_engine = tts_engine
        self._renderer = renderer
        self._pexels: Optional[PexelsClient] = None

    @property
    def storyboard_source(self) -> StoryboardGenerator:
        if self._storyboard_source is None:
            self._storyboard_source = StoryboardGenerator(self.settings.llm)
        return self._storyboard_source

    @property
    def renderer(self) -> VideoRenderer:
        if self._renderer is None:
            self._renderer = VideoRenderer(self.settings)
        return self._renderer

    @property
    def clip_acquirer(self) -> ClipAcquirer:
        if self._clip_acquirer is None:
            self._pexels = PexelsClient(self.settings.pexels)
            self._clip_acquirer = ClipAcquirer(self._pexels, self.renderer, self.settings.pexels)
        return self._clip_acquirer

    @property
    def tts_engine(self) -> BaseTTSEngine:
        if self._tts_engine is None:
            logger.info(f"Usando motor TTS: {self.settings.tts.engine}")
            self._tts_engine = create_tts_engine(self.settings.tts)
        return self._tts_engine

    def produce_video(self, prompt: str, job_id: Optional[str] = None) -> str:
        """
        Ejecuta el pipeline completo a partir de un prompt libre.

        Returns:
            Ruta al video final
        """
        console.print(Panel("[bold cyan]PASO 1: Generando storyboard[/bold cyan]"))
        storyboard = self.storyboard_source.generate(prompt)
        console.print(f"[green]✓ Storyboard: '{storyboard.title}' ({len(storyboard.scenes)} escenas)[/green]\n")
        return self.render_storyboard(storyboard, job_id=job_id)

    def render_storyboard(self, storyboard: Storyboard, job_id: Optional[str] = None) -> str:
        """
        Renderiza un storyboard ya validado.

        Args:
            storyboard: Storyboard a producir
            job_id: Identificador del job (define carpeta temporal y nombre del video)

        Returns:
            Ruta al video final

        Raises:
            RenderError: Cualquier fallo de etapa; no se produce video parcial
        """
        workspace = JobWorkspace(
            self.settings.paths.temp_dir,
            self.settings.paths.output_dir,
            job_id=job_id,
        )
        job = RenderJob(
            job_id=workspace.job_id,
            storyboard=storyboard,
            workspace=workspace,
            output_path=workspace.output_path,
        )

        console.print(Panel(
            f"[bold magenta]🎬 Render {job.job_id}[/bold magenta]\n"
            f"'{storyboard.title}' - {len(storyboard.scenes)} escenas, {storyboard.total_duration:g}s nominales",
            title="reelsmith"
        ))

        try:
            # Falla rápido antes de gastar descargas o TTS
            job.timeline = compute_timeline(storyboard.durations, self.settings.transition.fade)
            workspace.create()

            self.step_prepare_clips(job)
            self.step_synthesize_voice(job)
            self.step_render(job)
        except RenderError as e:
            logger.error(f"Render {job.job_id} abortado ({type(e).__name__}): {e}")
            console.print(f"[red]✗ Render abortado: {e}[/red]")
            raise
        finally:
            console.print("[dim]🧹 Limpiando temporales...[/dim]")
            workspace.cleanup()

        console.print(f"\n[bold green]✅ Video final: {job.output_path}[/bold green]\n")
        return str(job.output_path)

    def step_prepare_clips(self, job: RenderJob) -> List[ClipAsset]:
        """
        Descarga y normaliza un clip por escena con paralelismo acotado.
        Los resultados se reordenan por índice de escena antes de seguir.
        """
        scenes = job.storyboard.scenes
        console.print(Panel(f"[bold cyan]PASO 2: Obteniendo clips para {len(scenes)} escenas[/bold cyan]"))

        assets: List[Optional[ClipAsset]] = [None] * len(scenes)
        workers = min(self.settings.max_parallel_clips, len(scenes))

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console
        ) as progress:
            task = progress.add_task("Descargando y normalizando...", total=len(scenes))

            executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"clips-{job.job_id}")
            try:
                futures = {
                    executor.submit(self.clip_acquirer.prepare, scene, i, job.workspace): i
                    for i, scene in enumerate(scenes)
                }
                for future in as_completed(futures):
                    i = futures[future]
                    assets[i] = future.result()
                    progress.update(task, description=f"Escena {i}: lista")
                    progress.advance(task)
            finally:
                # En error: cancela lo pendiente y espera a lo que ya corre antes de limpiar
                executor.shutdown(wait=True, cancel_futures=True)

        job.clips = assets
        console.print(f"[green]✓ {len(assets)} clips listos[/green]\n")
        return assets

    def step_synthesize_voice(self, job: RenderJob):
        """Sintetiza la narración completa en una sola petición."""
        console.print(Panel("[bold cyan]PASO 3: Generando voz[/bold cyan]"))

        job.voice = self.tts_engine.synthesize(
            job.storyboard.narration_text,
            job.workspace.voiceover,
        )

        target = job.timeline.effective_duration
        if job.voice.duration > target:
            logger.info(f"Voz {job.voice.duration:.2f}s > video {target:g}s: se recortará")
        elif job.voice.duration < target:
            logger.info(f"Voz {job.voice.duration:.2f}s < video {target:g}s: se rellenará con silencio")

        console.print(f"[green]✓ Voz: {job.voice.duration:.2f}s[/green]\n")
        return job.voice

    def step_render(self, job: RenderJob) -> str:
        """Compone el video final."""
        console.print(Panel("[bold cyan]PASO 4: Renderizando video[/bold cyan]"))

        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console) as progress:
            task = progress.add_task("Renderizando con FFmpeg...", total=None)

            path = self.renderer.render(
                job.storyboard,
                job.clip_paths,
                job.voice.path,
                job.output_path,
                subtitles_path=job.workspace.subtitles,
            )
            progress.update(task, description="[green]✓ Video renderizado")

        return path

    def close(self):
        """Libera recursos."""
        if self._pexels:
            self._pexels.close()
