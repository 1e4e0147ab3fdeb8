"""
Entrada principal de reelsmith.
Prompt → video narrado con clips de stock, crossfades y subtítulos.
"""
import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from rich.console import Console

from .config import DEFAULT_CONFIG_PATH, TTSSettings, load_settings
from .director.parser import StoryboardParser
from .domain.errors import RenderError
from .orchestrator import VideoOrchestrator

logger = logging.getLogger(__name__)
console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reelsmith",
        description="Genera un video narrado a partir de un prompt",
    )
    parser.add_argument("prompt", nargs="?", help="Tema del video")
    parser.add_argument("--storyboard", help="Renderizar un storyboard JSON existente (sin LLM)")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Ruta a config.yaml")
    parser.add_argument("--tts", choices=["openai", "edge"], help="Motor TTS a usar")
    parser.add_argument("--workers", type=int, help="Escenas procesadas en paralelo")
    parser.add_argument("--output-dir", help="Directorio de salida")
    parser.add_argument("--job-id", help="Identificador del job (por defecto timestamp)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Logging detallado")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Punto de entrada CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.prompt and not args.storyboard:
        parser.print_help()
        return 2

    settings = load_settings(args.config)
    if args.tts:
        settings.tts = TTSSettings(**{**settings.tts.model_dump(), "engine": args.tts})
    if args.workers:
        settings.max_parallel_clips = max(1, args.workers)
    if args.output_dir:
        settings.paths.output_dir = args.output_dir

    console.print("🎬 reelsmith - prompt → video")
    orchestrator = VideoOrchestrator(settings)

    try:
        if args.storyboard:
            with open(args.storyboard, "r", encoding="utf-8") as f:
                storyboard = StoryboardParser().parse(json.load(f))
            path = orchestrator.render_storyboard(storyboard, job_id=args.job_id)
        else:
            path = orchestrator.produce_video(args.prompt, job_id=args.job_id)
    except (RenderError, OSError, json.JSONDecodeError) as e:
        # El detalle de etapa/reintentos ya quedó en el log
        console.print(f"[red]Error: {e}[/red]")
        return 1
    finally:
        orchestrator.close()

    console.print(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
