"""
Generador de storyboards con la API de OpenAI.
Compatible con endpoints tipo OpenRouter vía OPENAI_BASE_URL.
"""

import json
import logging
import os
import re
from typing import Optional

import yaml
from dotenv import load_dotenv
from openai import APIConnectionError, APITimeoutError, OpenAI, OpenAIError, RateLimitError

from ..config import LLMSettings
from ..director.parser import StoryboardParser
from ..domain.errors import StoryboardError
from ..domain.models import Storyboard
from ..utils.backoff import with_retry, global_rate_limiter

load_dotenv()
logger = logging.getLogger(__name__)

DEFAULT_STORYBOARD_TEMPLATE = """Create a storyboard for a 30-40 second video about: "{prompt}"

Break it into 5-6 scenes. Each scene needs:
- Duration: 5-7 seconds
- Narration: Natural spoken text for voiceover (conversational, engaging)
- Keywords: Simple search terms for stock footage on Pexels

Return ONLY valid JSON:
{{"title": "Video Title", "scenes": [{{"duration": 6, "narration": "...", "keywords": "..."}}]}}"""


class StoryboardGenerator:
    """Convierte un prompt libre en un Storyboard validado."""

    def __init__(
        self,
        settings: Optional[LLMSettings] = None,
        client: Optional[OpenAI] = None,
        parser: Optional[StoryboardParser] = None,
    ):
        """
        Args:
            settings: Modelo, temperatura y ruta de prompts
            client: Cliente OpenAI ya construido (por defecto usa OPENAI_API_KEY)
            parser: Validador de storyboards
        """
        self.settings = settings or LLMSettings()
        self.prompts = self._load_prompts(self.settings.prompts_path)
        self.parser = parser or StoryboardParser()
        self.rate_limiter = global_rate_limiter

        if client is not None:
            self.client = client
        elif os.getenv("OPENAI_API_KEY"):
            self.client = OpenAI(
                api_key=os.getenv("OPENAI_API_KEY"),
                base_url=os.getenv("OPENAI_BASE_URL") or None,
            )
        else:
            logger.warning("OPENAI_API_KEY no configurada")
            self.client = None

    def _load_prompts(self, path: str) -> dict:
        """Carga los prompts desde YAML."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning(f"Archivo de prompts no encontrado: {path}. Usando template por defecto")
            return {}

    def _extract_json(self, text: str) -> Optional[dict]:
        """
        Extrae JSON de la respuesta del LLM.
        Maneja casos donde el JSON está envuelto en markdown o texto.
        """
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass

        json_patterns = [
            r"```json\s*([\s\S]*?)\s*```",
            r"```\s*([\s\S]*?)\s*```",
            r"\{[\s\S]*\}",
        ]

        for pattern in json_patterns:
            for match in re.findall(pattern, text):
                clean = match.strip()
                if not clean.startswith("{"):
                    continue
                try:
                    return json.loads(clean)
                except json.JSONDecodeError:
                    continue

        logger.error("No se pudo extraer JSON de la respuesta")
        return None

    @with_retry(
        max_attempts=3,
        min_wait=2.0,
        max_wait=30.0,
        exceptions=(APIConnectionError, APITimeoutError, RateLimitError),
    )
    def _call_llm(self, messages: list[dict]) -> Optional[str]:
        self.rate_limiter.wait_if_needed("openai")

        response = self.client.chat.completions.create(
            model=self.settings.model,
            messages=messages,
            temperature=self.settings.temperature,
            response_format={"type": "json_object"},
        )
        return response.choices[0].message.content

    def build_messages(self, prompt: str) -> list[dict]:
        template = self.prompts.get("storyboard_template") or DEFAULT_STORYBOARD_TEMPLATE
        messages = []
        system_prompt = self.prompts.get("system_prompt")
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": template.format(prompt=prompt.strip())})
        return messages

    def generate(self, prompt: str) -> Storyboard:
        """
        Genera un storyboard a partir de un prompt libre.

        Raises:
            StoryboardError: Prompt vacío, fallo del LLM o respuesta inválida
        """
        if not prompt or not prompt.strip():
            raise StoryboardError("El prompt es obligatorio")
        if self.client is None:
            raise StoryboardError("Cliente OpenAI no configurado")

        logger.info(f"Generando storyboard con {self.settings.model}...")

        try:
            content = self._call_llm(self.build_messages(prompt))
        except OpenAIError as e:
            logger.error(f"Error llamando a {self.settings.model}: {e}")
            raise StoryboardError(f"El LLM falló: {e}") from e

        data = self._extract_json(content or "")
        if not data:
            raise StoryboardError("El LLM no devolvió un JSON válido")

        storyboard = self.parser.parse(data)
        logger.info(f"Storyboard '{storyboard.title}' con {len(storyboard.scenes)} escenas")
        return storyboard
