"""
Reintentos y rate limiting para APIs externas (OpenAI, Pexels).
"""

import logging
import threading
import time
from collections import defaultdict
from typing import Dict, Optional

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
)

logger = logging.getLogger(__name__)


def with_retry(
    max_attempts: int = 3,
    min_wait: float = 1.0,
    max_wait: float = 60.0,
    exceptions: tuple = (Exception,),
):
    """
    Decorador para reintentar funciones con exponential backoff.

    Args:
        max_attempts: Número máximo de intentos
        min_wait: Tiempo mínimo de espera entre intentos (segundos)
        max_wait: Tiempo máximo de espera entre intentos (segundos)
        exceptions: Tupla de excepciones que disparan un reintento

    Returns:
        Decorador configurado (re-lanza la última excepción al agotar intentos)
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


class RateLimiter:
    """
    Rate limiter por endpoint (ventana fija).
    Seguro entre hilos: las descargas por escena corren en paralelo.
    """

    DEFAULT_LIMITS = {
        "default": {"requests": 60, "period_seconds": 60},
        "openai": {"requests": 60, "period_seconds": 60},
        "pexels": {"requests": 200, "period_seconds": 3600},  # 200/hora
    }

    def __init__(self, limits: Optional[Dict[str, dict]] = None):
        self._limits = {**self.DEFAULT_LIMITS, **(limits or {})}
        self._window_start: Dict[str, float] = defaultdict(float)
        self._counts: Dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()

    def set_limit(self, endpoint: str, requests: int, period_seconds: int) -> None:
        with self._lock:
            self._limits[endpoint] = {"requests": requests, "period_seconds": period_seconds}

    def _get_limit(self, endpoint: str) -> dict:
        return self._limits.get(endpoint, self._limits["default"])

    def wait_if_needed(self, endpoint: str) -> float:
        """
        Bloquea si el endpoint alcanzó su límite en la ventana actual.
        La espera ocurre fuera del lock: otros endpoints siguen disponibles.

        Returns:
            Tiempo esperado en segundos
        """
        limit = self._get_limit(endpoint)
        period = limit["period_seconds"]
        waited = 0.0

        while True:
            with self._lock:
                now = time.monotonic()
                if now - self._window_start[endpoint] >= period:
                    self._window_start[endpoint] = now
                    self._counts[endpoint] = 0

                if self._counts[endpoint] < limit["requests"]:
                    self._counts[endpoint] += 1
                    return waited

                delay = period - (now - self._window_start[endpoint])

            logger.info(f"Rate limit alcanzado para {endpoint}. Esperando {delay:.1f}s")
            time.sleep(delay)
            waited += delay

    def get_remaining(self, endpoint: str) -> int:
        limit = self._get_limit(endpoint)
        return max(0, limit["requests"] - self._counts[endpoint])

    def reset(self, endpoint: Optional[str] = None) -> None:
        with self._lock:
            if endpoint:
                self._counts.pop(endpoint, None)
                self._window_start.pop(endpoint, None)
            else:
                self._counts.clear()
                self._window_start.clear()


# Instancia global compartida por los clientes
global_rate_limiter = RateLimiter()
