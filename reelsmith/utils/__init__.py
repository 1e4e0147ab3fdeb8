"""Módulo de utilidades"""

from .backoff import with_retry, RateLimiter, global_rate_limiter
from .workspace import JobWorkspace, new_job_id

__all__ = ["with_retry", "RateLimiter", "global_rate_limiter", "JobWorkspace", "new_job_id"]
