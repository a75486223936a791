"""Cache backend configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Literal, cast

from .env import int_env_var, optional_env_var, require_env_vars
from .errors import ConfigurationError

type CacheBackendName = Literal["memory", "redis", "none"]

CACHE_BACKENDS: Final[frozenset[str]] = frozenset({"memory", "redis", "none"})
DEFAULT_CACHE_TTL_MS: Final[int] = 0
DEFAULT_CACHE_NAMESPACE: Final[str] = "statecraft"

BACKEND_ENV: Final[str] = "STATECRAFT_CACHE_BACKEND"
TTL_ENV: Final[str] = "STATECRAFT_CACHE_TTL_MS"
NAMESPACE_ENV: Final[str] = "STATECRAFT_CACHE_NAMESPACE"
REDIS_URL_ENV: Final[str] = "REDIS_URL"


@dataclass(frozen=True, slots=True)
class CacheConfig:
    backend: CacheBackendName = "memory"
    ttl_ms: int = DEFAULT_CACHE_TTL_MS
    redis_url: str | None = None
    namespace: str = DEFAULT_CACHE_NAMESPACE

    def __post_init__(self) -> None:
        if self.backend not in CACHE_BACKENDS:
            raise ConfigurationError(
                f"Unknown cache backend: {self.backend}", setting=BACKEND_ENV
            )
        if self.ttl_ms < 0:
            raise ConfigurationError("Cache TTL must be non-negative", setting=TTL_ENV)
        if self.backend == "redis" and not self.redis_url:
            raise ConfigurationError(
                "The redis cache backend requires a redis url", setting=REDIS_URL_ENV
            )

    @property
    def enabled(self) -> bool:
        return self.backend != "none"


def get_cache_config() -> CacheConfig:
    backend = (optional_env_var(BACKEND_ENV) or "memory").lower()
    if backend not in CACHE_BACKENDS:
        raise ConfigurationError(f"Unknown cache backend: {backend}", setting=BACKEND_ENV)
    redis_url = None
    if backend == "redis":
        redis_url = require_env_vars([REDIS_URL_ENV])[REDIS_URL_ENV]
    return CacheConfig(
        backend=cast(CacheBackendName, backend),
        ttl_ms=int_env_var(TTL_ENV, DEFAULT_CACHE_TTL_MS),
        redis_url=redis_url,
        namespace=optional_env_var(NAMESPACE_ENV) or DEFAULT_CACHE_NAMESPACE,
    )
