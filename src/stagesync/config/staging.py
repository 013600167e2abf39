"""Content staging configuration values."""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlsplit

from .env import env_float, env_list, optional_env_var
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_SITE_URL = "http://localhost"
DEFAULT_PROBE_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True, slots=True)
class StagingConfig:
    """Settings shared by the sending and the receiving side."""

    site_root: Path
    site_url: str = DEFAULT_SITE_URL
    host: str = "localhost"
    relation_keys: frozenset[str] = field(default_factory=frozenset)
    import_command: tuple[str, ...] = ()
    uploads_url: str | None = None


@dataclass(frozen=True, slots=True)
class ProbeConfig:
    """Settings for attachment existence probes run during pre-flight."""

    timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS
    resilience: ResilienceConfig = field(
        default_factory=lambda: build_probe_resilience(DEFAULT_PROBE_TIMEOUT_SECONDS)
    )


def build_probe_resilience(timeout_seconds: float) -> ResilienceConfig:
    return ResilienceConfig(
        name="attachment-probe",
        timeout_seconds=timeout_seconds,
        retry=RetryPolicy(
            total=1,
            backoff_factor=0.2,
            max_backoff_wait=timeout_seconds,
            allowed_methods=frozenset({"HEAD"}),
        ),
        ratelimit=RateLimit(max_calls=20, per_seconds=1.0),
        follow_redirects=True,
    )


def _host_from_url(url: str) -> str:
    host = urlsplit(url).netloc
    if not host:
        raise ConfigurationError(f"Site URL has no host: {url!r}")
    return host


def get_staging_config() -> StagingConfig:
    site_url = optional_env_var("STAGESYNC_SITE_URL", DEFAULT_SITE_URL) or DEFAULT_SITE_URL
    site_root = optional_env_var("STAGESYNC_SITE_ROOT")
    command = optional_env_var("STAGESYNC_IMPORT_COMMAND")
    return StagingConfig(
        site_root=Path(site_root) if site_root else Path.cwd(),
        site_url=site_url.rstrip("/"),
        host=optional_env_var("STAGESYNC_HOST") or _host_from_url(site_url),
        relation_keys=frozenset(env_list("STAGESYNC_RELATION_KEYS")),
        import_command=tuple(shlex.split(command)) if command else (),
        uploads_url=optional_env_var("STAGESYNC_UPLOADS_URL"),
    )


def get_probe_config() -> ProbeConfig:
    timeout = env_float("STAGESYNC_PROBE_TIMEOUT", DEFAULT_PROBE_TIMEOUT_SECONDS)
    return ProbeConfig(timeout_seconds=timeout, resilience=build_probe_resilience(timeout))
