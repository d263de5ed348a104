"""Process-level settings read from ``PAGEKIT_*`` environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal

from pagekit.exceptions import PaginatorConfigError
from pagekit.models import DEFAULT_FETCH_ALL_LIMIT

ObservabilityBackend = Literal["none", "log", "otel"]
LogFormat = Literal["console", "json"]

_BACKENDS: tuple[str, ...] = ("none", "log", "otel")
_LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOG_FORMATS: tuple[str, ...] = ("console", "json")


@dataclass(frozen=True)
class Settings:
    """Resolved settings. Construct via :func:`load_settings`."""

    observability: ObservabilityBackend = "none"
    service_name: str = "pagekit-paginator"
    default_page_size: int = DEFAULT_FETCH_ALL_LIMIT
    api_url: str | None = None
    api_token: str | None = None
    http_timeout: float = 30.0
    log_level: str = "INFO"
    log_format: LogFormat = "console"


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from *env* (default: ``os.environ``).

    Reads:
        PAGEKIT_OBSERVABILITY     — none | log | otel (default: none)
        PAGEKIT_ENABLE_TRACING    — ``true`` selects otel when the above is unset
        PAGEKIT_SERVICE_NAME      — service name tag (default: pagekit-paginator)
        PAGEKIT_DEFAULT_PAGE_SIZE — page size for ``fetch_all_pages`` (default: 50)
        PAGEKIT_API_URL           — base URL for the bundled HTTP list client
        PAGEKIT_API_TOKEN         — bearer token for the HTTP list client
        PAGEKIT_HTTP_TIMEOUT      — seconds (default: 30.0)
        PAGEKIT_LOG_LEVEL         — level of the ``pagekit`` logger tree (default: INFO)
        PAGEKIT_LOG_FORMAT        — console | json (default: console)

    Raises :class:`PaginatorConfigError` on malformed values.
    """
    env = os.environ if env is None else env

    backend = env.get("PAGEKIT_OBSERVABILITY", "").strip().lower()
    if not backend:
        tracing = env.get("PAGEKIT_ENABLE_TRACING", "").strip().lower()
        backend = "otel" if tracing == "true" else "none"
    if backend not in _BACKENDS:
        raise PaginatorConfigError(
            f"PAGEKIT_OBSERVABILITY must be one of {', '.join(_BACKENDS)}, got {backend!r}"
        )

    page_size = _parse_number(env, "PAGEKIT_DEFAULT_PAGE_SIZE", int, DEFAULT_FETCH_ALL_LIMIT)
    if page_size < 1:
        raise PaginatorConfigError(f"PAGEKIT_DEFAULT_PAGE_SIZE must be >= 1, got {page_size}")

    timeout = _parse_number(env, "PAGEKIT_HTTP_TIMEOUT", float, 30.0)
    if timeout <= 0:
        raise PaginatorConfigError(f"PAGEKIT_HTTP_TIMEOUT must be > 0, got {timeout}")

    log_level = (env.get("PAGEKIT_LOG_LEVEL") or "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        raise PaginatorConfigError(
            f"PAGEKIT_LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got {log_level!r}"
        )

    log_format = (env.get("PAGEKIT_LOG_FORMAT") or "console").strip().lower()
    if log_format not in _LOG_FORMATS:
        raise PaginatorConfigError(
            f"PAGEKIT_LOG_FORMAT must be one of {', '.join(_LOG_FORMATS)}, got {log_format!r}"
        )

    return Settings(
        observability=backend,  # type: ignore[arg-type]
        service_name=env.get("PAGEKIT_SERVICE_NAME") or "pagekit-paginator",
        default_page_size=page_size,
        api_url=env.get("PAGEKIT_API_URL") or None,
        api_token=env.get("PAGEKIT_API_TOKEN") or None,
        http_timeout=timeout,
        log_level=log_level,
        log_format=log_format,  # type: ignore[arg-type]
    )


def _parse_number(env: Mapping[str, str], key: str, kind: type, default):
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return kind(raw)
    except ValueError as exc:
        raise PaginatorConfigError(f"{key} is not a valid {kind.__name__}: {raw!r}") from exc
