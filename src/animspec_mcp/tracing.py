"""Optional MLflow tracing for analysis requests.

Two layers when enabled:

1. **Provider autolog** -- each provider named in the quality table gets its
   SDK autologger: google-genai through ``mlflow.gemini`` and the Kimi
   (OpenAI-compatible) client through ``mlflow.openai``. Every streamed model
   call becomes a ``CHAT_MODEL`` span.
2. **Tool spans** -- ``trace()`` wraps MCP tool entrypoints, and
   ``tag_analysis()`` stamps the request's format, quality and path onto the
   enclosing trace so runs can be filtered by tier.

The import is guarded; without ``mlflow-tracing`` installed every function
here is a no-op.

Env vars (all optional):
    MLFLOW_TRACKING_URI: Where to store traces. Empty = tracing disabled.
    MLFLOW_EXPERIMENT_NAME: Experiment name (default ``animspec-mcp``).
    ANIMSPEC_TRACING_ENABLED: ``"false"`` force-disables even with a URI.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable, Iterable
from typing import Any

from .types import ProviderName

logger = logging.getLogger(__name__)

try:
    import mlflow

    _HAS_MLFLOW = True
except ImportError:
    _HAS_MLFLOW = False

# MLflow flavor that autologs each provider's SDK.
AUTOLOG_FLAVORS: dict[ProviderName, str] = {
    "gemini": "gemini",
    "kimi": "openai",
}


def is_enabled() -> bool:
    """True when mlflow-tracing is installed and configured on."""
    if not _HAS_MLFLOW:
        return False
    from .config import get_config

    return get_config().tracing_enabled


def trace(
    func: Callable | None = None,
    *,
    name: str | None = None,
    span_type: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Callable:
    """``@mlflow.trace`` when tracing is on, identity otherwise.

    Usage::

        @trace(name="analyze_video", span_type="TOOL")
        async def analyze_video(...): ...
    """
    if not is_enabled():
        return func if func is not None else (lambda f: f)
    return mlflow.trace(func, name=name, span_type=span_type, attributes=attributes)


def tag_analysis(format: str, quality: str, agentic: bool) -> None:
    """Tag the active trace with the request's format, tier and path."""
    if not is_enabled():
        return
    try:
        mlflow.update_current_trace(tags={
            "animspec.format": format,
            "animspec.quality": quality,
            "animspec.path": "agentic" if agentic else "single",
        })
    except Exception:
        logger.debug("Could not tag the active trace", exc_info=True)


def _provider_names() -> set[ProviderName]:
    from .config import AnalysisSettings

    return {profile.provider for profile in AnalysisSettings().quality_profiles.values()}


def _load_flavor(flavor: str) -> Any:
    return importlib.import_module(f"mlflow.{flavor}")


def enable_autolog(providers: Iterable[ProviderName]) -> list[str]:
    """Turn on the autologger for each provider; returns the flavors enabled.

    A flavor that fails to load is logged and skipped so the others still run.
    """
    enabled: list[str] = []
    for flavor in sorted({AUTOLOG_FLAVORS[p] for p in providers if p in AUTOLOG_FLAVORS}):
        try:
            _load_flavor(flavor).autolog()
        except Exception:
            logger.warning("MLflow %s autolog unavailable, its calls stay untraced", flavor, exc_info=True)
            continue
        enabled.append(flavor)
    return enabled


def setup() -> None:
    """Point MLflow at the configured store and autolog every provider in use.

    Failures are logged; tracing never blocks server start.
    """
    if not is_enabled():
        return

    from .config import get_config

    cfg = get_config()
    try:
        mlflow.set_tracking_uri(cfg.mlflow_tracking_uri)
        mlflow.set_experiment(cfg.mlflow_experiment_name)
    except Exception:
        logger.warning("MLflow tracing setup failed, continuing without tracing", exc_info=True)
        return
    flavors = enable_autolog(_provider_names())
    logger.info(
        "MLflow tracing enabled (uri=%s, experiment=%s, autolog=%s)",
        cfg.mlflow_tracking_uri, cfg.mlflow_experiment_name, ", ".join(flavors) or "none",
    )


def shutdown() -> None:
    """Flush traces still queued for async logging."""
    if not is_enabled():
        return
    try:
        mlflow.flush_trace_async_logging()
        logger.info("MLflow traces flushed")
    except Exception:
        logger.warning("MLflow trace flush failed", exc_info=True)
