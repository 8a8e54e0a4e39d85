"""Vision provider adapters, selected once per request."""

from __future__ import annotations

from ..types import ProviderName
from .base import VisionProvider
from .gemini import GeminiProvider
from .kimi import KimiProvider

_PROVIDERS: dict[str, type[VisionProvider]] = {
    "gemini": GeminiProvider,
    "kimi": KimiProvider,
}


def get_provider(name: ProviderName) -> VisionProvider:
    """Instantiate the adapter for a quality tier's provider family."""
    try:
        return _PROVIDERS[name]()
    except KeyError:
        raise ValueError(f"Unknown provider: {name}") from None


__all__ = ["GeminiProvider", "KimiProvider", "VisionProvider", "get_provider"]
