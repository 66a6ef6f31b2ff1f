"""Cloud provider registry."""

import logging

from config import ConfigError
from providers.base import DiscoveredNetwork, NetworkAttributes, ProviderCapabilities, ProviderClient

logger = logging.getLogger(__name__)

PROVIDERS: dict[str, ProviderCapabilities] = {}


def register_provider(capabilities: ProviderCapabilities) -> ProviderCapabilities:
    """Register a provider capability set under its name."""
    PROVIDERS[capabilities.name] = capabilities
    logger.debug(f"Registered provider: {capabilities.name}")
    return capabilities


def get_provider(name: str) -> ProviderCapabilities:
    """Get provider capabilities by tag.

    Raises:
        ConfigError: If no provider is registered under ``name``
    """
    if name not in PROVIDERS:
        raise ConfigError(f"Unknown provider: {name}. Available: {', '.join(list_providers())}")
    return PROVIDERS[name]


def list_providers() -> list[str]:
    """List registered provider tags."""
    return sorted(PROVIDERS.keys())


# Import providers to register them
from providers import alicloud  # noqa: E402, F401

__all__ = [
    'DiscoveredNetwork',
    'NetworkAttributes',
    'ProviderCapabilities',
    'ProviderClient',
    'register_provider',
    'get_provider',
    'list_providers',
]
