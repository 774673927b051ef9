"""
Provider registry: central catalog of available provider clients.

Clients are registered by ProviderId as a factory or a ready instance.
Factories run on first use, so a provider that is never asked for (or whose
credential is missing) costs nothing until a chain needs it.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Union

from .base import ProviderId

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], Any]


class ProviderRegistry:
    """
    Mapping of provider ids to client factories/instances.

    Usage:
        registry = ProviderRegistry()
        registry.register(ProviderId.DEFILLAMA, DefiLlamaClient)
        registry.register(ProviderId.COINGECKO, lambda: CoinGeckoClient(api_key))

        clients = registry.build_clients([ProviderId.COINGECKO, ProviderId.DEFILLAMA])
    """

    def __init__(self) -> None:
        self._factories: Dict[ProviderId, Union[ClientFactory, Any]] = {}
        self._instances: Dict[ProviderId, Any] = {}

    def register(self, provider: ProviderId, factory: Union[ClientFactory, Any]) -> None:
        """Register a client class, zero-argument factory, or instance."""
        if provider == ProviderId.MOCK:
            raise ValueError("the mock source is not a registrable provider")
        self._factories[provider] = factory
        self._instances.pop(provider, None)
        logger.debug("Registered provider: %s", provider.value)

    def get(self, provider: ProviderId) -> Any:
        """Get or instantiate a client. Factory errors (e.g. ConfigurationError) propagate."""
        if provider not in self._instances:
            factory = self._factories.get(provider)
            if factory is None:
                raise KeyError(
                    f"Unknown provider '{provider.value}'. "
                    f"Available: {[p.value for p in self._factories]}"
                )
            self._instances[provider] = factory() if callable(factory) else factory
        return self._instances[provider]

    @property
    def names(self) -> List[ProviderId]:
        return list(self._factories)

    def build_clients(self, providers: Iterable[ProviderId]) -> Dict[ProviderId, Any]:
        """Instantiate the registered providers among `providers`, keeping their order."""
        return {p: self.get(p) for p in dict.fromkeys(providers) if p in self._factories}
