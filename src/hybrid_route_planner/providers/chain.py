"""Ordered provider fallback."""

import logging
from typing import Optional, Sequence

from hybrid_route_planner.config import RoutingSettings
from hybrid_route_planner.core.cancellation import CancellationToken
from hybrid_route_planner.errors import AllProvidersFailed, MissingCredential, ProviderError
from hybrid_route_planner.models import (
    Coordinate, RoutingEngine, RoutingPreferences, RoutingProfile, SegmentResult,
)
from .base import RoutingProvider
from .ors import OrsProvider
from .osrm import OsrmProvider
from .trails import TrailProvider

logger = logging.getLogger(__name__)

ENGINE_ORDER: dict[RoutingEngine, tuple[type[RoutingProvider], ...]] = {
    RoutingEngine.OSRM: (OsrmProvider, OrsProvider),
    RoutingEngine.OSRM_TRAILS: (TrailProvider, OsrmProvider, OrsProvider),
    RoutingEngine.ORS: (OrsProvider, OsrmProvider),
}


class ProviderChain:
    """Tries providers strictly in order until one returns a segment."""

    def __init__(self, providers: Sequence[RoutingProvider]):
        self.providers = list(providers)

    @property
    def names(self) -> list[str]:
        return [p.name for p in self.providers]

    async def compute_segment(
        self,
        start: Coordinate,
        end: Coordinate,
        profile: RoutingProfile,
        preferences: RoutingPreferences,
        token: Optional[CancellationToken] = None,
    ) -> SegmentResult:
        failures: list[tuple[str, str]] = []

        for provider in self.providers:
            if token is not None:
                token.raise_if_cancelled()
            try:
                result = await provider.compute_segment(start, end, profile, preferences)
            except MissingCredential as exc:
                logger.info("Skipping %s: %s", provider.name, exc)
                continue
            except ProviderError as exc:
                logger.warning("Provider %s failed, trying next: %s", provider.name, exc)
                failures.append((provider.name, str(exc)))
                continue
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                logger.warning("Provider %s returned a malformed reply: %s", provider.name, exc)
                failures.append((provider.name, f"malformed reply: {exc}"))
                continue

            if result is None or len(result.geometry) < 2:
                logger.warning("Provider %s returned an empty route, trying next", provider.name)
                failures.append((provider.name, "empty result"))
                continue

            if not result.provider:
                result = result.model_copy(update={"provider": provider.name})
            logger.debug("Segment computed by %s", result.provider)
            return result

        logger.warning("All providers failed for %s -> %s", start.as_tuple(), end.as_tuple())
        raise AllProvidersFailed(failures)


def build_provider_chain(settings: RoutingSettings) -> ProviderChain:
    """Provider list for the selected engine; the order is data, not control flow."""
    classes = ENGINE_ORDER[RoutingEngine(settings.engine)]
    return ProviderChain([cls(settings) for cls in classes])
