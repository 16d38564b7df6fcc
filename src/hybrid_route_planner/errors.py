"""Error taxonomy for route editing and segment computation."""


class RoutePlannerError(Exception):
    """Base class for all planner errors."""


class InvalidCoordinate(RoutePlannerError, ValueError):
    """A coordinate is non-finite or outside the valid lat/lon range."""


class InsufficientPoints(RoutePlannerError, ValueError):
    """A route computation was requested with fewer than two waypoints."""

    def __init__(self, count: int):
        self.count = count
        super().__init__(f"At least 2 waypoints are needed to calculate a route, got {count}.")


class HybridModeRequired(RoutePlannerError, ValueError):
    """Automatic segments were requested while the planner is in manual mode."""

    def __init__(self):
        super().__init__("Switch to hybrid mode with set_routing_mode before calculating a route.")


class ProviderError(RoutePlannerError):
    """A routing provider could not produce a segment."""

    def __init__(self, message: str, provider: str = ""):
        self.provider = provider
        super().__init__(f"{provider}: {message}" if provider else message)


class ProviderUnavailable(ProviderError):
    """Network failure, timeout or HTTP error status."""


class MissingCredential(ProviderUnavailable):
    """The provider needs an API key that was not configured."""


class NoRoute(ProviderError):
    """The service answered but found no path (or had no data)."""


class AllProvidersFailed(ProviderError):
    """Every provider in the chain failed for one gap."""

    def __init__(self, failures: list[tuple[str, str]]):
        self.failures = failures
        if failures:
            detail = "; ".join(f"{name}: {reason}" for name, reason in failures)
        else:
            detail = "no providers available"
        super().__init__(f"All routing providers failed ({detail})")


class RunCancelled(RoutePlannerError):
    """Raised inside a computation run that was superseded."""
