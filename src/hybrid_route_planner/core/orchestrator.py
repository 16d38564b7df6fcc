"""Fills the gaps between waypoints with provider-computed segments.

One run walks the gaps in order: cache lookup, provider chain on a miss,
then store in both the cache and the route's segment slot. Runs are
all-or-nothing; a newer run or a structural route edit cancels the
running one and its late results are dropped.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from hybrid_route_planner.config import RoutingSettings
from hybrid_route_planner.errors import (
    AllProvidersFailed, HybridModeRequired, InsufficientPoints, RunCancelled,
)
from hybrid_route_planner.models import (
    AutoSegment, CacheEntry, Coordinate, RouteExport, RoutingEngine,
    RoutingMode, RoutingPreferences, RoutingProfile,
)
from hybrid_route_planner.providers.chain import ProviderChain, build_provider_chain
from .cache import RoutingCache
from .cancellation import CancellationToken
from .events import (
    AutoSegmentsCleared, Event, RouteChanged, RouteUpdated,
    RoutingModeChanged, RoutingProfileChanged, Topic,
)
from .route import RouteModel

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class RunOutcome(BaseModel):
    """Completed(segments) | Cancelled | Failed(error)."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: RunState
    segments: list[AutoSegment] = Field(default_factory=list)
    error: Optional[Exception] = None
    provider_calls: int = 0
    cache_hits: int = 0

    @property
    def ok(self) -> bool:
        return self.status is RunState.COMPLETED


class _Run:
    def __init__(self, number: int):
        self.number = number
        self.token = CancellationToken()
        self.state = RunState.IDLE


class HybridOrchestrator:
    def __init__(
        self,
        route: RouteModel,
        settings: Optional[RoutingSettings] = None,
        cache: Optional[RoutingCache] = None,
        chain_factory: Callable[[RoutingSettings], ProviderChain] = build_provider_chain,
    ):
        self.route = route
        self.bus = route.bus
        self.settings = settings or RoutingSettings()
        self.cache = cache or RoutingCache()
        self._chain_factory = chain_factory
        self.chain = chain_factory(self.settings)
        self._run: Optional[_Run] = None
        self._runs_started = 0
        self.bus.subscribe(Topic.ROUTE_CHANGED, self._on_route_changed)

    # ------------------------------------------------------------ properties

    @property
    def state(self) -> RunState:
        return self._run.state if self._run else RunState.IDLE

    @property
    def mode(self) -> RoutingMode:
        return self.settings.mode

    @property
    def profile(self) -> RoutingProfile:
        return self.settings.profile

    # ---------------------------------------------------------- configuration

    def set_mode(self, mode: RoutingMode) -> None:
        mode = RoutingMode(mode)
        self.settings.mode = mode
        logger.info("Routing mode changed to %s", mode.value)
        if mode is not RoutingMode.HYBRID:
            self._cancel_active("mode left hybrid")
            self.clear_auto_segments()
        self.bus.emit(RoutingModeChanged(mode=mode))

    def set_profile(self, profile: RoutingProfile) -> None:
        profile = RoutingProfile(profile)
        self.settings.profile = profile
        logger.info("Routing profile changed to %s", profile.value)
        self._cancel_active("profile changed")
        self.cache.clear()
        self.bus.emit(RoutingProfileChanged(profile=profile))

    def configure(
        self,
        *,
        engine: Optional[RoutingEngine] = None,
        preferences: Optional[RoutingPreferences] = None,
        ors_api_key: Optional[str] = None,
        thunderforest_api_key: Optional[str] = None,
    ) -> None:
        """Change provider selection or preferences; invalidates cached segments."""
        if engine is not None:
            self.settings.engine = RoutingEngine(engine)
        if preferences is not None:
            self.settings.preferences = preferences
        if ors_api_key is not None:
            self.settings.ors_api_key = SecretStr(ors_api_key) if ors_api_key else None
        if thunderforest_api_key is not None:
            self.settings.thunderforest_api_key = (
                SecretStr(thunderforest_api_key) if thunderforest_api_key else None
            )
        self._cancel_active("routing settings changed")
        self.chain = self._chain_factory(self.settings)
        self.cache.clear()
        logger.info("Routing providers: %s", ", ".join(self.chain.names) or "none")

    # ---------------------------------------------------------- computation

    async def recompute(self) -> RunOutcome:
        count = self.route.waypoint_count
        if count < 2:
            raise InsufficientPoints(count)
        if self.settings.mode is not RoutingMode.HYBRID:
            raise HybridModeRequired()

        self._cancel_active("superseded by a new run")
        self._runs_started += 1
        run = _Run(self._runs_started)
        self._run = run
        self.clear_auto_segments()
        run.state = RunState.RUNNING

        points = self.route.coordinates
        profile = self.settings.profile
        preferences = self.settings.preferences
        chain = self.chain
        segments: list[AutoSegment] = []
        provider_calls = 0
        cache_hits = 0
        logger.info("Run %d: computing %d gap(s) as %s", run.number, len(points) - 1, profile.value)

        try:
            for i in range(len(points) - 1):
                run.token.raise_if_cancelled()
                start, end = points[i], points[i + 1]

                entry = self.cache.get(profile, start, end)
                if entry is not None:
                    cache_hits += 1
                    logger.debug("Run %d: gap %d served from cache", run.number, i)
                else:
                    provider_calls += 1
                    result = await run.token.guard(
                        chain.compute_segment(start, end, profile, preferences, token=run.token)
                    )
                    run.token.raise_if_cancelled()
                    entry = CacheEntry.from_result(result)
                    self.cache.put(profile, start, end, entry)

                segment = _segment_from_entry(start, end, entry)
                self.route.set_auto_segment(i, segment)
                segments.append(segment)
        except RunCancelled:
            run.state = RunState.CANCELLED
            logger.info("Run %d cancelled", run.number)
            return RunOutcome(
                status=RunState.CANCELLED,
                provider_calls=provider_calls, cache_hits=cache_hits,
            )
        except AllProvidersFailed as exc:
            run.state = RunState.FAILED
            logger.warning("Run %d failed at gap %d: %s", run.number, len(segments), exc)
            self.clear_auto_segments()
            return RunOutcome(
                status=RunState.FAILED, error=exc,
                provider_calls=provider_calls, cache_hits=cache_hits,
            )
        except asyncio.CancelledError:
            run.token.cancel()
            run.state = RunState.CANCELLED
            raise
        except Exception:
            run.state = RunState.FAILED
            self.clear_auto_segments()
            raise

        run.state = RunState.COMPLETED
        logger.info(
            "Run %d completed: %d segment(s), %d provider call(s), %d cache hit(s)",
            run.number, len(segments), provider_calls, cache_hits,
        )
        self.bus.emit(RouteChanged())
        self.bus.emit(RouteUpdated())
        return RunOutcome(
            status=RunState.COMPLETED, segments=segments,
            provider_calls=provider_calls, cache_hits=cache_hits,
        )

    def clear_auto_segments(self) -> None:
        self.route.clear_auto_segments()
        self.bus.emit(AutoSegmentsCleared())

    def cancel(self) -> bool:
        return self._cancel_active("cancelled by caller")

    # --------------------------------------------------------------- outputs

    def full_route(self) -> list[Coordinate]:
        """Waypoints with each computed segment's interior points spliced between them."""
        points = self.route.coordinates
        segments = self.route.auto_segments
        if self.settings.mode is RoutingMode.MANUAL or not any(segments):
            return points

        full = points[:1]
        for i, segment in enumerate(segments):
            if segment is not None:
                full.extend(segment.geometry[1:-1])
            full.append(points[i + 1])
        return full

    def export(self, name: str = "") -> RouteExport:
        return RouteExport(
            name=name,
            coordinates=self.route.coordinates,
            full_route=self.full_route(),
            routing_mode=self.settings.mode,
            routing_profile=self.settings.profile,
            auto_segments=self.route.auto_segments,
        )

    # -------------------------------------------------------------- internals

    def _cancel_active(self, reason: str) -> bool:
        run = self._run
        if run is None or run.state is not RunState.RUNNING:
            return False
        run.token.cancel()
        run.state = RunState.CANCELLED
        logger.info("Run %d cancelling: %s", run.number, reason)
        return True

    def _on_route_changed(self, event: Event) -> None:
        # a structural edit mid-run invalidates the gap indices being filled
        self._cancel_active("route edited")


def _segment_from_entry(start: Coordinate, end: Coordinate, entry: CacheEntry) -> AutoSegment:
    return AutoSegment(
        start=start,
        end=end,
        geometry=list(entry.geometry),
        distance=entry.distance_m,
        duration=entry.duration_s,
        provider=entry.provider,
    )
