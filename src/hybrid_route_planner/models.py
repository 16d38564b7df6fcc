"""Pydantic domain models for waypoints, routing options and computed segments."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)

    def as_tuple(self) -> tuple[float, float]:
        return (self.lat, self.lon)


class Waypoint(BaseModel):
    """A user-placed point; `index` is its current position in the route."""
    index: int = Field(ge=0)
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class RoutingProfile(str, Enum):
    DRIVING = "driving"
    WALKING = "walking"
    CYCLING_REGULAR = "cycling-regular"
    CYCLING_GRAVEL = "cycling-gravel"
    CYCLING_MOUNTAIN = "cycling-mountain"

    @property
    def is_cycling(self) -> bool:
        return self.value.startswith("cycling")


class RoutingMode(str, Enum):
    MANUAL = "manual"
    HYBRID = "hybrid"


class RoutingEngine(str, Enum):
    OSRM = "osrm"
    OSRM_TRAILS = "osrm-trails"
    ORS = "ors"


class RoutingPreferences(BaseModel):
    model_config = ConfigDict(frozen=True)

    avoid_highways: bool = True
    prefer_trails: bool = True
    allow_unpaved: bool = False


class SegmentResult(BaseModel):
    """Normalized provider reply for one start/end pair."""
    geometry: list[Coordinate] = Field(min_length=2)
    distance_m: float = Field(ge=0)
    duration_s: float = Field(ge=0)
    provider: str = ""


class CacheEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    geometry: tuple[Coordinate, ...] = Field(min_length=2)
    distance_m: float = Field(ge=0)
    duration_s: float = Field(ge=0)
    provider: str = ""

    @classmethod
    def from_result(cls, result: SegmentResult) -> "CacheEntry":
        return cls(
            geometry=tuple(result.geometry),
            distance_m=result.distance_m,
            duration_s=result.duration_s,
            provider=result.provider,
        )


class AutoSegment(BaseModel):
    """Computed path filling the gap between two consecutive waypoints."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    start: Coordinate
    end: Coordinate
    geometry: list[Coordinate] = Field(min_length=2)
    distance: float = Field(ge=0, description="Path length in meters")
    duration: float = Field(ge=0, description="Estimated traversal time in seconds")
    provider: str = ""


class RouteExport(BaseModel):
    """Payload handed to save/export collaborators."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = ""
    coordinates: list[Coordinate] = Field(default_factory=list)
    full_route: list[Coordinate] = Field(default_factory=list)
    routing_mode: RoutingMode = RoutingMode.HYBRID
    routing_profile: RoutingProfile = RoutingProfile.CYCLING_REGULAR
    auto_segments: list[Optional[AutoSegment]] = Field(default_factory=list)
