"""Routing configuration passed explicitly into the orchestrator."""

from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from hybrid_route_planner.models import (
    RoutingEngine, RoutingMode, RoutingPreferences, RoutingProfile,
)

USER_AGENT = "hybrid-route-planner/1.0"


class RoutingSettings(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    mode: RoutingMode = RoutingMode.HYBRID
    profile: RoutingProfile = RoutingProfile.CYCLING_REGULAR
    engine: RoutingEngine = RoutingEngine.OSRM
    preferences: RoutingPreferences = Field(default_factory=RoutingPreferences)

    ors_api_key: Optional[SecretStr] = None
    thunderforest_api_key: Optional[SecretStr] = None

    osrm_url: str = "https://router.project-osrm.org"
    ors_url: str = "https://api.openrouteservice.org"
    waymarked_url: str = "https://api.waymarkedtrails.org/v1"
    thunderforest_url: str = "https://api.thunderforest.com/cycle/v1"

    request_timeout_s: float = Field(default=30.0, gt=0)
    secondary_timeout_s: float = Field(default=5.0, gt=0)
    user_agent: str = USER_AGENT

    insertion_threshold_px: float = Field(default=30.0, gt=0)
    average_speed_kmh: float = Field(default=25.0, gt=0)

    def credential(self, name: str) -> str:
        """Plain credential value, '' when unset."""
        secret = getattr(self, f"{name}_api_key")
        return secret.get_secret_value() if secret else ""


class ServerSettings(BaseSettings):
    """Process-level defaults, read from HYBRID_ROUTE_* variables or .env."""
    model_config = SettingsConfigDict(
        env_prefix="HYBRID_ROUTE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ors_api_key: Optional[SecretStr] = None
    thunderforest_api_key: Optional[SecretStr] = None
    osrm_url: str = "https://router.project-osrm.org"
    engine: RoutingEngine = RoutingEngine.OSRM
    profile: RoutingProfile = RoutingProfile.CYCLING_REGULAR
    log_level: str = "INFO"

    def routing_settings(self) -> RoutingSettings:
        return RoutingSettings(
            profile=self.profile,
            engine=self.engine,
            ors_api_key=self.ors_api_key,
            thunderforest_api_key=self.thunderforest_api_key,
            osrm_url=self.osrm_url,
        )


@lru_cache()
def get_server_settings() -> ServerSettings:
    return ServerSettings()
