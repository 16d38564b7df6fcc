"""Tests for routing settings and environment configuration."""
import pytest
from pydantic import ValidationError

from hybrid_route_planner.config import RoutingSettings, ServerSettings
from hybrid_route_planner.models import RoutingEngine, RoutingMode, RoutingProfile


def test_defaults():
    s = RoutingSettings()
    assert s.mode is RoutingMode.HYBRID
    assert s.profile is RoutingProfile.CYCLING_REGULAR
    assert s.engine is RoutingEngine.OSRM
    assert s.preferences.avoid_highways is True
    assert s.preferences.prefer_trails is True
    assert s.preferences.allow_unpaved is False
    assert s.insertion_threshold_px == 30.0


def test_credentials_are_secret():
    s = RoutingSettings(ors_api_key="abc")
    assert s.credential("ors") == "abc"
    assert s.credential("thunderforest") == ""
    assert "abc" not in repr(s)


def test_assignment_is_validated():
    s = RoutingSettings()
    with pytest.raises(ValidationError):
        s.profile = "hovercraft"


def test_server_settings_from_environment(monkeypatch):
    monkeypatch.setenv("HYBRID_ROUTE_ORS_API_KEY", "from-env")
    monkeypatch.setenv("HYBRID_ROUTE_ENGINE", "ors")
    monkeypatch.setenv("HYBRID_ROUTE_PROFILE", "walking")
    routing = ServerSettings().routing_settings()
    assert routing.engine is RoutingEngine.ORS
    assert routing.profile is RoutingProfile.WALKING
    assert routing.credential("ors") == "from-env"
