"""Tests for tool prerequisite helpers."""
import pytest


def test_require_state_raises_when_too_few_points():
    from hybrid_route_planner.tools._prereqs import require_state
    from hybrid_route_planner.state import PlannerSession

    mock_session = PlannerSession()
    with pytest.raises(ValueError, match="add_waypoint"):
        require_state(mock_session, points=2)


def test_require_state_passes_with_enough_points():
    from hybrid_route_planner.tools._prereqs import require_state
    from hybrid_route_planner.state import PlannerSession
    from hybrid_route_planner.models import Coordinate

    mock_session = PlannerSession()
    mock_session.route.append(Coordinate(lat=0.0, lon=0.0))
    mock_session.route.append(Coordinate(lat=0.0, lon=1.0))
    # Should not raise
    require_state(mock_session, points=2, hybrid=True)


def test_require_state_raises_in_manual_mode():
    from hybrid_route_planner.tools._prereqs import require_state
    from hybrid_route_planner.state import PlannerSession
    from hybrid_route_planner.models import RoutingMode

    mock_session = PlannerSession()
    mock_session.orchestrator.set_mode(RoutingMode.MANUAL)
    with pytest.raises(ValueError, match="hybrid"):
        require_state(mock_session, hybrid=True)

