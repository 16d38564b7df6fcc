import logging
import pytest
from unittest.mock import patch, AsyncMock, MagicMock
import httpx

from hybrid_route_planner.config import RoutingSettings
from hybrid_route_planner.errors import MissingCredential, NoRoute, ProviderUnavailable
from hybrid_route_planner.models import Coordinate, RoutingPreferences, RoutingProfile

START = Coordinate(lat=52.0, lon=13.0)
END = Coordinate(lat=52.1, lon=13.1)
PREFS = RoutingPreferences()


def _json_response(payload):
    # raise_for_status() and json() are sync on httpx.Response
    resp = MagicMock()
    resp.raise_for_status = MagicMock()
    resp.json = MagicMock(return_value=payload)
    return resp


def _install_client(mock_client_cls, **request_kwargs):
    mock_client = AsyncMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client.request = AsyncMock(**request_kwargs)
    mock_client_cls.return_value = mock_client
    return mock_client


OSRM_OK = {
    "code": "Ok",
    "routes": [{
        "geometry": {"type": "LineString", "coordinates": [[13.0, 52.0], [13.05, 52.06], [13.1, 52.1]]},
        "distance": 12000.0,
        "duration": 1800.0,
    }],
}


class TestOsrm:
    @pytest.mark.anyio
    async def test_parses_route(self):
        from hybrid_route_planner.providers.osrm import OsrmProvider

        with patch("httpx.AsyncClient") as mock_client_cls:
            client = _install_client(mock_client_cls, return_value=_json_response(OSRM_OK))
            result = await OsrmProvider(RoutingSettings()).compute_segment(
                START, END, RoutingProfile.CYCLING_GRAVEL, PREFS,
            )

        assert result.provider == "osrm"
        assert result.distance_m == 12000.0
        assert result.duration_s == 1800.0
        assert result.geometry[1] == Coordinate(lat=52.06, lon=13.05)

        method, url = client.request.call_args.args
        assert method == "GET"
        assert url == "https://router.project-osrm.org/route/v1/cycling/13.0,52.0;13.1,52.1"
        params = client.request.call_args.kwargs["params"]
        assert params["overview"] == "full"
        assert params["geometries"] == "geojson"

    @pytest.mark.anyio
    async def test_sends_user_agent(self):
        from hybrid_route_planner.providers.osrm import OsrmProvider

        with patch("httpx.AsyncClient") as mock_client_cls:
            _install_client(mock_client_cls, return_value=_json_response(OSRM_OK))
            await OsrmProvider(RoutingSettings()).compute_segment(START, END, RoutingProfile.DRIVING, PREFS)

        headers = mock_client_cls.call_args.kwargs["headers"]
        assert headers["User-Agent"] == "hybrid-route-planner/1.0"

    @pytest.mark.anyio
    async def test_no_route_code(self):
        from hybrid_route_planner.providers.osrm import OsrmProvider

        with patch("httpx.AsyncClient") as mock_client_cls:
            _install_client(
                mock_client_cls,
                return_value=_json_response({"code": "NoRoute", "message": "Impossible route"}),
            )
            with pytest.raises(NoRoute, match="Impossible route"):
                await OsrmProvider(RoutingSettings()).compute_segment(START, END, RoutingProfile.DRIVING, PREFS)

    @pytest.mark.anyio
    async def test_null_geometry_is_no_route(self):
        from hybrid_route_planner.providers.osrm import OsrmProvider

        with patch("httpx.AsyncClient") as mock_client_cls:
            _install_client(
                mock_client_cls,
                return_value=_json_response({"code": "Ok", "routes": [{"geometry": None}]}),
            )
            with pytest.raises(NoRoute, match="no geometry"):
                await OsrmProvider(RoutingSettings()).compute_segment(START, END, RoutingProfile.DRIVING, PREFS)

    @pytest.mark.anyio
    async def test_timeout_logs_warning(self, caplog):
        from hybrid_route_planner.providers.osrm import OsrmProvider

        with caplog.at_level(logging.WARNING, logger="hybrid_route_planner.providers.base"):
            with patch("httpx.AsyncClient") as mock_client_cls:
                _install_client(mock_client_cls, side_effect=httpx.TimeoutException("timeout"))
                with pytest.raises(ProviderUnavailable, match="timed out"):
                    await OsrmProvider(RoutingSettings()).compute_segment(
                        START, END, RoutingProfile.DRIVING, PREFS,
                    )

        assert any(
            r.name == "hybrid_route_planner.providers.base" and r.levelno == logging.WARNING
            and "timed out" in r.message.lower()
            for r in caplog.records
        )

    @pytest.mark.anyio
    async def test_http_status_error_logs_code(self, caplog):
        from hybrid_route_planner.providers.osrm import OsrmProvider

        error_response = MagicMock()
        error_response.status_code = 429
        resp = MagicMock()
        resp.raise_for_status = MagicMock(side_effect=httpx.HTTPStatusError(
            "429", request=MagicMock(), response=error_response,
        ))

        with caplog.at_level(logging.WARNING, logger="hybrid_route_planner.providers.base"):
            with patch("httpx.AsyncClient") as mock_client_cls:
                _install_client(mock_client_cls, return_value=resp)
                with pytest.raises(ProviderUnavailable, match="HTTP 429"):
                    await OsrmProvider(RoutingSettings()).compute_segment(
                        START, END, RoutingProfile.DRIVING, PREFS,
                    )

        assert any("429" in r.message for r in caplog.records)


ORS_OK = {
    "features": [{
        "geometry": {"type": "LineString", "coordinates": [[13.0, 52.0], [13.1, 52.1]]},
        "properties": {"segments": [{"distance": 13500.0, "duration": 2100.0}]},
    }],
}


class TestOrs:
    @pytest.mark.anyio
    async def test_missing_key_skips_network(self):
        from hybrid_route_planner.providers.ors import OrsProvider

        with patch("httpx.AsyncClient") as mock_client_cls:
            with pytest.raises(MissingCredential):
                await OrsProvider(RoutingSettings()).compute_segment(START, END, RoutingProfile.WALKING, PREFS)
            mock_client_cls.assert_not_called()

    @pytest.mark.anyio
    async def test_posts_with_key(self):
        from hybrid_route_planner.providers.ors import OrsProvider

        settings = RoutingSettings(ors_api_key="secret-key")
        with patch("httpx.AsyncClient") as mock_client_cls:
            client = _install_client(mock_client_cls, return_value=_json_response(ORS_OK))
            result = await OrsProvider(settings).compute_segment(
                START, END, RoutingProfile.CYCLING_MOUNTAIN, PREFS,
            )

        assert result.provider == "openrouteservice"
        assert result.distance_m == 13500.0
        method, url = client.request.call_args.args
        assert method == "POST"
        assert url.endswith("/v2/directions/cycling-mountain/geojson")
        assert mock_client_cls.call_args.kwargs["headers"]["Authorization"] == "secret-key"
        body = client.request.call_args.kwargs["json"]
        assert body["coordinates"] == [[13.0, 52.0], [13.1, 52.1]]
        assert "options" not in body

    @pytest.mark.anyio
    async def test_driving_avoids_highways(self):
        from hybrid_route_planner.providers.ors import OrsProvider

        settings = RoutingSettings(ors_api_key="secret-key")
        with patch("httpx.AsyncClient") as mock_client_cls:
            client = _install_client(mock_client_cls, return_value=_json_response(ORS_OK))
            await OrsProvider(settings).compute_segment(START, END, RoutingProfile.DRIVING, PREFS)

        body = client.request.call_args.kwargs["json"]
        assert body["options"] == {"avoid_features": ["highways"]}

    @pytest.mark.anyio
    async def test_null_geometry_is_no_route(self):
        from hybrid_route_planner.providers.ors import OrsProvider

        settings = RoutingSettings(ors_api_key="secret-key")
        reply = {"features": [{"geometry": None, "properties": None}]}
        with patch("httpx.AsyncClient") as mock_client_cls:
            _install_client(mock_client_cls, return_value=_json_response(reply))
            with pytest.raises(NoRoute, match="no geometry"):
                await OrsProvider(settings).compute_segment(START, END, RoutingProfile.DRIVING, PREFS)

    @pytest.mark.anyio
    async def test_null_properties_give_zero_totals(self):
        from hybrid_route_planner.providers.ors import OrsProvider

        settings = RoutingSettings(ors_api_key="secret-key")
        reply = {"features": [{**ORS_OK["features"][0], "properties": None}]}
        with patch("httpx.AsyncClient") as mock_client_cls:
            _install_client(mock_client_cls, return_value=_json_response(reply))
            result = await OrsProvider(settings).compute_segment(START, END, RoutingProfile.DRIVING, PREFS)

        assert result.distance_m == 0.0
        assert result.duration_s == 0.0

    @pytest.mark.anyio
    async def test_no_features(self):
        from hybrid_route_planner.providers.ors import OrsProvider

        settings = RoutingSettings(ors_api_key="secret-key")
        with patch("httpx.AsyncClient") as mock_client_cls:
            _install_client(mock_client_cls, return_value=_json_response({"features": []}))
            with pytest.raises(NoRoute):
                await OrsProvider(settings).compute_segment(START, END, RoutingProfile.DRIVING, PREFS)


class TestTrails:
    @pytest.mark.anyio
    async def test_waymarked_relation_geometry(self):
        from hybrid_route_planner.providers.trails import TrailProvider

        listing = {"results": [
            {"id": 1, "bounds": [10.0, 50.0, 10.5, 50.5]},
            {"id": 7, "bounds": [12.99, 51.99, 13.11, 52.11]},
        ]}
        geometry = {"type": "LineString", "coordinates": [[13.0, 52.0], [13.05, 52.05], [13.1, 52.1]]}

        with patch("httpx.AsyncClient") as mock_client_cls:
            client = _install_client(
                mock_client_cls,
                side_effect=[_json_response(listing), _json_response(geometry)],
            )
            result = await TrailProvider(RoutingSettings()).compute_segment(
                START, END, RoutingProfile.CYCLING_REGULAR, PREFS,
            )

        assert result.provider == "trails/waymarkedtrails"
        assert len(result.geometry) == 3
        assert result.distance_m > 0
        list_call, geometry_call = client.request.call_args_list
        assert list_call.args[1] == "https://api.waymarkedtrails.org/v1/list"
        assert list_call.kwargs["params"]["type"] == "cycling"
        assert geometry_call.args[1] == "https://api.waymarkedtrails.org/v1/route/7/geometry"
        assert mock_client_cls.call_args.kwargs["timeout"] == 5.0

    @pytest.mark.anyio
    async def test_no_trail_data_is_no_route(self):
        from hybrid_route_planner.providers.trails import TrailProvider

        with patch("httpx.AsyncClient") as mock_client_cls:
            client = _install_client(mock_client_cls, return_value=_json_response({"results": []}))
            with pytest.raises(NoRoute):
                await TrailProvider(RoutingSettings()).compute_segment(
                    START, END, RoutingProfile.WALKING, PREFS,
                )

        # Thunderforest has no key and is never queried
        assert client.request.call_count == 1

    @pytest.mark.anyio
    async def test_falls_back_to_thunderforest(self):
        from hybrid_route_planner.providers.trails import TrailProvider

        thunderforest = {"routes": [{
            "geometry": {"type": "LineString", "coordinates": [[13.0, 52.0], [13.1, 52.1]]},
            "distance": 14000.0,
            "duration": 3000.0,
        }]}
        settings = RoutingSettings(thunderforest_api_key="tf-key")
        with patch("httpx.AsyncClient") as mock_client_cls:
            client = _install_client(
                mock_client_cls,
                side_effect=[_json_response([]), _json_response(thunderforest)],
            )
            result = await TrailProvider(settings).compute_segment(
                START, END, RoutingProfile.CYCLING_MOUNTAIN, PREFS,
            )

        assert result.provider == "trails/thunderforest"
        assert result.distance_m == 14000.0
        tf_url = client.request.call_args_list[1].args[1]
        assert tf_url == "https://api.thunderforest.com/cycle/v1/tf-key/route/13.0,52.0;13.1,52.1"

    @pytest.mark.anyio
    async def test_waymarked_outage_is_treated_as_no_data(self, caplog):
        from hybrid_route_planner.providers.trails import TrailProvider

        with caplog.at_level(logging.WARNING, logger="hybrid_route_planner.providers.trails"):
            with patch("httpx.AsyncClient") as mock_client_cls:
                _install_client(mock_client_cls, side_effect=httpx.ConnectError("down"))
                with pytest.raises(NoRoute):
                    await TrailProvider(RoutingSettings()).compute_segment(
                        START, END, RoutingProfile.CYCLING_REGULAR, PREFS,
                    )

        assert any("Waymarked Trails unavailable" in r.message for r in caplog.records)

    @pytest.mark.anyio
    async def test_driving_has_no_trails(self):
        from hybrid_route_planner.providers.trails import TrailProvider

        with patch("httpx.AsyncClient") as mock_client_cls:
            with pytest.raises(NoRoute):
                await TrailProvider(RoutingSettings()).compute_segment(
                    START, END, RoutingProfile.DRIVING, PREFS,
                )
            mock_client_cls.assert_not_called()


class TestTrailHelpers:
    def test_duration_estimate_for_regular_cycling(self):
        from hybrid_route_planner.providers.trails import estimate_trail_duration_s
        speed = 22.0 * 0.9 * 0.85
        assert estimate_trail_duration_s(speed, RoutingProfile.CYCLING_REGULAR, PREFS) == pytest.approx(3600.0)

    def test_duration_estimate_ignores_cycling_factors_for_walking(self):
        from hybrid_route_planner.providers.trails import estimate_trail_duration_s
        assert estimate_trail_duration_s(4.0, RoutingProfile.WALKING, PREFS) == pytest.approx(3600.0)

    def test_mountain_speed_depends_on_unpaved(self):
        from hybrid_route_planner.providers.trails import estimate_trail_duration_s
        plain = RoutingPreferences(avoid_highways=False, prefer_trails=False, allow_unpaved=False)
        unpaved = RoutingPreferences(avoid_highways=False, prefer_trails=False, allow_unpaved=True)
        assert estimate_trail_duration_s(12.0, RoutingProfile.CYCLING_MOUNTAIN, plain) == pytest.approx(3600.0)
        assert estimate_trail_duration_s(15.0, RoutingProfile.CYCLING_MOUNTAIN, unpaved) == pytest.approx(3600.0)

    def test_best_relation_is_closest_to_endpoints(self):
        from hybrid_route_planner.providers.trails import best_trail_relation
        far = {"id": 1, "bounds": {"minlat": 40.0, "minlon": 5.0, "maxlat": 41.0, "maxlon": 6.0}}
        near = {"id": 2, "bbox": [13.0, 52.0, 13.1, 52.1]}
        no_bounds = {"id": 3}
        assert best_trail_relation([far, no_bounds, near], START, END)["id"] == 2
        assert best_trail_relation([no_bounds], START, END) is None
