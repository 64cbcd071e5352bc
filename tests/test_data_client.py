import asyncio

import httpx
import pytest

from health_dashboard.data_client import ProviderDataClient, date_window
from health_dashboard.errors import (
    AuthorizationExpiredError,
    NotAuthenticatedError,
    UnknownResourceError,
    UpstreamError,
)
from health_dashboard.tokens import TokenPair, TokenStore
from tests.fakes import FIXED_NOW, FakeUpstream

STRAVA_ACTIVITIES = "https://www.strava.com/api/v3/athlete/activities"
OURA_DAILY_SLEEP = "https://api.ouraring.com/v2/usercollection/daily_sleep"
OURA_HEARTRATE = "https://api.ouraring.com/v2/usercollection/heartrate"


def test_date_window():
    assert date_window(FIXED_NOW, 30) == {"start_date": "2024-02-14", "end_date": "2024-03-15"}
    assert date_window(FIXED_NOW, 7) == {"start_date": "2024-03-08", "end_date": "2024-03-15"}


class TestProviderDataClient:

    def setup_method(self):
        self.upstream = FakeUpstream()
        self.store = TokenStore({
            "strava": TokenPair("strava-access", "strava-refresh"),
            "oura": TokenPair("oura-access", "oura-refresh"),
        })
        self.client = ProviderDataClient(self.store, clock=lambda: FIXED_NOW, transport=self.upstream.transport)

    def fetch(self, provider, resource):
        return asyncio.run(self.client.fetch(provider, resource))

    def test_not_connected_skips_network(self):
        self.store.clear_access("oura")

        with pytest.raises(NotAuthenticatedError) as exc_info:
            self.fetch("oura", "sleep")

        assert exc_info.value.to_dict() == {"error": "Oura not connected", "needsAuth": True}
        assert self.upstream.requests == []

    def test_strava_activities_passthrough(self):
        activities = [{"id": 1, "name": "Morning Run"}, {"id": 2, "name": "Evening Ride"}]
        self.upstream.add("GET", STRAVA_ACTIVITIES, json=activities)

        assert self.fetch("strava", "activities") == activities

        request = self.upstream.requests[0]
        assert request.headers["authorization"] == "Bearer strava-access"
        assert request.url.params["per_page"] == "30"

    def test_oura_daily_window(self):
        payload = {"data": [{"day": "2024-03-14", "score": 80}], "next_token": None}
        self.upstream.add("GET", OURA_DAILY_SLEEP, json=payload)

        assert self.fetch("oura", "sleep") == payload

        params = self.upstream.requests[0].url.params
        assert params["start_date"] == "2024-02-14"
        assert params["end_date"] == "2024-03-15"

    def test_oura_heartrate_window(self):
        self.upstream.add("GET", OURA_HEARTRATE, json={"data": []})

        self.fetch("oura", "heartrate")

        params = self.upstream.requests[0].url.params
        assert params["start_date"] == "2024-03-08"
        assert params["end_date"] == "2024-03-15"

    def test_sleep_details_path(self):
        self.upstream.add("GET", "https://api.ouraring.com/v2/usercollection/sleep", json={"data": []})
        assert self.fetch("oura", "sleep-details") == {"data": []}

    def test_401_clears_access_token(self):
        self.upstream.add("GET", OURA_DAILY_SLEEP, status=401, json={"detail": "Unauthorized"})

        with pytest.raises(AuthorizationExpiredError) as exc_info:
            self.fetch("oura", "sleep")

        assert exc_info.value.needs_auth
        assert not self.store.is_connected("oura")
        assert self.store.get("oura").refresh_token == "oura-refresh"
        assert self.store.is_connected("strava")

    def test_upstream_error_keeps_token(self):
        self.upstream.add("GET", STRAVA_ACTIVITIES, status=500, text="Server Error")

        with pytest.raises(UpstreamError) as exc_info:
            self.fetch("strava", "activities")

        assert exc_info.value.status_code == 500
        assert self.store.is_connected("strava")

    def test_connection_error(self):
        def boom(request):
            raise httpx.ConnectError("network unreachable")
        self.upstream.add_handler("GET", STRAVA_ACTIVITIES, boom)

        with pytest.raises(UpstreamError, match="network unreachable"):
            self.fetch("strava", "activities")

    def test_no_automatic_retry(self):
        self.upstream.add("GET", STRAVA_ACTIVITIES, status=503, text="unavailable")

        with pytest.raises(UpstreamError):
            self.fetch("strava", "activities")
        assert len(self.upstream.requests) == 1

    def test_unknown_resource(self):
        with pytest.raises(UnknownResourceError):
            self.fetch("strava", "segments")
        with pytest.raises(UnknownResourceError):
            self.fetch("garmin", "sleep")
