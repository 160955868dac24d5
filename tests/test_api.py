import unittest

from fastapi.testclient import TestClient

from agrisat.advisor import FarmAdvisor
from agrisat.api import get_advisor, get_data_access
from agrisat.decision_engine import DecisionRuleEngine
from agrisat.domain import ClimateSnapshot, Location
from agrisat.errors import TransportError
from agrisat.main import app as fastapi_app


def _snapshot(**values):
    return ClimateSnapshot(location=Location(lat=-15.78, lon=-47.93), **values)


class StubAggregator:
    def __init__(self, snapshot):
        self.snapshot = snapshot

    async def get_climate_snapshot(self, lat, lon):
        return self.snapshot


class StubService:
    def __init__(self, imagery_error=None):
        self.online = True
        self.cleared = False
        self.imagery_error = imagery_error

    def status(self):
        return {
            "online": self.online,
            "connection_status": "connected" if self.online else "offline",
            "last_checked": 1.0,
            "last_error": None,
            "queue_size": 0,
            "in_flight": False,
            "last_request": None,
            "cache_size": 2,
        }

    def cache_stats(self):
        return {"size": 2, "hits": 3, "misses": 1, "hit_rate": 0.75}

    def clear_cache(self):
        self.cleared = True

    def handle_online(self):
        self.online = True

    def handle_offline(self):
        self.online = False

    async def get_earth_imagery(self, lat, lon, date=None):
        if self.imagery_error is not None:
            raise self.imagery_error
        return {"date": date or "2024-06-15", "url": "https://example.com/image.png"}


class TestApi(unittest.TestCase):
    def setUp(self):
        self.snapshot = _snapshot(soil_moisture=15, vegetation_index=0.25, precipitation=25, soil_temperature=20)
        self.advisor = FarmAdvisor(StubAggregator(self.snapshot))
        self.service = StubService()
        fastapi_app.dependency_overrides[get_advisor] = lambda: self.advisor
        fastapi_app.dependency_overrides[get_data_access] = lambda: self.service
        self.client = TestClient(fastapi_app)

    def tearDown(self):
        fastapi_app.dependency_overrides.clear()

    def test_climate(self):
        resp = self.client.get("/v1/climate", params={"lat": -15.78, "lon": -47.93})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["soil_moisture"], 15)
        self.assertEqual(body["source"], "live")

    def test_coordinates_are_validated(self):
        self.assertEqual(self.client.get("/v1/climate", params={"lat": 91, "lon": 0}).status_code, 422)
        self.assertEqual(self.client.get("/v1/climate", params={"lat": 0, "lon": -181}).status_code, 422)
        self.assertEqual(self.client.get("/v1/climate", params={"lat": 0}).status_code, 422)

    def test_assessment(self):
        resp = self.client.get("/v1/assessment", params={"lat": 0, "lon": 0})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual([r["activity"] for r in body["recommendations"]], ["irrigation", "fertilization", "planting"])
        self.assertIn("overall_score", body["report"])
        self.assertEqual(len(body["conservation"]), 2)

    def test_recommendations(self):
        resp = self.client.get("/v1/recommendations", params={"lat": 0, "lon": 0})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()[0]["urgency"], "high")

    def test_sustainability(self):
        resp = self.client.get("/v1/sustainability", params={"lat": 0, "lon": 0})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["metrics"]["energy_use"], 70)

    def test_strict_mode_incomplete_snapshot_is_422(self):
        self.advisor = FarmAdvisor(StubAggregator(_snapshot(soil_moisture=15)), DecisionRuleEngine(strict=True))
        resp = self.client.get("/v1/assessment", params={"lat": 0, "lon": 0})
        self.assertEqual(resp.status_code, 422)

    def test_strict_mode_activity_on_incomplete_snapshot_is_422(self):
        self.advisor = FarmAdvisor(StubAggregator(_snapshot(soil_moisture=15)), DecisionRuleEngine(strict=True))
        resp = self.client.post("/v1/activities/fertilization", params={"lat": 0, "lon": 0})
        self.assertEqual(resp.status_code, 422)

    def test_execute_activity(self):
        resp = self.client.post("/v1/activities/irrigation", params={"lat": 0, "lon": 0})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["recommended"])
        self.assertEqual(body["snapshot"]["soil_moisture"], 55)

    def test_unknown_activity_is_404(self):
        resp = self.client.post("/v1/activities/livestock", params={"lat": 0, "lon": 0})
        self.assertEqual(resp.status_code, 404)

    def test_imagery(self):
        resp = self.client.get("/v1/imagery", params={"lat": 1, "lon": 2, "date": "2024-01-01"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["date"], "2024-01-01")

    def test_imagery_provider_error_is_502(self):
        self.service.imagery_error = TransportError("HTTP 503", endpoint="/planetary/earth/imagery", status_code=503)
        resp = self.client.get("/v1/imagery", params={"lat": 1, "lon": 2})
        self.assertEqual(resp.status_code, 502)

    def test_crop_guidance(self):
        resp = self.client.get("/v1/crops/wheat")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["optimal_temperature"], "15-25°C")
        self.assertEqual(self.client.get("/v1/crops/coffee").status_code, 404)

    def test_status(self):
        resp = self.client.get("/v1/status")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["connection_status"], "connected")
        self.assertEqual(body["cache"]["hit_rate"], 0.75)

    def test_clear_cache(self):
        resp = self.client.post("/v1/cache/clear")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(self.service.cleared)

    def test_connectivity_signals(self):
        resp = self.client.post("/v1/connectivity/offline")
        self.assertEqual(resp.json()["connection_status"], "offline")
        resp = self.client.post("/v1/connectivity/online")
        self.assertTrue(resp.json()["online"])
        self.assertEqual(self.client.post("/v1/connectivity/sideways").status_code, 400)


if __name__ == "__main__":
    unittest.main()
