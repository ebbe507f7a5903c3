from fastapi.testclient import TestClient

from app.main import app, build_coordinator
from app.services.recommendation_coordinator import RecommendationCoordinator


def test_health_reports_coordinator_state():
    with TestClient(app) as client:
        assert isinstance(app.state.coordinator, RecommendationCoordinator)
        resp = client.get("/api/health")

    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok",
        "service": "meetmatch",
        "recommendations": {"cached_results": 0, "in_flight_events": 0, "pending_requests": 0},
    }


def test_build_coordinator_uses_configured_ai_service():
    coordinator = build_coordinator()
    assert coordinator._client.base_url == "http://ai.test/api"
    assert coordinator.stats()["cached_results"] == 0
