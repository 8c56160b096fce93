import pytest
from fastapi.testclient import TestClient

from adtier.core.exceptions import AuthError, PermissionDeniedError, RateLimitError, TransientError
from adtier.main import create_app
from adtier.models import Classification
from adtier.services.facebook.scheduled_sync import ScheduledSyncCoordinator
from tests.conftest import FakeClientFactory, create_brand, raw_ad


def make_client(db, factory=None) -> TestClient:
    coordinator = ScheduledSyncCoordinator(db, client_factory=factory or FakeClientFactory())
    return TestClient(create_app(database=db, coordinator=coordinator, enable_scheduler=False))


def test_health(db):
    response = make_client(db).get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["scheduler"] == "stopped"


def test_health_db(db):
    response = make_client(db).get("/api/v1/health/db")
    assert response.json() == {"status": "healthy", "database": "connected", "dialect": "sqlite"}


def test_sync_brand(db, brand_id):
    client = make_client(db, FakeClientFactory(ads=[raw_ad("1"), raw_ad("2", name="plain")]))
    response = client.post(f"/api/v1/facebook/sync/{brand_id}", params={"date_window": "last_30d"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["synced"] == 2
    assert body["data"]["parsed"] == 1
    assert body["data"]["date_window"] == "last_30d"


def test_sync_rejects_unknown_window(db, brand_id):
    response = make_client(db).post(f"/api/v1/facebook/sync/{brand_id}", params={"date_window": "yesterday"})
    assert response.status_code == 422


def test_sync_without_connection_is_400(db):
    lonely = create_brand(db, name="Lonely", connected=False)
    response = make_client(db).post(f"/api/v1/facebook/sync/{lonely}")

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "No active Facebook connection" in body["error"]
    assert body["detail"]["type"] == "ConfigError"


@pytest.mark.parametrize("error, status", [
    (AuthError("Error validating access token", code=190), 401),
    (PermissionDeniedError("missing ads_read", code=10), 403),
    (RateLimitError("User request limit reached", code=17), 429),
    (TransientError("Graph API server error (HTTP 500)"), 502),
])
def test_graph_errors_map_to_status(db, brand_id, error, status):
    response = make_client(db, FakeClientFactory(error=error)).post(f"/api/v1/facebook/sync/{brand_id}")

    assert response.status_code == status
    if error.code is not None:
        assert response.json()["detail"]["code"] == error.code


def test_daily_insights(db, brand_id, make_ad):
    make_ad(fb_ad_id="a1")
    factory = FakeClientFactory(daily={"a1": [{"date_start": "2026-03-01", "spend": "10"}]})
    response = make_client(db, factory).post(f"/api/v1/facebook/daily-insights/{brand_id}")

    assert response.status_code == 200
    assert response.json()["data"]["total_insights"] == 1


def test_classify(db, brand_id, make_ad):
    make_ad(spend=500, roas=4.0)
    make_ad(spend=300, roas=1.0)

    response = make_client(db).post(f"/api/v1/facebook/classify/{brand_id}", params={"date_window": "lifetime"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["date_window"] == "lifetime"
    assert data["total_classified"] == 2
    assert data["classifications"]["winner"] == 1


def test_classify_unknown_brand(db):
    assert make_client(db).post("/api/v1/facebook/classify/999").status_code == 400


def test_sync_performance(db, brand_id, make_ad):
    make_ad(fb_ad_id="scaler", spend=1000)
    factory = FakeClientFactory(ads=[raw_ad("scaler", spend=4500, revenue=9000)])

    response = make_client(db, factory).post(f"/api/v1/facebook/scheduled/sync-performance/{brand_id}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["synced"] == 1
    assert data["breakout_ads"][0]["type"] == "spend_increase"
    assert data["breakout_ads"][0]["ad_id"] == "scaler"


def test_needs_enrichment(db, brand_id, make_ad):
    make_ad(fb_ad_id="w", video_id="v1", classification=Classification.WINNER)
    make_ad(fb_ad_id="l", video_id="v2", classification=Classification.LOSER, spend=5000)
    make_ad(fb_ad_id="static")

    response = make_client(db).get(f"/api/v1/facebook/ads/{brand_id}/needs-enrichment", params={"limit": 5})

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert [ad["fb_ad_id"] for ad in body["data"]] == ["w", "l"]
    assert body["data"][0]["needs_transcript"] is True


def test_status(db, brand_id, make_ad):
    make_ad(video_id="v1", video_transcript="t", video_description="d")

    response = make_client(db).get(f"/api/v1/facebook/status/{brand_id}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total_ads"] == 1
    assert data["processing_complete"] is True
    assert data["connection_status"] == "active"
