import pytest

from adtier.core.exceptions import AuthError
from adtier.models import ConnectionStatus, DateWindow, FbAd, FbConnection, TaskLog, TaskStatus
from adtier.services.facebook.scheduled_sync import ScheduledSyncCoordinator
from adtier.tasks.sync_tasks import log_task_complete, log_task_start, reclassify_all_brands, sync_all_brands
from tests.conftest import FakeClientFactory, FakeGraphClient, create_brand, raw_ad, run


class PerTokenFactory:
    """Different fake behaviour per brand, keyed by access token"""

    def __init__(self, clients):
        self.clients = clients

    def __call__(self, access_token):
        return self.clients[access_token]


def task_logs(db):
    with db.session_scope() as session:
        return session.query(TaskLog).order_by(TaskLog.id).all()


def test_task_log_lifecycle(db):
    task_id = log_task_start(db, "manual_sync", "sync", brand_id=3, triggered_by="api")
    log_task_complete(db, task_id, True, "done", processed=4, succeeded=3, failed=1)

    (log,) = task_logs(db)
    assert log.status == TaskStatus.COMPLETED
    assert log.brand_id == 3
    assert log.triggered_by == "api"
    assert (log.processed_count, log.succeeded_count, log.failed_count) == (4, 3, 1)
    assert log.duration_seconds is not None
    assert log.completed_at is not None


def test_sync_all_brands_continues_after_failures(db):
    healthy = create_brand(db, name="Healthy")
    expired = create_brand(db, name="Expired")
    broken = create_brand(db, name="Broken")
    create_brand(db, name="Offline", connected=False)

    class BrokenClient(FakeGraphClient):
        async def get_ads_with_insights(self, *args, **kwargs):
            raise ValueError("unexpected payload")

    factory = PerTokenFactory({
        "token-Healthy": FakeGraphClient("token-Healthy", ads=[raw_ad("1"), raw_ad("2")]),
        "token-Expired": FakeGraphClient("token-Expired", error=AuthError("Session has expired", code=190)),
        "token-Broken": BrokenClient("token-Broken"),
    })
    coordinator = ScheduledSyncCoordinator(db, client_factory=factory)

    result = run(sync_all_brands(db, coordinator))

    assert result["brands"] == 3
    assert result["succeeded"] == 1
    assert result["failed"] == 2
    assert result["results"][str(healthy)]["synced"] == 2
    assert result["results"][str(healthy)]["classified"] == 2
    assert result["results"][str(expired)]["expired"] is True
    assert "unexpected payload" in result["results"][str(broken)]["error"]

    with db.session_scope() as session:
        statuses = {c.brand_id: c.status for c in session.query(FbConnection)}
        assert statuses[expired] == ConnectionStatus.EXPIRED
        assert statuses[broken] == ConnectionStatus.ACTIVE
        assert session.query(FbAd).filter(FbAd.brand_id == healthy).count() == 2

    (log,) = task_logs(db)
    assert log.task_name == "sync_all_brands"
    assert log.status == TaskStatus.FAILED
    assert log.succeeded_count == 1
    assert log.date_window == DateWindow.LAST_90D
    assert log.output_data[str(healthy)]["synced"] == 2


def test_sync_all_brands_all_ok(db, brand_id):
    coordinator = ScheduledSyncCoordinator(db, client_factory=FakeClientFactory(ads=[raw_ad("1")]))
    result = run(sync_all_brands(db, coordinator, triggered_by="cli"))

    assert result == {
        "brands": 1,
        "succeeded": 1,
        "failed": 0,
        "results": {str(brand_id): {"synced": 1, "errors": 0, "daily_insights": 0, "classified": 1}},
    }
    (log,) = task_logs(db)
    assert log.status == TaskStatus.COMPLETED
    assert log.triggered_by == "cli"


def test_sync_all_brands_with_no_connections(db):
    result = run(sync_all_brands(db, ScheduledSyncCoordinator(db, client_factory=FakeClientFactory())))
    assert result["brands"] == 0
    assert task_logs(db)[0].status == TaskStatus.COMPLETED


def test_sync_all_brands_logs_failure_when_brands_cannot_load(db):
    class BrokenStore:
        def active_brand_ids(self):
            raise RuntimeError("database unavailable")

    coordinator = ScheduledSyncCoordinator(db, connections=BrokenStore())
    with pytest.raises(RuntimeError):
        run(sync_all_brands(db, coordinator))

    (log,) = task_logs(db)
    assert log.status == TaskStatus.FAILED
    assert log.message == "database unavailable"


def test_reclassify_all_brands_isolates_failures(db, brand_id, make_ad):
    make_ad(spend=500, roas=4.0)
    make_ad(spend=300, roas=0.5)
    other = create_brand(db, name="Other")

    coordinator = ScheduledSyncCoordinator(db)
    real_classify = coordinator.classify

    def classify(bid, date_window):
        if bid == other:
            raise RuntimeError("classifier blew up")
        return real_classify(bid, date_window)

    coordinator.classify = classify
    result = reclassify_all_brands(db, coordinator)

    assert result["succeeded"] == 1
    assert result["failed"] == 1
    assert result["results"][str(brand_id)] == {"winner": 1, "potential": 0, "loser": 1, "new": 0}
    assert "blew up" in result["results"][str(other)]["error"]

    (log,) = task_logs(db)
    assert log.task_name == "reclassify_all_brands"
    assert log.task_type == "classify"
    assert log.status == TaskStatus.FAILED
