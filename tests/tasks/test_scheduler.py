from adtier.models import TaskLog, TaskStatus
from adtier.services.facebook.scheduled_sync import ScheduledSyncCoordinator
from adtier.tasks.scheduler import DAILY_SYNC_JOB_ID, RECLASSIFY_JOB_ID, Scheduler
from tests.conftest import FakeClientFactory, raw_ad


def test_start_registers_jobs_and_stop_shuts_down(db):
    scheduler = Scheduler(db, timezone="UTC", hour=5, minute=30, reclassify_every_hours=3)
    assert not scheduler.running

    scheduler.start()
    try:
        assert scheduler.running
        jobs = {job.id: job for job in scheduler.get_jobs()}
        assert set(jobs) == {DAILY_SYNC_JOB_ID, RECLASSIFY_JOB_ID}
        assert "hour='5'" in str(jobs[DAILY_SYNC_JOB_ID].trigger)
        assert "minute='30'" in str(jobs[DAILY_SYNC_JOB_ID].trigger)
        assert "hour='*/3'" in str(jobs[RECLASSIFY_JOB_ID].trigger)

        # Starting twice keeps a single scheduler
        scheduler.start()
        assert len(scheduler.get_jobs()) == 2
    finally:
        scheduler.stop()

    assert not scheduler.running
    assert scheduler.get_jobs() == []
    scheduler.stop()


def test_run_daily_sync_executes_cycle(db, brand_id):
    factory = FakeClientFactory(ads=[raw_ad("1")])
    scheduler = Scheduler(db, coordinator_factory=lambda d: ScheduledSyncCoordinator(d, client_factory=factory))

    result = scheduler.run_daily_sync()

    assert result["succeeded"] == 1
    with db.session_scope() as session:
        (log,) = session.query(TaskLog).all()
        assert log.status == TaskStatus.COMPLETED
        assert log.triggered_by == "scheduler"


def test_run_daily_sync_swallows_job_failure(db):
    def explode(database):
        raise RuntimeError("cannot build coordinator")

    assert Scheduler(db, coordinator_factory=explode).run_daily_sync() is None


def test_run_reclassify_uses_stored_rows(db, brand_id, make_ad):
    make_ad(spend=500, roas=4.0)
    factory = FakeClientFactory()
    scheduler = Scheduler(db, coordinator_factory=lambda d: ScheduledSyncCoordinator(d, client_factory=factory))

    result = scheduler.run_reclassify()

    assert result["succeeded"] == 1
    assert result["results"][str(brand_id)]["winner"] == 1
    assert factory.clients == []


def test_run_reclassify_swallows_job_failure(db):
    def explode(database):
        raise RuntimeError("cannot build coordinator")

    assert Scheduler(db, coordinator_factory=explode).run_reclassify() is None
