import threading

from CompsMVP.services.scheduler_service import (
    MARKET_DATA_SYNC_JOB,
    MLS_SYNC_JOB,
    ScheduledJob,
    SchedulerService,
)


class FakeIntegration:
    def __init__(self):
        self.ran = threading.Event()
        self.limits = []

    def synchronize_mls_data(self, limit):
        self.limits.append(limit)
        self.ran.set()
        return {"status": "success"}


class FakeMarketData:
    def __init__(self):
        self.ran = threading.Event()
        self.locations = None

    def sync_market_data(self, locations):
        self.locations = locations
        self.ran.set()
        return {"totalSuccess": len(locations)}


def test_run_once_records_success_and_error():
    job = ScheduledJob("ok", 60, lambda: 42)
    assert job.run_once() == 42
    assert job.status()["lastStatus"] == "success"

    def boom():
        raise RuntimeError("provider down")

    bad = ScheduledJob("bad", 60, boom)
    bad.run_once()
    status = bad.status()
    assert status["lastStatus"] == "error"
    assert status["lastError"] == "provider down"
    assert status["runs"] == 1


def test_start_runs_job_inside_app_context(app):
    integration = FakeIntegration()
    scheduler = SchedulerService(app, integration, FakeMarketData(), mls_interval=3600, sync_limit=25)

    scheduler.start_mls_sync()
    try:
        assert integration.ran.wait(5)
        status = scheduler.get_job_status()[MLS_SYNC_JOB]
        assert status["interval"] == 3600
        assert integration.limits == [25]
    finally:
        scheduler.stop_all_jobs()

    assert scheduler.get_job_status() == {}


def test_market_job_uses_configured_locations(app):
    market = FakeMarketData()
    locations = [{"city": "Atlanta", "state": "GA"}]
    scheduler = SchedulerService(app, FakeIntegration(), market, locations=locations)

    scheduler.start_market_data_sync(interval=3600)
    try:
        assert market.ran.wait(5)
        assert market.locations == locations
    finally:
        scheduler.stop_all_jobs()


def test_delayed_start_and_stop(app):
    integration = FakeIntegration()
    scheduler = SchedulerService(app, integration, FakeMarketData())

    job = scheduler.start_mls_sync(interval=3600, run_immediately=False)
    assert job.running
    assert scheduler.stop_job(MLS_SYNC_JOB)
    assert not job.running
    assert not integration.ran.is_set()
    assert not scheduler.stop_job(MLS_SYNC_JOB)
    assert not scheduler.stop_job(MARKET_DATA_SYNC_JOB)


def test_restart_replaces_existing_job(app):
    scheduler = SchedulerService(app, FakeIntegration(), FakeMarketData())
    first = scheduler.start_mls_sync(interval=3600, run_immediately=False)
    second = scheduler.start_mls_sync(interval=7200, run_immediately=False)
    try:
        assert not first.running
        assert second.running
        assert list(scheduler.get_job_status()) == [MLS_SYNC_JOB]
    finally:
        scheduler.stop_all_jobs()
