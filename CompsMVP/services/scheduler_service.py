# CompsMVP/services/scheduler_service.py
import logging
import threading
from datetime import datetime

from CompsMVP.extensions import db

logger = logging.getLogger(__name__)

MLS_SYNC_JOB = "mls_sync"
MARKET_DATA_SYNC_JOB = "market_data_sync"


class ScheduledJob:
    """Runs fn every `interval` seconds on a daemon thread until stopped."""

    def __init__(self, name, interval, fn, app=None, run_immediately=True):
        self.name = name
        self.interval = interval
        self.fn = fn
        self.app = app
        self.run_immediately = run_immediately
        self.runs = 0
        self.last_run = None
        self.last_status = None
        self.last_error = None
        self.last_result = None
        self._stop = threading.Event()
        self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    def start(self):
        self._thread = threading.Thread(target=self._loop, name=f"job-{self.name}", daemon=True)
        self._thread.start()

    def stop(self, timeout=5):
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def _loop(self):
        if not self.run_immediately and self._stop.wait(self.interval):
            return
        while not self._stop.is_set():
            self.run_once()
            if self._stop.wait(self.interval):
                break

    def run_once(self):
        self.last_run = datetime.utcnow()
        self.runs += 1
        try:
            if self.app is not None:
                with self.app.app_context():
                    try:
                        self.last_result = self.fn()
                    finally:
                        db.session.remove()
            else:
                self.last_result = self.fn()
            self.last_status = "success"
            self.last_error = None
        except Exception as e:
            # a bad run must not kill the schedule
            logger.exception("Scheduled job %s failed", self.name)
            self.last_status = "error"
            self.last_error = str(e)
        return self.last_result

    def status(self) -> dict:
        return {
            "name": self.name,
            "running": self.running,
            "interval": self.interval,
            "runs": self.runs,
            "lastRun": self.last_run.isoformat() if self.last_run else None,
            "lastStatus": self.last_status,
            "lastError": self.last_error,
        }


class SchedulerService:
    """Background MLS + market data refresh jobs, one thread per named job."""

    def __init__(self, app, integration, market_data, mls_interval=3600, market_interval=43200,
                 locations=None, sync_limit=50):
        self.app = app
        self.integration = integration
        self.market_data = market_data
        self.mls_interval = mls_interval
        self.market_interval = market_interval
        self.locations = list(locations or [])
        self.sync_limit = sync_limit
        self.jobs = {}
        self._lock = threading.Lock()

    def start_mls_sync(self, interval=None, limit=None, run_immediately=True):
        limit = limit or self.sync_limit
        return self._start(
            MLS_SYNC_JOB,
            interval or self.mls_interval,
            lambda: self.integration.synchronize_mls_data(limit),
            run_immediately,
        )

    def start_market_data_sync(self, interval=None, locations=None, run_immediately=True):
        locations = list(locations or self.locations)
        return self._start(
            MARKET_DATA_SYNC_JOB,
            interval or self.market_interval,
            lambda: self.market_data.sync_market_data(locations),
            run_immediately,
        )

    def start_all(self):
        self.start_mls_sync()
        self.start_market_data_sync()

    def stop_job(self, name) -> bool:
        with self._lock:
            job = self.jobs.pop(name, None)
        if job is None:
            return False
        job.stop()
        logger.info("Stopped job %s", name)
        return True

    def stop_all_jobs(self):
        for name in list(self.jobs):
            self.stop_job(name)

    def get_job_status(self) -> dict:
        with self._lock:
            jobs = dict(self.jobs)
        return {name: job.status() for name, job in jobs.items()}

    def _start(self, name, interval, fn, run_immediately):
        # restarting a job replaces the old thread
        self.stop_job(name)
        job = ScheduledJob(name, interval, fn, app=self.app, run_immediately=run_immediately)
        with self._lock:
            self.jobs[name] = job
        job.start()
        logger.info("Started job %s every %ss", name, interval)
        return job
