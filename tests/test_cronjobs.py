import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException

from musicscan.core.utils import iso_days_ago
from musicscan.modules.cronjobs import scheduler
from musicscan.modules.cronjobs.logger import CronjobLogger
from musicscan.modules.cronjobs.registry import JOBS, CronJob
from musicscan.modules.cronjobs.service import CronjobService, summarize_runs

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fake_job(monkeypatch):
    calls = []

    def run(supabase):
        calls.append(supabase)
        return 3, {"note": "ok"}

    monkeypatch.setitem(JOBS, "test-job", CronJob("test-job", 5, run, "Test job"))
    return calls


def test_registry_intervals():
    assert JOBS["indexnow-processor"].interval_minutes == 5
    assert JOBS["master-singles-processor"].interval_minutes == 10
    assert JOBS["collect-price-history"].interval_minutes == 1440
    assert all(name == job.name for name, job in JOBS.items())


class TestCronjobLogger:
    def test_records_completed_run(self, db):
        with CronjobLogger(db, "indexnow-processor") as run:
            run.items_processed = 4
            run.metadata = {"status_code": 200}
        row = db.rows("cronjob_execution_log")[0]
        assert row["status"] == "completed"
        assert row["items_processed"] == 4
        assert row["metadata"] == {"status_code": 200}
        assert row["execution_time_ms"] >= 0

    def test_records_failure_and_reraises(self, db):
        with pytest.raises(HTTPException):
            with CronjobLogger(db, "collect-price-history"):
                raise HTTPException(status_code=500, detail="Database error: timeout")
        row = db.rows("cronjob_execution_log")[0]
        assert row["status"] == "failed"
        assert row["error_message"] == "Database error: timeout"

    def test_log_failures_do_not_break_the_job(self, db):
        from tests.fakes import FakeAPIError
        db.failures[("cronjob_execution_log", "insert")] = FakeAPIError("read only")
        with CronjobLogger(db, "indexnow-processor") as run:
            run.items_processed = 1
        assert db.rows("cronjob_execution_log") == []


def test_summarize_runs():
    rows = [
        {"status": "completed", "started_at": "2026-05-01T10:00:00+00:00", "execution_time_ms": 100},
        {"status": "failed", "started_at": "2026-05-01T11:00:00+00:00", "execution_time_ms": 300},
        {"status": "running", "started_at": "2026-05-01T09:00:00+00:00"},
        {"status": "completed", "started_at": "2026-05-01T08:00:00+00:00", "execution_time_ms": 200},
    ]
    health = summarize_runs("x", rows)
    assert (health.total_runs, health.successful_runs, health.failed_runs, health.running) == (4, 2, 1, 1)
    assert health.avg_execution_time_ms == 200.0
    assert health.last_status == "failed"
    assert health.success_rate == 50.0


class TestCronjobService:
    def test_run_job_logs_execution(self, db, fake_job):
        result = CronjobService(db).run_job("test-job")
        assert (result.items_processed, result.metadata) == (3, {"note": "ok"})
        assert fake_job == [db]
        row = db.rows("cronjob_execution_log")[0]
        assert (row["function_name"], row["status"], row["items_processed"]) == ("test-job", "completed", 3)

    def test_unknown_job(self, db):
        with pytest.raises(HTTPException) as exc:
            CronjobService(db).run_job("nope")
        assert exc.value.status_code == 404

    def test_health_lists_every_job(self, db):
        db.insert_rows("cronjob_execution_log", [
            {"function_name": "indexnow-processor", "status": "completed", "started_at": iso_days_ago(1)},
            {"function_name": "indexnow-processor", "status": "failed", "started_at": iso_days_ago(30)},
        ])
        health = CronjobService(db).get_health(days=7)
        jobs = {j.function_name: j for j in health.jobs}
        assert set(JOBS) <= set(jobs)
        assert jobs["indexnow-processor"].total_runs == 1
        assert jobs["collect-price-history"].total_runs == 0
        assert [j.function_name for j in health.jobs] == sorted(jobs)

    def test_last_runs(self, db):
        db.insert_rows("cronjob_execution_log", [
            {"function_name": "indexnow-processor", "started_at": "2026-05-01T10:00:00+00:00"},
            {"function_name": "indexnow-processor", "started_at": "2026-05-01T11:00:00+00:00"},
            {"function_name": "not-registered", "started_at": "2026-05-01T12:00:00+00:00"},
        ])
        assert CronjobService(db).last_runs() == {"indexnow-processor": "2026-05-01T11:00:00+00:00"}


class TestScheduler:
    def test_due_jobs(self):
        last_runs = {name: NOW for name in JOBS}
        assert scheduler.due_jobs(NOW, last_runs) == []

        last_runs["indexnow-processor"] = NOW - timedelta(minutes=5)
        last_runs["collect-price-history"] = NOW - timedelta(hours=23)
        del last_runs["facebook-due-posts"]
        assert sorted(scheduler.due_jobs(NOW, last_runs)) == ["facebook-due-posts", "indexnow-processor"]

    def test_load_last_runs_parses_timestamps(self, db, monkeypatch):
        monkeypatch.setattr(scheduler, "get_service_supabase", lambda: db)
        db.insert_rows("cronjob_execution_log", {"function_name": "indexnow-processor",
                                                 "started_at": "2026-05-01T11:00:00Z"})
        assert scheduler.load_last_runs() == {"indexnow-processor": datetime(2026, 5, 1, 11, tzinfo=timezone.utc)}

    def test_run_due_jobs_runs_and_records(self, db, monkeypatch, fake_job):
        monkeypatch.setattr(scheduler, "get_service_supabase", lambda: db)
        last_runs = {name: scheduler.utcnow() for name in JOBS if name != "test-job"}

        asyncio.run(scheduler.run_due_jobs(last_runs))

        assert len(fake_job) == 1
        assert "test-job" in last_runs
        assert db.rows("cronjob_execution_log")[0]["function_name"] == "test-job"


def test_routes(client, db, admin_headers, user_headers, cron_headers, fake_job):
    assert client.get("/api/v1/cronjobs/jobs", headers=user_headers).status_code == 403
    names = [j["name"] for j in client.get("/api/v1/cronjobs/jobs", headers=admin_headers).json()]
    assert "indexnow-processor" in names

    response = client.post("/api/v1/cronjobs/jobs/test-job/run", headers=cron_headers)
    assert response.status_code == 200
    assert response.json()["items_processed"] == 3

    assert client.post("/api/v1/cronjobs/jobs/nope/run", headers=cron_headers).status_code == 404
    assert client.get("/api/v1/cronjobs/health?days=1", headers=admin_headers).json()["days"] == 1
