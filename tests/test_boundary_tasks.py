"""
Tests for the boundary monitoring Celery tasks.
"""
from contextlib import contextmanager

import pytest
from conftest import ASSIGNMENT_ID, ClassFactory

from app.models.boundary import BoundaryProposal
from app.services.boundary_intelligence_service import BoundaryIntelligenceService
from app.services.config_service import config_service
from worker import boundary_tasks
from worker.boundary_tasks import monitor_active_assignments, monitor_assignment


@pytest.fixture
def task_db(isolated_db_session, monkeypatch):
    """Point the tasks at the test database."""

    @contextmanager
    def fake_session():
        yield isolated_db_session
        isolated_db_session.commit()

    monkeypatch.setattr(boundary_tasks, "get_db_session", fake_session)
    return isolated_db_session


@pytest.fixture
def live_factory(task_db):
    """Factory stamping telemetry relative to the wall clock the tasks use."""
    return ClassFactory(task_db, config_service.now())


def _dependent_class(factory, assignment_id=ASSIGNMENT_ID):
    factory.assignment(assignment_id)
    for index in range(10):
        student = factory.student()
        factory.session(student, assignment_id=assignment_id)
        factory.interactions(student, 6 if index < 8 else 2, assignment_id=assignment_id, score=70.0)


class TestMonitorAssignment:
    """Test the single-assignment task."""

    def test_creates_proposal(self, live_factory, task_db):
        _dependent_class(live_factory)

        result = monitor_assignment.run(ASSIGNMENT_ID)

        assert result["status"] == "success"
        assert result["proposals_created"] == 1
        assert task_db.query(BoundaryProposal).one().id == result["proposal_ids"][0]

    def test_missing_assignment_returns_error(self, task_db):
        result = monitor_assignment.run("missing")

        assert result["status"] == "error"
        assert result["assignment_id"] == "missing"
        assert "missing" in result["error"]

    def test_database_failure_returns_error(self, monkeypatch):
        @contextmanager
        def broken_session():
            raise RuntimeError("database unavailable")
            yield  # pragma: no cover

        monkeypatch.setattr(boundary_tasks, "get_db_session", broken_session)

        result = monitor_assignment.run(ASSIGNMENT_ID)

        assert result == {"status": "error", "assignment_id": ASSIGNMENT_ID, "error": "database unavailable"}

    def test_each_run_reads_fresh_analytics(self, live_factory, monkeypatch):
        """Runs in one worker process never share cached class analytics."""
        _dependent_class(live_factory)
        built = []
        from_session = BoundaryIntelligenceService.from_session

        def recording_from_session(db, **kwargs):
            service = from_session(db, **kwargs)
            built.append(service)
            return service

        monkeypatch.setattr(BoundaryIntelligenceService, "from_session", recording_from_session)

        monitor_assignment.run(ASSIGNMENT_ID)
        monitor_assignment.run(ASSIGNMENT_ID)

        assert len(built) == 2
        assert built[0].analytics.cache is not built[1].analytics.cache


class TestMonitorActiveAssignments:
    """Test the scheduled sweep over open assignments."""

    def test_sweeps_open_assignments(self, live_factory):
        _dependent_class(live_factory)

        result = monitor_active_assignments.run()

        assert result["status"] == "success"
        assert result["assignments_checked"] == 1
        assert result["proposals_created"] == 1
        assert result["failed"] == []

    def test_one_failure_does_not_stop_others(self, live_factory, monkeypatch):
        live_factory.assignment("essay-a")
        live_factory.assignment("essay-b")
        checked = []

        def flaky_monitor(assignment_id):
            checked.append(assignment_id)
            if assignment_id == "essay-a":
                raise RuntimeError("boom")
            return {"proposals_created": 0}

        monkeypatch.setattr(boundary_tasks, "_monitor", flaky_monitor)

        result = monitor_active_assignments.run()

        assert checked == ["essay-a", "essay-b"]
        assert result["status"] == "success"
        assert result["failed"] == [{"assignment_id": "essay-a", "error": "boom"}]

    def test_no_open_assignments(self, task_db):
        result = monitor_active_assignments.run()

        assert result["assignments_checked"] == 0
        assert result["proposals_created"] == 0
