"""
Tests for the boundary intelligence facade.
"""

import pytest
from conftest import ASSIGNMENT_ID, INSTRUCTOR_ID, notifications_for

from app.models.boundary import DEFAULT_BOUNDARY_SETTINGS, BoundaryProposal
from app.models.enums import AdjustmentType, NotificationPriority, Phase, ProposalStatus, RecommendationType
from app.services.errors import NotFoundError


def _build_class(factory, dependent, score=70.0, size=10, settings=None):
    """Ten students writing for an hour; ``dependent`` of them ask six questions, the rest two."""
    factory.assignment(settings=settings)
    students = []
    for index in range(size):
        student = factory.student()
        factory.session(student)
        factory.interactions(student, 6 if index < dependent else 2, score=score)
        students.append(student)
    return students


class TestGetRecommendations:
    """Test recommendations for a live class."""

    def test_dependent_class_gets_individual_and_temporal(self, service, factory):
        _build_class(factory, dependent=8)

        recommendations = service.get_recommendations(ASSIGNMENT_ID)

        assert [r.recommendation_type for r in recommendations] == [
            RecommendationType.INDIVIDUAL,
            RecommendationType.TEMPORAL,
        ]
        assert len(recommendations[0].individual_adjustments) == 8
        assert all(a.duration == "2-3 weeks" for a in recommendations[0].individual_adjustments)
        # No due date, so the assignment is treated as just started
        assert recommendations[-1].temporal_strategy.phase == Phase.EARLY

    def test_low_effectiveness_adds_class_wide(self, service, factory):
        _build_class(factory, dependent=8, score=50.0)

        recommendations = service.get_recommendations(ASSIGNMENT_ID)

        class_wide = recommendations[0]
        assert class_wide.recommendation_type == RecommendationType.CLASS_WIDE
        assert class_wide.class_adjustments.current_effectiveness == 55
        changes = {c.parameter: c.recommended_value for c in class_wide.class_adjustments.recommended_changes}
        assert changes["questions_per_hour"] == 3

    def test_empty_roster_only_temporal(self, service, factory):
        factory.assignment()

        recommendations = service.get_recommendations(ASSIGNMENT_ID)

        assert recommendations[-1].recommendation_type == RecommendationType.TEMPORAL
        assert RecommendationType.INDIVIDUAL not in [r.recommendation_type for r in recommendations]

    def test_recommendations_do_not_touch_settings(self, service, factory, uow, isolated_db_session):
        _build_class(factory, dependent=8, score=50.0)

        service.get_recommendations(ASSIGNMENT_ID)

        assert uow.assignments.get(ASSIGNMENT_ID).settings_version == 0
        assert isolated_db_session.query(BoundaryProposal).count() == 0

    def test_missing_assignment(self, service):
        with pytest.raises(NotFoundError):
            service.get_recommendations("missing")


class TestMonitorAndPropose:
    """Test the monitoring pipeline end to end."""

    def test_weak_signal_creates_nothing(self, service, factory, notifier):
        _build_class(factory, dependent=7)

        assert service.monitor_and_propose(ASSIGNMENT_ID) == []
        assert notifier.sent == []

    def test_strong_signal_creates_pending_proposal(self, service, factory, notifier):
        _build_class(factory, dependent=8)

        created = service.monitor_and_propose(ASSIGNMENT_ID)

        assert len(created) == 1
        proposal = created[0]
        assert proposal.type == AdjustmentType.REDUCE_ACCESS
        assert proposal.status == ProposalStatus.PENDING
        assert len(proposal.affected_students) == 8
        assert proposal.confidence == 0.9

        assert [n["recipient_id"] for n in notifier.sent] == [INSTRUCTOR_ID]
        assert notifier.sent[0]["type"] == "boundary_proposal"

    def test_second_run_is_deduplicated(self, service, factory, notifier, clock):
        _build_class(factory, dependent=8)
        service.monitor_and_propose(ASSIGNMENT_ID)

        clock.advance(days=3)
        assert service.monitor_and_propose(ASSIGNMENT_ID) == []
        assert len(service.list_pending_proposals(ASSIGNMENT_ID)) == 1
        assert len(notifier.sent) == 1

    def test_missing_assignment(self, service):
        with pytest.raises(NotFoundError):
            service.monitor_and_propose("missing")


class TestDecisions:
    """Test approval and rejection through the facade."""

    def test_approve_updates_settings_and_notifies_students(self, db_service, factory, isolated_db_session):
        students = _build_class(factory, dependent=8)
        proposal = db_service.monitor_and_propose(ASSIGNMENT_ID)[0]

        approved = db_service.approve_proposal(proposal.id, INSTRUCTOR_ID, notes="Agreed")

        assert approved.status == ProposalStatus.APPROVED
        assert db_service.list_pending_proposals() == []

        instructor = notifications_for(isolated_db_session, INSTRUCTOR_ID)
        assert [n.type for n in instructor] == ["boundary_proposal"]
        assert instructor[0].extra["proposal_id"] == proposal.id

        for student in students[:8]:
            received = notifications_for(isolated_db_session, student.id)
            assert len(received) == 1
            assert received[0].type == "boundary_adjusted"
            assert received[0].priority == NotificationPriority.LOW
        for student in students[8:]:
            assert notifications_for(isolated_db_session, student.id) == []

    def test_approve_invalidates_cached_analytics(self, service, factory):
        _build_class(factory, dependent=8)
        proposal = service.monitor_and_propose(ASSIGNMENT_ID)[0]
        before = service.get_effectiveness(ASSIGNMENT_ID)
        assert len(service.analytics.cache) == 1

        service.approve_proposal(proposal.id, INSTRUCTOR_ID)

        assert len(service.analytics.cache) == 0
        after = service.get_effectiveness(ASSIGNMENT_ID)
        assert before.current_boundaries == DEFAULT_BOUNDARY_SETTINGS
        assert after.current_boundaries["questions_per_hour"] == 3
        assert service.analytics.gather("course-101", ASSIGNMENT_ID).boundary_effectiveness.questions_per_hour == 3

    def test_reject_keeps_settings(self, db_service, factory, isolated_db_session):
        students = _build_class(factory, dependent=8)
        proposal = db_service.monitor_and_propose(ASSIGNMENT_ID)[0]

        rejected = db_service.reject_proposal(proposal.id, INSTRUCTOR_ID, "Exam week")

        assert rejected.status == ProposalStatus.REJECTED
        assert db_service.get_effectiveness(ASSIGNMENT_ID).adjustment_history == []
        assert notifications_for(isolated_db_session, students[0].id) == []

    def test_get_proposal(self, service, factory):
        _build_class(factory, dependent=8)
        proposal = service.monitor_and_propose(ASSIGNMENT_ID)[0]

        fetched = service.get_proposal(proposal.id)

        assert fetched.id == proposal.id
        assert fetched.evidence[0].metric == "AI Dependency Rate"
        with pytest.raises(NotFoundError):
            service.get_proposal("missing")

    def test_list_pending_filters_by_assignment(self, service, factory):
        _build_class(factory, dependent=8)
        service.monitor_and_propose(ASSIGNMENT_ID)

        assert len(service.list_pending_proposals()) == 1
        assert service.list_pending_proposals("other-assignment") == []


class TestGetEffectiveness:
    """Test the effectiveness report."""

    def test_report_for_dependent_class(self, service, factory):
        _build_class(factory, dependent=8)

        report = service.get_effectiveness(ASSIGNMENT_ID)

        assert report.assessment.overall == 70
        assert report.assessment.issues == [
            "80% of students show AI over-dependence",
            "Low completion rate (0%)",
        ]
        assert report.adjustment_history == []
        assert report.impact_summary is None

    def test_history_and_impact_summary(self, service, factory):
        _build_class(factory, dependent=8)
        proposal = service.monitor_and_propose(ASSIGNMENT_ID)[0]
        service.approve_proposal(proposal.id, INSTRUCTOR_ID)
        log_id = service.get_effectiveness(ASSIGNMENT_ID).adjustment_history[0].id

        service.record_impact_metrics(log_id, {"dependency_rate_change": -0.3})
        report = service.get_effectiveness(ASSIGNMENT_ID)

        assert len(report.adjustment_history) == 1
        assert report.adjustment_history[0].proposal_id == proposal.id
        assert report.impact_summary == {"dependency_rate_change": -0.3}

    def test_missing_assignment(self, service):
        with pytest.raises(NotFoundError):
            service.get_effectiveness("missing")
