"""Tests for feedback scoring, mission progress and skills."""

from datetime import datetime, timedelta

import pytest

from agenthub.engines.ledger import ScoreLedger, clamp_score, mission_deadline, parse_time_limit
from agenthub.errors import InvalidInputError, SkillNotFoundError, UnknownFeedbackTypeError
from agenthub.models.score import ImprovementMission, ScoreRecord
from agenthub.models.scoring import ScoringRules
from agenthub.types import MissionStatus

NOW = datetime(2026, 10, 18, 12, 0)


@pytest.fixture
def ledger():
    return ScoreLedger(ScoringRules.from_documents())


@pytest.fixture
def record(ledger):
    return ledger.new_record(now=NOW)


def _mission(required=3, recovery=10, deadline="2026-10-25"):
    return ImprovementMission(
        assigned_date="2026-10-18",
        deadline=deadline,
        category="process",
        level=2,
        required_successes=required,
        recovery_points=recovery,
        time_limit=7,
    )


class TestApplyFeedback:
    def test_success(self, ledger, record):
        ledger.apply_feedback(record, "success", "Built login", now=NOW)
        assert record.total_score == 815
        assert record.rank == "A"
        assert record.metrics.tasks_completed == 1
        assert record.metrics.successful_tasks == 1
        assert record.metrics.success_rate == 100

    def test_failure_updates_rate(self, ledger, record):
        ledger.apply_feedback(record, "success", now=NOW)
        ledger.apply_feedback(record, "failure", now=NOW)
        ledger.apply_feedback(record, "partial", now=NOW)
        assert record.metrics.tasks_completed == 3
        assert record.metrics.successful_tasks == 1
        assert record.metrics.success_rate == 33
        assert record.total_score == 800

    def test_clamped_at_max(self, ledger):
        record = ScoreRecord(total_score=990)
        ledger.apply_feedback(record, "excellent", now=NOW)
        ledger.apply_feedback(record, "excellent", now=NOW)
        assert record.total_score == 1000

    def test_clamped_at_min(self, ledger):
        record = ScoreRecord(total_score=10)
        ledger.apply_feedback(record, "failure", now=NOW)
        assert record.total_score == 0
        assert record.rank == "D"

    def test_task_entry(self, ledger, record):
        ledger.apply_feedback(record, "partial", now=NOW)
        task = record.recent_tasks[0]
        assert task.date == "2026-10-18"
        assert task.type == "partial"
        assert task.description == "Task partially completed"
        assert task.score_change == 5
        assert task.new_score == 805

    def test_newest_first(self, ledger, record):
        ledger.apply_feedback(record, "success", "first", now=NOW)
        ledger.apply_feedback(record, "failure", "second", now=NOW)
        assert [t.description for t in record.recent_tasks] == ["second", "first"]

    def test_work_history_task_type(self, ledger, record):
        ledger.apply_feedback(record, "excellent", now=NOW)
        entry = record.development_memory.work_history[0]
        assert entry.task_type == "success"
        assert entry.outcome == "excellent"

    def test_lists_capped(self, ledger, record):
        for i in range(55):
            ledger.apply_feedback(record, "partial", f"task {i}", now=NOW)
        assert len(record.recent_tasks) == 50
        assert len(record.development_memory.work_history) == 50
        assert record.recent_tasks[0].description == "task 54"

    def test_unknown_type(self, ledger, record):
        with pytest.raises(UnknownFeedbackTypeError):
            ledger.apply_feedback(record, "amazing", now=NOW)
        assert record.total_score == 800
        assert record.metrics.tasks_completed == 0

    def test_configured_delta(self, record):
        rules = ScoringRules.from_documents({"feedbackScoring": {"success": {"scoreChange": 40}}})
        ScoreLedger(rules).apply_feedback(record, "success", now=NOW)
        assert record.total_score == 840


class TestMissions:
    def test_progress_and_completion(self, ledger):
        record = ScoreRecord(total_score=700)
        record.improvement_missions.append(_mission(required=2, recovery=10))

        assert ledger.advance_missions(record, "success", now=NOW) == []
        assert record.improvement_missions[0].completed_successes == 1

        completed = ledger.advance_missions(record, "excellent", now=NOW)
        assert len(completed) == 1
        mission = record.improvement_missions[0]
        assert mission.status == MissionStatus.COMPLETED
        assert mission.completed_date == "2026-10-18"
        assert record.total_score == 710

    def test_failure_does_not_progress(self, ledger):
        record = ScoreRecord()
        record.improvement_missions.append(_mission())
        ledger.advance_missions(record, "failure", now=NOW)
        assert record.improvement_missions[0].completed_successes == 0

    def test_overdue_mission_expires(self, ledger):
        record = ScoreRecord()
        record.improvement_missions.append(_mission(deadline="2026-10-01"))
        ledger.advance_missions(record, "success", now=NOW)
        mission = record.improvement_missions[0]
        assert mission.status == MissionStatus.EXPIRED
        assert mission.completed_successes == 0

    def test_completed_missions_untouched(self, ledger):
        record = ScoreRecord()
        done = _mission(required=1)
        done.status = MissionStatus.COMPLETED
        record.improvement_missions.append(done)
        assert ledger.advance_missions(record, "success", now=NOW) == []
        assert record.total_score == 800


class TestSkills:
    def test_add(self, ledger, record):
        skill, created = ledger.add_skill(record, "react-native", 70, "mobile", now=NOW)
        assert created
        assert skill.added_date == "2026-10-18"
        assert record.skills == [skill]

    def test_update_keeps_added_date(self, ledger, record):
        ledger.add_skill(record, "sql", 40, now=NOW)
        later = NOW + timedelta(days=3)
        skill, created = ledger.add_skill(record, "sql", 80, now=later)
        assert not created
        assert skill.proficiency == 80
        assert skill.added_date == "2026-10-18"
        assert skill.last_updated == "2026-10-21"
        assert len(record.skills) == 1

    @pytest.mark.parametrize("proficiency", [-1, 101])
    def test_proficiency_range(self, ledger, record, proficiency):
        with pytest.raises(InvalidInputError):
            ledger.add_skill(record, "sql", proficiency, now=NOW)

    def test_blank_name(self, ledger, record):
        with pytest.raises(InvalidInputError):
            ledger.add_skill(record, "  ", now=NOW)

    def test_remove(self, ledger, record):
        ledger.add_skill(record, "sql", now=NOW)
        removed = ledger.remove_skill(record, "sql", "jin")
        assert removed.name == "sql"
        assert record.skills == []

    def test_remove_missing(self, ledger, record):
        with pytest.raises(SkillNotFoundError):
            ledger.remove_skill(record, "cobol", "jin")


class TestHelpers:
    def test_clamp(self):
        assert clamp_score(1200) == 1000
        assert clamp_score(-5) == 0
        assert clamp_score(500) == 500

    @pytest.mark.parametrize("value,days", [(7, 7), ("14", 14), ("30 days", 30), ("7d", 7), ("soon", None), (None, None)])
    def test_parse_time_limit(self, value, days):
        assert parse_time_limit(value) == days

    def test_mission_deadline(self):
        assert mission_deadline(NOW.date(), 7) == "2026-10-25"
        assert mission_deadline(NOW.date(), "unknown") is None

    def test_new_record(self, ledger, registry):
        record = ledger.new_record(registry.agents["boss"], now=NOW)
        assert record.total_score == 800
        assert record.current_model == "opus"
        assert record.development_memory.learning_journey.since == "2026-10-18"
