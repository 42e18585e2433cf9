"""
Onboarding state store: start, stage changes, task checklists, listing and history.
"""
import random
import uuid
from datetime import datetime, timedelta

import pytest

from partner_onboarding.exceptions import ConflictError, NotFoundError
from partner_onboarding.models import AuditLog, OnboardingStage, StageStatus
from partner_onboarding.onboarding.stages import STAGE_ORDER
from partner_onboarding.services import onboarding_service

from conftest import complete_required_tasks


def _assert_completed_stages_have_required_tasks(onboarding):
    for row in onboarding.stages:
        if row.status == StageStatus.COMPLETED:
            assert all(t.completed for t in row.tasks if t.required), row.stage


@pytest.mark.integration
class TestStartOnboarding:
    def test_seeds_all_six_stages(self, db_session):
        started = datetime(2026, 1, 5, 9, 0, 0)
        onboarding = onboarding_service.start_onboarding(db_session, "p-1", started_at=started)

        assert [row.stage for row in onboarding.stages] == STAGE_ORDER
        assert onboarding.current_stage == OnboardingStage.OUTREACH
        assert onboarding.stage_state(OnboardingStage.OUTREACH).status == StageStatus.IN_PROGRESS
        assert all(
            row.status == StageStatus.PENDING for row in onboarding.stages if row.stage != OnboardingStage.OUTREACH
        )
        assert onboarding.overall_progress == 0
        assert onboarding.expected_completion_date == started + timedelta(days=25)
        assert all(not t.completed for row in onboarding.stages for t in row.tasks)

    def test_assignees(self, db_session):
        onboarding = onboarding_service.start_onboarding(
            db_session, "p-1", assignees={OnboardingStage.KYC: "compliance@corp"}
        )
        assert onboarding.stage_state(OnboardingStage.KYC).assigned_to == "compliance@corp"
        assert onboarding.stage_state(OnboardingStage.OUTREACH).assigned_to is None

    def test_duplicate_start_conflicts(self, db_session, started_partner):
        with pytest.raises(ConflictError):
            onboarding_service.start_onboarding(db_session, started_partner)

    def test_writes_audit_entry(self, db_session, started_partner):
        actions = [log.action for log in onboarding_service.list_history(db_session, started_partner)]
        assert actions == ["ONBOARDING_STARTED"]


@pytest.mark.integration
class TestGetOnboarding:
    def test_missing_partner(self, db_session):
        with pytest.raises(NotFoundError) as exc:
            onboarding_service.get_onboarding(db_session, "nobody")
        assert exc.value.details["identifier"] == "nobody"


@pytest.mark.integration
class TestApplyStageChange:
    def test_forward_completes_earlier_stages(self, db_session, started_partner):
        onboarding = onboarding_service.apply_stage_change(
            db_session, started_partner, OnboardingStage.KYC, actor="user1"
        )
        stages = onboarding.stage_map
        assert onboarding.current_stage == OnboardingStage.KYC
        for stage in (OnboardingStage.OUTREACH, OnboardingStage.PRODUCT_OVERVIEW, OnboardingStage.PARTNER_PROGRAM):
            assert stages[stage].status == StageStatus.COMPLETED
            assert stages[stage].completed_at is not None
        assert stages[OnboardingStage.KYC].status == StageStatus.IN_PROGRESS
        assert stages[OnboardingStage.AGREEMENT].status == StageStatus.PENDING
        assert onboarding.overall_progress == 50
        _assert_completed_stages_have_required_tasks(onboarding)

    def test_optional_tasks_are_left_alone(self, db_session, started_partner):
        onboarding = onboarding_service.apply_stage_change(
            db_session, started_partner, OnboardingStage.PRODUCT_OVERVIEW
        )
        outreach = onboarding.stage_state(OnboardingStage.OUTREACH)
        assert [t.completed for t in outreach.tasks] == [True, True, False]

    def test_stage_map_always_has_six_keys(self, db_session, started_partner):
        rng = random.Random(7)
        for _ in range(15):
            onboarding = onboarding_service.apply_stage_change(
                db_session, started_partner, rng.choice(STAGE_ORDER)
            )
            assert set(onboarding.stage_map) == set(STAGE_ORDER)
            assert len(onboarding.stages) == len(STAGE_ORDER)
            assert 0 <= onboarding.overall_progress <= 100

    def test_backward_keeps_completed_stage(self, db_session, started_partner):
        onboarding_service.apply_stage_change(db_session, started_partner, OnboardingStage.AGREEMENT)
        onboarding = onboarding_service.apply_stage_change(db_session, started_partner, OnboardingStage.KYC)
        assert onboarding.current_stage == OnboardingStage.KYC
        assert onboarding.stage_state(OnboardingStage.KYC).status == StageStatus.COMPLETED
        assert onboarding.stage_state(OnboardingStage.AGREEMENT).status == StageStatus.IN_PROGRESS

    def test_audit_payload_carries_direction(self, db_session, started_partner):
        onboarding_service.apply_stage_change(
            db_session, started_partner, OnboardingStage.KYC, actor="user1", reason="fast track"
        )
        log = (
            db_session.query(AuditLog)
            .filter(AuditLog.partner_id == started_partner, AuditLog.action == "STAGE_TRANSITION")
            .one()
        )
        assert log.actor == "user1"
        assert log.payload_json["from_stage"] == "outreach"
        assert log.payload_json["to_stage"] == "kyc"
        assert log.payload_json["direction"] == "forward"
        assert log.payload_json["reason"] == "fast track"

    def test_missing_partner(self, db_session):
        with pytest.raises(NotFoundError):
            onboarding_service.apply_stage_change(db_session, "nobody", OnboardingStage.KYC)


@pytest.mark.integration
class TestToggleTask:
    def test_partial_ticks_raise_progress(self, db_session, started_partner):
        onboarding = onboarding_service.get_onboarding(db_session, started_partner)
        first = onboarding.stage_state(OnboardingStage.OUTREACH).tasks[0]

        onboarding = onboarding_service.toggle_task(
            db_session, started_partner, OnboardingStage.OUTREACH, first.id, True
        )
        outreach = onboarding.stage_state(OnboardingStage.OUTREACH)
        assert outreach.status == StageStatus.IN_PROGRESS
        assert outreach.tasks[0].completed is True
        assert outreach.tasks[0].completed_at is not None
        assert 0 < onboarding.overall_progress < 16

    def test_required_tasks_complete_the_stage(self, db_session, started_partner):
        onboarding = complete_required_tasks(db_session, started_partner, OnboardingStage.OUTREACH)
        outreach = onboarding.stage_state(OnboardingStage.OUTREACH)
        assert outreach.status == StageStatus.COMPLETED
        assert outreach.completed_at is not None
        # Completing a stage does not move the partner on
        assert onboarding.current_stage == OnboardingStage.OUTREACH
        assert onboarding.overall_progress == 15

    def test_unticking_reopens_completed_stage(self, db_session, started_partner):
        onboarding = complete_required_tasks(db_session, started_partner, OnboardingStage.OUTREACH)
        required = next(t for t in onboarding.stage_state(OnboardingStage.OUTREACH).tasks if t.required)

        onboarding = onboarding_service.toggle_task(
            db_session, started_partner, OnboardingStage.OUTREACH, required.id, False
        )
        outreach = onboarding.stage_state(OnboardingStage.OUTREACH)
        assert outreach.status == StageStatus.IN_PROGRESS
        assert outreach.completed_at is None
        assert next(t for t in outreach.tasks if t.id == required.id).completed_at is None

    def test_ticking_a_pending_stage_starts_it(self, db_session, started_partner):
        onboarding = onboarding_service.get_onboarding(db_session, started_partner)
        task = onboarding.stage_state(OnboardingStage.KYC).tasks[0]

        onboarding = onboarding_service.toggle_task(
            db_session, started_partner, OnboardingStage.KYC, task.id, True
        )
        kyc = onboarding.stage_state(OnboardingStage.KYC)
        assert kyc.status == StageStatus.IN_PROGRESS
        assert kyc.started_at is not None
        assert onboarding.current_stage == OnboardingStage.OUTREACH

    def test_onboarded_completion_reaches_hundred(self, db_session, onboarded_partner):
        onboarding = onboarding_service.get_onboarding(db_session, onboarded_partner)
        assert onboarding.stage_state(OnboardingStage.ONBOARDED).status == StageStatus.COMPLETED
        assert onboarding.overall_progress == 100

    @pytest.mark.parametrize("seed", range(5))
    def test_completed_stage_never_has_open_required_tasks(self, db_session, started_partner, seed):
        rng = random.Random(seed)
        onboarding = onboarding_service.get_onboarding(db_session, started_partner)
        pairs = [(row.stage, t.id) for row in onboarding.stages for t in row.tasks]
        for _ in range(30):
            stage, task_id = rng.choice(pairs)
            onboarding = onboarding_service.toggle_task(
                db_session, started_partner, stage, task_id, rng.random() < 0.6
            )
            _assert_completed_stages_have_required_tasks(onboarding)

    def test_unknown_task(self, db_session, started_partner):
        with pytest.raises(NotFoundError) as exc:
            onboarding_service.toggle_task(
                db_session, started_partner, OnboardingStage.OUTREACH, uuid.uuid4(), True
            )
        assert exc.value.details["stage"] == "outreach"

    def test_task_from_another_stage(self, db_session, started_partner):
        onboarding = onboarding_service.get_onboarding(db_session, started_partner)
        kyc_task = onboarding.stage_state(OnboardingStage.KYC).tasks[0]
        with pytest.raises(NotFoundError):
            onboarding_service.toggle_task(
                db_session, started_partner, OnboardingStage.OUTREACH, kyc_task.id, True
            )

    def test_unknown_partner(self, db_session):
        with pytest.raises(NotFoundError):
            onboarding_service.toggle_task(db_session, "nobody", OnboardingStage.OUTREACH, uuid.uuid4(), True)


@pytest.mark.integration
class TestListing:
    def test_list_filters_by_stage_and_status(self, db_session, started_partner, onboarded_partner):
        onboarding_service.start_onboarding(db_session, "p-kyc")
        onboarding_service.apply_stage_change(db_session, "p-kyc", OnboardingStage.KYC)

        all_ids = {o.partner_id for o in onboarding_service.list_onboarding(db_session)}
        assert all_ids == {started_partner, onboarded_partner, "p-kyc"}

        at_kyc = onboarding_service.list_onboarding(db_session, stage=OnboardingStage.KYC)
        assert [o.partner_id for o in at_kyc] == ["p-kyc"]

        completed = onboarding_service.list_onboarding(db_session, status=StageStatus.COMPLETED)
        assert [o.partner_id for o in completed] == [onboarded_partner]

        in_progress = onboarding_service.list_onboarding(db_session, status=StageStatus.IN_PROGRESS)
        assert {o.partner_id for o in in_progress} == {started_partner, "p-kyc"}

    def test_summary(self, db_session, started_partner, onboarded_partner):
        summary = onboarding_service.onboarding_summary(db_session)
        assert summary["total"] == 2
        assert summary["by_status"]["completed"] == 1
        assert summary["by_status"]["in-progress"] == 1
        assert summary["by_status"]["blocked"] == 0
        assert summary["by_stage"]["outreach"] == 1
        assert summary["by_stage"]["onboarded"] == 1
        assert summary["by_stage"]["kyc"] == 0
        assert summary["pending_approvals"] == 0

    def test_history_for_missing_partner(self, db_session):
        with pytest.raises(NotFoundError):
            onboarding_service.list_history(db_session, "nobody")
