"""
Onboarding state store: the only writer of a partner's onboarding record.
All stage changes go through apply_stage_change(); task checkmarks go through toggle_task().
"""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from partner_onboarding.config import settings
from partner_onboarding.exceptions import ConflictError, NotFoundError
from partner_onboarding.models import (
    AuditLog,
    OnboardingStage,
    OnboardingStageState,
    OnboardingTask,
    PartnerOnboarding,
    ReversalStatus,
    StageReversalRequest,
    StageStatus,
)
from partner_onboarding.onboarding.progress import (
    overall_progress,
    partner_status,
    required_tasks_done,
)
from partner_onboarding.onboarding.stages import DEFAULT_TASKS, STAGE_ORDER, stage_index
from partner_onboarding.onboarding.state_machine import direction

logger = logging.getLogger(__name__)


def _audit(db: Session, partner_id: str, action: str, actor: Optional[str], payload: Dict[str, Any]) -> None:
    db.add(AuditLog(partner_id=partner_id, actor=actor, action=action, payload_json=payload))


def _recompute(onboarding: PartnerOnboarding) -> None:
    onboarding.overall_progress = overall_progress(onboarding.stage_map, onboarding.current_stage)


def start_onboarding(
    db: Session,
    partner_id: str,
    started_at: Optional[datetime] = None,
    expected_completion_date: Optional[datetime] = None,
    assignees: Optional[Dict[OnboardingStage, str]] = None,
    actor: Optional[str] = None,
) -> PartnerOnboarding:
    """
    Create the onboarding record for a partner entering onboarding.
    Deterministic: outreach in progress, every other stage pending, default checklists.
    """
    if db.get(PartnerOnboarding, partner_id) is not None:
        raise ConflictError(
            f"Partner {partner_id} is already onboarding",
            details={"partner_id": partner_id},
        )

    started_at = started_at or datetime.utcnow()
    if expected_completion_date is None:
        expected_completion_date = started_at + timedelta(days=settings.ONBOARDING_TARGET_DAYS)
    assignees = assignees or {}

    onboarding = PartnerOnboarding(
        partner_id=partner_id,
        current_stage=OnboardingStage.OUTREACH,
        started_at=started_at,
        expected_completion_date=expected_completion_date,
        last_activity=started_at,
    )
    for position, stage in enumerate(STAGE_ORDER):
        first = stage == OnboardingStage.OUTREACH
        row = OnboardingStageState(
            stage=stage,
            position=position,
            status=StageStatus.IN_PROGRESS if first else StageStatus.PENDING,
            started_at=started_at if first else None,
            assigned_to=assignees.get(stage),
        )
        row.tasks = [
            OnboardingTask(position=i, title=title, required=required, completed=False)
            for i, (title, required) in enumerate(DEFAULT_TASKS[stage])
        ]
        onboarding.stages.append(row)
    _recompute(onboarding)

    db.add(onboarding)
    _audit(db, partner_id, "ONBOARDING_STARTED", actor, {"started_at": started_at.isoformat()})
    db.commit()
    db.refresh(onboarding)
    logger.info("start_onboarding: partner=%s", partner_id, extra={"partner_id": partner_id})
    return onboarding


def get_onboarding(db: Session, partner_id: str, for_update: bool = False) -> PartnerOnboarding:
    query = db.query(PartnerOnboarding).filter(PartnerOnboarding.partner_id == partner_id)
    if for_update:
        query = query.with_for_update()
    onboarding = query.first()
    if onboarding is None:
        raise NotFoundError("Partner onboarding", partner_id)
    return onboarding


def apply_stage_change(
    db: Session,
    partner_id: str,
    new_stage: OnboardingStage,
    actor: Optional[str] = None,
    reason: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    commit: bool = True,
) -> PartnerOnboarding:
    """
    Move the partner to new_stage unconditionally. Callers decide beforehand whether
    the move is allowed (see onboarding.state_machine.classify).

    Earlier stages are completed (with their required tasks), new_stage starts unless
    already completed, later stages keep whatever status they had.
    """
    onboarding = get_onboarding(db, partner_id, for_update=True)
    now = datetime.utcnow()
    previous_stage = onboarding.current_stage
    target_index = stage_index(new_stage)

    for row in onboarding.stages:
        idx = stage_index(row.stage)
        if idx < target_index and row.status != StageStatus.COMPLETED:
            row.status = StageStatus.COMPLETED
            row.started_at = row.started_at or now
            row.completed_at = now
            for task in row.tasks:
                if task.required and not task.completed:
                    task.completed = True
                    task.completed_at = now
        elif idx == target_index and row.status != StageStatus.COMPLETED:
            row.status = StageStatus.IN_PROGRESS
            row.started_at = row.started_at or now

    onboarding.current_stage = new_stage
    onboarding.last_activity = now
    _recompute(onboarding)

    _audit(
        db,
        partner_id,
        "STAGE_TRANSITION",
        actor,
        {
            "from_stage": previous_stage.value,
            "to_stage": new_stage.value,
            "direction": direction(previous_stage, new_stage),
            "reason": reason,
            **(metadata or {}),
        },
    )
    if commit:
        db.commit()
        db.refresh(onboarding)
    else:
        db.flush()
    logger.info(
        "apply_stage_change: partner=%s %s -> %s",
        partner_id, previous_stage.value, new_stage.value,
        extra={"partner_id": partner_id, "from_stage": previous_stage.value, "to_stage": new_stage.value},
    )
    return onboarding


def toggle_task(
    db: Session,
    partner_id: str,
    stage: OnboardingStage,
    task_id: UUID,
    completed: bool,
    actor: Optional[str] = None,
) -> PartnerOnboarding:
    """Check or uncheck one task, then recompute its stage status and the overall progress."""
    onboarding = get_onboarding(db, partner_id, for_update=True)
    try:
        row = onboarding.stage_state(stage)
    except KeyError:
        raise NotFoundError("Onboarding stage", stage.value, details={"partner_id": partner_id})
    task = next((t for t in row.tasks if t.id == task_id), None)
    if task is None:
        raise NotFoundError(
            "Onboarding task",
            str(task_id),
            details={"partner_id": partner_id, "stage": stage.value},
        )

    now = datetime.utcnow()
    task.completed = completed
    task.completed_at = now if completed else None

    if required_tasks_done(row):
        if row.status != StageStatus.COMPLETED:
            row.status = StageStatus.COMPLETED
            row.started_at = row.started_at or now
            row.completed_at = now
    elif row.status == StageStatus.COMPLETED:
        row.status = StageStatus.IN_PROGRESS
        row.completed_at = None
    elif row.status == StageStatus.PENDING and any(t.completed for t in row.tasks):
        row.status = StageStatus.IN_PROGRESS
        row.started_at = row.started_at or now

    onboarding.last_activity = now
    _recompute(onboarding)
    _audit(
        db,
        partner_id,
        "TASK_TOGGLED",
        actor,
        {"stage": stage.value, "task_id": str(task_id), "completed": completed, "stage_status": row.status.value},
    )
    db.commit()
    db.refresh(onboarding)
    logger.info(
        "toggle_task: partner=%s stage=%s task=%s completed=%s",
        partner_id, stage.value, task_id, completed,
        extra={"partner_id": partner_id, "stage": stage.value},
    )
    return onboarding


def list_onboarding(
    db: Session,
    status: Optional[StageStatus] = None,
    stage: Optional[OnboardingStage] = None,
    skip: int = 0,
    limit: int = 50,
) -> List[PartnerOnboarding]:
    """List onboarding records, most recent activity first. status is the partner-level status."""
    query = db.query(PartnerOnboarding)
    if stage:
        query = query.filter(PartnerOnboarding.current_stage == stage)
    query = query.order_by(PartnerOnboarding.last_activity.desc())
    if status is None:
        return query.offset(skip).limit(limit).all()
    # Partner-level status is derived, so filter after loading.
    matching = [o for o in query.all() if partner_status(o.stage_map, o.current_stage) == status]
    return matching[skip: skip + limit]


def onboarding_summary(db: Session) -> Dict[str, Any]:
    records = db.query(PartnerOnboarding).all()
    by_status = Counter(partner_status(o.stage_map, o.current_stage).value for o in records)
    by_stage = Counter(o.current_stage.value for o in records)
    pending = (
        db.query(StageReversalRequest)
        .filter(StageReversalRequest.status == ReversalStatus.PENDING)
        .count()
    )
    return {
        "total": len(records),
        "by_status": {s.value: by_status.get(s.value, 0) for s in StageStatus},
        "by_stage": {s.value: by_stage.get(s.value, 0) for s in STAGE_ORDER},
        "pending_approvals": pending,
    }


def list_history(db: Session, partner_id: str, limit: int = 100) -> List[AuditLog]:
    get_onboarding(db, partner_id)
    return (
        db.query(AuditLog)
        .filter(AuditLog.partner_id == partner_id)
        .order_by(AuditLog.created_at.desc())
        .limit(limit)
        .all()
    )
