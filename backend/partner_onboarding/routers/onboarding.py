"""Partner onboarding API: stage catalog, onboarding records, stage changes and task checklists."""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from partner_onboarding.db import get_db
from partner_onboarding.models import OnboardingStage, PartnerOnboarding, StageStatus
from partner_onboarding.onboarding.progress import partner_status, stage_progress
from partner_onboarding.onboarding.stages import STAGES, metadata
from partner_onboarding.schemas import (
    AuditLogResponse,
    OnboardingStageResponse,
    OnboardingSummaryResponse,
    OnboardingTaskResponse,
    PartnerOnboardingListItem,
    PartnerOnboardingResponse,
    StageCatalogEntry,
    StageChangeRequest,
    StageChangeResponse,
    StartOnboardingRequest,
    TaskToggleRequest,
)
from partner_onboarding.services import onboarding_service, workflow_service

router = APIRouter(tags=["onboarding"])


def serialize_onboarding(onboarding: PartnerOnboarding) -> PartnerOnboardingResponse:
    stage_map = onboarding.stage_map
    stages = {}
    for row in onboarding.stages:
        meta = metadata(row.stage)
        stages[row.stage.value] = OnboardingStageResponse(
            stage=row.stage,
            title=meta["title"],
            description=meta["description"],
            status=row.status,
            progress=stage_progress(row),
            started_at=row.started_at,
            completed_at=row.completed_at,
            assigned_to=row.assigned_to,
            tasks=[OnboardingTaskResponse.model_validate(t) for t in row.tasks],
        )
    return PartnerOnboardingResponse(
        partner_id=onboarding.partner_id,
        current_stage=onboarding.current_stage,
        overall_progress=onboarding.overall_progress,
        status=partner_status(stage_map, onboarding.current_stage),
        started_at=onboarding.started_at,
        expected_completion_date=onboarding.expected_completion_date,
        last_activity=onboarding.last_activity,
        stages=stages,
    )


def _list_item(onboarding: PartnerOnboarding) -> PartnerOnboardingListItem:
    return PartnerOnboardingListItem(
        partner_id=onboarding.partner_id,
        current_stage=onboarding.current_stage,
        overall_progress=onboarding.overall_progress,
        status=partner_status(onboarding.stage_map, onboarding.current_stage),
        started_at=onboarding.started_at,
        expected_completion_date=onboarding.expected_completion_date,
        last_activity=onboarding.last_activity,
    )


@router.get("/stages", response_model=List[StageCatalogEntry])
def list_stages():
    """Ordered onboarding stages with display metadata."""
    return [StageCatalogEntry(**s) for s in STAGES]


@router.get("/onboarding", response_model=List[PartnerOnboardingListItem])
def list_onboarding(
    status_filter: Optional[StageStatus] = Query(None, alias="status"),
    stage: Optional[OnboardingStage] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    records = onboarding_service.list_onboarding(db, status=status_filter, stage=stage, skip=skip, limit=limit)
    return [_list_item(o) for o in records]


@router.get("/onboarding/summary", response_model=OnboardingSummaryResponse)
def get_onboarding_summary(db: Session = Depends(get_db)):
    """Counts behind the onboarding dashboard cards."""
    return onboarding_service.onboarding_summary(db)


@router.post(
    "/partners/{partner_id}/onboarding",
    response_model=PartnerOnboardingResponse,
    status_code=status.HTTP_201_CREATED,
)
def start_onboarding(
    partner_id: str,
    body: Optional[StartOnboardingRequest] = None,
    db: Session = Depends(get_db),
):
    body = body or StartOnboardingRequest()
    onboarding = onboarding_service.start_onboarding(
        db,
        partner_id,
        started_at=body.started_at,
        expected_completion_date=body.expected_completion_date,
        assignees=body.assignees,
        actor=body.actor,
    )
    return serialize_onboarding(onboarding)


@router.get("/partners/{partner_id}/onboarding", response_model=PartnerOnboardingResponse)
def get_onboarding(partner_id: str, db: Session = Depends(get_db)):
    return serialize_onboarding(onboarding_service.get_onboarding(db, partner_id))


@router.post("/partners/{partner_id}/onboarding/stage", response_model=StageChangeResponse)
def request_stage_change(
    partner_id: str,
    body: StageChangeRequest,
    db: Session = Depends(get_db),
):
    """Apply a stage change, or submit it for approval when it leaves the onboarded stage."""
    result = workflow_service.request_stage_change(
        db,
        partner_id,
        body.to_stage,
        requested_by=body.requested_by,
        reason=body.reason,
    )
    return StageChangeResponse(
        applied=result.applied,
        from_stage=result.from_stage,
        to_stage=result.to_stage,
        request_id=result.request_id,
        onboarding=serialize_onboarding(result.onboarding),
    )


@router.put(
    "/partners/{partner_id}/onboarding/stages/{stage}/tasks/{task_id}",
    response_model=PartnerOnboardingResponse,
)
def toggle_task(
    partner_id: str,
    stage: OnboardingStage,
    task_id: UUID,
    body: TaskToggleRequest,
    db: Session = Depends(get_db),
):
    onboarding = onboarding_service.toggle_task(
        db, partner_id, stage, task_id, body.completed, actor=body.actor,
    )
    return serialize_onboarding(onboarding)


@router.get("/partners/{partner_id}/onboarding/history", response_model=List[AuditLogResponse])
def get_onboarding_history(
    partner_id: str,
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return onboarding_service.list_history(db, partner_id, limit=limit)
