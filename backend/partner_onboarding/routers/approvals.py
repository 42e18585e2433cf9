"""Stage reversal approvals: review queue and approve/deny decisions."""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from partner_onboarding.db import get_db
from partner_onboarding.routers.onboarding import serialize_onboarding
from partner_onboarding.schemas import (
    CommentsUpdate,
    DecisionRequest,
    DecisionResponse,
    StageReversalRequestResponse,
)
from partner_onboarding.services import approval_service, onboarding_service, workflow_service

router = APIRouter(tags=["approvals"])


@router.get("/stage-reversal-requests", response_model=List[StageReversalRequestResponse])
def list_pending_approvals(
    partner_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Pending requests, newest first."""
    return approval_service.list_pending_requests(db, partner_id=partner_id)


@router.get("/stage-reversal-requests/{request_id}", response_model=StageReversalRequestResponse)
def get_stage_reversal_request(request_id: UUID, db: Session = Depends(get_db)):
    return approval_service.get_request(db, request_id)


@router.get(
    "/partners/{partner_id}/stage-reversal-requests",
    response_model=List[StageReversalRequestResponse],
)
def list_partner_requests(partner_id: str, db: Session = Depends(get_db)):
    onboarding_service.get_onboarding(db, partner_id)
    return approval_service.list_requests_for_partner(db, partner_id)


@router.post("/stage-reversal-requests/{request_id}/decision", response_model=DecisionResponse)
def decide_stage_reversal(
    request_id: UUID,
    body: DecisionRequest,
    db: Session = Depends(get_db),
):
    """Approve or deny. Approval moves the partner to the requested stage."""
    result = workflow_service.decide(
        db,
        request_id,
        body.decision,
        approved_by=body.approved_by,
        comments=body.comments,
    )
    return DecisionResponse(
        request=StageReversalRequestResponse.model_validate(result.request),
        applied=result.applied,
        onboarding=serialize_onboarding(result.onboarding),
    )


@router.patch("/stage-reversal-requests/{request_id}/comments", response_model=StageReversalRequestResponse)
def update_request_comments(
    request_id: UUID,
    body: CommentsUpdate,
    db: Session = Depends(get_db),
):
    return approval_service.update_comments(db, request_id, body.comments)
