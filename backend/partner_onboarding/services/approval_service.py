"""
Stage reversal request ledger: submission, resolution and listing.
Only one pending request per partner - enforced in code.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from partner_onboarding.exceptions import InvalidStateError, NotFoundError, ValidationError
from partner_onboarding.models import (
    AuditLog,
    OnboardingStage,
    ReversalStatus,
    StageReversalRequest,
)

logger = logging.getLogger(__name__)

RESOLVED_STATUSES = (ReversalStatus.APPROVED, ReversalStatus.DENIED)


def _require_text(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required", details={"field": field})
    return value.strip()


def get_request(db: Session, request_id: UUID) -> StageReversalRequest:
    request = db.get(StageReversalRequest, request_id)
    if request is None:
        raise NotFoundError("Stage reversal request", str(request_id))
    return request


def find_pending_for_partner(db: Session, partner_id: str) -> Optional[StageReversalRequest]:
    return (
        db.query(StageReversalRequest)
        .filter(
            StageReversalRequest.partner_id == partner_id,
            StageReversalRequest.status == ReversalStatus.PENDING,
        )
        .first()
    )


def submit_request(
    db: Session,
    partner_id: str,
    from_stage: OnboardingStage,
    to_stage: OnboardingStage,
    requested_by: str,
    reason: Optional[str],
    commit: bool = True,
) -> StageReversalRequest:
    """Record a pending reversal request. A justification is mandatory."""
    reason = _require_text(reason, "reason")
    requested_by = _require_text(requested_by, "requested_by")

    existing = find_pending_for_partner(db, partner_id)
    if existing is not None:
        raise InvalidStateError(
            f"Partner {partner_id} already has a pending stage change request",
            details={"partner_id": partner_id, "request_id": str(existing.id)},
        )

    now = datetime.utcnow()
    request = StageReversalRequest(
        partner_id=partner_id,
        from_stage=from_stage,
        to_stage=to_stage,
        requested_by=requested_by,
        requested_at=now,
        status=ReversalStatus.PENDING,
        reason=reason,
        created_at=now,
        updated_at=now,
    )
    db.add(request)
    db.add(
        AuditLog(
            partner_id=partner_id,
            actor=requested_by,
            action="STAGE_REVERSAL_REQUESTED",
            payload_json={"from_stage": from_stage.value, "to_stage": to_stage.value, "reason": reason},
        )
    )
    if commit:
        db.commit()
        db.refresh(request)
    else:
        db.flush()
    logger.info(
        "submit_request: partner=%s %s -> %s request=%s",
        partner_id, from_stage.value, to_stage.value, request.id,
        extra={"partner_id": partner_id, "approval_id": str(request.id), "actor": requested_by},
    )
    return request


def resolve_request(
    db: Session,
    request_id: UUID,
    decision: ReversalStatus,
    approved_by: str,
    comments: Optional[str] = None,
    commit: bool = True,
) -> StageReversalRequest:
    """
    Approve or deny a pending request. The status check and the write happen in one
    conditional UPDATE so two reviewers cannot both resolve the same request.
    """
    try:
        decision = ReversalStatus(decision)
    except ValueError:
        decision = None
    if decision not in RESOLVED_STATUSES:
        raise ValidationError(
            "decision must be 'approved' or 'denied'",
            details={"field": "decision"},
        )
    approved_by = _require_text(approved_by, "approved_by")

    now = datetime.utcnow()
    updated = (
        db.query(StageReversalRequest)
        .filter(
            StageReversalRequest.id == request_id,
            StageReversalRequest.status == ReversalStatus.PENDING,
        )
        .update(
            {
                StageReversalRequest.status: decision,
                StageReversalRequest.approved_by: approved_by,
                StageReversalRequest.approved_at: now,
                StageReversalRequest.comments: comments,
                StageReversalRequest.updated_at: now,
            },
            synchronize_session=False,
        )
    )
    if not updated:
        existing = get_request(db, request_id)
        raise InvalidStateError(
            f"Stage reversal request {request_id} is already {existing.status.value}",
            details={"request_id": str(request_id), "status": existing.status.value},
        )

    request = get_request(db, request_id)
    db.refresh(request)
    db.add(
        AuditLog(
            partner_id=request.partner_id,
            actor=approved_by,
            action=f"STAGE_REVERSAL_{decision.value.upper()}",
            payload_json={
                "request_id": str(request_id),
                "from_stage": request.from_stage.value,
                "to_stage": request.to_stage.value,
                "comments": comments,
            },
        )
    )
    if commit:
        db.commit()
        db.refresh(request)
    else:
        db.flush()
    logger.info(
        "resolve_request: request=%s %s by %s",
        request_id, decision.value, approved_by,
        extra={"approval_id": str(request_id), "partner_id": request.partner_id, "status": decision.value, "actor": approved_by},
    )
    return request


def update_comments(db: Session, request_id: UUID, comments: Optional[str]) -> StageReversalRequest:
    """Comments are the only field that may change once a request is resolved."""
    request = get_request(db, request_id)
    request.comments = comments
    request.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(request)
    return request


def list_pending_requests(db: Session, partner_id: Optional[str] = None) -> List[StageReversalRequest]:
    query = db.query(StageReversalRequest).filter(StageReversalRequest.status == ReversalStatus.PENDING)
    if partner_id:
        query = query.filter(StageReversalRequest.partner_id == partner_id)
    return query.order_by(StageReversalRequest.requested_at.desc()).all()


def list_requests_for_partner(db: Session, partner_id: str) -> List[StageReversalRequest]:
    return (
        db.query(StageReversalRequest)
        .filter(StageReversalRequest.partner_id == partner_id)
        .order_by(StageReversalRequest.requested_at.desc())
        .all()
    )
