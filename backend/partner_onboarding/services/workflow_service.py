"""
Stage change workflow: one entry point that applies direct stage changes and
routes gated ones (leaving onboarded) through the reversal request ledger.

    Idle --direct--> StageApplied
    Idle --gated--> PendingApproval --approved--> StageApplied
                                    --denied--> Denied (partner untouched)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from partner_onboarding.exceptions import ValidationError
from partner_onboarding.models import (
    OnboardingStage,
    PartnerOnboarding,
    ReversalStatus,
    StageReversalRequest,
)
from partner_onboarding.onboarding.state_machine import TransitionKind, classify
from partner_onboarding.services import approval_service, onboarding_service
from partner_onboarding.services.notification_service import NotificationService, notification_service

logger = logging.getLogger(__name__)


@dataclass
class StageChangeResult:
    applied: bool
    from_stage: OnboardingStage
    to_stage: OnboardingStage
    onboarding: PartnerOnboarding
    request_id: Optional[UUID] = None


@dataclass
class DecisionResult:
    request: StageReversalRequest
    onboarding: PartnerOnboarding
    applied: bool


def _notify(action, db: Session, request: StageReversalRequest) -> None:
    # The transition is already committed; a failed notification must not undo it.
    try:
        action(db, request)
    except Exception:
        db.rollback()
        logger.exception(
            "notification failed for request %s",
            request.id,
            extra={"approval_id": str(request.id), "partner_id": request.partner_id},
        )


def request_stage_change(
    db: Session,
    partner_id: str,
    to_stage: OnboardingStage,
    requested_by: str,
    reason: Optional[str] = None,
    notifier: Optional[NotificationService] = None,
) -> StageChangeResult:
    notifier = notifier or notification_service
    onboarding = onboarding_service.get_onboarding(db, partner_id)
    from_stage = onboarding.current_stage
    kind = classify(from_stage, to_stage)

    if kind == TransitionKind.DIRECT:
        onboarding = onboarding_service.apply_stage_change(
            db, partner_id, to_stage, actor=requested_by, reason=reason,
        )
        return StageChangeResult(applied=True, from_stage=from_stage, to_stage=to_stage, onboarding=onboarding)

    if reason is None or not reason.strip():
        raise ValidationError(
            "A reason is required to move a partner out of the onboarded stage",
            details={"field": "reason", "partner_id": partner_id, "from_stage": from_stage.value, "to_stage": to_stage.value},
        )
    request = approval_service.submit_request(
        db,
        partner_id=partner_id,
        from_stage=from_stage,
        to_stage=to_stage,
        requested_by=requested_by,
        reason=reason,
    )
    logger.info(
        "request_stage_change: partner=%s %s -> %s routed for approval",
        partner_id, from_stage.value, to_stage.value,
        extra={"partner_id": partner_id, "approval_id": str(request.id)},
    )
    _notify(notifier.notify_approvers, db, request)
    db.refresh(onboarding)
    return StageChangeResult(
        applied=False,
        from_stage=from_stage,
        to_stage=to_stage,
        onboarding=onboarding,
        request_id=request.id,
    )


def decide(
    db: Session,
    request_id: UUID,
    decision: ReversalStatus,
    approved_by: str,
    comments: Optional[str] = None,
    notifier: Optional[NotificationService] = None,
) -> DecisionResult:
    """Resolve a pending request; an approval performs the deferred stage change in the same transaction."""
    notifier = notifier or notification_service
    try:
        request = approval_service.resolve_request(
            db, request_id, decision, approved_by, comments=comments, commit=False,
        )
        applied = request.status == ReversalStatus.APPROVED
        if applied:
            onboarding_service.apply_stage_change(
                db,
                request.partner_id,
                request.to_stage,
                actor=approved_by,
                reason=request.reason,
                metadata={"approval_id": str(request.id), "requested_by": request.requested_by},
                commit=False,
            )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(request)
    onboarding = onboarding_service.get_onboarding(db, request.partner_id)
    _notify(notifier.notify_requester, db, request)
    return DecisionResult(request=request, onboarding=onboarding, applied=applied)
