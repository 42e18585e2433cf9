"""
In-app notifications for stage reversal requests. Delivery beyond the
notifications table (email, chat) is left to whoever reads it.
"""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from partner_onboarding.config import settings
from partner_onboarding.exceptions import NotFoundError
from partner_onboarding.models import Notification, StageReversalRequest
from partner_onboarding.onboarding.stages import metadata

logger = logging.getLogger(__name__)

TYPE_REVERSAL_REQUESTED = "STAGE_REVERSAL_REQUESTED"
TYPE_REVERSAL_RESOLVED = "STAGE_REVERSAL_RESOLVED"


class NotificationService:
    """Writes notification rows; injected into the workflow so tests can swap it."""

    def __init__(self, approvers_recipient: Optional[str] = None):
        self.approvers_recipient = approvers_recipient or settings.APPROVER_NOTIFICATION_RECIPIENT

    def notify_approvers(self, db: Session, request: StageReversalRequest) -> Notification:
        message = (
            f"Partner {request.partner_id}: {request.requested_by} requests moving from "
            f"{metadata(request.from_stage)['title']} to {metadata(request.to_stage)['title']}. "
            f"Reason: {request.reason}"
        )
        return self._create(db, self.approvers_recipient, TYPE_REVERSAL_REQUESTED, message, request)

    def notify_requester(self, db: Session, request: StageReversalRequest) -> Notification:
        message = (
            f"Your request to move partner {request.partner_id} to "
            f"{metadata(request.to_stage)['title']} was {request.status.value} by {request.approved_by}."
        )
        if request.comments:
            message += f" Comments: {request.comments}"
        return self._create(db, request.requested_by, TYPE_REVERSAL_RESOLVED, message, request)

    def _create(
        self,
        db: Session,
        recipient: str,
        type_: str,
        message: str,
        request: StageReversalRequest,
    ) -> Notification:
        notification = Notification(
            recipient=recipient,
            type=type_,
            message=message,
            partner_id=request.partner_id,
            approval_id=request.id,
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)
        logger.info(
            "notification created: %s -> %s",
            type_, recipient,
            extra={"partner_id": request.partner_id, "approval_id": str(request.id)},
        )
        return notification


notification_service = NotificationService()


def list_notifications(
    db: Session,
    recipient: str,
    unread_only: bool = False,
    skip: int = 0,
    limit: int = 50,
) -> List[Notification]:
    query = db.query(Notification).filter(Notification.recipient == recipient)
    if unread_only:
        query = query.filter(Notification.is_read == False)  # noqa: E712
    return query.order_by(Notification.created_at.desc()).offset(skip).limit(limit).all()


def mark_read(db: Session, notification_id: UUID) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError("Notification", str(notification_id))
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_read(db: Session, recipient: str) -> int:
    count = (
        db.query(Notification)
        .filter(Notification.recipient == recipient, Notification.is_read == False)  # noqa: E712
        .update({"is_read": True}, synchronize_session=False)
    )
    db.commit()
    return count
