from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from partner_onboarding.db import get_db
from partner_onboarding.schemas import NotificationResponse
from partner_onboarding.services import notification_service
from typing import List
from uuid import UUID

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationResponse])
def get_notifications(
    recipient: str = Query(..., min_length=1),
    unread_only: bool = False,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
):
    """Get notifications for a user id or audience (e.g. approvers)"""
    return notification_service.list_notifications(
        db, recipient, unread_only=unread_only, skip=skip, limit=limit
    )


@router.put("/{notification_id}/read", response_model=NotificationResponse)
def mark_notification_read(notification_id: UUID, db: Session = Depends(get_db)):
    """Mark a notification as read"""
    return notification_service.mark_read(db, notification_id)


@router.put("/read-all")
def mark_all_read(recipient: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    """Mark all notifications for a recipient as read"""
    updated = notification_service.mark_all_read(db, recipient)
    return {"success": True, "updated": updated}
