from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any
from datetime import datetime
from uuid import UUID
from partner_onboarding.models import OnboardingStage, StageStatus, ReversalStatus


# ============= Stage Catalog Schemas =============
class StageCatalogEntry(BaseModel):
    stage: OnboardingStage
    order: int
    title: str
    description: str


# ============= Onboarding Schemas =============
class OnboardingTaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: Optional[str] = None
    completed: bool
    required: bool
    completed_at: Optional[datetime] = None
    assigned_to: Optional[str] = None


class OnboardingStageResponse(BaseModel):
    stage: OnboardingStage
    title: str
    description: str
    status: StageStatus
    progress: int
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    assigned_to: Optional[str] = None
    tasks: List[OnboardingTaskResponse]


class PartnerOnboardingResponse(BaseModel):
    partner_id: str
    current_stage: OnboardingStage
    overall_progress: int = Field(..., ge=0, le=100)
    status: StageStatus
    started_at: datetime
    expected_completion_date: Optional[datetime] = None
    last_activity: datetime
    stages: Dict[str, OnboardingStageResponse]  # keyed by stage value, catalog order


class PartnerOnboardingListItem(BaseModel):
    partner_id: str
    current_stage: OnboardingStage
    overall_progress: int
    status: StageStatus
    started_at: datetime
    expected_completion_date: Optional[datetime] = None
    last_activity: datetime


class OnboardingSummaryResponse(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_stage: Dict[str, int]
    pending_approvals: int


class StartOnboardingRequest(BaseModel):
    started_at: Optional[datetime] = None
    expected_completion_date: Optional[datetime] = None
    assignees: Optional[Dict[OnboardingStage, str]] = None
    actor: Optional[str] = None


class StageChangeRequest(BaseModel):
    to_stage: OnboardingStage
    requested_by: str = Field(..., min_length=1, max_length=255)
    reason: Optional[str] = None


class StageChangeResponse(BaseModel):
    applied: bool
    from_stage: OnboardingStage
    to_stage: OnboardingStage
    request_id: Optional[UUID] = None
    onboarding: PartnerOnboardingResponse


class TaskToggleRequest(BaseModel):
    completed: bool
    actor: Optional[str] = None


# ============= Stage Reversal Schemas =============
class StageReversalRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    partner_id: str
    from_stage: OnboardingStage
    to_stage: OnboardingStage
    requested_by: str
    requested_at: datetime
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    status: ReversalStatus
    reason: str
    comments: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class DecisionRequest(BaseModel):
    decision: ReversalStatus
    approved_by: str = Field(..., min_length=1, max_length=255)
    comments: Optional[str] = None


class DecisionResponse(BaseModel):
    request: StageReversalRequestResponse
    applied: bool
    onboarding: PartnerOnboardingResponse


class CommentsUpdate(BaseModel):
    comments: Optional[str] = None


# ============= Notification / Audit Schemas =============
class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    recipient: str
    type: str
    message: str
    partner_id: Optional[str] = None
    approval_id: Optional[UUID] = None
    is_read: bool
    created_at: datetime


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    partner_id: Optional[str] = None
    actor: Optional[str] = None
    action: str
    payload_json: Dict[str, Any]
    created_at: datetime
