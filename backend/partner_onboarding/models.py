import enum
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Enum, Text, Integer, JSON, Uuid, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid
from partner_onboarding.db import Base


class OnboardingStage(str, enum.Enum):
    OUTREACH = "outreach"
    PRODUCT_OVERVIEW = "product-overview"
    PARTNER_PROGRAM = "partner-program"
    KYC = "kyc"
    AGREEMENT = "agreement"
    ONBOARDED = "onboarded"


class StageStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"


class ReversalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class PartnerOnboarding(Base):
    """Onboarding record for one partner. Partners themselves live outside this service."""
    __tablename__ = "partner_onboarding"

    partner_id = Column(String(64), primary_key=True)
    current_stage = Column(Enum(OnboardingStage), default=OnboardingStage.OUTREACH, nullable=False)
    overall_progress = Column(Integer, default=0, nullable=False)
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expected_completion_date = Column(DateTime, nullable=True)
    last_activity = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    stages = relationship(
        "OnboardingStageState",
        back_populates="onboarding",
        cascade="all, delete-orphan",
        order_by="OnboardingStageState.position",
    )
    reversal_requests = relationship("StageReversalRequest", back_populates="onboarding")

    def stage_state(self, stage: OnboardingStage) -> "OnboardingStageState":
        for row in self.stages:
            if row.stage == stage:
                return row
        raise KeyError(stage)

    @property
    def stage_map(self) -> dict:
        return {row.stage: row for row in self.stages}


class OnboardingStageState(Base):
    __tablename__ = "onboarding_stage_states"
    __table_args__ = (
        UniqueConstraint("partner_id", "stage", name="uq_onboarding_stage_states_partner_stage"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    partner_id = Column(String(64), ForeignKey("partner_onboarding.partner_id"), nullable=False, index=True)
    stage = Column(Enum(OnboardingStage), nullable=False)
    position = Column(Integer, nullable=False)  # catalog ordinal, 0..5
    status = Column(Enum(StageStatus), default=StageStatus.PENDING, nullable=False)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    assigned_to = Column(String(255), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    onboarding = relationship("PartnerOnboarding", back_populates="stages")
    tasks = relationship(
        "OnboardingTask",
        back_populates="stage_state",
        cascade="all, delete-orphan",
        order_by="OnboardingTask.position",
    )


class OnboardingTask(Base):
    __tablename__ = "onboarding_tasks"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    stage_state_id = Column(Uuid(as_uuid=True), ForeignKey("onboarding_stage_states.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    required = Column(Boolean, default=True, nullable=False)
    completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    assigned_to = Column(String(255), nullable=True)

    # Relationships
    stage_state = relationship("OnboardingStageState", back_populates="tasks")


class StageReversalRequest(Base):
    """Request to move a partner out of the onboarded stage; applied only once approved."""
    __tablename__ = "partner_stage_reversal_requests"
    __table_args__ = (
        Index("ix_partner_stage_reversal_requests_partner_status", "partner_id", "status"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    partner_id = Column(String(64), ForeignKey("partner_onboarding.partner_id"), nullable=False, index=True)
    from_stage = Column(Enum(OnboardingStage), nullable=False)
    to_stage = Column(Enum(OnboardingStage), nullable=False)
    requested_by = Column(String(255), nullable=False)
    requested_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    approved_by = Column(String(255), nullable=True)  # set on approval and on denial
    approved_at = Column(DateTime, nullable=True)
    status = Column(Enum(ReversalStatus), default=ReversalStatus.PENDING, nullable=False, index=True)
    reason = Column(Text, nullable=False)
    comments = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    onboarding = relationship("PartnerOnboarding", back_populates="reversal_requests")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    recipient = Column(String(255), nullable=False, index=True)  # user id or audience name
    type = Column(String(100), nullable=False)
    message = Column(Text, nullable=False)
    partner_id = Column(String(64), nullable=True)
    approval_id = Column(Uuid(as_uuid=True), nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    partner_id = Column(String(64), nullable=True, index=True)
    actor = Column(String(255), nullable=True)
    action = Column(String(100), nullable=False)
    payload_json = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
