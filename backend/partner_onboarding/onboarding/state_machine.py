"""
Stage transition policy: decides whether a requested stage change applies
immediately or has to go through the approval ledger. No side effects.
"""
from __future__ import annotations

import enum

from partner_onboarding.models import OnboardingStage
from partner_onboarding.onboarding.stages import TERMINAL_STAGE, stage_index


class TransitionKind(str, enum.Enum):
    DIRECT = "direct"
    REQUIRES_APPROVAL = "requires_approval"


# Leaving any of these stages is a reversal that needs review
GATED_FROM_STAGES = {TERMINAL_STAGE}


def classify(from_stage: OnboardingStage, to_stage: OnboardingStage) -> TransitionKind:
    """Leaving the onboarded stage requires approval; every other move (skips, backward edits) is direct."""
    if from_stage in GATED_FROM_STAGES and to_stage != from_stage:
        return TransitionKind.REQUIRES_APPROVAL
    return TransitionKind.DIRECT


def requires_approval(from_stage: OnboardingStage, to_stage: OnboardingStage) -> bool:
    return classify(from_stage, to_stage) == TransitionKind.REQUIRES_APPROVAL


def direction(from_stage: OnboardingStage, to_stage: OnboardingStage) -> str:
    """forward / backward / none, used in audit payloads."""
    delta = stage_index(to_stage) - stage_index(from_stage)
    if delta > 0:
        return "forward"
    if delta < 0:
        return "backward"
    return "none"
