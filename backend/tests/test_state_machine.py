"""
Unit tests for stage transition classification: which moves apply directly and
which go through the reversal approval ledger.
"""
import itertools

import pytest

from partner_onboarding.models import OnboardingStage
from partner_onboarding.onboarding.stages import STAGE_ORDER
from partner_onboarding.onboarding.state_machine import (
    TransitionKind,
    classify,
    direction,
    requires_approval,
)


@pytest.mark.unit
@pytest.mark.parametrize("to_stage", [s for s in STAGE_ORDER if s != OnboardingStage.ONBOARDED])
def test_leaving_onboarded_requires_approval(to_stage):
    assert classify(OnboardingStage.ONBOARDED, to_stage) == TransitionKind.REQUIRES_APPROVAL
    assert requires_approval(OnboardingStage.ONBOARDED, to_stage) is True


@pytest.mark.unit
def test_all_other_pairs_are_direct():
    for from_stage, to_stage in itertools.product(STAGE_ORDER, STAGE_ORDER):
        if from_stage == OnboardingStage.ONBOARDED and to_stage != OnboardingStage.ONBOARDED:
            continue
        assert classify(from_stage, to_stage) == TransitionKind.DIRECT, (from_stage, to_stage)


@pytest.mark.unit
def test_skips_and_backward_moves_before_onboarded_are_direct():
    assert classify(OnboardingStage.OUTREACH, OnboardingStage.KYC) == TransitionKind.DIRECT
    assert classify(OnboardingStage.KYC, OnboardingStage.OUTREACH) == TransitionKind.DIRECT
    assert classify(OnboardingStage.AGREEMENT, OnboardingStage.ONBOARDED) == TransitionKind.DIRECT
    assert classify(OnboardingStage.ONBOARDED, OnboardingStage.ONBOARDED) == TransitionKind.DIRECT


@pytest.mark.unit
def test_direction():
    assert direction(OnboardingStage.OUTREACH, OnboardingStage.KYC) == "forward"
    assert direction(OnboardingStage.ONBOARDED, OnboardingStage.AGREEMENT) == "backward"
    assert direction(OnboardingStage.KYC, OnboardingStage.KYC) == "none"
