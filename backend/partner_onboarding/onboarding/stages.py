"""
Onboarding stage catalog. Order of STAGES is the canonical order; it decides
what counts as moving forward or backward.
"""
from typing import Any, Dict, List

from partner_onboarding.models import OnboardingStage

STAGES: List[Dict[str, Any]] = [
    {
        "stage": OnboardingStage.OUTREACH,
        "order": 0,
        "title": "Outreach",
        "description": "Initial contact and lead qualification",
    },
    {
        "stage": OnboardingStage.PRODUCT_OVERVIEW,
        "order": 1,
        "title": "Product Overview",
        "description": "Product demonstration and feature walkthrough",
    },
    {
        "stage": OnboardingStage.PARTNER_PROGRAM,
        "order": 2,
        "title": "Partner Program",
        "description": "Program details, benefits, and requirements",
    },
    {
        "stage": OnboardingStage.KYC,
        "order": 3,
        "title": "KYC",
        "description": "Documentation, verification, and compliance",
    },
    {
        "stage": OnboardingStage.AGREEMENT,
        "order": 4,
        "title": "Agreement",
        "description": "Contract negotiation and signing",
    },
    {
        "stage": OnboardingStage.ONBOARDED,
        "order": 5,
        "title": "Onboarded",
        "description": "Final setup and activation complete",
    },
]

STAGE_ORDER: List[OnboardingStage] = [s["stage"] for s in STAGES]
STAGE_TO_ORDER = {s["stage"]: s["order"] for s in STAGES}
TERMINAL_STAGE = OnboardingStage.ONBOARDED

# Checklist every partner starts with: (title, required)
DEFAULT_TASKS: Dict[OnboardingStage, List[tuple]] = {
    OnboardingStage.OUTREACH: [
        ("Initial contact made", True),
        ("Lead qualification completed", True),
        ("Discovery call scheduled", False),
    ],
    OnboardingStage.PRODUCT_OVERVIEW: [
        ("Product demo conducted", True),
        ("Feature walkthrough completed", True),
        ("Use case discussion", False),
    ],
    OnboardingStage.PARTNER_PROGRAM: [
        ("Program benefits explained", True),
        ("Requirements reviewed", True),
        ("Partner tier determined", True),
    ],
    OnboardingStage.KYC: [
        ("Business license verification", True),
        ("Tax documentation submitted", True),
        ("Reference checks", True),
        ("Compliance review", True),
    ],
    OnboardingStage.AGREEMENT: [
        ("Contract template prepared", True),
        ("Terms negotiation", True),
        ("Digital signature", True),
    ],
    OnboardingStage.ONBOARDED: [
        ("System access setup", True),
        ("Training completed", True),
        ("First transaction", False),
    ],
}


def ordered_stages() -> List[OnboardingStage]:
    return list(STAGE_ORDER)


def metadata(stage: OnboardingStage) -> Dict[str, str]:
    """Display title and description for a stage."""
    entry = STAGES[STAGE_TO_ORDER[stage]]
    return {"title": entry["title"], "description": entry["description"]}


def stage_index(stage: OnboardingStage) -> int:
    return STAGE_TO_ORDER[stage]


def stages_before(stage: OnboardingStage) -> List[OnboardingStage]:
    """Stages strictly earlier than `stage` in catalog order."""
    return STAGE_ORDER[: STAGE_TO_ORDER[stage]]
