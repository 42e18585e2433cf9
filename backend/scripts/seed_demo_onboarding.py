"""
Seed a handful of partners at different onboarding stages, plus one pending
stage reversal request, so the dashboard has something to show.

Re-running is safe: partners that already have an onboarding record are skipped.

    cd backend && python -m scripts.seed_demo_onboarding
"""
from datetime import datetime, timedelta

from partner_onboarding.db import Base, SessionLocal, engine
from partner_onboarding.exceptions import ConflictError
from partner_onboarding.models import OnboardingStage
from partner_onboarding.services import approval_service, onboarding_service, workflow_service

DEMO_START = datetime(2026, 1, 5, 9, 0, 0)

# (partner_id, stage to move to, stages whose required tasks are ticked)
PARTNERS = [
    ("demo-techcorp", OnboardingStage.OUTREACH, []),
    ("demo-brightpath", OnboardingStage.PRODUCT_OVERVIEW, [OnboardingStage.PRODUCT_OVERVIEW]),
    ("demo-northwind", OnboardingStage.KYC, []),
    ("demo-globex", OnboardingStage.AGREEMENT, []),
    ("demo-initech", OnboardingStage.ONBOARDED, [OnboardingStage.ONBOARDED]),
    ("demo-umbrella", OnboardingStage.ONBOARDED, [OnboardingStage.ONBOARDED]),
]

ASSIGNEES = {
    OnboardingStage.OUTREACH: "sales@demo.local",
    OnboardingStage.KYC: "compliance@demo.local",
    OnboardingStage.AGREEMENT: "legal@demo.local",
}

# Partner left with a pending reversal request
REVERSAL = ("demo-umbrella", OnboardingStage.AGREEMENT, "Contract terms under renegotiation")


def _tick_required(db, partner_id, stage):
    onboarding = onboarding_service.get_onboarding(db, partner_id)
    for task in list(onboarding.stage_state(stage).tasks):
        if task.required and not task.completed:
            onboarding_service.toggle_task(db, partner_id, stage, task.id, True, actor="seed")


def main() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    created = 0
    skipped = 0
    try:
        for offset, (partner_id, stage, ticked) in enumerate(PARTNERS):
            try:
                onboarding_service.start_onboarding(
                    db,
                    partner_id,
                    started_at=DEMO_START + timedelta(days=offset),
                    assignees=ASSIGNEES,
                    actor="seed",
                )
            except ConflictError:
                skipped += 1
                print(f"SKIPPED: {partner_id} (already onboarding)")
                continue

            if stage != OnboardingStage.OUTREACH:
                onboarding_service.apply_stage_change(db, partner_id, stage, actor="seed")
            for ticked_stage in ticked:
                _tick_required(db, partner_id, ticked_stage)
            created += 1
            print(f"CREATED: {partner_id} ({stage.value})")

        partner_id, to_stage, reason = REVERSAL
        if approval_service.find_pending_for_partner(db, partner_id) is None:
            result = workflow_service.request_stage_change(
                db, partner_id, to_stage, requested_by="seed", reason=reason,
            )
            print(f"REVERSAL REQUESTED: {partner_id} -> {to_stage.value} ({result.request_id})")
    finally:
        db.close()

    print(f"\nDone. Created: {created}, Skipped: {skipped}")


if __name__ == "__main__":
    main()
