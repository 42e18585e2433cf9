"""
Progress numbers derived from stage statuses and task checklists. Pure; never mutates.

Each stage owns a slot of the 0..100 range. Completed earlier stages fill their
slots; the current stage fills its slot in proportion to its own progress but
always stops one point short of the next slot, so the overall number strictly
increases with the stage index and only reaches 100 when the final stage is
completed.
"""
from typing import Any, Mapping

from partner_onboarding.models import OnboardingStage, StageStatus
from partner_onboarding.onboarding.stages import STAGE_ORDER, TERMINAL_STAGE, stage_index

_SLOT_BASES = [(100 * i) // len(STAGE_ORDER) for i in range(len(STAGE_ORDER) + 1)]


def stage_progress(stage_data: Any) -> int:
    """Percentage of one stage: 100 when completed, 0 when pending, else share of tasks done."""
    if stage_data.status == StageStatus.COMPLETED:
        return 100
    if stage_data.status == StageStatus.PENDING:
        return 0
    tasks = list(stage_data.tasks or [])
    if not tasks:
        return 0
    done = sum(1 for t in tasks if t.completed)
    return int(round(100 * done / len(tasks)))


def overall_progress(stages: Mapping[OnboardingStage, Any], current_stage: OnboardingStage) -> int:
    current = stages[current_stage]
    if current_stage == TERMINAL_STAGE and current.status == StageStatus.COMPLETED:
        return 100
    i = stage_index(current_stage)
    base, next_base = _SLOT_BASES[i], _SLOT_BASES[i + 1]
    in_slot = (stage_progress(current) * (next_base - base - 1)) // 100
    return max(0, min(99, base + in_slot))


def partner_status(stages: Mapping[OnboardingStage, Any], current_stage: OnboardingStage) -> StageStatus:
    """Single status for list views: the current stage's status, completed once fully onboarded."""
    current = stages[current_stage]
    if current_stage == TERMINAL_STAGE and current.status == StageStatus.COMPLETED:
        return StageStatus.COMPLETED
    if current.status == StageStatus.COMPLETED:
        # Finished the current stage but not yet moved on.
        return StageStatus.IN_PROGRESS
    return current.status


def required_tasks_done(stage_data: Any) -> bool:
    return all(t.completed for t in (stage_data.tasks or []) if t.required)
