"""Intake form completion: the trigger that feeds progress and achievements."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from anuva.db.models import IntakeForm
from anuva.gamification.achievement_evaluator import (
    AchievementEvaluator,
    AchievementTransition,
    TransitionKind,
)
from anuva.gamification.progress_tracker import update_stats
from anuva.gamification.repository import GamificationRepository, ProgressSnapshot
from anuva.intake.repository import IntakeFormRepository

logger = logging.getLogger(__name__)

UNLOCK_CHANNEL = "pubsub:achievement_unlocked"


class FormNotFoundError(Exception):
    """No form with that id belongs to the user."""


class FormAlreadyCompletedError(Exception):
    """The form was completed before; completing again must not award points twice."""


@dataclass(frozen=True)
class CompletionResult:
    form: IntakeForm
    progress: ProgressSnapshot
    transitions: list[AchievementTransition]

    @property
    def unlocked(self) -> list[str]:
        return [t.badge_id for t in self.transitions if t.kind is TransitionKind.UNLOCKED]


async def complete_intake_form(
    forms: IntakeFormRepository,
    gamification: GamificationRepository,
    evaluator: AchievementEvaluator,
    user_id: str,
    form_id: int,
    points: int = 50,
    max_attempts: int = 3,
    now: datetime | None = None,
) -> CompletionResult:
    """Complete a form, then fold it into progress, then sync achievements.

    The order matters: achievements are evaluated against the snapshot the
    tracker just wrote. Tracker failures propagate; evaluator failures are
    contained per achievement.

    Raises:
        FormNotFoundError: Unknown form or not owned by the user.
        FormAlreadyCompletedError: Form was already completed.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    form = await forms.get_for_user(user_id, form_id)
    if form is None:
        msg = f"Intake form {form_id} not found"
        raise FormNotFoundError(msg)
    if form.status == "completed":
        msg = f"Intake form {form_id} is already completed"
        raise FormAlreadyCompletedError(msg)

    completed = await forms.mark_completed(form, now)
    if completed is None:
        msg = f"Intake form {form_id} is already completed"
        raise FormAlreadyCompletedError(msg)
    form = completed
    progress = await update_stats(
        gamification, user_id,
        forms_completed_delta=1,
        points_delta=points,
        now=now,
        max_attempts=max_attempts,
    )
    transitions = await evaluator.evaluate_and_sync(gamification, user_id, progress, now=now)

    return CompletionResult(form=form, progress=progress, transitions=transitions)


async def publish_unlocks(redis: object, user_id: str, badge_ids: list[str]) -> None:
    """Broadcast unlocked achievements for live dashboards. Best-effort."""
    if redis is None or not badge_ids:
        return
    for badge_id in badge_ids:
        try:
            await redis.publish(  # type: ignore[attr-defined]
                UNLOCK_CHANNEL,
                json.dumps({"user_id": user_id, "badge_id": badge_id}),
            )
        except Exception:
            logger.warning("Failed to publish achievement_unlocked for %s", badge_id, exc_info=True)
