"""Progress tracker: folds a completed activity into a user's cumulative stats."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from anuva.gamification.levels import compute_level
from anuva.gamification.repository import (
    GamificationRepository,
    ProgressConflictError,
    ProgressSnapshot,
)

logger = logging.getLogger(__name__)

MS_PER_DAY = 86_400_000


def elapsed_days(last_activity: datetime, now: datetime) -> int:
    """Whole days between two instants, floored from elapsed milliseconds.

    Calendar boundaries are ignored: 23 hours across midnight is 0 days,
    25 hours is 1 day.
    """
    elapsed_ms = (now - last_activity) // timedelta(milliseconds=1)
    return elapsed_ms // MS_PER_DAY


def next_streak(existing: ProgressSnapshot | None, now: datetime) -> int:
    """Streak after an activity at `now`."""
    if existing is None or existing.last_activity_date is None:
        return 1

    days = elapsed_days(existing.last_activity_date, now)
    if days == 1:
        return existing.current_streak + 1
    if days > 1:
        return 1
    # Same day (or clock skew): keep the streak, but never report 0 after an activity
    return existing.current_streak or 1


def fold_activity(
    existing: ProgressSnapshot | None,
    user_id: str,
    forms_completed_delta: int,
    points_delta: int,
    now: datetime,
) -> ProgressSnapshot:
    """Pure fold of one activity event into the previous snapshot."""
    base = existing or ProgressSnapshot(user_id=user_id)

    total_forms = base.total_forms_completed + forms_completed_delta
    total_points = base.total_points + points_delta
    experience_points = base.experience_points + points_delta
    current_streak = next_streak(existing, now)

    return ProgressSnapshot(
        user_id=user_id,
        total_forms_completed=total_forms,
        current_streak=current_streak,
        longest_streak=max(current_streak, base.longest_streak),
        total_points=total_points,
        level=compute_level(experience_points),
        experience_points=experience_points,
        last_activity_date=now,
        version=base.version,
    )


async def update_stats(
    repo: GamificationRepository,
    user_id: str,
    forms_completed_delta: int = 1,
    points_delta: int = 50,
    now: datetime | None = None,
    max_attempts: int = 3,
) -> ProgressSnapshot:
    """Apply one completed-activity event and persist the new snapshot.

    The write is conditional on the version that was read, so two concurrent
    folds cannot overwrite each other; the loser re-reads and folds again.
    Storage errors propagate unchanged.

    Raises:
        ValueError: If a delta is negative.
        ProgressConflictError: If every attempt lost the race.
    """
    if forms_completed_delta < 0 or points_delta < 0:
        msg = f"Deltas must be non-negative (forms={forms_completed_delta}, points={points_delta})"
        raise ValueError(msg)

    if now is None:
        now = datetime.now(timezone.utc)

    for attempt in range(1, max_attempts + 1):
        existing = await repo.get_progress(user_id)
        updated = fold_activity(existing, user_id, forms_completed_delta, points_delta, now)
        expected_version = existing.version if existing else None

        try:
            saved = await repo.save_progress(updated, expected_version)
        except ProgressConflictError:
            if attempt == max_attempts:
                raise
            logger.warning(
                "Progress update conflict for user %s (attempt %d/%d), retrying",
                user_id, attempt, max_attempts,
            )
            continue

        old_level = existing.level if existing else 1
        if saved.level > old_level:
            logger.info("User %s reached level %d", user_id, saved.level)
        return saved

    # max_attempts < 1
    msg = f"No attempt made to update progress for {user_id}"
    raise ProgressConflictError(msg)
