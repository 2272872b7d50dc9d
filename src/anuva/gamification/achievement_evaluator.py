"""Achievement evaluator: syncs a user's achievement rows with their latest progress."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from anuva.gamification.catalog import DEFAULT_CATALOG, AchievementDefinition
from anuva.gamification.repository import (
    AchievementRecord,
    GamificationRepository,
    ProgressSnapshot,
)

logger = logging.getLogger(__name__)


class TransitionKind(str, Enum):
    CREATED = "created"
    UNLOCKED = "unlocked"
    PROGRESS = "progress"
    UNCHANGED = "unchanged"
    FAILED = "failed"


@dataclass(frozen=True)
class AchievementTransition:
    """What happened to one catalog entry during an evaluation."""

    badge_id: str
    kind: TransitionKind
    progress: int | None = None


class AchievementEvaluator:
    """Evaluates a fixed catalog against a progress snapshot.

    Per entry, in catalog order:
      1. No row yet: create it locked with progress 0 (no unlock check this pass)
      2. Locked and condition met: unlock and stamp earned_at
      3. Locked and condition not met: store the current metric as progress
      4. Unlocked: nothing

    Progress is not raised to target on unlock. Each entry runs in its own
    savepoint, read included: an error rolls back that entry only, is
    logged, and the remaining entries are still evaluated.
    """

    def __init__(self, catalog: Sequence[AchievementDefinition] = DEFAULT_CATALOG) -> None:
        badge_ids = [d.badge_id for d in catalog]
        if len(set(badge_ids)) != len(badge_ids):
            msg = "Catalog badge_ids must be unique"
            raise ValueError(msg)
        self.catalog: tuple[AchievementDefinition, ...] = tuple(catalog)

    async def evaluate_and_sync(
        self,
        repo: GamificationRepository,
        user_id: str,
        progress: ProgressSnapshot,
        now: datetime | None = None,
    ) -> list[AchievementTransition]:
        """Evaluate every catalog entry for a user. Never raises for a single entry."""
        if now is None:
            now = datetime.now(timezone.utc)

        transitions: list[AchievementTransition] = []
        for definition in self.catalog:
            try:
                async with repo.savepoint():
                    transition = await self._evaluate_entry(repo, user_id, definition, progress, now)
            except Exception:
                logger.error(
                    "Error processing achievement %s for user %s",
                    definition.badge_id, user_id, exc_info=True,
                )
                transition = AchievementTransition(definition.badge_id, TransitionKind.FAILED)
            transitions.append(transition)
        return transitions

    async def _evaluate_entry(
        self,
        repo: GamificationRepository,
        user_id: str,
        definition: AchievementDefinition,
        progress: ProgressSnapshot,
        now: datetime,
    ) -> AchievementTransition:
        existing = await repo.get_achievement(user_id, definition.badge_id)

        if existing is None:
            created = await repo.create_achievement(
                AchievementRecord(
                    user_id=user_id,
                    badge_id=definition.badge_id,
                    badge_type=definition.badge_type,
                    title=definition.title,
                    description=definition.description,
                    icon_name=definition.icon_name,
                    color=definition.color,
                    progress=0,
                    target=definition.target,
                    is_unlocked=False,
                )
            )
            return AchievementTransition(definition.badge_id, TransitionKind.CREATED, created.progress)

        if existing.is_unlocked:
            return AchievementTransition(definition.badge_id, TransitionKind.UNCHANGED, existing.progress)

        if definition.check_condition(progress):
            unlocked = await repo.unlock_achievement(user_id, definition.badge_id, now)
            if unlocked is None:
                # Unlocked by a concurrent request between our read and write
                return AchievementTransition(definition.badge_id, TransitionKind.UNCHANGED, existing.progress)
            logger.info("Achievement %s unlocked for user %s", definition.badge_id, user_id)
            return AchievementTransition(definition.badge_id, TransitionKind.UNLOCKED, unlocked.progress)

        current = definition.current_progress(progress)
        await repo.update_achievement_progress(user_id, definition.badge_id, current)
        kind = TransitionKind.UNCHANGED if current == existing.progress else TransitionKind.PROGRESS
        return AchievementTransition(definition.badge_id, kind, current)
