"""Achievement catalog: the fixed set of badges every patient can earn.

Entries are evaluated in order. badge_id is the stable key stored on
user rows, so renaming one orphans every existing record.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from anuva.gamification.repository import ProgressSnapshot


class Metric(str, Enum):
    """Progress counters an achievement can be measured against."""

    TOTAL_FORMS = "total_forms_completed"
    CURRENT_STREAK = "current_streak"
    EXPERIENCE_POINTS = "experience_points"


def resolve_metric(progress: ProgressSnapshot, metric: Metric | None) -> int:
    """Read a metric from a snapshot. No metric resolves to 0."""
    if metric is None:
        return 0
    return getattr(progress, metric.value) or 0


@dataclass(frozen=True)
class Condition:
    """Unlock condition: ``metric >= minimum``."""

    metric: Metric
    minimum: int

    def is_met(self, progress: ProgressSnapshot) -> bool:
        return resolve_metric(progress, self.metric) >= self.minimum


@dataclass(frozen=True)
class AchievementDefinition:
    """One catalog entry. Display metadata is copied onto the user's row at creation."""

    badge_id: str
    title: str
    description: str
    icon_name: str
    color: str
    target: int
    condition: Condition
    # Counter stored as `progress` while locked. None stores 0.
    progress_metric: Metric | None
    badge_type: str = "milestone"

    def check_condition(self, progress: ProgressSnapshot) -> bool:
        return self.condition.is_met(progress)

    def current_progress(self, progress: ProgressSnapshot) -> int:
        return resolve_metric(progress, self.progress_metric)


DEFAULT_CATALOG: tuple[AchievementDefinition, ...] = (
    AchievementDefinition(
        badge_id="first_form",
        title="First Steps",
        description="Complete your first assessment",
        icon_name="Target",
        color="#10B981",
        target=1,
        condition=Condition(Metric.TOTAL_FORMS, 1),
        progress_metric=Metric.TOTAL_FORMS,
    ),
    AchievementDefinition(
        badge_id="streak_3",
        title="Committed",
        description="Maintain a 3-day streak",
        icon_name="Calendar",
        color="#F59E0B",
        target=3,
        condition=Condition(Metric.CURRENT_STREAK, 3),
        progress_metric=Metric.CURRENT_STREAK,
    ),
    AchievementDefinition(
        badge_id="forms_5",
        title="Dedicated",
        description="Complete 5 assessments",
        icon_name="CheckCircle2",
        color="#3B82F6",
        target=5,
        condition=Condition(Metric.TOTAL_FORMS, 5),
        progress_metric=Metric.TOTAL_FORMS,
    ),
    AchievementDefinition(
        badge_id="neuro_specialist",
        title="Neuro Specialist",
        description="Complete all neurological assessments",
        icon_name="Brain",
        color="#8B5CF6",
        target=5,
        condition=Condition(Metric.TOTAL_FORMS, 5),
        progress_metric=None,
    ),
    AchievementDefinition(
        badge_id="week_warrior",
        title="Week Warrior",
        description="Maintain a 7-day streak",
        icon_name="Shield",
        color="#EF4444",
        target=7,
        condition=Condition(Metric.CURRENT_STREAK, 7),
        progress_metric=None,
    ),
    AchievementDefinition(
        badge_id="milestone_100",
        title="Centurion",
        description="Earn 100 experience points",
        icon_name="Star",
        color="#F97316",
        target=100,
        condition=Condition(Metric.EXPERIENCE_POINTS, 100),
        progress_metric=Metric.EXPERIENCE_POINTS,
    ),
)
