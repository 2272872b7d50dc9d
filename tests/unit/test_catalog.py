"""Achievement catalog tests."""

from anuva.gamification.catalog import DEFAULT_CATALOG, Condition, Metric, resolve_metric
from anuva.gamification.repository import ProgressSnapshot


def _by_id():
    return {d.badge_id: d for d in DEFAULT_CATALOG}


class TestDefaultCatalog:
    def test_badge_ids_in_order(self):
        assert [d.badge_id for d in DEFAULT_CATALOG] == [
            "first_form",
            "streak_3",
            "forms_5",
            "neuro_specialist",
            "week_warrior",
            "milestone_100",
        ]

    def test_targets_match_conditions(self):
        for definition in DEFAULT_CATALOG:
            assert definition.condition.minimum == definition.target

    def test_conditions(self):
        catalog = _by_id()
        assert catalog["first_form"].condition == Condition(Metric.TOTAL_FORMS, 1)
        assert catalog["streak_3"].condition == Condition(Metric.CURRENT_STREAK, 3)
        assert catalog["forms_5"].condition == Condition(Metric.TOTAL_FORMS, 5)
        assert catalog["neuro_specialist"].condition == Condition(Metric.TOTAL_FORMS, 5)
        assert catalog["week_warrior"].condition == Condition(Metric.CURRENT_STREAK, 7)
        assert catalog["milestone_100"].condition == Condition(Metric.EXPERIENCE_POINTS, 100)

    def test_display_metadata(self):
        first = _by_id()["first_form"]
        assert first.title == "First Steps"
        assert first.icon_name == "Target"
        assert first.color == "#10B981"


class TestConditions:
    def test_threshold_is_inclusive(self):
        condition = Condition(Metric.CURRENT_STREAK, 3)
        assert condition.is_met(ProgressSnapshot(user_id="u", current_streak=3))
        assert not condition.is_met(ProgressSnapshot(user_id="u", current_streak=2))

    def test_resolve_metric(self):
        snapshot = ProgressSnapshot(user_id="u", total_forms_completed=4, current_streak=2, experience_points=70)
        assert resolve_metric(snapshot, Metric.TOTAL_FORMS) == 4
        assert resolve_metric(snapshot, Metric.CURRENT_STREAK) == 2
        assert resolve_metric(snapshot, Metric.EXPERIENCE_POINTS) == 70
        assert resolve_metric(snapshot, None) == 0

    def test_current_progress_uses_progress_metric(self):
        snapshot = ProgressSnapshot(user_id="u", total_forms_completed=4, current_streak=6)
        catalog = _by_id()
        assert catalog["forms_5"].current_progress(snapshot) == 4
        assert catalog["neuro_specialist"].current_progress(snapshot) == 0
        assert catalog["week_warrior"].current_progress(snapshot) == 0
