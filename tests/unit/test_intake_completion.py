"""Intake form completion tests: the form -> progress -> achievements chain."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from anuva.db.models import IntakeForm
from anuva.gamification.achievement_evaluator import AchievementEvaluator, TransitionKind
from anuva.gamification.repository import ProgressConflictError
from anuva.intake.service import (
    UNLOCK_CHANNEL,
    CompletionResult,
    FormAlreadyCompletedError,
    FormNotFoundError,
    complete_intake_form,
    publish_unlocks,
)

USER = "user_intake"
NOW = datetime(2026, 10, 10, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def evaluator() -> AchievementEvaluator:
    return AchievementEvaluator()


class TestCompleteIntakeForm:
    async def test_first_completion(self, intake_repo, gamification_repo, evaluator):
        form = intake_repo.add(USER)
        result = await complete_intake_form(intake_repo, gamification_repo, evaluator, USER, form.id, now=NOW)

        assert result.form.status == "completed"
        assert result.form.completed_at == NOW
        assert result.progress.total_forms_completed == 1
        assert result.progress.total_points == 50
        assert result.progress.current_streak == 1
        assert all(t.kind is TransitionKind.CREATED for t in result.transitions)
        assert result.unlocked == []

    async def test_second_completion_unlocks_first_form(self, intake_repo, gamification_repo, evaluator):
        first = intake_repo.add(USER)
        second = intake_repo.add(USER)
        await complete_intake_form(intake_repo, gamification_repo, evaluator, USER, first.id, now=NOW)
        result = await complete_intake_form(
            intake_repo, gamification_repo, evaluator, USER, second.id, now=NOW + timedelta(hours=25)
        )

        assert result.progress.total_forms_completed == 2
        assert result.progress.current_streak == 2
        assert result.progress.experience_points == 100
        assert set(result.unlocked) == {"first_form", "milestone_100"}

    async def test_points_are_configurable(self, intake_repo, gamification_repo, evaluator):
        form = intake_repo.add(USER)
        result = await complete_intake_form(intake_repo, gamification_repo, evaluator, USER, form.id, points=120, now=NOW)
        assert result.progress.total_points == 120
        assert result.progress.level == 2

    async def test_unknown_form(self, intake_repo, gamification_repo, evaluator):
        with pytest.raises(FormNotFoundError):
            await complete_intake_form(intake_repo, gamification_repo, evaluator, USER, 999, now=NOW)
        assert gamification_repo.progress == {}

    async def test_other_users_form(self, intake_repo, gamification_repo, evaluator):
        form = intake_repo.add("someone_else")
        with pytest.raises(FormNotFoundError):
            await complete_intake_form(intake_repo, gamification_repo, evaluator, USER, form.id, now=NOW)

    async def test_already_completed_awards_nothing(self, intake_repo, gamification_repo, evaluator):
        form = intake_repo.add(USER)
        await complete_intake_form(intake_repo, gamification_repo, evaluator, USER, form.id, now=NOW)
        with pytest.raises(FormAlreadyCompletedError):
            await complete_intake_form(intake_repo, gamification_repo, evaluator, USER, form.id, now=NOW)
        assert gamification_repo.progress[USER].total_forms_completed == 1

    async def test_concurrent_completions_award_once(self, intake_repo, gamification_repo, evaluator):
        form = intake_repo.add(USER)
        load = intake_repo.get_for_user

        async def load_then_yield(user_id, form_id):
            # Each request holds its own instance, as separate sessions would
            stored = await load(user_id, form_id)
            copy = IntakeForm(
                id=stored.id, user_id=stored.user_id, form_type=stored.form_type,
                title=stored.title, status=stored.status, form_data=dict(stored.form_data),
                created_at=stored.created_at,
            )
            await asyncio.sleep(0)
            return copy

        intake_repo.get_for_user = load_then_yield
        results = await asyncio.gather(
            complete_intake_form(intake_repo, gamification_repo, evaluator, USER, form.id, now=NOW),
            complete_intake_form(intake_repo, gamification_repo, evaluator, USER, form.id, now=NOW),
            return_exceptions=True,
        )

        assert sum(isinstance(r, CompletionResult) for r in results) == 1
        assert sum(isinstance(r, FormAlreadyCompletedError) for r in results) == 1
        assert gamification_repo.progress[USER].total_forms_completed == 1
        assert gamification_repo.progress[USER].total_points == 50

    async def test_tracker_failure_skips_evaluation(self, intake_repo, gamification_repo, evaluator):
        form = intake_repo.add(USER)
        gamification_repo.conflicts = 5
        with pytest.raises(ProgressConflictError):
            await complete_intake_form(
                intake_repo, gamification_repo, evaluator, USER, form.id, max_attempts=2, now=NOW
            )
        assert gamification_repo.achievements == {}


class TestPublishUnlocks:
    async def test_publishes_each_badge(self, fake_redis):
        await publish_unlocks(fake_redis, USER, ["first_form", "milestone_100"])
        assert fake_redis.published == [
            (UNLOCK_CHANNEL, {"user_id": USER, "badge_id": "first_form"}),
            (UNLOCK_CHANNEL, {"user_id": USER, "badge_id": "milestone_100"}),
        ]

    async def test_nothing_to_publish(self, fake_redis):
        await publish_unlocks(fake_redis, USER, [])
        assert fake_redis.published == []

    async def test_no_redis(self):
        await publish_unlocks(None, USER, ["first_form"])

    async def test_publish_failure_is_swallowed(self, fake_redis, caplog):
        async def broken(channel, message):
            raise ConnectionError("redis down")

        fake_redis.publish = broken
        with caplog.at_level("WARNING", logger="anuva.intake.service"):
            await publish_unlocks(fake_redis, USER, ["first_form"])
        assert any("first_form" in r.getMessage() for r in caplog.records)
