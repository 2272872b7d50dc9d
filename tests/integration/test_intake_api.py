"""Intake form API tests."""

from __future__ import annotations

from httpx import AsyncClient

from anuva.intake.service import UNLOCK_CHANNEL


class TestListAndCreate:
    async def test_requires_auth(self, client: AsyncClient):
        response = await client.get("/api/v1/intake-forms")
        assert response.status_code in (401, 403)

    async def test_rejects_garbage_token(self, client: AsyncClient):
        response = await client.get("/api/v1/intake-forms", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    async def test_lists_only_own_forms(self, authed_client: AsyncClient, intake_repo, user_id):
        intake_repo.add(user_id, title="Mine")
        intake_repo.add("someone_else", title="Theirs")

        response = await authed_client.get("/api/v1/intake-forms")
        assert response.status_code == 200
        assert [f["title"] for f in response.json()] == ["Mine"]

    async def test_create(self, authed_client: AsyncClient, intake_repo, fake_session, user_id):
        response = await authed_client.post(
            "/api/v1/intake-forms",
            json={"form_type": "pcss", "title": "Weekly PCSS", "form_data": {"headache": 2}},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["form_data"] == {"headache": 2}
        assert intake_repo.forms[data["id"]].user_id == user_id
        assert fake_session.commits == 1

    async def test_create_validates(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/v1/intake-forms", json={"form_type": "", "title": "x"})
        assert response.status_code == 422
        assert response.json()["detail"] == "Validation error"


class TestUpdate:
    async def test_save_answers(self, authed_client: AsyncClient, intake_repo, user_id):
        form = intake_repo.add(user_id)
        response = await authed_client.patch(
            f"/api/v1/intake-forms/{form.id}",
            json={"status": "in_progress", "form_data": {"dizziness": 1}},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"
        assert form.form_data == {"dizziness": 1}

    async def test_cannot_complete_through_update(self, authed_client: AsyncClient, intake_repo, user_id):
        form = intake_repo.add(user_id)
        response = await authed_client.patch(f"/api/v1/intake-forms/{form.id}", json={"status": "completed"})
        assert response.status_code == 422
        assert form.status == "pending"

    async def test_completed_form_is_read_only(self, authed_client: AsyncClient, intake_repo, user_id):
        form = intake_repo.add(user_id, status="completed")
        response = await authed_client.patch(f"/api/v1/intake-forms/{form.id}", json={"title": "New"})
        assert response.status_code == 409

    async def test_unknown_form(self, authed_client: AsyncClient):
        response = await authed_client.patch("/api/v1/intake-forms/404", json={"title": "New"})
        assert response.status_code == 404


class TestComplete:
    async def test_first_completion(self, authed_client: AsyncClient, intake_repo, gamification_repo, fake_session, user_id):
        form = intake_repo.add(user_id)
        response = await authed_client.patch(f"/api/v1/intake-forms/{form.id}/complete")
        assert response.status_code == 200

        data = response.json()
        assert data["form"]["status"] == "completed"
        assert data["form"]["completed_at"] is not None
        assert data["progress"]["total_forms_completed"] == 1
        assert data["progress"]["total_points"] == 50
        assert data["progress"]["current_streak"] == 1
        assert data["progress"]["level_info"]["xp_to_next_level"] == 50
        assert {a["kind"] for a in data["achievements"]} == {"created"}
        assert len(gamification_repo.achievements) == 6
        assert fake_session.commits == 1

    async def test_second_completion_unlocks_and_publishes(
        self, authed_client: AsyncClient, intake_repo, fake_redis, user_id
    ):
        first = intake_repo.add(user_id)
        second = intake_repo.add(user_id)
        await authed_client.patch(f"/api/v1/intake-forms/{first.id}/complete")
        assert fake_redis.published == []

        response = await authed_client.patch(f"/api/v1/intake-forms/{second.id}/complete")
        assert response.status_code == 200
        data = response.json()
        assert data["progress"]["level"] == 2

        unlocked = {a["badge_id"] for a in data["achievements"] if a["kind"] == "unlocked"}
        assert unlocked == {"first_form", "milestone_100"}
        assert {(channel, msg["badge_id"]) for channel, msg in fake_redis.published} == {
            (UNLOCK_CHANNEL, "first_form"),
            (UNLOCK_CHANNEL, "milestone_100"),
        }

    async def test_completing_twice_is_conflict(self, authed_client: AsyncClient, intake_repo, gamification_repo, user_id):
        form = intake_repo.add(user_id)
        await authed_client.patch(f"/api/v1/intake-forms/{form.id}/complete")
        response = await authed_client.patch(f"/api/v1/intake-forms/{form.id}/complete")

        assert response.status_code == 409
        assert gamification_repo.progress[user_id].total_forms_completed == 1

    async def test_unknown_form(self, authed_client: AsyncClient, gamification_repo):
        response = await authed_client.patch("/api/v1/intake-forms/999/complete")
        assert response.status_code == 404
        assert gamification_repo.progress == {}

    async def test_exhausted_retries_is_conflict(self, authed_client: AsyncClient, intake_repo, gamification_repo, fake_session, user_id):
        form = intake_repo.add(user_id)
        gamification_repo.conflicts = 10
        response = await authed_client.patch(f"/api/v1/intake-forms/{form.id}/complete")
        assert response.status_code == 409
        assert fake_session.commits == 0
