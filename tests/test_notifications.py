"""
Tests for the notification fan-out: recipients, de-duplication and best-effort delivery.
"""

import logging
from unittest.mock import AsyncMock, patch

from backend.schemas import AiFeedbackCreate, InterestCreate, StartupCreate, UserCreate
from services.notifications import notify_ai_feedback_created, notify_interest_created


async def _setup(storage):
    owner = await storage.create_user(UserCreate(
        username="entrepreneur", password="digest-placeholder", full_name="John Entrepreneur",
        email="john@example.com", role="entrepreneur",
    ))
    investor = await storage.create_user(UserCreate(
        username="investor", password="digest-placeholder", full_name="Sarah Investor",
        email="sarah@example.com", role="investor",
    ))
    startup = await storage.create_startup(StartupCreate(user_id=owner.id, name="EcoTrack"))
    return owner, investor, startup


class TestInterestNotification:

    async def test_owner_is_notified(self, storage):
        owner, investor, startup = await _setup(storage)
        interest = await storage.create_interest(InterestCreate(investor_id=investor.id, startup_id=startup.id))

        note = await notify_interest_created(storage, interest)

        assert note.user_id == owner.id
        assert note.type == "interest"
        assert note.title == "New Interest in Your Startup"
        assert note.message == 'Sarah Investor has shown interest in your startup "EcoTrack"'
        assert note.link == f"/startup/{startup.id}"
        assert note.read is False
        assert await storage.list_notifications_by_user(investor.id) == []

    async def test_reprocessing_does_not_duplicate(self, storage):
        owner, investor, startup = await _setup(storage)
        interest = await storage.create_interest(InterestCreate(investor_id=investor.id, startup_id=startup.id))

        first = await notify_interest_created(storage, interest)
        second = await notify_interest_created(storage, interest)

        assert first.id == second.id
        assert len(await storage.list_notifications_by_user(owner.id)) == 1

    async def test_failure_is_logged_and_swallowed(self, storage, caplog):
        owner, investor, startup = await _setup(storage)
        interest = await storage.create_interest(InterestCreate(investor_id=investor.id, startup_id=startup.id))

        with patch.object(storage, "create_notification", AsyncMock(side_effect=RuntimeError("db down"))):
            with caplog.at_level(logging.ERROR, logger="services.notifications"):
                assert await notify_interest_created(storage, interest) is None

        assert "Interest notification failed" in caplog.text
        assert (await storage.get_interest(interest.id)).id == interest.id


class TestAiFeedbackNotification:

    async def test_owner_is_notified_with_feedback_link(self, storage):
        owner, _, startup = await _setup(storage)
        feedback = await storage.create_ai_feedback(
            AiFeedbackCreate(startup_id=startup.id, clarity=80, market_need=70, team_strength=60)
        )

        note = await notify_ai_feedback_created(storage, feedback)

        assert note.user_id == owner.id
        assert note.type == "ai-feedback"
        assert note.title == "New AI Analysis Complete"
        assert note.link == f"/startup/{startup.id}/ai-feedback"

    async def test_missing_startup_returns_none(self, storage):
        owner, _, startup = await _setup(storage)
        feedback = await storage.create_ai_feedback(
            AiFeedbackCreate(startup_id=startup.id, clarity=80, market_need=70, team_strength=60)
        )
        await storage.delete_startup(startup.id)

        assert await notify_ai_feedback_created(storage, feedback) is None
        assert await storage.list_notifications_by_user(owner.id) == []
