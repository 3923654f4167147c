from __future__ import annotations

import itertools
from typing import Optional

from backend.schemas import (
    AiFeedback,
    AiFeedbackCreate,
    AiFeedbackUpdate,
    Event,
    EventCreate,
    EventUpdate,
    Interest,
    InterestCreate,
    InterestUpdate,
    Notification,
    NotificationCreate,
    Startup,
    StartupCreate,
    StartupFilter,
    StartupUpdate,
    User,
    UserCreate,
    UserUpdate,
    utcnow,
)
from domain.errors import ConflictError, NotFound, ValidationError
from domain.storage import (
    Storage,
    apply_startup_update,
    funding_errors,
    merge_record,
    startup_matches,
)


def _newest_first(records):
    return sorted(records, key=lambda r: (r.created_at, int(r.id)), reverse=True)


class MemoryStorage(Storage):
    """Map-backed storage, single process, lost on restart.

    Ids are auto-incrementing integers rendered as strings.
    """

    def __init__(self):
        super().__init__()
        self.users = dict[str, User]()
        self.startups = dict[str, Startup]()
        self.interests = dict[str, Interest]()
        self.events = dict[str, Event]()
        self.ai_feedback = dict[str, AiFeedback]()
        self.notifications = dict[str, Notification]()
        self._ids = {
            name: itertools.count(1)
            for name in ("user", "startup", "interest", "event", "ai_feedback", "notification")
        }

    def _next_id(self, entity: str) -> str:
        return str(next(self._ids[entity]))

    @staticmethod
    def _get(table: dict, entity: str, entity_id: str):
        record = table.get(str(entity_id))
        if record is None:
            raise NotFound(entity, entity_id)
        return record.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def get_user(self, user_id: str) -> User:
        return self._get(self.users, "User", user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        for user in self.users.values():
            if user.username == username:
                return user.model_copy(deep=True)
        return None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        for user in self.users.values():
            if user.email.lower() == email.lower():
                return user.model_copy(deep=True)
        return None

    async def _check_user_unique(self, username: Optional[str], email: Optional[str], own_id: str = None):
        if username is not None:
            other = await self.get_user_by_username(username)
            if other and other.id != own_id:
                raise ConflictError("Username already taken", field="username")
        if email is not None:
            other = await self.get_user_by_email(email)
            if other and other.id != own_id:
                raise ConflictError("Email already registered", field="email")

    async def create_user(self, payload: UserCreate) -> User:
        await self._check_user_unique(payload.username, payload.email)
        user = User(id=self._next_id("user"), created_at=utcnow(), **payload.model_dump())
        self.users[user.id] = user
        return user.model_copy(deep=True)

    async def update_user(self, user_id: str, payload: UserUpdate) -> User:
        user = await self.get_user(user_id)
        await self._check_user_unique(payload.username, payload.email, own_id=user.id)
        user = merge_record(user, payload, "user")
        self.users[user.id] = user
        return user.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Startups
    # ------------------------------------------------------------------

    async def get_startup(self, startup_id: str) -> Startup:
        return self._get(self.startups, "Startup", startup_id)

    async def list_startups(self, filters: Optional[StartupFilter] = None) -> list[Startup]:
        filters = filters or StartupFilter()
        found = [s for s in self.startups.values() if startup_matches(s, filters)]
        return [s.model_copy(deep=True) for s in _newest_first(found)]

    async def list_startups_by_user(self, user_id: str) -> list[Startup]:
        found = [s for s in self.startups.values() if s.user_id == str(user_id)]
        return [s.model_copy(deep=True) for s in _newest_first(found)]

    async def create_startup(self, payload: StartupCreate) -> Startup:
        errors = []
        if str(payload.user_id) not in self.users:
            errors.append({"field": "userId", "message": "User not found"})
        errors += funding_errors(payload.funding_min, payload.funding_max)
        if errors:
            raise ValidationError(errors)
        startup = Startup(
            id=self._next_id("startup"),
            created_at=utcnow(),
            **payload.model_dump(exclude={"funding_needed"}),
        )
        self.startups[startup.id] = startup
        return startup.model_copy(deep=True)

    async def update_startup(self, startup_id: str, payload: StartupUpdate) -> Startup:
        startup = apply_startup_update(await self.get_startup(startup_id), payload)
        self.startups[startup.id] = startup
        return startup.model_copy(deep=True)

    async def delete_startup(self, startup_id: str) -> bool:
        return self.startups.pop(str(startup_id), None) is not None

    # ------------------------------------------------------------------
    # Interests
    # ------------------------------------------------------------------

    async def get_interest(self, interest_id: str) -> Interest:
        return self._get(self.interests, "Interest", interest_id)

    async def get_interest_by_pair(self, investor_id: str, startup_id: str) -> Optional[Interest]:
        for interest in self.interests.values():
            if interest.investor_id == str(investor_id) and interest.startup_id == str(startup_id):
                return interest.model_copy(deep=True)
        return None

    async def list_interests_by_investor(self, investor_id: str) -> list[Interest]:
        found = [i for i in self.interests.values() if i.investor_id == str(investor_id)]
        return [i.model_copy(deep=True) for i in _newest_first(found)]

    async def list_interests_by_startup(self, startup_id: str) -> list[Interest]:
        found = [i for i in self.interests.values() if i.startup_id == str(startup_id)]
        return [i.model_copy(deep=True) for i in _newest_first(found)]

    async def create_interest(self, payload: InterestCreate) -> Interest:
        errors = []
        investor = self.users.get(payload.investor_id)
        if investor is None:
            errors.append({"field": "investorId", "message": "User not found"})
        elif investor.role != "investor":
            errors.append({"field": "investorId", "message": "User is not an investor"})
        if payload.startup_id not in self.startups:
            errors.append({"field": "startupId", "message": "Startup not found"})
        if errors:
            raise ValidationError(errors)
        if await self.get_interest_by_pair(payload.investor_id, payload.startup_id):
            raise ConflictError("Interest already recorded for this startup", field="startupId")

        interest = Interest(id=self._next_id("interest"), created_at=utcnow(), **payload.model_dump())
        self.interests[interest.id] = interest
        return interest.model_copy(deep=True)

    async def update_interest(self, interest_id: str, payload: InterestUpdate) -> Interest:
        interest = merge_record(
            await self.get_interest(interest_id), payload, "interest", updated_at=utcnow()
        )
        self.interests[interest.id] = interest
        return interest.model_copy(deep=True)

    async def delete_interest(self, interest_id: str) -> bool:
        return self.interests.pop(str(interest_id), None) is not None

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def get_event(self, event_id: str) -> Event:
        return self._get(self.events, "Event", event_id)

    async def list_events(self, upcoming: bool = False) -> list[Event]:
        events = list(self.events.values())
        if upcoming:
            now = utcnow()
            events = [e for e in events if e.event_date > now]
        events.sort(key=lambda e: (e.event_date, int(e.id)))
        return [e.model_copy(deep=True) for e in events]

    async def create_event(self, payload: EventCreate) -> Event:
        event = Event(id=self._next_id("event"), created_at=utcnow(), **payload.model_dump())
        self.events[event.id] = event
        return event.model_copy(deep=True)

    async def update_event(self, event_id: str, payload: EventUpdate) -> Event:
        event = merge_record(await self.get_event(event_id), payload, "event")
        self.events[event.id] = event
        return event.model_copy(deep=True)

    async def delete_event(self, event_id: str) -> bool:
        return self.events.pop(str(event_id), None) is not None

    # ------------------------------------------------------------------
    # AI feedback
    # ------------------------------------------------------------------

    async def get_ai_feedback(self, feedback_id: str) -> AiFeedback:
        return self._get(self.ai_feedback, "AI feedback", feedback_id)

    async def get_ai_feedback_by_startup(self, startup_id: str) -> Optional[AiFeedback]:
        for feedback in self.ai_feedback.values():
            if feedback.startup_id == str(startup_id):
                return feedback.model_copy(deep=True)
        return None

    async def create_ai_feedback(self, payload: AiFeedbackCreate) -> AiFeedback:
        if payload.startup_id not in self.startups:
            raise ValidationError.single("startupId", "Startup not found")
        if await self.get_ai_feedback_by_startup(payload.startup_id):
            raise ConflictError("AI feedback already exists for this startup", field="startupId")
        feedback = AiFeedback(id=self._next_id("ai_feedback"), created_at=utcnow(), **payload.model_dump())
        self.ai_feedback[feedback.id] = feedback
        return feedback.model_copy(deep=True)

    async def update_ai_feedback(self, feedback_id: str, payload: AiFeedbackUpdate) -> AiFeedback:
        feedback = merge_record(
            await self.get_ai_feedback(feedback_id), payload, "ai_feedback", updated_at=utcnow()
        )
        self.ai_feedback[feedback.id] = feedback
        return feedback.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def get_notification(self, notification_id: str) -> Notification:
        return self._get(self.notifications, "Notification", notification_id)

    async def get_notification_by_source_key(self, source_key: str) -> Optional[Notification]:
        for notification in self.notifications.values():
            if notification.source_key == source_key:
                return notification.model_copy(deep=True)
        return None

    async def list_notifications_by_user(self, user_id: str, limit: int = 20) -> list[Notification]:
        found = [n for n in self.notifications.values() if n.user_id == str(user_id)]
        return [n.model_copy(deep=True) for n in _newest_first(found)[:limit]]

    async def create_notification(self, payload: NotificationCreate) -> Notification:
        if payload.user_id not in self.users:
            raise ValidationError.single("userId", "User not found")
        if payload.source_key and await self.get_notification_by_source_key(payload.source_key):
            raise ConflictError("Notification already delivered", field="sourceKey")
        notification = Notification(
            id=self._next_id("notification"), created_at=utcnow(), **payload.model_dump()
        )
        self.notifications[notification.id] = notification
        return notification.model_copy(deep=True)

    async def mark_notification_read(self, notification_id: str) -> Notification:
        notification = await self.get_notification(notification_id)
        notification.read = True
        self.notifications[notification.id] = notification
        return notification.model_copy(deep=True)

    async def delete_notification(self, notification_id: str) -> bool:
        return self.notifications.pop(str(notification_id), None) is not None
