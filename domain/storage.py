"""Entity repository interface.

One async CRUD surface per entity kind. Two implementations honour it:
``data.memory_storage.MemoryStorage`` (in-process, used by tests) and
``data.sql_storage.SqlStorage`` (persistent, used by the API).

Rules both implementations share live here as concrete helpers so the two
cannot drift apart: update merging, immutable-field dropping, funding range
checks and startup filtering.
"""

from __future__ import annotations

from abc import ABCMeta, abstractmethod
from typing import Optional, TypeVar

from pydantic import BaseModel

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
from domain.errors import ValidationError

R = TypeVar("R", bound=BaseModel)

# Fields a generic update never touches, per entity.
IMMUTABLE_FIELDS = {
    "user": {"id", "created_at", "password"},
    "startup": {"id", "created_at", "user_id"},
    "interest": {"id", "created_at", "investor_id", "startup_id"},
    "event": {"id", "created_at"},
    "ai_feedback": {"id", "created_at", "startup_id"},
}


def merge_record(record: R, update: BaseModel, entity: str, **extra) -> R:
    """Return a copy of ``record`` with the explicitly supplied fields of ``update``.

    Immutable fields are dropped silently; ``extra`` is applied last. An
    explicit null clears an optional field and is ignored for the rest.
    """
    fields = type(record).model_fields
    changes = {
        key: value
        for key, value in update.model_dump(exclude_unset=True).items()
        if value is not None or (key in fields and fields[key].default is None)
    }
    for field in IMMUTABLE_FIELDS.get(entity, ()):
        changes.pop(field, None)
    # dict(record) keeps fields that model_dump() would exclude (password, source_key)
    merged = {**dict(record), **changes, **extra}
    return type(record).model_validate(merged)


def funding_errors(funding_min: Optional[int], funding_max: Optional[int]) -> list[dict]:
    errors = []
    if funding_min is not None and funding_min < 0:
        errors.append({"field": "fundingMin", "message": "must be non-negative"})
    if funding_max is not None and funding_max < 0:
        errors.append({"field": "fundingMax", "message": "must be non-negative"})
    if funding_min is not None and funding_max is not None and funding_min > funding_max:
        errors.append({"field": "fundingMin", "message": "fundingMin must not exceed fundingMax"})
    return errors


def check_funding(funding_min: Optional[int], funding_max: Optional[int]) -> None:
    errors = funding_errors(funding_min, funding_max)
    if errors:
        raise ValidationError(errors)


def apply_startup_update(startup: Startup, update: StartupUpdate) -> Startup:
    """Merge ``update`` into ``startup``, normalising the funding range."""
    extra = {"updated_at": utcnow()}
    fields = update.model_fields_set
    if update.funding_needed is not None and not fields & {"funding_min", "funding_max"}:
        extra["funding_min"] = extra["funding_max"] = update.funding_needed
    merged = merge_record(startup, update, "startup", **extra)
    if merged.funding_min is None and merged.funding_max is not None:
        merged.funding_min = merged.funding_max
    elif merged.funding_max is None and merged.funding_min is not None:
        merged.funding_max = merged.funding_min
    check_funding(merged.funding_min, merged.funding_max)
    return merged


def _same(a: Optional[str], b: Optional[str]) -> bool:
    return (a or "").strip().lower() == (b or "").strip().lower()


def startup_matches(startup: Startup, filters: StartupFilter) -> bool:
    """AND of every non-empty filter key."""
    if filters.industry and not _same(startup.industry, filters.industry):
        return False
    if filters.funding_stage and not _same(startup.funding_stage, filters.funding_stage):
        return False
    if filters.location and not _same(startup.location, filters.location):
        return False
    if filters.tags:
        wanted = {t.strip().lower() for t in filters.tags if t.strip()}
        have = {t.strip().lower() for t in startup.tags}
        if wanted and not wanted & have:
            return False
    lo, hi = filters.bounds()
    if lo is not None and (startup.funding_max is None or startup.funding_max < lo):
        return False
    if hi is not None and (startup.funding_min is None or startup.funding_min > hi):
        return False
    if filters.q:
        needle = filters.q.lower()
        haystack = f"{startup.name} {startup.tagline or ''}".lower()
        if needle not in haystack:
            return False
    return True


class Storage(metaclass=ABCMeta):

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_user(self, user_id: str) -> User:
        pass

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def create_user(self, payload: UserCreate) -> User:
        """Persist a user. ``payload.password`` must already be a digest."""

    @abstractmethod
    async def update_user(self, user_id: str, payload: UserUpdate) -> User:
        pass

    # ------------------------------------------------------------------
    # Startups
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_startup(self, startup_id: str) -> Startup:
        pass

    @abstractmethod
    async def list_startups(self, filters: Optional[StartupFilter] = None) -> list[Startup]:
        pass

    @abstractmethod
    async def list_startups_by_user(self, user_id: str) -> list[Startup]:
        pass

    @abstractmethod
    async def create_startup(self, payload: StartupCreate) -> Startup:
        pass

    @abstractmethod
    async def update_startup(self, startup_id: str, payload: StartupUpdate) -> Startup:
        pass

    @abstractmethod
    async def delete_startup(self, startup_id: str) -> bool:
        """Does not cascade to interests or AI feedback."""

    # ------------------------------------------------------------------
    # Interests
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_interest(self, interest_id: str) -> Interest:
        pass

    @abstractmethod
    async def get_interest_by_pair(self, investor_id: str, startup_id: str) -> Optional[Interest]:
        pass

    @abstractmethod
    async def list_interests_by_investor(self, investor_id: str) -> list[Interest]:
        pass

    @abstractmethod
    async def list_interests_by_startup(self, startup_id: str) -> list[Interest]:
        pass

    @abstractmethod
    async def create_interest(self, payload: InterestCreate) -> Interest:
        pass

    @abstractmethod
    async def update_interest(self, interest_id: str, payload: InterestUpdate) -> Interest:
        pass

    @abstractmethod
    async def delete_interest(self, interest_id: str) -> bool:
        pass

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_event(self, event_id: str) -> Event:
        pass

    @abstractmethod
    async def list_events(self, upcoming: bool = False) -> list[Event]:
        """Ascending by event date; ``upcoming`` keeps only future events."""

    @abstractmethod
    async def create_event(self, payload: EventCreate) -> Event:
        pass

    @abstractmethod
    async def update_event(self, event_id: str, payload: EventUpdate) -> Event:
        pass

    @abstractmethod
    async def delete_event(self, event_id: str) -> bool:
        pass

    # ------------------------------------------------------------------
    # AI feedback
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_ai_feedback(self, feedback_id: str) -> AiFeedback:
        pass

    @abstractmethod
    async def get_ai_feedback_by_startup(self, startup_id: str) -> Optional[AiFeedback]:
        pass

    @abstractmethod
    async def create_ai_feedback(self, payload: AiFeedbackCreate) -> AiFeedback:
        pass

    @abstractmethod
    async def update_ai_feedback(self, feedback_id: str, payload: AiFeedbackUpdate) -> AiFeedback:
        pass

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_notification(self, notification_id: str) -> Notification:
        pass

    @abstractmethod
    async def get_notification_by_source_key(self, source_key: str) -> Optional[Notification]:
        pass

    @abstractmethod
    async def list_notifications_by_user(self, user_id: str, limit: int = 20) -> list[Notification]:
        """Newest first, at most ``limit``."""

    @abstractmethod
    async def create_notification(self, payload: NotificationCreate) -> Notification:
        pass

    @abstractmethod
    async def mark_notification_read(self, notification_id: str) -> Notification:
        pass

    @abstractmethod
    async def delete_notification(self, notification_id: str) -> bool:
        pass

    async def close(self):
        pass
