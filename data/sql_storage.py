"""Persistent storage over the async SQLAlchemy engine in ``backend.database``."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend import models
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

logger = logging.getLogger(__name__)


def _write_back(row, record, exclude=("id",)):
    """Copy every serialisable field of ``record`` onto the ORM ``row``."""
    for key, value in record.model_dump(exclude=set(exclude)).items():
        setattr(row, key, value)


class SqlStorage(Storage):

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        super().__init__()
        self._session_factory = session_factory

    async def _fetch(self, session: AsyncSession, model, entity: str, entity_id: str):
        row = await session.get(model, str(entity_id))
        if row is None:
            raise NotFound(entity, entity_id)
        return row

    async def _commit(self, session: AsyncSession, conflict: ConflictError):
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            logger.info("Integrity error translated to conflict: %s", e.orig)
            raise conflict from e

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def get_user(self, user_id: str) -> User:
        async with self._session_factory() as session:
            return User.model_validate(await self._fetch(session, models.User, "User", user_id))

    async def get_user_by_username(self, username: str) -> Optional[User]:
        async with self._session_factory() as session:
            row = await self._first(session, models.User.username == username)
            return User.model_validate(row) if row else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        async with self._session_factory() as session:
            row = await self._first(session, func.lower(models.User.email) == email.lower())
            return User.model_validate(row) if row else None

    @staticmethod
    async def _first(session: AsyncSession, clause, model=models.User):
        return (await session.execute(select(model).where(clause))).scalars().first()

    async def _check_user_unique(
        self,
        session: AsyncSession,
        username: Optional[str],
        email: Optional[str],
        own_id: str = None,
    ):
        if username is not None:
            other = await self._first(session, models.User.username == username)
            if other and other.id != own_id:
                raise ConflictError("Username already taken", field="username")
        if email is not None:
            other = await self._first(session, func.lower(models.User.email) == email.lower())
            if other and other.id != own_id:
                raise ConflictError("Email already registered", field="email")

    async def create_user(self, payload: UserCreate) -> User:
        async with self._session_factory() as session:
            await self._check_user_unique(session, payload.username, payload.email)
            row = models.User(created_at=utcnow(), **payload.model_dump())
            session.add(row)
            await self._commit(session, ConflictError("Username or email already registered"))
            return User.model_validate(row)

    async def update_user(self, user_id: str, payload: UserUpdate) -> User:
        async with self._session_factory() as session:
            row = await self._fetch(session, models.User, "User", user_id)
            await self._check_user_unique(session, payload.username, payload.email, own_id=row.id)
            merged = merge_record(User.model_validate(row), payload, "user")
            _write_back(row, merged)
            await self._commit(session, ConflictError("Username or email already registered"))
            return User.model_validate(row)

    # ------------------------------------------------------------------
    # Startups
    # ------------------------------------------------------------------

    async def get_startup(self, startup_id: str) -> Startup:
        async with self._session_factory() as session:
            return Startup.model_validate(
                await self._fetch(session, models.Startup, "Startup", startup_id)
            )

    async def list_startups(self, filters: Optional[StartupFilter] = None) -> list[Startup]:
        filters = filters or StartupFilter()
        stmt = select(models.Startup).order_by(models.Startup.created_at.desc())
        for column, value in (
            (models.Startup.industry, filters.industry),
            (models.Startup.funding_stage, filters.funding_stage),
            (models.Startup.location, filters.location),
        ):
            if value:
                stmt = stmt.where(func.lower(func.trim(column)) == value.strip().lower())
        lo, hi = filters.bounds()
        if lo is not None:
            stmt = stmt.where(models.Startup.funding_max >= lo)
        if hi is not None:
            stmt = stmt.where(models.Startup.funding_min <= hi)

        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
        # tags live in a JSON column; those and the text search are matched here
        startups = [Startup.model_validate(r) for r in rows]
        return [s for s in startups if startup_matches(s, filters)]

    async def list_startups_by_user(self, user_id: str) -> list[Startup]:
        stmt = (
            select(models.Startup)
            .where(models.Startup.user_id == str(user_id))
            .order_by(models.Startup.created_at.desc())
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [Startup.model_validate(r) for r in rows]

    async def create_startup(self, payload: StartupCreate) -> Startup:
        async with self._session_factory() as session:
            errors = []
            if await session.get(models.User, payload.user_id) is None:
                errors.append({"field": "userId", "message": "User not found"})
            errors += funding_errors(payload.funding_min, payload.funding_max)
            if errors:
                raise ValidationError(errors)
            row = models.Startup(
                created_at=utcnow(),
                **payload.model_dump(exclude={"funding_needed"}),
            )
            session.add(row)
            await session.commit()
            return Startup.model_validate(row)

    async def update_startup(self, startup_id: str, payload: StartupUpdate) -> Startup:
        async with self._session_factory() as session:
            row = await self._fetch(session, models.Startup, "Startup", startup_id)
            merged = apply_startup_update(Startup.model_validate(row), payload)
            _write_back(row, merged)
            await session.commit()
            return Startup.model_validate(row)

    async def delete_startup(self, startup_id: str) -> bool:
        return await self._delete(models.Startup, startup_id)

    async def _delete(self, model, entity_id: str) -> bool:
        async with self._session_factory() as session:
            row = await session.get(model, str(entity_id))
            if row is None:
                return False
            await session.delete(row)
            await session.commit()
            return True

    # ------------------------------------------------------------------
    # Interests
    # ------------------------------------------------------------------

    async def get_interest(self, interest_id: str) -> Interest:
        async with self._session_factory() as session:
            return Interest.model_validate(
                await self._fetch(session, models.Interest, "Interest", interest_id)
            )

    async def get_interest_by_pair(self, investor_id: str, startup_id: str) -> Optional[Interest]:
        stmt = select(models.Interest).where(
            models.Interest.investor_id == str(investor_id),
            models.Interest.startup_id == str(startup_id),
        )
        async with self._session_factory() as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return Interest.model_validate(row) if row else None

    async def _list_interests(self, column, value: str) -> list[Interest]:
        stmt = (
            select(models.Interest)
            .where(column == str(value))
            .order_by(models.Interest.created_at.desc())
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [Interest.model_validate(r) for r in rows]

    async def list_interests_by_investor(self, investor_id: str) -> list[Interest]:
        return await self._list_interests(models.Interest.investor_id, investor_id)

    async def list_interests_by_startup(self, startup_id: str) -> list[Interest]:
        return await self._list_interests(models.Interest.startup_id, startup_id)

    async def create_interest(self, payload: InterestCreate) -> Interest:
        async with self._session_factory() as session:
            errors = []
            investor = await session.get(models.User, payload.investor_id)
            if investor is None:
                errors.append({"field": "investorId", "message": "User not found"})
            elif investor.role != "investor":
                errors.append({"field": "investorId", "message": "User is not an investor"})
            if await session.get(models.Startup, payload.startup_id) is None:
                errors.append({"field": "startupId", "message": "Startup not found"})
            if errors:
                raise ValidationError(errors)

            conflict = ConflictError("Interest already recorded for this startup", field="startupId")
            pair = (models.Interest.investor_id == payload.investor_id) & (
                models.Interest.startup_id == payload.startup_id
            )
            if await self._first(session, pair, models.Interest):
                raise conflict
            row = models.Interest(created_at=utcnow(), **payload.model_dump())
            session.add(row)
            await self._commit(session, conflict)
            return Interest.model_validate(row)

    async def update_interest(self, interest_id: str, payload: InterestUpdate) -> Interest:
        async with self._session_factory() as session:
            row = await self._fetch(session, models.Interest, "Interest", interest_id)
            merged = merge_record(
                Interest.model_validate(row), payload, "interest", updated_at=utcnow()
            )
            _write_back(row, merged)
            await session.commit()
            return Interest.model_validate(row)

    async def delete_interest(self, interest_id: str) -> bool:
        return await self._delete(models.Interest, interest_id)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def get_event(self, event_id: str) -> Event:
        async with self._session_factory() as session:
            return Event.model_validate(await self._fetch(session, models.Event, "Event", event_id))

    async def list_events(self, upcoming: bool = False) -> list[Event]:
        stmt = select(models.Event).order_by(models.Event.event_date.asc())
        if upcoming:
            stmt = stmt.where(models.Event.event_date > utcnow())
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [Event.model_validate(r) for r in rows]

    async def create_event(self, payload: EventCreate) -> Event:
        async with self._session_factory() as session:
            row = models.Event(created_at=utcnow(), **payload.model_dump())
            session.add(row)
            await session.commit()
            return Event.model_validate(row)

    async def update_event(self, event_id: str, payload: EventUpdate) -> Event:
        async with self._session_factory() as session:
            row = await self._fetch(session, models.Event, "Event", event_id)
            _write_back(row, merge_record(Event.model_validate(row), payload, "event"))
            await session.commit()
            return Event.model_validate(row)

    async def delete_event(self, event_id: str) -> bool:
        return await self._delete(models.Event, event_id)

    # ------------------------------------------------------------------
    # AI feedback
    # ------------------------------------------------------------------

    async def get_ai_feedback(self, feedback_id: str) -> AiFeedback:
        async with self._session_factory() as session:
            return AiFeedback.model_validate(
                await self._fetch(session, models.AiFeedback, "AI feedback", feedback_id)
            )

    async def get_ai_feedback_by_startup(self, startup_id: str) -> Optional[AiFeedback]:
        stmt = select(models.AiFeedback).where(models.AiFeedback.startup_id == str(startup_id))
        async with self._session_factory() as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return AiFeedback.model_validate(row) if row else None

    async def create_ai_feedback(self, payload: AiFeedbackCreate) -> AiFeedback:
        async with self._session_factory() as session:
            if await session.get(models.Startup, payload.startup_id) is None:
                raise ValidationError.single("startupId", "Startup not found")
            conflict = ConflictError("AI feedback already exists for this startup", field="startupId")
            if await self._first(
                session, models.AiFeedback.startup_id == payload.startup_id, models.AiFeedback
            ):
                raise conflict
            row = models.AiFeedback(created_at=utcnow(), **payload.model_dump())
            session.add(row)
            await self._commit(session, conflict)
            return AiFeedback.model_validate(row)

    async def update_ai_feedback(self, feedback_id: str, payload: AiFeedbackUpdate) -> AiFeedback:
        async with self._session_factory() as session:
            row = await self._fetch(session, models.AiFeedback, "AI feedback", feedback_id)
            merged = merge_record(
                AiFeedback.model_validate(row), payload, "ai_feedback", updated_at=utcnow()
            )
            _write_back(row, merged)
            await session.commit()
            return AiFeedback.model_validate(row)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def get_notification(self, notification_id: str) -> Notification:
        async with self._session_factory() as session:
            return Notification.model_validate(
                await self._fetch(session, models.Notification, "Notification", notification_id)
            )

    async def get_notification_by_source_key(self, source_key: str) -> Optional[Notification]:
        stmt = select(models.Notification).where(models.Notification.source_key == source_key)
        async with self._session_factory() as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return Notification.model_validate(row) if row else None

    async def list_notifications_by_user(self, user_id: str, limit: int = 20) -> list[Notification]:
        stmt = (
            select(models.Notification)
            .where(models.Notification.user_id == str(user_id))
            .order_by(models.Notification.created_at.desc())
            .limit(limit)
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [Notification.model_validate(r) for r in rows]

    async def create_notification(self, payload: NotificationCreate) -> Notification:
        async with self._session_factory() as session:
            if await session.get(models.User, payload.user_id) is None:
                raise ValidationError.single("userId", "User not found")
            conflict = ConflictError("Notification already delivered", field="sourceKey")
            if payload.source_key and await self._first(
                session, models.Notification.source_key == payload.source_key, models.Notification
            ):
                raise conflict
            row = models.Notification(created_at=utcnow(), **payload.model_dump())
            session.add(row)
            await self._commit(session, conflict)
            return Notification.model_validate(row)

    async def mark_notification_read(self, notification_id: str) -> Notification:
        async with self._session_factory() as session:
            row = await self._fetch(session, models.Notification, "Notification", notification_id)
            row.read = True
            await session.commit()
            return Notification.model_validate(row)

    async def delete_notification(self, notification_id: str) -> bool:
        return await self._delete(models.Notification, notification_id)

    async def close(self):
        bind = self._session_factory.kw.get("bind")
        if bind is not None:
            await bind.dispose()
