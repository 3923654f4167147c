"""
SQLAlchemy ORM models -- one table per marketplace entity.

Tables
------
users           -- entrepreneurs, investors, admins (bcrypt digests only)
startups        -- pitch listings, owned by a user
interests       -- investor bookmark/feedback per startup (unique pair)
events          -- live pitch events
ai_feedback     -- AI pitch analysis, at most one per startup
notifications   -- per-user inbox, written by the fan-out
"""

from __future__ import annotations

import datetime as dt
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    TypeDecorator,
)

from .database import Base


def new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class UTCDateTime(TypeDecorator):
    """Stores naive UTC, returns aware UTC (SQLite drops tzinfo otherwise)."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(dt.timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=dt.timezone.utc)
        return value


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    username = Column(String(128), unique=True, nullable=False, index=True)
    password = Column(String(128), nullable=False)  # bcrypt digest
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(String(20), nullable=False)
    bio = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    profile_image = Column(Text, nullable=True)
    interests = Column(JSON, default=list)
    expertise = Column(JSON, default=list)
    created_at = Column(UTCDateTime, default=_utcnow, nullable=False)


# ---------------------------------------------------------------------------
# Startups
# ---------------------------------------------------------------------------

class Startup(Base):
    __tablename__ = "startups"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), nullable=False, index=True)
    name = Column(String(255), nullable=False, index=True)
    tagline = Column(String(512), nullable=True)
    description = Column(Text, nullable=True)
    industry = Column(String(128), nullable=True, index=True)
    funding_min = Column(Integer, nullable=True)
    funding_max = Column(Integer, nullable=True)
    funding_stage = Column(String(64), nullable=True)
    location = Column(String(255), nullable=True)
    website = Column(String(512), nullable=True)
    pitch_deck = Column(String(1024), nullable=True)
    pitch_video = Column(String(1024), nullable=True)
    logo = Column(String(1024), nullable=True)
    cover_image = Column(String(1024), nullable=True)
    tags = Column(JSON, default=list)
    team_members = Column(JSON, default=list)
    created_at = Column(UTCDateTime, default=_utcnow, nullable=False, index=True)
    updated_at = Column(UTCDateTime, nullable=True)


# ---------------------------------------------------------------------------
# Interests
# ---------------------------------------------------------------------------

class Interest(Base):
    __tablename__ = "interests"

    id = Column(String(32), primary_key=True, default=new_id)
    investor_id = Column(String(32), nullable=False, index=True)
    startup_id = Column(String(32), nullable=False, index=True)
    notes = Column(Text, nullable=True)
    feedback = Column(Text, nullable=True)
    status = Column(String(20), default="pending", nullable=False)
    created_at = Column(UTCDateTime, default=_utcnow, nullable=False)
    updated_at = Column(UTCDateTime, nullable=True)

    __table_args__ = (
        Index("ix_interests_investor_startup", "investor_id", "startup_id", unique=True),
    )


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

class Event(Base):
    __tablename__ = "events"

    id = Column(String(32), primary_key=True, default=new_id)
    title = Column(String(255), nullable=False)
    description = Column(Text, default="")
    event_date = Column(UTCDateTime, nullable=False, index=True)
    duration = Column(Integer, default=60, nullable=False)  # minutes
    meeting_link = Column(String(1024), nullable=True)
    created_at = Column(UTCDateTime, default=_utcnow, nullable=False)


# ---------------------------------------------------------------------------
# AI feedback (scores on 0-100)
# ---------------------------------------------------------------------------

class AiFeedback(Base):
    __tablename__ = "ai_feedback"

    id = Column(String(32), primary_key=True, default=new_id)
    startup_id = Column(String(32), unique=True, nullable=False, index=True)
    clarity = Column(Integer, nullable=False)
    market_need = Column(Integer, nullable=False)
    team_strength = Column(Integer, nullable=False)
    overall_score = Column(Integer, nullable=False)
    suggestion = Column(Text, default="")
    swot_analysis = Column(JSON, default=dict)
    created_at = Column(UTCDateTime, default=_utcnow, nullable=False)
    updated_at = Column(UTCDateTime, nullable=True)


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, default="")
    type = Column(String(64), default="")
    read = Column(Boolean, default=False, nullable=False)
    link = Column(String(1024), nullable=True)
    source_key = Column(String(255), unique=True, nullable=True)
    created_at = Column(UTCDateTime, default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_notifications_user_created", "user_id", "created_at"),
    )
