"""
Sample marketplace data for demos (SEED_SAMPLE_DATA=true).

Two users (password "password"), two startups, an interest, two upcoming
events, AI feedback for EcoTrack and a few notifications. Skipped when the
sample users already exist.
"""

from __future__ import annotations

import datetime as dt
import logging

from backend.schemas import (
    AiFeedbackCreate,
    EventCreate,
    InterestCreate,
    NotificationCreate,
    StartupCreate,
    UserCreate,
    utcnow,
)
from domain.storage import Storage
from services.accounts import register_user

logger = logging.getLogger(__name__)

SAMPLE_PASSWORD = "password"


async def seed_sample_data(storage: Storage) -> bool:
    """Returns True when data was written."""
    if await storage.get_user_by_username("entrepreneur") and await storage.get_user_by_username("investor"):
        logger.info("Sample data already present, skipping seed")
        return False

    entrepreneur = await register_user(storage, UserCreate(
        username="entrepreneur",
        password=SAMPLE_PASSWORD,
        full_name="John Entrepreneur",
        email="john@example.com",
        role="entrepreneur",
        bio="Serial entrepreneur with passion for sustainability",
        location="San Francisco",
        interests=["Technology", "Environment", "Education"],
        expertise=["Product Development", "Marketing", "Fundraising"],
    ))
    investor = await register_user(storage, UserCreate(
        username="investor",
        password=SAMPLE_PASSWORD,
        full_name="Sarah Investor",
        email="sarah@example.com",
        role="investor",
        bio="Angel investor focused on early-stage startups",
        location="New York",
        interests=["FinTech", "HealthTech", "CleanTech"],
        expertise=["Finance", "Strategy", "ScaleUp"],
    ))

    eco_track = await storage.create_startup(StartupCreate(
        user_id=entrepreneur.id,
        name="EcoTrack",
        tagline="Carbon footprint tracking for eco-conscious consumers",
        description=(
            "EcoTrack is an innovative platform that helps individuals and businesses track and "
            "reduce their carbon footprint through data-driven insights and personalized recommendations."
        ),
        industry="Sustainability",
        funding_needed=500_000,
        funding_stage="Seed",
        location="San Francisco",
        website="https://ecotrack.example.com",
        pitch_deck="https://example.com/ecotrack-deck.pdf",
        tags=["CleanTech", "Mobile App", "B2B2C"],
        team_members=[
            {"name": "John Entrepreneur", "role": "CEO", "bio": "Serial entrepreneur"},
            {"name": "Alice Chen", "role": "CTO", "bio": "Former Google engineer"},
            {"name": "Mark Wilson", "role": "CMO", "bio": "Marketing expert"},
        ],
    ))
    await storage.create_startup(StartupCreate(
        user_id=entrepreneur.id,
        name="MediConnect",
        tagline="AI-powered healthcare provider matching",
        description=(
            "MediConnect uses artificial intelligence to match patients with the most suitable "
            "healthcare providers based on their specific needs, medical history, and preferences."
        ),
        industry="HealthTech",
        funding_needed=750_000,
        funding_stage="Series A",
        location="Boston",
        website="https://mediconnect.example.com",
        pitch_deck="https://example.com/mediconnect-deck.pdf",
        tags=["AI", "Healthcare", "SaaS"],
        team_members=[
            {"name": "John Entrepreneur", "role": "CEO", "bio": "Serial entrepreneur"},
            {"name": "Dr. Sarah Johnson", "role": "Medical Director", "bio": "Former hospital director"},
            {"name": "James Lee", "role": "CTO", "bio": "AI specialist"},
        ],
    ))

    await storage.create_interest(InterestCreate(
        investor_id=investor.id,
        startup_id=eco_track.id,
        notes="Interesting approach to sustainability, would like to know more about the tech stack",
        feedback="Strong concept but needs more market validation",
    ))

    now = utcnow()
    await storage.create_event(EventCreate(
        title="FinTech Innovation Pitch Night",
        description="Join us for an evening of exciting pitches from the most innovative FinTech startups",
        event_date=now + dt.timedelta(days=7),
        duration=120,
        meeting_link="https://zoom.us/j/123456789",
    ))
    await storage.create_event(EventCreate(
        title="HealthTech Investor Showcase",
        description="Connecting healthcare startups with potential investors",
        event_date=now + dt.timedelta(days=14),
        duration=180,
        meeting_link="https://zoom.us/j/987654321",
    ))

    await storage.create_ai_feedback(AiFeedbackCreate(
        startup_id=eco_track.id,
        clarity=85,
        market_need=70,
        team_strength=90,
        suggestion=(
            "Based on your pitch content, consider strengthening your market need section by including "
            "more specific data on your target market size and growth potential."
        ),
        swot_analysis={
            "strengths": [
                "Strong founding team with relevant experience",
                "Unique value proposition in the market",
                "Scalable business model",
            ],
            "weaknesses": [
                "Limited initial funding",
                "Early stage with unproven market traction",
                "Potential regulatory challenges",
            ],
            "opportunities": [
                "Growing market demand in this sector",
                "Potential for strategic partnerships",
                "International expansion possibilities",
            ],
            "threats": [
                "Established competitors",
                "Changing economic conditions",
                "Rapidly evolving technology landscape",
            ],
        },
    ))

    for payload in (
        NotificationCreate(
            user_id=entrepreneur.id,
            title="New Interest in Your Startup",
            message="Sarah Investor is interested in EcoTrack and left feedback.",
            type="interest",
            link=f"/startup/{eco_track.id}",
        ),
        NotificationCreate(
            user_id=entrepreneur.id,
            title="AI Analysis Complete",
            message="AI has analyzed your pitch and generated feedback.",
            type="ai-feedback",
            link=f"/startup/{eco_track.id}/ai-feedback",
        ),
        NotificationCreate(
            user_id=entrepreneur.id,
            title="Live Pitch Event Scheduled",
            message="Your pitch is scheduled for the FinTech Innovation Pitch Night.",
            type="event",
            link="/live-events",
        ),
        NotificationCreate(
            user_id=investor.id,
            title="New Startups Available",
            message="New startups have been added that match your interests.",
            type="recommendation",
            link="/startups",
        ),
    ):
        await storage.create_notification(payload)

    logger.info("Seeded sample data (users %s, %s)", entrepreneur.id, investor.id)
    return True
