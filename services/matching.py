"""
Investor / startup match score (baseline heuristic, not a ranking model).

Points, capped at 100:
    industry among the investor's interests     +40
    each startup tag in interests or expertise  +10 (max +30)
    same location                               +15
    AI overall score                            up to +15
"""

from typing import Optional

from backend.schemas import AiFeedback, Recommendation, Startup, User

INDUSTRY_POINTS = 40
TAG_POINTS = 10
TAG_POINTS_MAX = 30
LOCATION_POINTS = 15
AI_POINTS_MAX = 15


def _norm(values) -> set[str]:
    return {v.strip().lower() for v in values if v and v.strip()}


def match_score(investor: User, startup: Startup, feedback: Optional[AiFeedback] = None) -> tuple[int, list[str]]:
    """Return ``(score, reasons)`` with score in 0-100."""
    score = 0.0
    reasons = []
    focus = _norm(investor.interests) | _norm(investor.expertise)

    if startup.industry and startup.industry.strip().lower() in _norm(investor.interests):
        score += INDUSTRY_POINTS
        reasons.append(f"Industry {startup.industry} matches your interests")

    shared = sorted(_norm(startup.tags) & focus)
    if shared:
        score += min(TAG_POINTS_MAX, TAG_POINTS * len(shared))
        reasons.append(f"Shared focus: {', '.join(shared)}")

    if investor.location and startup.location and investor.location.strip().lower() == startup.location.strip().lower():
        score += LOCATION_POINTS
        reasons.append(f"Based in {startup.location}")

    if feedback is not None:
        score += AI_POINTS_MAX * feedback.overall_score / 100
        reasons.append(f"AI overall score {feedback.overall_score}/100")

    return max(0, min(100, round(score))), reasons


def rank_startups(investor: User, candidates: list[tuple[Startup, Optional[AiFeedback]]],
                  limit: int = 10) -> list[Recommendation]:
    results = []
    for startup, feedback in candidates:
        score, reasons = match_score(investor, startup, feedback)
        results.append(Recommendation(startup=startup, match_score=score, reasons=reasons))
    # newest first among equal scores
    results.sort(key=lambda r: (r.match_score, r.startup.created_at), reverse=True)
    return results[:limit]
