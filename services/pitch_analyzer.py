"""
Pitch analysis through a generative text model.

The model is asked for strict JSON, but answers arrive wrapped in prose or
markdown fences often enough that parsing tries several extractions before
giving up. Scores are normalised to 0-100 whatever scale the model used.
"""

import json
import logging
import math
import re
from typing import Any, Optional, Union

from backend.schemas import AnalysisResult, PitchInput, SwotAnalysis
from config_env import AI_SCORE_SCALE
from domain.errors import AnalysisParseError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an experienced venture analyst reviewing startup pitches. "
    "Answer with a single JSON object and nothing else."
)

DEFAULT_SUGGESTION = "No suggestions provided"
SCORE_FIELDS = ("clarity", "marketNeed", "teamStrength")
SWOT_FIELDS = ("strengths", "weaknesses", "opportunities", "threats")

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL | re.IGNORECASE)


def _describe_pitch(pitch: PitchInput) -> str:
    lines = [
        f'Startup: "{pitch.name}"',
        f"Tagline: {pitch.tagline or 'Not provided'}",
        f"Description: {pitch.description or 'Not provided'}",
        f"Industry: {pitch.industry or 'Not specified'}",
    ]
    if pitch.funding_stage:
        lines.append(f"Funding stage: {pitch.funding_stage}")
    if pitch.funding_needed is not None:
        lines.append(f"Funding needed: ${pitch.funding_needed:,.0f}")
    if pitch.tags:
        lines.append(f"Tags: {', '.join(pitch.tags)}")
    if pitch.team_members:
        team = "; ".join(f"{m.name} ({m.role})" for m in pitch.team_members)
        lines.append(f"Team: {team}")
    return "\n".join(lines)


def build_analysis_prompt(pitch: PitchInput, scale: int = AI_SCORE_SCALE) -> str:
    return f"""Analyze this startup pitch.

{_describe_pitch(pitch)}

Provide analysis in STRICT JSON format with ALL of these REQUIRED fields:
{{
  "clarity": number (0-{scale}),
  "marketNeed": number (0-{scale}),
  "teamStrength": number (0-{scale}),
  "overallScore": number (0-{scale}),
  "suggestion": string,
  "swotAnalysis": {{
    "strengths": string[],
    "weaknesses": string[],
    "opportunities": string[],
    "threats": string[]
  }}
}}

The response MUST include all fields and be valid JSON. Do not use markdown."""


def build_swot_prompt(pitch: PitchInput) -> str:
    return f"""Produce a SWOT analysis for this startup.

{_describe_pitch(pitch)}

Answer in STRICT JSON with exactly these fields, each a list of short sentences:
{{"strengths": [], "weaknesses": [], "opportunities": [], "threats": []}}"""


def _outermost(text: str, opener: str, closer: str) -> Optional[str]:
    start = text.find(opener)
    end = text.rfind(closer)
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def extract_json(raw: Union[str, dict]) -> dict:
    """Pull a JSON object out of a model answer.

    Tried in order: an already-decoded dict, a fenced code block, the
    outermost ``{...}`` (or ``[...]``) span, the whole text. The first
    candidate that decodes to an object wins.
    """
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str):
        raise AnalysisParseError(repr(raw), TypeError(f"unsupported answer type {type(raw).__name__}"))

    candidates = []
    fence = _FENCE_RE.search(raw)
    if fence:
        candidates.append(fence.group(1).strip())
    for opener, closer in (("{", "}"), ("[", "]")):
        span = _outermost(raw, opener, closer)
        if span:
            candidates.append(span)
    candidates.append(raw.strip())

    last_error: Optional[Exception] = None
    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError as e:
            last_error = e
            continue
        if isinstance(parsed, dict):
            return parsed
        last_error = ValueError(f"expected a JSON object, got {type(parsed).__name__}")

    logger.warning("Unparseable AI answer (%s chars): %s", len(raw), last_error)
    raise AnalysisParseError(raw, last_error)


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _to_percent(value: Any, scale: int) -> Optional[float]:
    number = _to_number(value)
    if number is None:
        return None
    if scale != 100:
        number = number * 100.0 / scale
    return min(100.0, max(0.0, number))


def _string_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (str, int, float)):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [item if isinstance(item, str) else json.dumps(item) for item in value if item is not None]


def normalize_swot(data: Any) -> SwotAnalysis:
    if not isinstance(data, dict):
        data = {}
    return SwotAnalysis(**{field: _string_list(data.get(field)) for field in SWOT_FIELDS})


def normalize_analysis(data: dict, scale: int = AI_SCORE_SCALE) -> AnalysisResult:
    """Coerce a decoded answer into an ``AnalysisResult`` on the 0-100 scale."""
    scores = {}
    for field in SCORE_FIELDS:
        value = _to_percent(data.get(field), scale)
        scores[field] = 50.0 if value is None else value

    overall = _to_percent(data.get("overallScore"), scale)
    if overall is None:
        overall = sum(scores.values()) / len(scores)

    suggestion = data.get("suggestion")
    suggestion = str(suggestion).strip() if suggestion not in (None, "") else ""

    return AnalysisResult(
        clarity=round(scores["clarity"]),
        market_need=round(scores["marketNeed"]),
        team_strength=round(scores["teamStrength"]),
        overall_score=round(overall),
        suggestion=suggestion or DEFAULT_SUGGESTION,
        swot_analysis=normalize_swot(data.get("swotAnalysis")),
    )


class PitchAnalyzer:

    def __init__(self, client, scale: int = AI_SCORE_SCALE):
        self.client = client
        self.scale = scale

    async def analyze(self, pitch: PitchInput) -> AnalysisResult:
        logger.info("Analyzing pitch %r", pitch.name)
        raw = await self.client.generate(build_analysis_prompt(pitch, self.scale), system=SYSTEM_PROMPT)
        result = normalize_analysis(extract_json(raw), self.scale)
        logger.info("Pitch %r scored %s overall", pitch.name, result.overall_score)
        return result

    async def generate_swot(self, pitch: PitchInput) -> SwotAnalysis:
        logger.info("Generating SWOT for %r", pitch.name)
        raw = await self.client.generate(build_swot_prompt(pitch), system=SYSTEM_PROMPT)
        data = extract_json(raw)
        # Some models nest the lists under the same key as the full analysis.
        if isinstance(data.get("swotAnalysis"), dict):
            data = data["swotAnalysis"]
        return normalize_swot(data)
