"""
Tests for AI answer parsing, score normalisation and the analyzer facade.
"""

import json

import pytest

from backend.schemas import PitchInput, TeamMember
from domain.errors import AnalysisParseError, UpstreamError
from services.pitch_analyzer import (
    DEFAULT_SUGGESTION,
    PitchAnalyzer,
    build_analysis_prompt,
    extract_json,
    normalize_analysis,
)

ANALYSIS = {
    "clarity": 80,
    "marketNeed": 70,
    "teamStrength": 90,
    "overallScore": 85,
    "suggestion": "Add market sizing.",
    "swotAnalysis": {
        "strengths": ["Team"],
        "weaknesses": ["Funding"],
        "opportunities": ["Growth"],
        "threats": ["Competitors"],
    },
}


@pytest.fixture
def pitch():
    return PitchInput(
        name="EcoTrack",
        tagline="Carbon footprint tracking",
        industry="Sustainability",
        team_members=[TeamMember(name="Alice Chen", role="CTO")],
    )


class TestExtractJson:
    """Each extraction strategy in priority order."""

    def test_dict_passes_through(self):
        assert extract_json(ANALYSIS) is ANALYSIS

    def test_fenced_block(self):
        raw = "Here is the analysis:\n```json\n" + json.dumps(ANALYSIS) + "\n```\nHope it helps."
        assert extract_json(raw) == ANALYSIS

    def test_fence_without_language_tag(self):
        raw = "```\n" + json.dumps(ANALYSIS) + "\n```"
        assert extract_json(raw) == ANALYSIS

    def test_braces_inside_prose(self):
        raw = "Sure! " + json.dumps(ANALYSIS) + " Let me know if you need more."
        assert extract_json(raw) == ANALYSIS

    def test_plain_json(self):
        assert extract_json(json.dumps(ANALYSIS)) == ANALYSIS

    def test_garbage_raises_with_raw_text(self):
        with pytest.raises(AnalysisParseError) as exc_info:
            extract_json("I cannot analyze this pitch.")
        assert exc_info.value.raw_text == "I cannot analyze this pitch."
        assert exc_info.value.cause is not None

    def test_array_only_is_not_an_object(self):
        with pytest.raises(AnalysisParseError):
            extract_json("[1, 2, 3]")


class TestNormalizeAnalysis:
    """Defaults, clamping and scale conversion."""

    def test_complete_answer_is_kept(self):
        result = normalize_analysis(ANALYSIS)
        assert (result.clarity, result.market_need, result.team_strength) == (80, 70, 90)
        assert result.overall_score == 85
        assert result.swot_analysis.threats == ["Competitors"]

    def test_missing_fields_get_defaults(self):
        result = normalize_analysis({"clarity": 80})
        assert result.market_need == 50
        assert result.team_strength == 50
        assert result.overall_score == 60
        assert result.suggestion == DEFAULT_SUGGESTION
        assert result.swot_analysis.strengths == []

    def test_out_of_range_scores_are_clamped(self):
        result = normalize_analysis({"clarity": 140, "marketNeed": -5, "teamStrength": "75"})
        assert (result.clarity, result.market_need, result.team_strength) == (100, 0, 75)

    def test_ten_point_scale_is_converted(self):
        result = normalize_analysis({"clarity": 8, "marketNeed": 7, "teamStrength": 9, "overallScore": 8}, scale=10)
        assert (result.clarity, result.market_need, result.team_strength) == (80, 70, 90)
        assert result.overall_score == 80

    def test_non_string_swot_entries_are_stringified(self):
        result = normalize_analysis({"swotAnalysis": {"strengths": ["Team", {"detail": "IP"}], "threats": "Rivals"}})
        assert result.swot_analysis.strengths == ["Team", '{"detail": "IP"}']
        assert result.swot_analysis.threats == ["Rivals"]


class TestPitchAnalyzer:

    def test_prompt_names_fields_and_scale(self, pitch):
        prompt = build_analysis_prompt(pitch, scale=100)
        assert '"EcoTrack"' in prompt
        assert "marketNeed" in prompt
        assert "0-100" in prompt
        assert "Alice Chen (CTO)" in prompt

    async def test_analyze_parses_fenced_answer(self, pitch, fake_llm):
        fake_llm.queue("```json\n" + json.dumps(ANALYSIS) + "\n```")
        result = await PitchAnalyzer(fake_llm).analyze(pitch)
        assert result.overall_score == 85
        assert len(fake_llm.prompts) == 1

    async def test_unparseable_answer_raises(self, pitch, fake_llm):
        fake_llm.queue("no json here")
        with pytest.raises(AnalysisParseError):
            await PitchAnalyzer(fake_llm).analyze(pitch)

    async def test_upstream_error_propagates(self, pitch, fake_llm):
        fake_llm.queue(UpstreamError("AI service timed out"))
        with pytest.raises(UpstreamError):
            await PitchAnalyzer(fake_llm).analyze(pitch)

    async def test_swot_accepts_nested_answer(self, pitch, fake_llm):
        fake_llm.queue(json.dumps({"swotAnalysis": ANALYSIS["swotAnalysis"]}))
        swot = await PitchAnalyzer(fake_llm).generate_swot(pitch)
        assert swot.opportunities == ["Growth"]
