# ========================================
# models/interview.py - Turn and summary payloads
# ========================================

import math
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from interview_coach.models.session import CamelModel, ChatMessage, Phase
from interview_coach.utils.logger import get_logger

logger = get_logger("InterviewModels")

MIN_SCORE = 0.0
MAX_SCORE = 10.0


def _clamp_score(value: Any, field_name: str) -> float:
    # bool is an int subclass; a model answering `true` is not a score
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{field_name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ValueError(f"{field_name} must be finite, got {value!r}")
    if value < MIN_SCORE or value > MAX_SCORE:
        logger.warning(f"{field_name} {value} out of range, clamping to [{MIN_SCORE:g}, {MAX_SCORE:g}]")
        return min(max(float(value), MIN_SCORE), MAX_SCORE)
    return float(value)


class PostAnswerAnalysis(CamelModel):
    score: float
    feedback: str

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, v):
        return _clamp_score(v, "score")


class PreAnswerAnalysis(CamelModel):
    hint: str
    example_answer: str


class InterviewSummary(CamelModel):
    final_score: float
    strengths: str
    areas_for_improvement: str

    @field_validator("final_score", mode="before")
    @classmethod
    def clamp_final_score(cls, v):
        return _clamp_score(v, "finalScore")


class TurnResult(CamelModel):
    conversational_response: str
    next_phase: Phase
    post_answer_analysis: Optional[PostAnswerAnalysis] = None
    pre_answer_analysis: Optional[PreAnswerAnalysis] = None
    exp_questions_asked: int = 0
    role_questions_asked: int = 0
    personality_questions_asked: int = 0


class TurnResponse(TurnResult):
    """TurnResult plus what the caller must persist, and optional audio."""
    cv_text: str = ""
    user_name: str = "Candidate"
    audio_content: Optional[str] = None


class SummaryRequest(CamelModel):
    full_chat_history: List[ChatMessage] = Field(default_factory=list)
    analysis_history: List[Dict[str, Any]] = Field(default_factory=list)
    language: str = "English"
