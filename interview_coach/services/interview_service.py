# services/interview_service.py
from typing import Any, Dict, List, Optional

from interview_coach.models.interview import (
    InterviewSummary,
    PostAnswerAnalysis,
    PreAnswerAnalysis,
    TurnResult,
)
from interview_coach.models.session import DEFAULT_CANDIDATE_NAME, ChatMessage, Phase, SessionContext
from interview_coach.services import phase_engine, prompts
from interview_coach.services.gemini_service import GeminiService
from interview_coach.services.response_extractor import extract_as
from interview_coach.utils.errors import InterviewCoachError, OrchestrationError, RetriesExhaustedError
from interview_coach.utils.logger import get_logger

logger = get_logger("InterviewService")

STEP_POST_ANSWER = "post_answer_analysis"
STEP_INTERVIEWER = "interviewer_response"
STEP_PRE_ANSWER = "pre_answer_analysis"
STEP_SUMMARY = "summary"


class InterviewService:
    """
    Runs one interview turn: analyse the answer, ask the next question,
    coach the candidate for it. Every model call has its own retry budget;
    the first failing step aborts the whole turn.
    """

    def __init__(self, gemini: Optional[GeminiService] = None):
        self.gemini = gemini or GeminiService()

    async def _run_step(self, step: str, prompt: str) -> str:
        try:
            return await self.gemini.generate_text(prompt)
        except RetriesExhaustedError as e:
            logger.error(f"[{step}] retries exhausted after {e.attempts} attempts")
            raise OrchestrationError(step, e) from e
        except InterviewCoachError as e:
            logger.error(f"[{step}] non-retriable failure: {e}")
            raise OrchestrationError(step, e) from e

    async def _run_structured_step(self, step: str, prompt: str, model):
        raw = await self._run_step(step, prompt)
        try:
            return extract_as(raw, model)
        except InterviewCoachError as e:
            logger.error(f"[{step}] malformed model output")
            raise OrchestrationError(step, e) from e

    async def process_turn(self, phase: Phase, context: SessionContext) -> TurnResult:
        post_answer: Optional[PostAnswerAnalysis] = None
        if context.user_answer:
            post_answer = await self._run_structured_step(
                STEP_POST_ANSWER,
                prompts.post_answer_analysis_prompt(context.language, context.last_question, context.user_answer),
                PostAnswerAnalysis,
            )

        step = phase_engine.next_step(phase, context)
        logger.info(f"Turn {phase.value} -> {step.next_phase.value}")
        response = (await self._run_step(STEP_INTERVIEWER, step.prompt)).strip()

        pre_answer: Optional[PreAnswerAnalysis] = None
        if step.next_phase != Phase.FINISHED:
            pre_answer = await self._run_structured_step(
                STEP_PRE_ANSWER,
                prompts.pre_answer_analysis_prompt(
                    response, context.language, context.cv_text, context.profile_summary
                ),
                PreAnswerAnalysis,
            )

        return TurnResult(
            conversational_response=response,
            next_phase=step.next_phase,
            post_answer_analysis=post_answer,
            pre_answer_analysis=pre_answer,
            exp_questions_asked=step.exp_questions_asked,
            role_questions_asked=step.role_questions_asked,
            personality_questions_asked=step.personality_questions_asked,
        )

    async def summarize(
        self, chat_history: List[ChatMessage], analysis_history: List[Dict[str, Any]], language: str
    ) -> InterviewSummary:
        """Final score, strengths and improvement areas for a finished interview."""
        return await self._run_structured_step(
            STEP_SUMMARY,
            prompts.summary_prompt(language, chat_history, analysis_history),
            InterviewSummary,
        )

    async def extract_candidate_name(self, cv_text: str) -> str:
        """Best effort; never raises, falls back to the default name."""
        if not cv_text.strip():
            return DEFAULT_CANDIDATE_NAME
        try:
            name = await self.gemini.generate_text(prompts.name_extraction_prompt(cv_text, DEFAULT_CANDIDATE_NAME))
        except InterviewCoachError as e:
            logger.warning(f"Name extraction failed, using default: {e}")
            return DEFAULT_CANDIDATE_NAME
        name = name.strip().strip('"').strip()
        return name or DEFAULT_CANDIDATE_NAME
