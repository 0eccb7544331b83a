# ========================================
# routes/interview.py - Turn and summary endpoints
# ========================================

import json
from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from interview_coach.config import get_settings
from interview_coach.models.interview import InterviewSummary, SummaryRequest, TurnResponse
from interview_coach.models.session import DEFAULT_CANDIDATE_NAME, ChatMessage, Phase, SessionContext
from interview_coach.services.edge_tts_service import EdgeTTSService
from interview_coach.services.interview_service import InterviewService
from interview_coach.services.resume_parser import read_cv
from interview_coach.utils.errors import OrchestrationError
from interview_coach.utils.logger import get_logger

router = APIRouter(prefix="/api/interview", tags=["Interview"])
logger = get_logger("InterviewRoutes")

TURN_FAILED = {"error": "Failed to process interview step."}
SUMMARY_FAILED = {"error": "Failed to generate summary."}


@lru_cache
def get_interview_service() -> InterviewService:
    return InterviewService()


@lru_cache
def get_tts_service() -> EdgeTTSService:
    return EdgeTTSService()


def _parse_chat_history(raw: str) -> List[ChatMessage]:
    if not raw or not raw.strip():
        return []
    try:
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError("fullChatHistory must be a JSON list")
        return [ChatMessage.model_validate(item) for item in data]
    except (ValueError, ValidationError) as e:
        raise HTTPException(422, f"Invalid fullChatHistory: {e}")


def _clamp(asked: int, num: int, minimum: int = 0):
    num = max(num, minimum)
    return min(max(asked, 0), num), num


async def session_context_form(
    phase: Phase = Form(Phase.GREETING),
    user_name: str = Form("", alias="userName"),
    industry: str = Form(""),
    role: str = Form(""),
    language: str = Form("English"),
    language_code: str = Form("en-US", alias="languageCode"),
    cv_text: str = Form("", alias="cvText"),
    job_description: str = Form("", alias="jobDescription"),
    additional_info: str = Form("", alias="additionalInfo"),
    profile_summary: str = Form("", alias="profileSummary"),
    num_exp_questions: int = Form(1, alias="numExpQuestions"),
    num_role_questions: int = Form(1, alias="numRoleQuestions"),
    num_personality_questions: int = Form(1, alias="numPersonalityQuestions"),
    exp_questions_asked: int = Form(0, alias="expQuestionsAsked"),
    role_questions_asked: int = Form(0, alias="roleQuestionsAsked"),
    personality_questions_asked: int = Form(0, alias="personalityQuestionsAsked"),
    last_question: str = Form("", alias="lastQuestion"),
    user_answer: str = Form("", alias="userAnswer"),
    full_chat_history: str = Form("", alias="fullChatHistory"),
) -> SessionContext:
    """Build the SessionContext from the form, clamping counters into range."""
    exp_asked, num_exp = _clamp(exp_questions_asked, num_exp_questions, minimum=1)
    role_asked, num_role = _clamp(role_questions_asked, num_role_questions)
    personality_asked, num_personality = _clamp(personality_questions_asked, num_personality_questions)
    return SessionContext(
        phase=phase,
        user_name=user_name.strip() or DEFAULT_CANDIDATE_NAME,
        industry=industry,
        role=role,
        language=language,
        language_code=language_code,
        cv_text=cv_text,
        job_description=job_description,
        additional_info=additional_info,
        profile_summary=profile_summary,
        num_exp_questions=num_exp,
        num_role_questions=num_role,
        num_personality_questions=num_personality,
        exp_questions_asked=exp_asked,
        role_questions_asked=role_asked,
        personality_questions_asked=personality_asked,
        last_question=last_question,
        user_answer=user_answer.strip() or None,
        full_chat_history=_parse_chat_history(full_chat_history),
    )


async def _bootstrap_candidate(cv_file: UploadFile, service: InterviewService):
    """CV text and candidate name from the upload; failures are not fatal."""
    try:
        blob = await cv_file.read()
        cv_text = read_cv(blob, cv_file.filename or "", get_settings().max_upload_mb * 1024 * 1024)
    except ValueError as e:
        logger.error(f"Error parsing CV: {e}")
        return "", DEFAULT_CANDIDATE_NAME
    user_name = await service.extract_candidate_name(cv_text)
    logger.info(f"CV parsed and name extracted: {user_name}")
    return cv_text, user_name


@router.post("/next-step", response_model=TurnResponse)
async def next_step(
    context: SessionContext = Depends(session_context_form),
    cv_file: Optional[UploadFile] = File(None, alias="cvFile"),
    selected_voice: str = Form("", alias="selectedVoice"),
    service: InterviewService = Depends(get_interview_service),
    tts: EdgeTTSService = Depends(get_tts_service),
):
    """Advance the interview by one turn"""
    if context.phase == Phase.GREETING and cv_file is not None:
        cv_text, user_name = await _bootstrap_candidate(cv_file, service)
        context = context.model_copy(update={"cv_text": cv_text, "user_name": user_name})

    try:
        result = await service.process_turn(context.phase, context)
    except OrchestrationError as e:
        logger.error(f"Error in /api/interview/next-step at {e.step}: {e.cause}")
        return JSONResponse(status_code=500, content=TURN_FAILED)
    except Exception as e:
        logger.error(f"Unexpected error in /api/interview/next-step: {e}", exc_info=True)
        return JSONResponse(status_code=500, content=TURN_FAILED)

    audio = await tts.synthesize_base64(result.conversational_response, selected_voice or None)

    return TurnResponse(
        **result.model_dump(),
        cv_text=context.cv_text,
        user_name=context.user_name,
        audio_content=audio,
    )


@router.post("/summarize", response_model=InterviewSummary)
async def summarize(
    request: SummaryRequest,
    service: InterviewService = Depends(get_interview_service),
):
    """Final evaluation of a completed interview"""
    try:
        return await service.summarize(request.full_chat_history, request.analysis_history, request.language)
    except OrchestrationError as e:
        logger.error(f"Error in /api/interview/summarize: {e.cause}")
        return JSONResponse(status_code=500, content=SUMMARY_FAILED)
    except Exception as e:
        logger.error(f"Unexpected error in /api/interview/summarize: {e}", exc_info=True)
        return JSONResponse(status_code=500, content=SUMMARY_FAILED)
