import re

import pytest

from conftest import CLOSING_TEXT, QUESTION_TEXT, FakeGemini, default_responder
from interview_coach.models.session import ChatMessage, Phase, SessionContext
from interview_coach.services.interview_service import (
    STEP_INTERVIEWER,
    STEP_POST_ANSWER,
    STEP_PRE_ANSWER,
    STEP_SUMMARY,
    InterviewService,
)
from interview_coach.utils.errors import (
    MalformedOutputError,
    NonRetriableUpstreamError,
    OrchestrationError,
    RetriesExhaustedError,
)

TIMELINE_RE = re.compile(r"\d+\s*(business\s+|working\s+)?(days?|weeks?|hours?)", re.IGNORECASE)


def make_context(**overrides):
    base = dict(
        user_name="Jordan Lee",
        role="Backend Engineer",
        language="English",
        cv_text="Built payment APIs in Go for 4 years.",
        num_exp_questions=1,
        num_role_questions=1,
        num_personality_questions=1,
    )
    base.update(overrides)
    return SessionContext(**base)


async def test_greeting_turn_has_no_post_answer_analysis(service, fake_gemini):
    result = await service.process_turn(Phase.GREETING, make_context())

    assert result.post_answer_analysis is None
    assert result.pre_answer_analysis is not None
    assert result.pre_answer_analysis.hint == "Use the STAR method."
    assert result.next_phase == Phase.INTRODUCTION
    assert result.conversational_response == QUESTION_TEXT
    assert len(fake_gemini.prompts) == 2


async def test_answered_turn_includes_both_analyses(service, fake_gemini):
    ctx = make_context(phase=Phase.INTRODUCTION, last_question="Introduce yourself.", user_answer="I'm Jordan.")
    result = await service.process_turn(Phase.INTRODUCTION, ctx)

    assert result.post_answer_analysis.score == 7.0
    assert result.post_answer_analysis.feedback == "Clear and structured."
    assert result.pre_answer_analysis is not None
    assert result.exp_questions_asked == 1
    assert 'The question asked was: "Introduce yourself."' in fake_gemini.prompts[0]
    # the coaching prompt is built around the question just generated
    assert QUESTION_TEXT in fake_gemini.prompts[2]


async def test_final_turn_has_no_pre_answer_analysis(service, fake_gemini):
    ctx = make_context(
        phase=Phase.CLOSING, user_answer="I stay calm.", last_question="How do you handle pressure?",
        exp_questions_asked=1, role_questions_asked=1, personality_questions_asked=1,
    )
    result = await service.process_turn(Phase.CLOSING, ctx)

    assert result.next_phase == Phase.FINISHED
    assert result.pre_answer_analysis is None
    assert result.post_answer_analysis is not None
    assert len(fake_gemini.prompts) == 2


async def test_full_interview_with_one_question_per_category(service):
    ctx = make_context()
    phase = Phase.GREETING
    history = []
    results = []
    for answer in [None, "I'm Jordan.", "I led a migration.", "I'd shard the ledger.", "I stay calm."]:
        ctx = ctx.model_copy(update={
            "phase": phase,
            "user_answer": answer,
            "last_question": history[-1].text if history else "",
            "full_chat_history": list(history),
        })
        result = await service.process_turn(phase, ctx)
        results.append(result)
        if answer:
            history.append(ChatMessage(sender="user", text=answer))
        history.append(ChatMessage(sender="ai", text=result.conversational_response))
        ctx = ctx.model_copy(update={
            "exp_questions_asked": result.exp_questions_asked,
            "role_questions_asked": result.role_questions_asked,
            "personality_questions_asked": result.personality_questions_asked,
        })
        phase = result.next_phase

    final = results[-1]
    assert all(r.next_phase != Phase.FINISHED for r in results[:-1])
    assert final.next_phase == Phase.FINISHED
    assert final.conversational_response == CLOSING_TEXT
    assert not TIMELINE_RE.search(final.conversational_response)
    assert final.pre_answer_analysis is None
    assert all(r.post_answer_analysis is not None for r in results[1:])


async def test_malformed_analysis_fails_the_turn():
    def responder(prompt):
        if "Analyze an interview answer" in prompt:
            return "The answer was pretty good, 7/10."
        return default_responder(prompt)

    gemini = FakeGemini(responder)
    service = InterviewService(gemini=gemini)
    ctx = make_context(phase=Phase.INTRODUCTION, user_answer="I'm Jordan.")

    with pytest.raises(OrchestrationError) as excinfo:
        await service.process_turn(Phase.INTRODUCTION, ctx)
    assert excinfo.value.step == STEP_POST_ANSWER
    assert isinstance(excinfo.value.cause, MalformedOutputError)
    assert len(gemini.prompts) == 1


async def test_exhausted_coaching_call_is_surfaced_not_defaulted():
    def responder(prompt):
        if "For the interview question" in prompt:
            return RetriesExhaustedError(3, RuntimeError("503"))
        return default_responder(prompt)

    service = InterviewService(gemini=FakeGemini(responder))
    with pytest.raises(OrchestrationError) as excinfo:
        await service.process_turn(Phase.GREETING, make_context())
    assert excinfo.value.step == STEP_PRE_ANSWER
    assert isinstance(excinfo.value.cause, RetriesExhaustedError)


async def test_interviewer_failure_is_wrapped_with_step():
    def responder(prompt):
        if "You are an expert interviewer" in prompt:
            return NonRetriableUpstreamError("400 invalid argument")
        return default_responder(prompt)

    service = InterviewService(gemini=FakeGemini(responder))
    with pytest.raises(OrchestrationError) as excinfo:
        await service.process_turn(Phase.GREETING, make_context())
    assert excinfo.value.step == STEP_INTERVIEWER


async def test_summarize(service, fake_gemini):
    history = [ChatMessage(sender="ai", text="Hi"), ChatMessage(sender="user", text="Hello")]
    summary = await service.summarize(history, [{"score": 7, "feedback": "ok"}], "English")

    assert summary.final_score == 8.0
    assert summary.strengths == "- Clear communication"
    assert '"feedback": "ok"' in fake_gemini.prompts[0]


async def test_summarize_failure_is_wrapped():
    service = InterviewService(gemini=FakeGemini(lambda prompt: '{"finalScore": 8}'))
    with pytest.raises(OrchestrationError) as excinfo:
        await service.summarize([], [], "English")
    assert excinfo.value.step == STEP_SUMMARY


async def test_extract_candidate_name(service):
    assert await service.extract_candidate_name("Jordan Lee\nBackend Engineer") == "Jordan Lee"
    assert await service.extract_candidate_name("   ") == "Candidate"

    failing = InterviewService(gemini=FakeGemini(lambda prompt: RetriesExhaustedError(3)))
    assert await failing.extract_candidate_name("Jordan Lee") == "Candidate"
