"""
Interview script as a finite state machine.

next_step(phase, context) decides which question comes next and builds the
prompt the interviewer model has to answer. It is pure: no I/O, same input,
same output. GREETING and INTRODUCTION are selected by the phase itself; for
every later phase the first unmet question quota decides the stage, in the
order experience, role-specific, personality, closing.

The INTRODUCTION turn asks experience question 1, so numExpQuestions should
be at least 1 (enforced at the API boundary).
"""
import re
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from interview_coach.models.session import DEFAULT_CANDIDATE_NAME, Phase, SessionContext
from interview_coach.services import prompts
from interview_coach.services.prompts import NO_GREETING_INSTRUCTION, language_instruction

ROLE_TRANSITION = "Now, let's move on to some role-specific questions."
PERSONALITY_TRANSITION = "Great. Finally, I'd like to ask a few questions to understand you better."


@dataclass(frozen=True)
class PhaseStep:
    prompt: str
    next_phase: Phase
    exp_questions_asked: int
    role_questions_asked: int
    personality_questions_asked: int


def _bump(asked: int, num: int) -> int:
    return min(asked + 1, num) if asked < num else asked


def _step(ctx: SessionContext, prompt: str, next_phase: Phase, exp: Optional[int] = None,
          role: Optional[int] = None, personality: Optional[int] = None) -> PhaseStep:
    return PhaseStep(
        prompt=re.sub(r" {2,}", " ", prompt).strip(),
        next_phase=next_phase,
        exp_questions_asked=ctx.exp_questions_asked if exp is None else exp,
        role_questions_asked=ctx.role_questions_asked if role is None else role,
        personality_questions_asked=ctx.personality_questions_asked if personality is None else personality,
    )


def _answer_line(ctx: SessionContext) -> str:
    return f'The candidate answered: "{ctx.user_answer}".' if ctx.user_answer else ""


def _greeting(ctx: SessionContext) -> PhaseStep:
    name = ctx.user_name.strip()
    greeting_name = f", {name}" if name and name.lower() != DEFAULT_CANDIDATE_NAME.lower() else ""
    prompt = (
        f"{language_instruction(ctx.language)} "
        f"You are an expert interviewer named Gemini. You are starting an interview for a {ctx.role} position"
        f"{f' in the {ctx.industry} industry' if ctx.industry else ''}. "
        f'Start with a professional greeting (e.g., "Good morning"){greeting_name}. '
        "Then, ask the candidate to introduce themselves. "
        f"{prompts.profile_summary_block(ctx.profile_summary)}"
    )
    return _step(ctx, prompt, Phase.INTRODUCTION)


def _introduction(ctx: SessionContext) -> PhaseStep:
    prompt = (
        f"{language_instruction(ctx.language)} "
        f'The candidate, {ctx.user_name}, introduced themselves: "{ctx.user_answer}". '
        "Based on this, their CV, their profile summary, and additional info, "
        "ask your first question about their professional experience. "
        f"{NO_GREETING_INSTRUCTION} "
        f"This is experience question 1 of {ctx.num_exp_questions}. "
        f'CV Text: """{ctx.cv_text}""" Additional Info: """{ctx.additional_info}""" '
        f"{prompts.profile_summary_block(ctx.profile_summary)}"
    )
    return _step(ctx, prompt, Phase.EXPERIENCE, exp=_bump(ctx.exp_questions_asked, ctx.num_exp_questions))


def _experience(ctx: SessionContext) -> PhaseStep:
    index = ctx.exp_questions_asked + 1
    prompt = (
        f"{language_instruction(ctx.language)} {_answer_line(ctx)} "
        "Based on their CV and experience, ask a new question about their professional experience. "
        f"{NO_GREETING_INSTRUCTION} "
        f"This is experience question {index} of {ctx.num_exp_questions}. "
        f'CV Text: """{ctx.cv_text}"""'
    )
    next_phase = Phase.ROLE_SPECIFIC if index >= ctx.num_exp_questions else Phase.EXPERIENCE
    return _step(ctx, prompt, next_phase, exp=index)


def _role_specific(ctx: SessionContext) -> PhaseStep:
    index = ctx.role_questions_asked + 1
    transition = ROLE_TRANSITION if ctx.role_questions_asked == 0 else ""
    if ctx.job_description.strip():
        grounding = (
            "Based on the following job description, ask a relevant question. "
            f'Job Description: """{ctx.job_description}"""'
        )
    else:
        grounding = f"Ask a common and relevant interview question for a **{ctx.role}** position."
    prompt = (
        f"{language_instruction(ctx.language)} {transition} {_answer_line(ctx)} "
        f"{grounding} "
        f"{NO_GREETING_INSTRUCTION} This is role-specific question {index} of {ctx.num_role_questions}."
    )
    next_phase = Phase.PERSONALITY if index >= ctx.num_role_questions else Phase.ROLE_SPECIFIC
    return _step(ctx, prompt, next_phase, role=index)


def _personality(ctx: SessionContext) -> PhaseStep:
    index = ctx.personality_questions_asked + 1
    transition = PERSONALITY_TRANSITION if ctx.personality_questions_asked == 0 else ""
    topics = " ".join(f"- {topic}" for topic in prompts.PERSONALITY_TOPICS)
    asked = " ".join(f'- "{q}"' for q in ctx.interviewer_utterances())
    prompt = (
        f"{language_instruction(ctx.language)} {transition} {_answer_line(ctx)} "
        "Now, ask a new, DIFFERENT personality or behavioral question. "
        "DO NOT repeat or rephrase any question the interviewer has already asked. "
        f"Possible topics include (but are not limited to): {topics} "
        f"Questions already asked: {asked or '- none'} "
        f'CHAT HISTORY: """{prompts.format_chat_history(ctx.full_chat_history)}""" '
        f"{NO_GREETING_INSTRUCTION} "
        f"This is personality question {index} of {ctx.num_personality_questions}."
    )
    next_phase = Phase.CLOSING if index >= ctx.num_personality_questions else Phase.PERSONALITY
    return _step(ctx, prompt, next_phase, personality=index)


def _closing(ctx: SessionContext) -> PhaseStep:
    last_answer = f'The candidate\'s last answer was: "{ctx.user_answer}".' if ctx.user_answer else ""
    prompt = (
        f"{language_instruction(ctx.language)} {last_answer} "
        f"The interview is now over. Thank {ctx.user_name} for their time and briefly explain the next steps. "
        "**Do not mention a specific number of days or a timeline like \"[Number] business days\". "
        "Keep it general.** "
        f"{NO_GREETING_INSTRUCTION}"
    )
    return _step(ctx, prompt, Phase.FINISHED)


TRANSITIONS: Dict[Phase, Callable[[SessionContext], PhaseStep]] = {
    Phase.GREETING: _greeting,
    Phase.INTRODUCTION: _introduction,
    Phase.EXPERIENCE: _experience,
    Phase.ROLE_SPECIFIC: _role_specific,
    Phase.PERSONALITY: _personality,
    Phase.CLOSING: _closing,
}


def resolve_stage(phase: Phase, ctx: SessionContext) -> Phase:
    """Which transition function handles this call."""
    if phase in (Phase.GREETING, Phase.INTRODUCTION):
        return phase
    if ctx.exp_questions_asked < ctx.num_exp_questions:
        return Phase.EXPERIENCE
    if ctx.role_questions_asked < ctx.num_role_questions:
        return Phase.ROLE_SPECIFIC
    if ctx.personality_questions_asked < ctx.num_personality_questions:
        return Phase.PERSONALITY
    return Phase.CLOSING


def next_step(phase: Phase, ctx: SessionContext) -> PhaseStep:
    return TRANSITIONS[resolve_stage(phase, ctx)](ctx)
