from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


DEFAULT_CANDIDATE_NAME = "Candidate"


class Phase(str, Enum):
    """Stages of the interview script"""
    GREETING = "GREETING"
    INTRODUCTION = "INTRODUCTION"
    EXPERIENCE = "EXPERIENCE"
    ROLE_SPECIFIC = "ROLE_SPECIFIC"
    PERSONALITY = "PERSONALITY"
    CLOSING = "CLOSING"
    FINISHED = "FINISHED"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatMessage(CamelModel):
    sender: str  # "user" or "ai"
    text: str
    timestamp: Optional[str] = None


class SessionContext(CamelModel):
    """
    Everything the engine knows about an interview for one call.

    The caller owns this state and sends it back on every turn; the engine
    never mutates it and returns the updated counters in the TurnResult.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    phase: Phase = Phase.GREETING
    user_name: str = DEFAULT_CANDIDATE_NAME
    role: str = ""
    industry: str = ""
    language: str = "English"
    language_code: str = "en-US"

    cv_text: str = ""
    job_description: str = ""
    additional_info: str = ""
    profile_summary: str = ""

    num_exp_questions: int = Field(1, ge=0)
    num_role_questions: int = Field(1, ge=0)
    num_personality_questions: int = Field(1, ge=0)
    exp_questions_asked: int = Field(0, ge=0)
    role_questions_asked: int = Field(0, ge=0)
    personality_questions_asked: int = Field(0, ge=0)

    last_question: str = ""
    user_answer: Optional[str] = None
    full_chat_history: List[ChatMessage] = Field(default_factory=list)

    def interviewer_utterances(self) -> List[str]:
        return [m.text for m in self.full_chat_history if m.sender == "ai"]
