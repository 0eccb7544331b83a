"""
Pull structured JSON out of free-form model output.

Gemini frequently wraps JSON answers in a markdown code fence
(```json ... ```), sometimes without the language tag. One layer of
fencing is removed before parsing; anything else is malformed output.
"""
import json
import re
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from interview_coach.utils.errors import MalformedOutputError
from interview_coach.utils.logger import get_logger

logger = get_logger("ResponseExtractor")

T = TypeVar("T", bound=BaseModel)

_FENCED_RE = re.compile(r"^```(?:[A-Za-z][\w+-]*(?=\s))?[ \t]*\n?(?P<body>.*?)\n?```$", re.DOTALL)


def strip_fences(raw: str) -> str:
    """Remove surrounding whitespace and a single fenced-block wrapper."""
    text = (raw or "").strip()
    match = _FENCED_RE.match(text)
    if match:
        text = match.group("body").strip()
    return text


def extract(raw: str) -> Any:
    """Parse model output into a JSON value; raises MalformedOutputError."""
    cleaned = strip_fences(raw)
    try:
        return json.loads(cleaned)
    except (json.JSONDecodeError, TypeError) as e:
        logger.error(f"Model output is not valid JSON: {e}; raw={(raw or '')[:200]!r}")
        raise MalformedOutputError(f"Model output is not valid JSON: {e}", raw=raw) from e


def extract_as(raw: str, model: Type[T]) -> T:
    """Parse and validate model output against a payload shape."""
    data = extract(raw)
    if not isinstance(data, dict):
        raise MalformedOutputError(f"Expected a JSON object for {model.__name__}, got {type(data).__name__}", raw=raw)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error(f"Model output does not match {model.__name__}: {e}")
        raise MalformedOutputError(f"Model output does not match {model.__name__}: {e}", raw=raw) from e
