"""
Prompt templates for the interviewer, the coach and the summary.

Every interviewer prompt starts with the language directive; every prompt
except the greeting also carries the no-greeting directive, otherwise the
model tends to say "Hello again!" in the middle of the interview.
"""
import json
from typing import Any, Dict, List

from interview_coach.models.session import ChatMessage

NO_GREETING_INSTRUCTION = (
    "Do not add any greetings or introductory pleasantries. Just ask the question directly."
)

PERSONALITY_TOPICS = [
    "The candidate's greatest professional strength.",
    "The candidate's biggest area for improvement or weakness.",
    "How they handle pressure or tight deadlines.",
    "A time they failed and what they learned.",
    "Their ideal work environment.",
    "How they stay motivated.",
]


def language_instruction(language: str) -> str:
    return (
        f"IMPORTANT: Your entire response MUST be in {language}. "
        "You are speaking directly TO the candidate. Use the second person (\"you\" or its equivalent)."
    )


def json_language_instruction(language: str) -> str:
    return f"**IMPORTANT: Your entire response, including all keys and values in the JSON, MUST be in {language}.**"


def profile_summary_block(profile_summary: str) -> str:
    if not profile_summary:
        return ""
    return f'The candidate also provided this summary about themselves: """{profile_summary}"""'


def format_chat_history(history: List[ChatMessage]) -> str:
    lines = []
    for message in history:
        speaker = "Interviewer" if message.sender == "ai" else "Candidate"
        lines.append(f"{speaker}: {message.text}")
    return "\n".join(lines)


def post_answer_analysis_prompt(language: str, last_question: str, user_answer: str) -> str:
    return (
        "You are a career coach. Analyze an interview answer and provide feedback directly to the candidate, "
        "using \"You\" or the equivalent in the target language. "
        f'The question asked was: "{last_question}". '
        f'The candidate\'s answer was: "{user_answer}". '
        "Your task is to provide a concise, objective analysis. "
        f"{json_language_instruction(language)} "
        "Respond with ONLY a valid JSON object with two keys: "
        '- "score": a number from 0 to 10. '
        '- "feedback": constructive and concise feedback for the candidate, limited to 2-3 sentences. '
        "Do not include any other text."
    )


def pre_answer_analysis_prompt(question: str, language: str, cv_text: str, profile_summary: str) -> str:
    summary = f'CANDIDATE\'S PROFILE SUMMARY:\n"""{profile_summary}"""' if profile_summary else ""
    return (
        f'You are a career coach. For the interview question: "{question}", provide helpful guidance for a candidate. '
        "Your task is to write an example of a high-quality answer as if you were the candidate. "
        "CRUCIALLY, you MUST use the specific facts from the candidate's CV and Profile Summary. "
        f'CANDIDATE\'S CV TEXT: """{cv_text}""" {summary} '
        f"{json_language_instruction(language)} "
        "Respond with ONLY a valid JSON object with two keys: "
        '- "hint": a brief, one-sentence tip. '
        '- "exampleAnswer": a concise but strong example answer, limited to about 50-200 words. '
        "Do not include any other text."
    )


def summary_prompt(
    language: str, chat_history: List[ChatMessage], analysis_history: List[Dict[str, Any]]
) -> str:
    transcript = json.dumps([m.model_dump(exclude_none=True) for m in chat_history], ensure_ascii=False)
    analyses = json.dumps(analysis_history, ensure_ascii=False)
    return (
        "You are an expert career coach. Analyze the entire following job interview transcript and the "
        f"individual analyses provided. The interview language was {language}. "
        f"Your entire response MUST be in {language} and in a valid JSON format only. "
        f"INTERVIEW TRANSCRIPT:---{transcript}--- "
        f"INDIVIDUAL QUESTION ANALYSES:---{analyses}--- "
        "Based on ALL the information, provide a final summary. "
        "Respond with ONLY a valid JSON object with the following keys: "
        '- "finalScore": An average score from 0 to 10. '
        '- "strengths": A markdown-formatted string summarizing the candidate\'s key strengths. Keep each point concise. '
        '- "areasForImprovement": A markdown-formatted string summarizing the main areas for improvement. '
        "Keep each point concise and actionable."
    )


def name_extraction_prompt(cv_text: str, default_name: str) -> str:
    return (
        "From the following CV text, extract the candidate's full name. "
        f"Respond with ONLY the name and nothing else. If you cannot find a name, respond with '{default_name}'. "
        f'CV Text: """{cv_text}"""'
    )
