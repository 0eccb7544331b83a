import json

import pytest
from fastapi.testclient import TestClient

from interview_coach.main import app
from interview_coach.routes.interview import get_interview_service, get_tts_service
from interview_coach.routes.websocket_routes import get_recognizer_factory
from interview_coach.services.interview_service import InterviewService

CLOSING_TEXT = (
    "Thank you for your time today, Jordan. Our team will review your interview "
    "and reach out to you about the next steps."
)
QUESTION_TEXT = "Tell me about a project you led."
ANALYSIS_JSON = '```json\n{"score": 7, "feedback": "Clear and structured."}\n```'
COACHING_JSON = '{"hint": "Use the STAR method.", "exampleAnswer": "At my last job I led a migration..."}'
SUMMARY_JSON = '{"finalScore": 8, "strengths": "- Clear communication", "areasForImprovement": "- More metrics"}'


def default_responder(prompt: str):
    if "Analyze an interview answer" in prompt:
        return ANALYSIS_JSON
    if "For the interview question" in prompt:
        return COACHING_JSON
    if "provide a final summary" in prompt:
        return SUMMARY_JSON
    if "extract the candidate's full name" in prompt:
        return "Jordan Lee\n"
    if "The interview is now over" in prompt:
        return CLOSING_TEXT
    return QUESTION_TEXT


class FakeGemini:
    """Stands in for GeminiService; answers by prompt content."""

    def __init__(self, responder=default_responder):
        self.responder = responder
        self.prompts = []

    async def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        result = self.responder(prompt)
        if isinstance(result, Exception):
            raise result
        return result


class FakeTTS:
    def __init__(self, audio="QUJD"):
        self.audio = audio
        self.calls = []

    async def synthesize_base64(self, text, voice=None):
        self.calls.append((text, voice))
        return self.audio


class FakeRecognizer:
    def __init__(self, language_code, on_result, on_error, start_ok=True, results_on_write=(),
                 tail=(), error_on_write=None, error_on_start=None):
        self.language_code = language_code
        self.on_result = on_result
        self.on_error = on_error
        self.start_ok = start_ok
        self.results_on_write = list(results_on_write)
        self.tail = list(tail)
        self.error_on_write = error_on_write
        self.error_on_start = error_on_start
        self.started = False
        self.finished = False
        self.aborted = False
        self.written = []

    async def start(self):
        self.started = True
        if self.error_on_start:
            self.on_error(self.error_on_start)
        return self.start_ok

    async def write(self, chunk: bytes):
        self.written.append(chunk)
        if self.error_on_write:
            self.on_error(self.error_on_write)
            return
        for payload in self.results_on_write:
            self.on_result(payload)

    async def finish(self):
        self.finished = True
        for payload in self.tail:
            self.on_result(payload)

    async def abort(self):
        self.aborted = True


class FakeRecognizerFactory:
    def __init__(self, **options):
        self.options = options
        self.created = []

    def __call__(self, language_code, on_result, on_error):
        recognizer = FakeRecognizer(language_code, on_result, on_error, **self.options)
        self.created.append(recognizer)
        return recognizer


@pytest.fixture
def fake_gemini():
    return FakeGemini()


@pytest.fixture
def service(fake_gemini):
    return InterviewService(gemini=fake_gemini)


@pytest.fixture
def fake_tts():
    return FakeTTS()


@pytest.fixture
def api_client(service, fake_tts):
    app.dependency_overrides[get_interview_service] = lambda: service
    app.dependency_overrides[get_tts_service] = lambda: fake_tts
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_relay_client():
    clients = []

    def _make(factory):
        app.dependency_overrides[get_recognizer_factory] = lambda: factory
        client = TestClient(app)
        clients.append(client)
        return client

    yield _make
    app.dependency_overrides.clear()


def config_message(language_code="en-US"):
    return json.dumps({"config": {"languageCode": language_code}})
