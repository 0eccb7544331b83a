# routes/websocket_routes.py
"""
WebSocket route for live answer transcription
"""
from fastapi import APIRouter, Depends, WebSocket

from interview_coach.services.deepgram_service import DeepgramRecognizer
from interview_coach.services.transcription_relay import RecognizerFactory, TranscriptionRelay
from interview_coach.utils.logger import get_logger

router = APIRouter(tags=["WebSocket"])
logger = get_logger("WebSocketRoutes")


def get_recognizer_factory() -> RecognizerFactory:
    return DeepgramRecognizer


@router.websocket("/stt")
async def stt_websocket(
    websocket: WebSocket,
    recognizer_factory: RecognizerFactory = Depends(get_recognizer_factory),
):
    """
    Live transcription for one recorded answer

    Client sends:
    - {"config": {"languageCode": "en-US"}} (text frame)
    - Audio chunks (binary frames)
    - {"event": "stop"} (text frame)

    Server sends:
    - {"status": "ready"} once the recognizer is listening
    - Recognizer results, unchanged
    """
    relay = TranscriptionRelay(websocket, recognizer_factory)
    await relay.handle_connection()
