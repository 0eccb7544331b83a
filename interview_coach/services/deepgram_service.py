# services/deepgram_service.py
"""
Deepgram Speech-to-Text session
One live recognizer per answer recording; results are handed back as JSON
text exactly once serialized, so the relay can pass them through untouched.
"""
import asyncio
import json
from typing import Callable, Optional

from deepgram import DeepgramClient, DeepgramClientOptions, LiveOptions, LiveTranscriptionEvents

from interview_coach.config import get_settings
from interview_coach.utils.logger import get_logger

logger = get_logger("DeepgramService")

ResultCallback = Callable[[str], None]
ErrorCallback = Callable[[str], None]


class DeepgramRecognizer:
    """
    Live transcription session.

    Lifecycle: start() → write()* → finish() (graceful, flushes pending
    results) or abort() (immediate, nothing more is delivered).
    The browser records Opus in a WebM container at 48 kHz; the container
    header describes the stream, so no raw encoding is declared.
    """

    def __init__(
        self,
        language_code: str,
        on_result: ResultCallback,
        on_error: ErrorCallback,
        client: Optional[DeepgramClient] = None,
    ):
        settings = get_settings()
        self.language_code = language_code
        self.on_result = on_result
        self.on_error = on_error
        self.finalize_timeout = settings.stt_finalize_timeout_seconds
        self.model = settings.stt_model
        self.connection = None
        self.is_open = False
        self._flushed = asyncio.Event()

        if client is not None:
            self.client = client
        else:
            if not settings.deepgram_api_key:
                raise ValueError("Deepgram API key not configured")
            config = DeepgramClientOptions(options={"keepalive": "true"})
            self.client = DeepgramClient(settings.deepgram_api_key, config)

    async def start(self) -> bool:
        """Open the upstream stream; True once Deepgram accepted it."""
        options = LiveOptions(
            model=self.model,
            language=self.language_code,
            punctuate=True,
            smart_format=True,
            interim_results=True,
        )
        self.connection = self.client.listen.asyncwebsocket.v("1")
        self.connection.on(LiveTranscriptionEvents.Transcript, self._on_transcript)
        self.connection.on(LiveTranscriptionEvents.Error, self._on_error)
        self.connection.on(LiveTranscriptionEvents.Close, self._on_close)

        if await self.connection.start(options):
            logger.info(f"✅ Deepgram stream open (lang={self.language_code})")
            self.is_open = True
            return True
        logger.error("Failed to start Deepgram connection")
        return False

    async def write(self, audio_data: bytes):
        if not self.is_open:
            return
        await self.connection.send(audio_data)

    async def finish(self):
        """End of stream: ask Deepgram to flush, wait for the tail, close."""
        if not self.is_open:
            return
        try:
            await self.connection.finalize()
            await asyncio.wait_for(self._flushed.wait(), timeout=self.finalize_timeout)
        except asyncio.TimeoutError:
            logger.debug("No final result before finalize timeout")
        finally:
            await self._close()

    async def abort(self):
        """Drop the stream now; late results are discarded."""
        if not self.is_open:
            return
        await self._close()

    async def _close(self):
        self.is_open = False
        try:
            await self.connection.finish()
            logger.info("Deepgram connection closed")
        except Exception as e:
            logger.error(f"Error closing Deepgram connection: {e}")

    # Event Handlers

    async def _on_transcript(self, _connection, result=None, **kwargs):
        if result is None or not self.is_open:
            return
        self.on_result(json.dumps(result.to_dict()))
        if getattr(result, "from_finalize", False):
            self._flushed.set()

    async def _on_error(self, _connection, error=None, **kwargs):
        logger.error(f"Deepgram error: {error}")
        self.on_error(str(error))

    async def _on_close(self, _connection, close=None, **kwargs):
        logger.info("Deepgram stream closed by upstream")
        self.is_open = False
