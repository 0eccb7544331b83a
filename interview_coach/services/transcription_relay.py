# services/transcription_relay.py
"""
Bridges a client audio WebSocket to an upstream live recognizer.

Framing: text frames are JSON control messages, binary frames are audio.
Content is never sniffed, so a transcript saying "stop" is just data.

    IDLE --config--> CONFIGURED --audio--> STREAMING
    any --stop / upstream error / disconnect--> CLOSED

Client receives {"status": "ready"} once the upstream stream is open, then
upstream results forwarded verbatim, in arrival order.
"""
import asyncio
import json
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from fastapi import WebSocket, WebSocketDisconnect, status

from interview_coach.utils.logger import get_logger

logger = get_logger("TranscriptionRelay")

READY_MESSAGE = json.dumps({"status": "ready"})

RecognizerFactory = Callable[..., Any]


class RelayState(str, Enum):
    IDLE = "idle"
    CONFIGURED = "configured"
    STREAMING = "streaming"
    CLOSED = "closed"


class RelaySession:
    """One upstream recognizer plus the ordered outbox towards the client."""

    def __init__(self, language_code: str, send: Callable[[str], Awaitable[None]]):
        self.language_code = language_code
        self.recognizer = None
        self.torn_down = False
        self.failed = False
        self._closing = False
        self._send = send
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._sender_task: Optional[asyncio.Task] = None

    def start_sender(self):
        self._sender_task = asyncio.create_task(self._sender_loop())

    def deliver(self, payload: str):
        if self.torn_down:
            return
        self._outbox.put_nowait(payload)

    async def _sender_loop(self):
        while True:
            payload = await self._outbox.get()
            try:
                await self._send(payload)
            except Exception as e:
                logger.debug(f"Dropping message for closed client: {e}")
            finally:
                self._outbox.task_done()

    @property
    def is_open(self) -> bool:
        return not self._closing and not self.torn_down

    async def close(self, graceful: bool):
        if self._closing or self.torn_down:
            return
        self._closing = True
        try:
            if self.recognizer is not None:
                if graceful:
                    await self.recognizer.finish()
                else:
                    self.torn_down = True
                    await self.recognizer.abort()
        except Exception as e:
            logger.error(f"Error closing recognizer: {e}")
        finally:
            self.torn_down = True
            if graceful and self._sender_task is not None:
                await self._outbox.join()
            if self._sender_task is not None:
                self._sender_task.cancel()


class TranscriptionRelay:
    """Per-connection actor; all lifecycle state lives on this object."""

    def __init__(self, websocket: WebSocket, recognizer_factory: RecognizerFactory):
        self.websocket = websocket
        self.recognizer_factory = recognizer_factory
        self.state = RelayState.IDLE
        self.session: Optional[RelaySession] = None
        self._background: Set[asyncio.Task] = set()

    async def handle_connection(self):
        await self.websocket.accept()
        logger.info("Client connected to STT relay")
        try:
            await self._message_loop()
        except WebSocketDisconnect:
            pass
        except Exception as e:
            logger.error(f"STT relay error: {e}", exc_info=True)
        finally:
            await self.on_connection_closed()

    async def _message_loop(self):
        while True:
            message = await self.websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            if message.get("bytes") is not None:
                await self.handle_audio(message["bytes"])
            elif message.get("text") is not None:
                await self.handle_control(message["text"])

    async def handle_control(self, text: str):
        try:
            message = json.loads(text)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring unparsable control message: {text[:100]!r}")
            return
        if not isinstance(message, dict):
            logger.warning(f"Ignoring non-object control message: {text[:100]!r}")
            return

        if "config" in message:
            await self.configure(message["config"])
        elif message.get("event") == "stop":
            await self.stop()
        else:
            logger.warning(f"Unknown control message keys: {sorted(message)}")

    async def configure(self, config: Dict[str, Any]):
        if self.state == RelayState.CLOSED:
            logger.warning("Config received after relay closed; ignoring")
            return
        language_code = config.get("languageCode") if isinstance(config, dict) else None
        if not language_code:
            logger.warning(f"Config message without languageCode: {config!r}")
            return

        logger.info(f"STT config received: lang={language_code}")
        if self.session is not None:
            await self._teardown(graceful=False)

        session = RelaySession(language_code, self.websocket.send_text)
        opened = False
        try:
            session.recognizer = self.recognizer_factory(
                language_code,
                on_result=session.deliver,
                on_error=lambda message: self._on_upstream_error(session, message),
            )
            opened = await session.recognizer.start()
        except Exception as e:
            logger.error(f"Could not open upstream recognizer: {e}", exc_info=True)

        if opened and (session.failed or session.torn_down):
            # upstream reported an error while the stream was still opening
            logger.error("Upstream recognizer failed during start")
            await session.close(graceful=False)
            opened = False

        if not opened:
            session.torn_down = True
            self.state = RelayState.CLOSED
            await self._close_client(status.WS_1011_INTERNAL_ERROR)
            return

        self.session = session
        session.start_sender()
        self.state = RelayState.CONFIGURED
        session.deliver(READY_MESSAGE)
        logger.info("STT stream is ready. Sent 'ready' signal to client.")

    async def handle_audio(self, chunk: bytes):
        session = self.session
        if session is None or not session.is_open:
            logger.debug(f"Dropping {len(chunk)} audio bytes: no live session")
            return
        try:
            await session.recognizer.write(chunk)
        except Exception as e:
            logger.error(f"Audio write failed: {e}")
            await self._fail(session)
            return
        self.state = RelayState.STREAMING

    async def stop(self):
        if self.session is None:
            logger.debug("Stop received with no active session")
            return
        logger.info("Stop signal received. Ending STT stream.")
        await self._teardown(graceful=True)
        self.state = RelayState.CLOSED

    async def on_connection_closed(self):
        logger.info("Client disconnected from STT relay")
        await self._teardown(graceful=False)
        self.state = RelayState.CLOSED
        for task in list(self._background):
            task.cancel()

    def _on_upstream_error(self, session: RelaySession, message: str):
        logger.error(f"STT stream error: {message}")
        session.failed = True
        task = asyncio.create_task(self._fail(session))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _fail(self, session: RelaySession):
        if session is not self.session:
            # replaced already, or failed while still opening
            await session.close(graceful=False)
            return
        await self._teardown(graceful=False)
        self.state = RelayState.CLOSED
        await self._close_client(status.WS_1011_INTERNAL_ERROR)

    async def _teardown(self, graceful: bool):
        session, self.session = self.session, None
        if session is not None:
            await session.close(graceful)

    async def _close_client(self, code: int):
        try:
            await self.websocket.close(code=code)
        except Exception as e:
            logger.debug(f"Client socket already closed: {e}")
