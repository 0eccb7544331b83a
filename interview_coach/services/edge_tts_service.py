"""services/edge_tts_service.py

Edge TTS Service (neural voices via Microsoft Edge)

Voices the interviewer's reply. Audio is optional for a turn: any failure
here yields None and the turn goes on without audio.
"""

from __future__ import annotations

import base64
from typing import Optional

import edge_tts

from interview_coach.config import get_settings
from interview_coach.utils.logger import get_logger

logger = get_logger("EdgeTTSService")


class EdgeTTSService:
    """Text-to-Speech using Edge neural voices."""

    def __init__(self, default_voice: Optional[str] = None, rate: str = "+0%", pitch: str = "+0Hz"):
        self.default_voice = default_voice or get_settings().tts_default_voice
        self.rate = rate
        self.pitch = pitch
        logger.info(f"✅ Edge TTS initialized with default voice={self.default_voice}")

    async def text_to_speech(self, text: str, voice: Optional[str] = None) -> bytes:
        """Convert text to MP3 bytes."""
        clean = (text or "").strip()
        if not clean:
            logger.warning("Empty text provided for Edge TTS")
            return b""

        communicate = edge_tts.Communicate(
            text=clean,
            voice=voice or self.default_voice,
            rate=self.rate,
            pitch=self.pitch,
        )

        audio = bytearray()
        async for chunk in communicate.stream():
            if chunk.get("type") == "audio" and chunk.get("data"):
                audio.extend(chunk["data"])
        return bytes(audio)

    async def synthesize_base64(self, text: str, voice: Optional[str] = None) -> Optional[str]:
        """Zero or one audio blob, base64-encoded; never raises."""
        try:
            logger.info(f"🗣️ [EdgeTTS] Generating speech: {text[:60]}...")
            audio = await self.text_to_speech(text, voice)
        except Exception as e:
            logger.error(f"❌ [EdgeTTS] TTS generation error: {e}", exc_info=True)
            return None
        if not audio:
            logger.warning("TTS response did not contain audio content.")
            return None
        logger.info(f"✅ [EdgeTTS] Generated {len(audio)} bytes with voice {voice or self.default_voice}")
        return base64.b64encode(audio).decode("utf-8")
