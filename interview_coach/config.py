# ========================================
# config.py - Service configuration
# ========================================

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ---------- LLM Configuration (Gemini) ----------------------------- #
    llm_api_key: str = ""
    llm_model: str = "gemini-2.5-flash"
    llm_temperature: float = 0.7
    llm_max_output_tokens: int = 2048
    llm_max_retries: int = 3
    llm_backoff_base: float = 2.0

    # ---------- Speech-to-Text (Deepgram) ------------------------------ #
    deepgram_api_key: str = ""
    stt_model: str = "nova-2"
    stt_finalize_timeout_seconds: float = 3.0

    # ---------- Text-to-Speech (Edge) ---------------------------------- #
    tts_default_voice: str = "en-US-JennyNeural"

    # ---------- Interview Settings ------------------------------------- #
    max_upload_mb: int = 10

    # ---------- CORS --------------------------------------------------- #
    allowed_origins: str = "http://localhost:3000,http://localhost:5173"

    # ---------- Logging ------------------------------------------------ #
    log_level: str = "INFO"
    log_format: str = "console"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
