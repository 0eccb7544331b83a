# interview_coach/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from interview_coach.config import get_settings
from interview_coach.routes import interview, websocket_routes
from interview_coach.utils.logger import get_logger, setup_logging

setup_logging()
log = get_logger(__name__)
settings = get_settings()

app = FastAPI(
    title="AI Interview Coach API",
    version="1.0.0",
    description="Phase-driven mock interviews with Gemini coaching and live Deepgram transcription"
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(interview.router)
app.include_router(websocket_routes.router)


@app.on_event("startup")
async def startup_event():
    """Startup tasks"""
    log.info("🚀 Starting AI Interview Coach v1.0.0")

    services = []
    if settings.llm_api_key:
        services.append("✅ Gemini LLM")
    if settings.deepgram_api_key:
        services.append("✅ Deepgram STT")
    services.append("✅ Edge TTS")

    log.info(f"Services: {', '.join(services)}")


@app.get("/")
async def root():
    return {
        "message": "AI Interview Coach Backend is running!",
        "status": "operational",
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """Health check"""
    return {
        "status": "healthy",
        "version": "1.0.0",
        "services": {
            "gemini": bool(settings.llm_api_key),
            "deepgram": bool(settings.deepgram_api_key),
            "edge_tts": True,
        }
    }


def run():
    import uvicorn
    uvicorn.run(
        "interview_coach.main:app",
        host="0.0.0.0",
        port=8080,
        log_level="info"
    )


if __name__ == "__main__":
    run()
