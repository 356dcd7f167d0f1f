# mock_exam/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import config
from .core.ai_services import close_ai_service
from .api.routes import router
from .services.test_service import close_test_session, get_test_session

# Setup logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    logger.info("🚀 Mock Exam Helper starting...")

    try:
        validation = config.validate()
        if not validation["valid"]:
            raise ValueError(f"Configuration invalid: {validation['issues']}")

        logger.info("✅ Configuration validated")

        session = get_test_session()
        logger.info(f"✅ Session ready ({len(session.history)} history records)")
        logger.info(f"📊 Model: {config.GROQ_MODEL}, batch size: {config.QUESTION_BATCH_SIZE}")

    except Exception as e:
        logger.error(f"❌ Startup failed: {e}")
        raise

    yield

    logger.info("👋 Shutting down...")
    close_test_session()
    close_ai_service()
    logger.info("✅ Graceful shutdown completed")

# Create FastAPI application
app = FastAPI(
    title=config.API_TITLE,
    description=config.API_DESCRIPTION,
    version=config.API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router)

# Exception handlers
@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle validation errors"""
    logger.warning(f"Validation error: {exc}")
    return JSONResponse(
        status_code=400,
        content={
            "error": "Validation Error",
            "message": str(exc),
            "type": "validation_error"
        }
    )

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred",
            "type": "server_error"
        }
    )

@app.get("/health")
async def health_check():
    """Comprehensive health check"""
    health_status = {
        "status": "healthy",
        "service": "mock_exam_api",
        "version": config.API_VERSION,
    }

    try:
        session_health = await get_test_session().health_check()
        health_status["test_service"] = session_health["status"]
        health_status["ai_service"] = session_health["ai_service"]
        health_status["history_records"] = session_health["history_records"]
    except Exception as e:
        health_status["status"] = "degraded"
        health_status["test_service"] = "error"
        logger.warning(f"Test service health check failed: {e}")

    return health_status

@app.get("/info")
async def api_info():
    """API information and capabilities"""
    return {
        "name": config.API_TITLE,
        "version": config.API_VERSION,
        "description": config.API_DESCRIPTION,
        "features": {
            "ai_question_generation": True,
            "batch_generation": True,
            "ai_feedback": True,
            "local_history": True,
            "csv_export": True
        },
        "configuration": {
            "model": config.GROQ_MODEL,
            "batch_size": config.QUESTION_BATCH_SIZE,
            "retry_attempts": config.RETRY_MAX_ATTEMPTS,
            "dummy_mode": config.USE_DUMMY_DATA
        },
        "endpoints": {
            "exams": "GET /api/exams",
            "session": "GET /api/session",
            "start_test": "POST /api/session/start",
            "answer": "POST /api/session/answer",
            "next": "POST /api/session/next",
            "history": "GET /api/history",
            "export": "GET /api/history/export",
            "health": "GET /health",
            "docs": "GET /docs"
        }
    }

def run():
    import uvicorn

    logger.info("🚀 Starting Mock Exam Helper API")
    logger.info(f"🌐 Server: http://{config.API_HOST}:{config.API_PORT}")
    logger.info(f"📚 Docs: http://{config.API_HOST}:{config.API_PORT}/docs")

    uvicorn.run(
        "mock_exam.main:app",
        host=config.API_HOST,
        port=config.API_PORT,
        log_level=config.LOG_LEVEL.lower()
    )

if __name__ == "__main__":
    run()
