# certprep/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import config
from .core.errors import CertPrepError
from .core.utils import DateTimeUtils
from .api.routes import router
from .services.container import build_services, ServiceContainer

# Setup logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(services: ServiceContainer = None) -> FastAPI:
    """
    Build the API application.

    With `services` given the app uses them as-is and leaves closing them
    to the caller; otherwise the lifespan validates configuration, builds
    the services at startup and closes them on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 Certification Practice Test API starting...")

        if services is not None:
            app.state.services = services
            yield
            return

        try:
            validation = config.validate()
            if not validation["valid"]:
                raise Exception(f"Configuration invalid: {validation['issues']}")
            logger.info("✅ Configuration validated")

            app.state.services = build_services(config)

            storage = app.state.services.repository.validate_connection()
            if not storage["overall"]:
                raise Exception(f"Storage validation failed: {storage}")
            logger.info(f"✅ Storage ready ({storage['backend']})")

            logger.info(f"📊 Configuration: {config.DEFAULT_QUESTION_COUNT} questions per test, "
                        f"{config.MAX_CORPUS_CHARS} corpus chars")
            logger.info(f"🔍 Search: {'enabled' if config.SEARCH_ENABLED else 'disabled'}")
        except Exception as e:
            logger.error(f"❌ Startup failed: {e}")
            raise Exception(f"Application startup failed: {e}")

        yield

        logger.info("👋 Shutting down...")
        try:
            await app.state.services.close()
            logger.info("✅ Graceful shutdown completed")
        except Exception as e:
            logger.error(f"❌ Shutdown error: {e}")

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
        allow_origins=config.CORS_ORIGIN_LIST,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    # Exception handlers
    @app.exception_handler(CertPrepError)
    async def certprep_error_handler(request: Request, exc: CertPrepError):
        """Pipeline and lookup errors carry their own status"""
        if exc.status_code >= 500:
            logger.error(f"{exc.error_type} on {request.url.path}: {exc.message}")
        else:
            logger.warning(f"{exc.error_type} on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "type": exc.error_type}
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        """Handle validation errors"""
        logger.warning(f"Validation error: {exc}")
        return JSONResponse(
            status_code=400,
            content={"error": str(exc), "type": "validation_error"}
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Malformed request bodies are client errors"""
        logger.warning(f"Invalid request body: {exc.errors()}")
        return JSONResponse(
            status_code=400,
            content={"error": "Request body must be a JSON object", "type": "validation_error"}
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler"""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "An unexpected error occurred", "type": "server_error"}
        )

    # Health check endpoints
    @app.get("/health")
    async def health_check(request: Request):
        """Component health"""
        health_status = {
            "status": "healthy",
            "service": "certprep_api",
            "version": config.API_VERSION,
            "timestamp": DateTimeUtils.get_current_timestamp()
        }

        try:
            components = request.app.state.services.health_check()
            if components["status"] == "error":
                raise Exception(components["message"])
            health_status["storage"] = "healthy" if components["storage"]["overall"] else "degraded"
            health_status["ai_service"] = components["ai_service"]["status"]
            health_status["search"] = "enabled" if components["search_enabled"] else "disabled"
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "service": "certprep_api", "error": str(e)}
            )

        if health_status["storage"] != "healthy" or health_status["ai_service"] != "healthy":
            health_status["status"] = "degraded"
        return health_status

    @app.get("/info")
    async def api_info(request: Request):
        """API information and capabilities"""
        settings = request.app.state.services.settings
        return {
            "name": settings.API_TITLE,
            "version": settings.API_VERSION,
            "description": settings.API_DESCRIPTION,
            "features": {
                "certification_search": settings.SEARCH_ENABLED,
                "web_enrichment": settings.SEARCH_ENABLED and settings.ENABLE_WEB_ENRICHMENT,
                "completion_provider": settings.COMPLETION_PROVIDER,
                "storage_backend": settings.STORAGE_BACKEND
            },
            "configuration": {
                "default_question_count": settings.DEFAULT_QUESTION_COUNT,
                "max_question_count": settings.MAX_QUESTION_COUNT,
                "single_answer_ratio": settings.SINGLE_ANSWER_RATIO,
                "max_corpus_chars": settings.MAX_CORPUS_CHARS
            },
            "endpoints": {
                "search": "GET /api/search?q=",
                "generate_test": "POST /api/generate-test",
                "get_test": "GET /api/test/{test_id}",
                "get_answers": "GET /api/test/{test_id}/answers",
                "submit": "POST /api/test/{test_id}/submit",
                "sessions": "GET /api/test/{test_id}/sessions",
                "health": "GET /health",
                "docs": "GET /docs"
            }
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    logger.info("🚀 Starting Certification Practice Test API")
    logger.info(f"🌐 Server: http://{config.API_HOST}:{config.PORT}")
    logger.info(f"📚 Docs: http://{config.API_HOST}:{config.PORT}/docs")

    uvicorn.run(
        "certprep.main:app",
        host=config.API_HOST,
        port=config.PORT,
        reload=config.DEBUG_MODE,
        log_level=config.LOG_LEVEL.lower(),
        access_log=config.DEBUG_MODE
    )
