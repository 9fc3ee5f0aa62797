# =======================================================================================
# valtrack/main.py - FastAPI Application Entry Point
# =======================================================================================
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from .config import config
from .api.routes.address import router as address_router
from .api.routes.announcements import router as announcements_router
from .api.routes.attendance import router as attendance_router
from .api.routes.audit import router as audit_router
from .api.routes.auth import router as auth_router
from .api.routes.baggage import router as baggage_router
from .api.routes.branches import router as branches_router
from .api.routes.dashboard import router as dashboard_router
from .api.routes.incidents import router as incidents_router
from .api.routes.patrons import router as patrons_router
from .api.routes.profiles import router as profiles_router
from .api.routes.registrations import router as registrations_router
from .database import db_manager
from .models.schemas import HealthResponse
from .utils.exceptions import ValTrackError

logger = logging.getLogger("valtrack")


def configure_logging():
    logging.basicConfig(
        level=logging.DEBUG if config.API_DEBUG else config.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(ValTrackError)
    async def valtrack_error_handler(request: Request, exc: ValTrackError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning("Integrity error on %s: %s", request.url.path, exc.orig)
        return JSONResponse(
            status_code=409,
            content={"detail": "The change conflicts with existing data"},
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s", request.url.path)
        return JSONResponse(status_code=503, content={"detail": "Database unavailable"})


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="ValTrack API",
        version="1.0.0",
        description="Library branch patron, baggage and incident tracking",
        debug=config.API_DEBUG,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Routers
    app.include_router(auth_router, prefix="/api", tags=["auth"])
    app.include_router(branches_router, prefix="/api", tags=["branches"])
    app.include_router(patrons_router, prefix="/api", tags=["patrons"])
    app.include_router(attendance_router, prefix="/api", tags=["attendance"])
    app.include_router(baggage_router, prefix="/api", tags=["baggage"])
    app.include_router(incidents_router, prefix="/api", tags=["incidents"])
    app.include_router(profiles_router, prefix="/api", tags=["profiles"])
    app.include_router(announcements_router, prefix="/api", tags=["announcements"])
    app.include_router(audit_router, prefix="/api", tags=["audit"])
    app.include_router(dashboard_router, prefix="/api", tags=["dashboard"])
    app.include_router(registrations_router, prefix="/api", tags=["registrations"])
    app.include_router(address_router, prefix="/api", tags=["address"])

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    def api_health():
        try:
            db_manager.fetch_one("SELECT 1")
            return HealthResponse(status="ok", dataAvailable=True, message=None)
        except SQLAlchemyError as e:
            return HealthResponse(
                status="error", dataAvailable=False, message=str(e)
            )

    @app.on_event("startup")
    async def startup_event():
        db_manager.create_schema()
        logger.info("ValTrack API started")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("valtrack.main:app", host=config.API_HOST, port=config.API_PORT)
