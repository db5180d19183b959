"""
GlucoBites Report Service - FastAPI Application

Main application entry point with API endpoints for:
- Emailing or exporting PDF health reports
- Automated report preferences
- Health checks
"""
from fastapi import FastAPI, HTTPException, Response, Depends
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from functools import lru_cache
from typing import Optional
from datetime import datetime
import asyncio
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from glucobites.config import settings
from glucobites.core.delivery import ReportDispatcher, build_mail_transport
from glucobites.core.errors import (
    DataUnavailableError, RenderError, ReportValidationError, TransportError
)
from glucobites.core.scheduler import ReportScheduler
from glucobites.db import HealthDataStore
from glucobites.models import ErrorResponse, HealthResponse, MessageResponse, ReportPreference, ReportRequest
from glucobites.services import ReportService
from glucobites.utils import get_logger

logger = get_logger(__name__)


# ---- FastAPI Application ----

app = FastAPI(
    title="GlucoBites Report Service API",
    description="Paginated PDF health reports delivered to providers by email or download",
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---- Components ----

@lru_cache()
def get_store() -> HealthDataStore:
    return HealthDataStore.from_url(settings.database_url)


@lru_cache()
def get_report_service() -> ReportService:
    store = get_store()
    dispatcher = ReportDispatcher(store, build_mail_transport(settings), settings.mail_sender)
    return ReportService(store, dispatcher)


_scheduler: Optional[ReportScheduler] = None


# ---- API Endpoints ----

@app.get("/", response_model=HealthResponse, tags=["Health"])
async def root():
    """API root - health check."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        timestamp=datetime.now().isoformat(),
        components={
            "report_generator": "ready",
            "scheduler": "running" if _scheduler is not None and _scheduler.running else "stopped",
        }
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        timestamp=datetime.now().isoformat(),
        components={
            "api": "healthy",
            "reports": "ready"
        }
    )


@app.post(
    f"{settings.api_prefix}/users/{{user_id}}/reports",
    tags=["Reports"],
    responses={500: {"model": ErrorResponse}},
)
async def generate_report(
    user_id: int,
    request: ReportRequest,
    service: ReportService = Depends(get_report_service),
):
    """
    Email a PDF report to a provider or return it as a download.

    Actions: 'email' or 'export'
    """
    try:
        artifact = await asyncio.to_thread(
            service.handle_request,
            user_id,
            request.action,
            request.start_date,
            request.end_date,
            request.sections,
            request.provider_email,
            request.provider_name,
        )
    except ReportValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DataUnavailableError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (RenderError, TransportError) as e:
        logger.error(f"Manual report generation failed for user {user_id}: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="Failed to generate report.", details=str(e)).model_dump()
        )

    if artifact is None:
        return MessageResponse(message="Email with PDF report sent successfully.")

    return Response(
        content=artifact.pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'}
    )


@app.get(f"{settings.api_prefix}/users/{{user_id}}/report-preference", response_model=ReportPreference, tags=["Preferences"])
async def get_report_preference(user_id: int, store: HealthDataStore = Depends(get_store)):
    """Get the user's automated report frequency."""
    try:
        frequency = store.get_report_frequency(user_id)
    except Exception as e:
        logger.error(f"Error fetching report preference: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch preference.")
    return ReportPreference(frequency=frequency)


@app.put(f"{settings.api_prefix}/users/{{user_id}}/report-preference", tags=["Preferences"])
async def set_report_preference(
    user_id: int,
    preference: ReportPreference,
    store: HealthDataStore = Depends(get_store),
):
    """Save the user's automated report frequency."""
    try:
        store.set_report_frequency(user_id, preference.frequency)
    except Exception as e:
        logger.error(f"Error updating report preference: {e}")
        raise HTTPException(status_code=500, detail="Failed to update preference.")
    return {"success": True, "message": "Reporting preference updated successfully."}


# ---- Application Lifecycle ----

@app.on_event("startup")
async def startup_event():
    """Initialize on startup."""
    global _scheduler
    logger.info("GlucoBites Report Service starting up...")
    if settings.create_schema_on_startup:
        get_store().create_schema()
    if settings.enable_scheduler:
        _scheduler = ReportScheduler(get_store(), get_report_service(), settings)
        _scheduler.start()
    logger.info("API ready to accept requests")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("GlucoBites Report Service shutting down...")
    if _scheduler is not None:
        _scheduler.shutdown()


# ---- Run with uvicorn ----
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
