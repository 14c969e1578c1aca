"""
Proctorwatch Service - FastAPI Application
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import logging
import time

from .config import settings
from .proctor.api import router as proctor_router, incident_logger
from .utils.logging import ColoredFormatter, log_startup, log_error, Colors


# Route library loggers through the colored formatter
_handler = logging.StreamHandler()
_handler.setFormatter(ColoredFormatter())
_root_logger = logging.getLogger("proctorwatch")
_root_logger.handlers = [_handler]
_root_logger.setLevel(settings.LOG_LEVEL)


app = FastAPI(
    title=settings.APP_NAME,
    description="Real-time behavioral anomaly detection for remote exam proctoring",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None
)


# ============================================================================
# Request Logging Middleware
# ============================================================================

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests with timing."""
    start = time.time()
    method = request.method
    path = request.url.path

    # frame streaming is too chatty to log per request
    quiet = path in ["/health", "/favicon.ico"] or path.endswith(("/stream", "/landmarks"))

    try:
        response = await call_next(request)
        duration_ms = int((time.time() - start) * 1000)

        if not quiet:
            status_color = Colors.GREEN if response.status_code < 400 else Colors.RED
            print(f"{Colors.CYAN}->{Colors.RESET} {method} {path} "
                  f"{status_color}{response.status_code}{Colors.RESET} in {duration_ms}ms")

        return response
    except Exception as e:
        log_error("RequestError", str(e))
        raise


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Must be False when using wildcard origin
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(proctor_router)


@app.on_event("startup")
async def startup_event():
    """Log service startup."""
    log_startup(settings.APP_NAME, settings.PORT)

    print(f"{Colors.DIM}Rule thresholds:{Colors.RESET}")
    print(f"  Head deviation H/V: {Colors.CYAN}{settings.PROCTOR_HEAD_DEVIATION_H}/{settings.PROCTOR_HEAD_DEVIATION_V}{Colors.RESET}")
    print(f"  Gaze deviation H/V: {Colors.CYAN}{settings.PROCTOR_GAZE_DEVIATION_H}/{settings.PROCTOR_GAZE_DEVIATION_V}{Colors.RESET}")
    print(f"  Hand proximity Y: {Colors.CYAN}{settings.PROCTOR_HAND_PROXIMITY_Y}{Colors.RESET}")
    print(f"  Persistence: {Colors.CYAN}{settings.PROCTOR_PERSISTENCE_SECONDS}s{Colors.RESET}")
    print(f"  Failure policy: {Colors.CYAN}{settings.PROCTOR_FAILURE_POLICY}{Colors.RESET}")
    print()


@app.on_event("shutdown")
async def shutdown_event():
    """Let in-flight incident reports finish."""
    await incident_logger.drain()
    print(f"{Colors.DIM}Incident log: sent={incident_logger.sent_count} failed={incident_logger.failed_count}{Colors.RESET}")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("proctorwatch.main:app", host="0.0.0.0", port=settings.PORT)
