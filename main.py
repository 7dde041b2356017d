from fastapi import FastAPI, Request, status, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.middleware.sessions import SessionMiddleware
from contextlib import asynccontextmanager
import logging
import uvicorn

from config import settings

# Import API routers
from app.api.endpoints import (
    auth, users, cities, collaborators, patients, procedures, procedure_templates,
    events, admin, dashboard, metrics, patient_progress,
)

# Import logging and security middleware
from app.core.logging import configure_logging
from app.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from app.services.errors import NotFoundError, BusinessRuleError, PermissionDeniedError

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    logger.info("%s %s starting up (%s)", settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT)
    yield
    from database import engine
    await engine.dispose()
    logger.info("%s shutting down", settings.APP_NAME)

# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Clinic CRM API: patients, collaborators, goals and consultation outcomes",
    version=settings.APP_VERSION,
    lifespan=lifespan
)

# Add security middleware (order matters: the last one added runs first)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    session_cookie=settings.SESSION_COOKIE_NAME,
    max_age=settings.SESSION_MAX_AGE_SECONDS,
    same_site="lax",
    https_only=settings.SESSION_HTTPS_ONLY,
)
# Configure CORS outermost so headers are present even on errors
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Render HTTPException as {"detail": ...}"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Malformed or incomplete input is a 400 with one readable line per problem
    """
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "Invalid value")
        errors.append(f"{location}: {message}" if location else message)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request data", "errors": errors}
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(BusinessRuleError)
async def business_rule_handler(request: Request, exc: BusinessRuleError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log anything unexpected and hide the details from the client"""
    logger.error(
        "Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )


# Include API routers under /api
API_PREFIX = settings.API_PREFIX

app.include_router(auth.router, prefix=API_PREFIX, tags=["Authentication"])
app.include_router(users.router, prefix=API_PREFIX, tags=["Users"])
app.include_router(cities.router, prefix=API_PREFIX, tags=["Cities"])
app.include_router(collaborators.router, prefix=API_PREFIX, tags=["Collaborators"])
app.include_router(patients.router, prefix=API_PREFIX, tags=["Patients"])
app.include_router(procedures.router, prefix=API_PREFIX, tags=["Procedures"])
app.include_router(procedure_templates.router, prefix=API_PREFIX, tags=["Procedure Templates"])
app.include_router(events.router, prefix=API_PREFIX, tags=["Events"])
app.include_router(admin.router, prefix=API_PREFIX, tags=["Admin"])
app.include_router(dashboard.router, prefix=API_PREFIX, tags=["Dashboard"])
app.include_router(metrics.router, prefix=API_PREFIX, tags=["Metrics"])
app.include_router(patient_progress.router, prefix=API_PREFIX, tags=["Patient Progress"])


@app.get("/")
async def root():
    """Health check endpoint"""
    return {"status": "healthy"}


@app.get("/api/health")
async def health_check():
    """Detailed health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION
    }

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
