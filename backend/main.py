from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse
from routers import auth, users, reports, comments
from database import init_db
from config import settings, setup_logging
from middleware import LoggingMiddleware
from exceptions import AppError, ServerError, ValidationError

# Setup logging first
logger, request_id_filter = setup_logging()

logger.info(f"Database target: {settings.DATABASE_URL.split('@')[-1]}")

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.SETTING_VERSION,
    swagger_ui_parameters={
        "persistAuthorization": True,
        "displayRequestDuration": True,
        "tryItOutEnabled": True,
        "defaultModelsExpandDepth": -1,
    }
)

# Add logging middleware
app.add_middleware(LoggingMiddleware, request_id_filter=request_id_filter)

# CORS configuration - include X-New-Token in exposed headers for token refresh
cors_expose_headers = list(settings.CORS_EXPOSE_HEADERS) + ["X-New-Token"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
    expose_headers=cors_expose_headers,
)


@app.middleware("http")
async def token_refresh_middleware(request: Request, call_next):
    """
    Middleware to inject refreshed token into response header.

    If validate_token() determines the token needs refresh, it stores
    the new token in request.state.new_token. This middleware reads it
    and adds it to the response header so the client can update its stored token.
    """
    response = await call_next(request)

    new_token = getattr(request.state, 'new_token', None)
    if new_token:
        response.headers["X-New-Token"] = new_token

    return response

# Include routers
logger.info("Including routers...")

# Auth router with custom prefix
app.include_router(
    auth.router,
    prefix=f"{settings.API_PREFIX}/auth",
    tags=["auth"],
    responses={401: {"description": "Not authenticated"}}
)

# Resource routers
app.include_router(users.router)
app.include_router(reports.router)
app.include_router(comments.router)

logger.info("Routers included")


@app.on_event("startup")
async def startup_event():
    logger.info("Application starting up...")
    await init_db()
    logger.info("Database initialized")


@app.get("/")
async def root():
    """Root endpoint - points at the health check and docs"""
    return {"message": f"{settings.APP_NAME} API", "health": "/api/health", "docs": "/docs"}

@app.get("/api/health")
async def health_check():
    """Health check endpoint for monitoring"""
    return {"status": "healthy", "version": settings.SETTING_VERSION}


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Map the AppError hierarchy onto its status code and JSON body."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} in {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} in {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Body/query parse failures are reported like any other validation error (400)."""
    logger.error(f"RequestValidationError in {request.url.path}:")
    errors = []
    for error in exc.errors():
        loc = error.get('loc') or ()
        logger.error(f"  - {loc}: {error.get('msg')} (type: {error.get('type')})")
        errors.append({"field": str(loc[-1]) if loc else "body", "msg": error.get('msg', 'Invalid value')})
    validation_error = ValidationError(errors=errors)
    return JSONResponse(status_code=validation_error.status_code, content=validation_error.to_response())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for any unhandled exceptions. The body never carries details."""
    logger.exception(f"Unhandled exception in {request.url.path}: {type(exc).__name__}: {exc}")
    server_error = ServerError()
    return JSONResponse(status_code=server_error.status_code, content=server_error.to_response())


logger.info("Application startup complete")
