import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from marketplace_ops.config import settings
from marketplace_ops.core.exceptions import (
    ConfigurationError, ConfirmationDeclined, NotFound,
    PreconditionMissing, RemoteRequestError
)
from marketplace_ops.modules.users import routes as users_routes
from marketplace_ops.modules.inspection import routes as inspection_routes
from marketplace_ops.modules.profiles import routes as profiles_routes
from marketplace_ops.modules.catalog import routes as catalog_routes
from marketplace_ops.modules.search import routes as search_routes
from marketplace_ops.modules.cohorts import routes as cohorts_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


ERROR_STATUS = {
    NotFound: 404,
    PreconditionMissing: 409,
    ConfirmationDeclined: 400,
    ValueError: 400,
    RemoteRequestError: 502,
    ConfigurationError: 500,
}


async def maintenance_error_handler(request: Request, exc: Exception):
    status_code = next(code for error, code in ERROR_STATUS.items() if isinstance(exc, error))
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        if settings.is_production and isinstance(exc, RemoteRequestError):
            return JSONResponse(status_code=status_code, content={"detail": f"{exc.operation} on {exc.target} failed"})
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


for error_class in ERROR_STATUS:
    app.add_exception_handler(error_class, maintenance_error_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"Cache-Control", b"no-store"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SlowAPIMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(users_routes.router, prefix="/api/v1")
app.include_router(inspection_routes.router, prefix="/api/v1")
app.include_router(profiles_routes.router, prefix="/api/v1")
app.include_router(catalog_routes.router, prefix="/api/v1")
app.include_router(search_routes.router, prefix="/api/v1")
app.include_router(cohorts_routes.router, prefix="/api/v1")


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: checks that the Supabase settings are present"""
    try:
        settings.require_connection()
    except ConfigurationError as e:
        return JSONResponse(status_code=503, content={"status": "not ready", "detail": str(e)})
    return {"status": "ready"}
