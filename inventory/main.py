from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_401_UNAUTHORIZED
from slowapi.errors import RateLimitExceeded
from inventory.config import Settings, settings as env_settings
from inventory.database import Database
from inventory.errors import InventoryError
from inventory.headers import SecurityHeadersMiddleware, cors_options
from inventory.logger import configure_logging, get_logger
from inventory.routers import build_auth_router, build_limiter, rate_limit_exceeded_handler, servers_router
from inventory.security import BearerAuthBackend
from inventory.time_utils import unix_now


logger = get_logger(__name__)


def error_response(message: str, status_code: int) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if status_code == HTTP_401_UNAUTHORIZED else None
    return JSONResponse({"error": message}, status_code=status_code, headers=headers)


async def inventory_error_handler(request: Request, exc: InventoryError) -> JSONResponse:
    return error_response(exc.message, exc.status_code)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        # Drop the leading "body"/"query"/"path" marker from the location
        location = ".".join(str(part) for part in err.get("loc", ())[1:])
        problems.append(f"{location}: {err.get('msg')}" if location else err.get("msg"))
    return error_response("; ".join(problems) or "Invalid request", HTTP_400_BAD_REQUEST)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(str(exc.detail), exc.status_code)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or env_settings
    database = database or Database(settings.database_url)
    configure_logging(settings.log_level)

    app = FastAPI(title=settings.app_name)
    app.state.settings = settings
    app.state.database = database
    limiter = build_limiter()
    app.state.limiter = limiter

    # Starlette runs the last added middleware first (outermost)
    app.add_middleware(AuthenticationMiddleware, backend=BearerAuthBackend(settings))
    app.add_middleware(SecurityHeadersMiddleware, production=settings.is_production)
    app.add_middleware(CORSMiddleware, **cors_options(settings))

    app.add_exception_handler(InventoryError, inventory_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.include_router(build_auth_router(limiter, settings.login_rate_limit))
    app.include_router(servers_router)

    @app.on_event("startup")
    async def on_startup():
        await database.create_all()
        logger.info("%s starting in %s mode", settings.app_name, settings.app_env)

    @app.on_event("shutdown")
    async def on_shutdown():
        await database.dispose()

    @app.get("/health")
    async def health():
        return {"status": "ok", "env": settings.app_env, "time": unix_now()}

    return app


app = create_app()
