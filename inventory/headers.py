from typing import List
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from inventory.config import Settings, split_csv
from inventory.logger import get_logger


logger = get_logger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]
CORS_ALLOW_HEADERS = [
    "Origin",
    "Content-Length",
    "Content-Type",
    "Authorization",
    "X-Requested-With",
    "X-CSRF-Token",
    "Accept",
    "Accept-Language",
    "X-Forwarded-For",
    "X-Real-IP",
]
CORS_EXPOSE_HEADERS = ["Content-Length", "Content-Type", "Authorization"]
CORS_MAX_AGE = 12 * 60 * 60  # preflight cache, seconds

PRODUCTION_ORIGINS = [
    "https://yourdomain.com",
    "https://app.yourdomain.com",
    "https://api.yourdomain.com",
]
STAGING_ORIGINS = [
    "https://staging.yourdomain.com",
    "https://alpha.yourdomain.com",
    "http://localhost:3000",
    "http://localhost:3001",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:3001",
]
DEVELOPMENT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:3001",
    "http://localhost:8080",
    "http://localhost:5000",
    "http://localhost:5173",  # Vite
    "http://localhost:5174",
]


def clean_origins(origins: List[str]) -> List[str]:
    """Drop blanks and entries without an http(s) scheme"""
    cleaned = []
    for origin in origins:
        origin = origin.strip()
        if not origin:
            continue
        if origin.startswith("http://") or origin.startswith("https://"):
            cleaned.append(origin)
        else:
            logger.warning("Invalid origin format (missing http/https): %s", origin)
    return cleaned


def cors_options(settings: Settings) -> dict:
    """Keyword arguments for CORSMiddleware for the configured mode"""
    options = {
        "allow_methods": CORS_METHODS,
        "allow_headers": CORS_ALLOW_HEADERS,
        "expose_headers": CORS_EXPOSE_HEADERS,
        "allow_credentials": True,
        "max_age": CORS_MAX_AGE,
    }
    configured = split_csv(settings.allowed_origins)

    if settings.app_env == "production":
        origins = configured or list(PRODUCTION_ORIGINS)
        origins += split_csv(settings.custom_domains)
        origins = clean_origins(origins)
        logger.info("Production CORS configured for %d origins", len(origins))
    elif settings.app_env in {"staging", "alpha"}:
        origins = configured or list(STAGING_ORIGINS)
        origins += split_csv(settings.preview_domains)
        logger.info("Staging CORS configured: allowing %s", origins)
    elif settings.cors_allow_all:
        # Wildcard origins cannot be combined with credentials
        origins = ["*"]
        options["allow_credentials"] = False
        logger.info("Development CORS configured: allowing all origins")
    else:
        origins = list(DEVELOPMENT_ORIGINS)
        logger.info("Development CORS configured: allowing %s", origins)

    options["allow_origins"] = origins
    return options


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, production: bool = False):
        super().__init__(app)
        self.production = production

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Content-Security-Policy"] = "default-src 'self'"
        if self.production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains; preload"
        return response
