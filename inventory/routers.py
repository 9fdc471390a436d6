from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_429_TOO_MANY_REQUESTS
from inventory.config import Settings
from inventory.database import get_db
from inventory.schemas import (
    LoginRequest,
    LoginResponse,
    Message,
    ServerCreate,
    ServerList,
    ServerOut,
    ServerUpdate,
    UserCreate,
    UserOut,
)
from inventory.security import TokenUser, require_user
from inventory.services import AuthService, ServerService
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded


def build_limiter() -> Limiter:
    """Per-app limiter so each app keeps its own counters"""
    return Limiter(key_func=get_remote_address)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        {"error": "Too many login attempts. Try again later."},
        status_code=HTTP_429_TOO_MANY_REQUESTS,
    )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_service(db: AsyncSession = Depends(get_db), settings: Settings = Depends(get_settings)) -> AuthService:
    return AuthService(db, settings)


def get_server_service(db: AsyncSession = Depends(get_db), settings: Settings = Depends(get_settings)) -> ServerService:
    return ServerService(db, settings)


# ---- Authentication ----

async def register(payload: UserCreate, service: AuthService = Depends(get_auth_service)):
    return await service.register(payload)


async def login(request: Request, payload: LoginRequest, service: AuthService = Depends(get_auth_service)):
    token, user = await service.login(payload)
    return LoginResponse(token=token, user=UserOut.model_validate(user))


def build_auth_router(limiter: Limiter, login_rate_limit: str) -> APIRouter:
    """Auth routes; login is throttled per client at login_rate_limit (e.g. 10/minute)"""
    router = APIRouter(prefix="/api/auth", tags=["auth"])
    router.add_api_route("/register", register, methods=["POST"], response_model=UserOut,
                         status_code=HTTP_201_CREATED)
    router.add_api_route("/login", limiter.limit(login_rate_limit)(login), methods=["POST"],
                         response_model=LoginResponse)
    return router


# ---- Servers (bearer token required) ----

servers_router = APIRouter(prefix="/api/servers", tags=["servers"], dependencies=[Depends(require_user)])


@servers_router.post("", response_model=ServerOut, status_code=HTTP_201_CREATED)
async def create_server(payload: ServerCreate, user: TokenUser = Depends(require_user),
                        service: ServerService = Depends(get_server_service)):
    return await service.create(payload, actor=user.username)


@servers_router.get("", response_model=ServerList)
async def list_servers(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: ServerService = Depends(get_server_service),
):
    servers, total = await service.list(page=page, limit=limit)
    return ServerList(
        servers=[ServerOut.model_validate(s) for s in servers],
        total=total,
        page=page,
        limit=limit,
    )


@servers_router.get("/{server_id}", response_model=ServerOut)
async def get_server(server_id: str, service: ServerService = Depends(get_server_service)):
    return await service.get(server_id)


@servers_router.put("/{server_id}", response_model=ServerOut)
async def update_server(server_id: str, payload: ServerUpdate, user: TokenUser = Depends(require_user),
                        service: ServerService = Depends(get_server_service)):
    """Full replacement: every required field must be sent again."""
    return await service.update(server_id, payload, actor=user.username)


@servers_router.delete("/{server_id}", response_model=Message)
async def delete_server(server_id: str, user: TokenUser = Depends(require_user),
                        service: ServerService = Depends(get_server_service)):
    await service.delete(server_id, actor=user.username)
    return Message(message="Server deleted successfully")

