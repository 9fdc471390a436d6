import uuid
from typing import List, Optional, Tuple
from starlette.concurrency import run_in_threadpool
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete
from inventory.config import Settings
from inventory.encryption import encrypt_password
from inventory.errors import AuthenticationError, ConflictError, NotFoundError, StorageError, ValidationError
from inventory.logger import get_logger
from inventory.models import Server, User
from inventory.schemas import LoginRequest, ServerCreate, ServerUpdate, UserCreate
from inventory.security import create_access_token, hash_password, pwd_context, verify_password
from inventory.time_utils import to_naive_utc, utcnow


logger = get_logger(__name__)


def parse_server_id(raw: str) -> str:
    """Normalise a path id to the stored hex form or raise ValidationError"""
    try:
        return uuid.UUID(raw).hex
    except (ValueError, TypeError):
        raise ValidationError("Invalid server ID")


class AuthService:
    """Registration and credential checks against the users table"""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def _find_user(self, username: str) -> Optional[User]:
        try:
            return (await self.db.execute(select(User).where(User.username == username))).scalar_one_or_none()
        except SQLAlchemyError:
            logger.exception("User lookup failed for %s", username)
            raise StorageError("Failed to look up user")

    async def register(self, data: UserCreate) -> User:
        if await self._find_user(data.username):
            raise ConflictError("Username already exists")

        # bcrypt is CPU bound, keep it off the event loop
        password_hash = await run_in_threadpool(hash_password, data.password)
        now = utcnow()
        user = User(
            username=data.username,
            email=str(data.email),
            password_hash=password_hash,
            role=data.role,
            created_at=now,
            updated_at=now,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same name
            await self.db.rollback()
            raise ConflictError("Username already exists")
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Failed to insert user %s", data.username)
            raise StorageError("Failed to create user")
        logger.info("Registered user %s (%s)", user.username, user.id)
        return user

    async def login(self, data: LoginRequest) -> Tuple[str, User]:
        user = await self._find_user(data.username)
        if user is None:
            # Keep the timing of unknown usernames close to wrong passwords
            await run_in_threadpool(pwd_context.dummy_verify)
            logger.warning("Failed login for %s", data.username)
            raise AuthenticationError("Invalid credentials")
        if not await run_in_threadpool(verify_password, data.password, user.password_hash):
            logger.warning("Failed login for %s", data.username)
            raise AuthenticationError("Invalid credentials")

        token = create_access_token(user.id, user.username, user.role, self.settings)
        logger.info("User %s logged in", user.username)
        return token, user


class ServerService:
    """CRUD over the servers table; every call is a single-record operation"""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    def _apply(self, server: Server, data: ServerCreate) -> None:
        fields = data.model_dump()
        fields["password"] = encrypt_password(data.password, self.settings.encryption_key)
        fields["remarks"] = data.remarks or ""
        fields["delete_date"] = to_naive_utc(data.delete_date)
        for name, value in fields.items():
            setattr(server, name, value)

    async def _commit(self, message: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(message)
            raise StorageError(message)

    async def _load(self, server_id: str) -> Server:
        try:
            server = await self.db.get(Server, server_id)
        except SQLAlchemyError:
            logger.exception("Failed to fetch server %s", server_id)
            raise StorageError("Failed to fetch server")
        if server is None:
            raise NotFoundError("Server not found")
        return server

    async def create(self, data: ServerCreate, actor: str) -> Server:
        now = utcnow()
        server = Server(created_at=now, updated_at=now)
        self._apply(server, data)
        self.db.add(server)
        await self._commit("Failed to create server")
        logger.info("Server %s (%s) created by %s", server.id, server.hostname, actor)
        return server

    async def list(self, page: int = 1, limit: int = 10) -> Tuple[List[Server], int]:
        query = (
            select(Server)
            .order_by(Server.created_at.desc(), Server.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        try:
            servers = list((await self.db.execute(query)).scalars().all())
        except SQLAlchemyError:
            logger.exception("Failed to fetch servers")
            raise StorageError("Failed to fetch servers")

        try:
            total = (await self.db.execute(select(func.count()).select_from(Server))).scalar_one()
        except SQLAlchemyError:
            logger.exception("Failed to count servers")
            raise StorageError("Failed to count servers")
        return servers, total

    async def get(self, raw_id: str) -> Server:
        return await self._load(parse_server_id(raw_id))

    async def update(self, raw_id: str, data: ServerUpdate, actor: str) -> Server:
        server = await self._load(parse_server_id(raw_id))
        self._apply(server, data)
        server.updated_at = utcnow()
        await self._commit("Failed to update server")
        logger.info("Server %s updated by %s", server.id, actor)
        return server

    async def delete(self, raw_id: str, actor: str) -> None:
        server_id = parse_server_id(raw_id)
        try:
            result = await self.db.execute(delete(Server).where(Server.id == server_id))
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Failed to delete server %s", server_id)
            raise StorageError("Failed to delete server")
        if result.rowcount == 0:
            await self.db.rollback()
            raise NotFoundError("Server not found")
        await self._commit("Failed to delete server")
        logger.info("Server %s deleted by %s", server_id, actor)
