"""Server-side session storage keyed by a signed session cookie.

The cookie carries only a signed session id (see ``auth.create_session_token``);
the session record itself lives in the store. Two backends are provided:
an in-process dict for single-worker deployments and Redis for sharing
sessions across workers.
"""

import asyncio
import secrets
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import timedelta

from fastapi import Request, Response
from pydantic import ValidationError as SchemaValidationError
from redis import asyncio as aioredis
from redis.exceptions import RedisError

from .auth import create_session_token, decode_session_token
from .config import Settings, settings
from .exceptions import StorageError
from .logger import logger
from .schemas import SessionData

SESSION_KEY_PREFIX = "session"


def make_session_key(session_id: str) -> str:
    """Namespaced storage key for a session id (e.g., "session:abc")."""
    return f"{SESSION_KEY_PREFIX}:{session_id}"


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


@dataclass
class Session:
    """A loaded session: its id plus a mutable copy of the stored record."""
    id: str
    data: SessionData = field(default_factory=SessionData)
    is_new: bool = False


# ==================== Store Interface ====================


class SessionStore(ABC):
    """Loads sessions from requests and persists them onto responses."""

    def __init__(
        self,
        cookie_name: str | None = None,
        max_age: int | None = None,
        secure: bool | None = None,
    ):
        self.cookie_name = cookie_name or settings.SESSION_COOKIE_NAME
        self.max_age = settings.SESSION_MAX_AGE if max_age is None else max_age
        self.secure = settings.is_production if secure is None else secure

    async def connect(self):
        """Open backend connections. No-op by default."""

    async def close(self):
        """Release backend connections. No-op by default."""

    @abstractmethod
    async def read(self, session_id: str) -> SessionData | None:
        """Return the stored record, or None if absent or expired."""

    @abstractmethod
    async def write(self, session_id: str, data: SessionData) -> None:
        """Store the record with a TTL of ``max_age``."""

    @abstractmethod
    async def discard(self, session_id: str) -> None:
        """Forget a session id."""

    async def get(self, request: Request) -> Session:
        """Return the session for this request, creating an anonymous one if absent.

        A missing, forged or expired cookie and an unknown session id all
        yield a fresh session.
        """
        token = request.cookies.get(self.cookie_name)
        session_id = decode_session_token(token) if token else None
        if session_id:
            data = await self.read(session_id)
            if data is not None:
                return Session(id=session_id, data=data)
        return Session(id=new_session_id(), is_new=True)

    async def save(self, response: Response, session: Session) -> None:
        """Persist the session record and set the signed cookie on the response.

        Raises:
            StorageError: if the backend cannot store the record
        """
        await self.write(session.id, session.data)
        response.set_cookie(
            key=self.cookie_name,
            value=create_session_token(session.id, timedelta(seconds=self.max_age)),
            max_age=self.max_age,
            path="/",
            httponly=True,
            samesite="lax",
            secure=self.secure,
        )

    def clear(self, response: Response) -> None:
        """Expire the session cookie on the client without storing anything."""
        response.delete_cookie(
            key=self.cookie_name,
            path="/",
            httponly=True,
            samesite="lax",
            secure=self.secure,
        )

    async def rotate(self, session: Session) -> Session:
        """Move the session to a fresh id, dropping the old one (used on login)."""
        if not session.is_new:
            await self.discard(session.id)
        return Session(id=new_session_id(), data=session.data.model_copy(), is_new=True)


# ==================== In-Memory Backend ====================


class MemorySessionStore(SessionStore):
    """Process-wide session dict guarded by an asyncio lock."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._sessions: dict[str, tuple[float, SessionData]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    async def read(self, session_id: str) -> SessionData | None:
        async with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None:
                return None
            expires_at, data = entry
            if expires_at <= time.monotonic():
                del self._sessions[session_id]
                return None
            return data.model_copy()

    async def write(self, session_id: str, data: SessionData) -> None:
        now = time.monotonic()
        async with self._lock:
            self._purge_expired(now)
            self._sessions[session_id] = (now + self.max_age, data.model_copy())

    def _purge_expired(self, now: float) -> None:
        """Drop every expired record. Caller holds the lock."""
        expired = [sid for sid, (expires_at, _) in self._sessions.items() if expires_at <= now]
        for sid in expired:
            del self._sessions[sid]

    async def discard(self, session_id: str) -> None:
        async with self._lock:
            self._sessions.pop(session_id, None)


# ==================== Redis Backend ====================


class RedisSessionStore(SessionStore):
    """Redis-backed sessions shared across workers.

    Reads degrade gracefully: if Redis is unreachable the session loads as
    anonymous. Writes fail loudly with StorageError so a login never
    reports success without a persisted session.
    """

    def __init__(self, redis_url: str | None = None, **kwargs):
        super().__init__(**kwargs)
        self.redis_url = redis_url or settings.REDIS_URL
        self._redis: aioredis.Redis | None = None

    async def connect(self):
        """Establish connection to Redis and verify it with ping."""
        if self._redis is None:
            try:
                self._redis = aioredis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_connect_timeout=5,
                )
                await self._redis.ping()
                logger.info("[sessions] Connected to Redis")
            except (RedisError, OSError) as e:
                logger.error(f"[sessions] Failed to connect to Redis: {e}")
                self._redis = None

    async def close(self):
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("[sessions] Disconnected from Redis")

    async def read(self, session_id: str) -> SessionData | None:
        if not self._redis:
            return None

        key = make_session_key(session_id)
        try:
            value = await self._redis.get(key)
        except RedisError as e:
            logger.error(f"[sessions] Error reading {key}: {e}")
            return None
        if not value:
            return None
        try:
            return SessionData.model_validate_json(value)
        except SchemaValidationError:
            logger.warning(f"[sessions] Discarding malformed session record {key}")
            return None

    async def write(self, session_id: str, data: SessionData) -> None:
        if not self._redis:
            raise StorageError("Session backend unavailable")

        key = make_session_key(session_id)
        try:
            await self._redis.setex(key, self.max_age, data.model_dump_json())
        except RedisError as e:
            logger.error(f"[sessions] Error writing {key}: {e}")
            raise StorageError("Failed to save session") from e

    async def discard(self, session_id: str) -> None:
        if not self._redis:
            return
        key = make_session_key(session_id)
        try:
            await self._redis.delete(key)
        except RedisError as e:
            logger.error(f"[sessions] Error deleting {key}: {e}")


def create_session_store(config: Settings = settings) -> SessionStore:
    """Build the session store selected by SESSION_BACKEND."""
    options = {
        "cookie_name": config.SESSION_COOKIE_NAME,
        "max_age": config.SESSION_MAX_AGE,
        "secure": config.is_production,
    }
    if config.SESSION_BACKEND == "redis":
        return RedisSessionStore(redis_url=config.REDIS_URL, **options)
    return MemorySessionStore(**options)
