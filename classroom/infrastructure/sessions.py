"""
Server-side session stores.

The cookie carries a signed token with an opaque session id; the record itself
lives here so that sign-out revokes it immediately. `memory` is for local runs
and tests, `redis` for anything with more than one worker.
"""
from __future__ import annotations

import json
import secrets
import threading
from datetime import datetime, timedelta, timezone
from typing import Optional

import redis
import structlog

from ..config import settings
from ..domain.entities import Role, Session
from ..application.authenticator import ISessionStore

logger = structlog.get_logger()

_redis_client: Optional[redis.Redis] = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def get_redis() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True
        )
    return _redis_client


def _new_session(account_id: int, role: Role, ttl: timedelta) -> Session:
    issued = _now()
    return Session(
        session_id=secrets.token_urlsafe(24),
        account_id=account_id,
        role=role,
        issued_at=issued,
        expires_at=issued + ttl,
    )


class InMemorySessionStore(ISessionStore):
    def __init__(self):
        self._data: dict[str, Session] = {}
        self._lock = threading.Lock()

    def create(self, account_id: int, role: Role, ttl: timedelta) -> Session:
        session = _new_session(account_id, role, ttl)
        with self._lock:
            self._data[session.session_id] = session
            self._sweep(_now())
        return session

    def _sweep(self, now: datetime) -> None:
        # брошенные куки никто не читает: чистим просроченное при каждой записи
        expired = [sid for sid, s in self._data.items() if s.is_expired(now)]
        for sid in expired:
            del self._data[sid]

    def get(self, session_id: str) -> Session | None:
        with self._lock:
            session = self._data.get(session_id)
            if session is None:
                return None
            if session.is_expired(_now()):
                self._data.pop(session_id, None)
                return None
            return session

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._data.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._data)


class RedisSessionStore(ISessionStore):
    prefix = "session:"

    def __init__(self, client: Optional[redis.Redis] = None):
        self._client = client

    @property
    def client(self) -> redis.Redis:
        return self._client or get_redis()

    def _key(self, session_id: str) -> str:
        return f"{self.prefix}{session_id}"

    def create(self, account_id: int, role: Role, ttl: timedelta) -> Session:
        session = _new_session(account_id, role, ttl)
        value = {
            "account_id": session.account_id,
            "role": session.role.value,
            "issued_at": session.issued_at.isoformat(),
            "expires_at": session.expires_at.isoformat(),
        }
        # Redis сам удалит запись по истечении TTL
        self.client.setex(self._key(session.session_id), int(ttl.total_seconds()), json.dumps(value))
        return session

    def get(self, session_id: str) -> Session | None:
        try:
            raw = self.client.get(self._key(session_id))
        except redis.RedisError as e:
            # Redis недоступен: считаем, что сессии нет
            logger.warning("session_store_unavailable", op="get", error=str(e))
            return None
        if not raw:
            return None
        data = json.loads(raw)
        session = Session(
            session_id=session_id,
            account_id=int(data["account_id"]),
            role=Role(data["role"]),
            issued_at=datetime.fromisoformat(data["issued_at"]),
            expires_at=datetime.fromisoformat(data["expires_at"]),
        )
        if session.is_expired(_now()):
            return None
        return session

    def delete(self, session_id: str) -> None:
        try:
            self.client.delete(self._key(session_id))
        except redis.RedisError as e:
            logger.warning("session_store_unavailable", op="delete", error=str(e))


def build_session_store(backend: str | None = None) -> ISessionStore:
    backend = (backend or settings.SESSION_BACKEND).lower()
    if backend == "redis":
        return RedisSessionStore()
    if backend == "memory":
        return InMemorySessionStore()
    raise ValueError(f"Unknown SESSION_BACKEND: {backend}")
