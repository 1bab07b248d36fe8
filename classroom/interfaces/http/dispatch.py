"""
Static (method, path, role) -> handler table.

One URL can be served by different handlers depending on which role is signed
in, e.g. `GET /dashboard/subjects` lists everything for a student and only the
teacher's own subjects for a teacher. Each role's handlers are plain functions
registered here, so the capability set per role is visible in one place and
can be tested without going through HTTP.

Request input (path, query, body) is declared once per (method, path) as a
FastAPI dependency; FastAPI validates it and documents it in OpenAPI, and the
result reaches the handler as `ctx.params`.
"""
from dataclasses import dataclass, field
from typing import Any, Callable

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
import structlog

from ...domain.entities import Account, Role, RoleGroup
from ...domain.errors import RoleMismatch
from ...application.role_groups import RoleGroupRegistry
from ...infrastructure.db import get_db
from .authz import RequestAuth, get_request_auth, get_role_groups, require_group

logger = structlog.get_logger()


@dataclass(frozen=True)
class RoleContext:
    request: Request
    db: Session
    role: Role
    account: Account
    active_roles: tuple[Role, ...]
    params: Any = None


Handler = Callable[[RoleContext], Any]


def no_params() -> None:
    return None


@dataclass
class _Entry:
    status_code: int = 200
    params: Callable[..., Any] = no_params
    handlers: dict[Role, Handler] = field(default_factory=dict)


class RoleDispatchTable:
    def __init__(self, group: str):
        self.group = group
        self._entries: dict[tuple[str, str], _Entry] = {}

    def register(
        self,
        method: str,
        path: str,
        role: Role,
        handler: Handler,
        status_code: int = 200,
        params: Callable[..., Any] | None = None,
    ) -> None:
        key = (method.upper(), path)
        entry = self._entries.setdefault(key, _Entry(status_code=status_code, params=params or no_params))
        if role in entry.handlers:
            raise ValueError(f"{role.value} already has a handler for {key[0]} {path}")
        # все роли одного пути принимают одинаковый вход
        if params is not None and params is not entry.params:
            raise ValueError(f"{key[0]} {path} already declares other params")
        entry.handlers[role] = handler

    def route(self, method: str, path: str, role: Role, status_code: int = 200, params=None):
        def decorator(fn: Handler) -> Handler:
            self.register(method, path, role, fn, status_code=status_code, params=params)
            return fn
        return decorator

    def handlers_for(self, method: str, path: str) -> dict[Role, Handler]:
        entry = self._entries.get((method.upper(), path))
        return dict(entry.handlers) if entry else {}

    def resolve(self, method: str, path: str, group: RoleGroup, active: tuple[Role, ...]) -> tuple[Role, Handler]:
        handlers = self.handlers_for(method, path)
        for role in group.roles:
            if role in active and role in handlers:
                return role, handlers[role]
        # ни у одной активной роли нет обработчика: просим войти нужной ролью
        required = next((r for r in group.roles if r in handlers), group.primary)
        raise RoleMismatch(required, active)

    def mount(self, router: APIRouter) -> APIRouter:
        for (method, path), entry in self._entries.items():
            router.add_api_route(
                path,
                self._endpoint(method, path, entry.params),
                methods=[method],
                status_code=entry.status_code,
                name=f"{method.lower()} {path}",
            )
        return router

    def _endpoint(self, method: str, path: str, params_dependency: Callable[..., Any]):
        # группа проверяется раньше входных данных: без сессии сразу редирект
        def endpoint(
            request: Request,
            db: Session = Depends(get_db),
            auth: RequestAuth = Depends(get_request_auth),
            groups: RoleGroupRegistry = Depends(get_role_groups),
            active: tuple[Role, ...] = Depends(require_group(self.group)),
            params: Any = Depends(params_dependency),
        ):
            role, handler = self.resolve(method, path, groups.get(self.group), active)
            ctx = RoleContext(
                request=request,
                db=db,
                role=role,
                account=auth.current_account(role),
                active_roles=active,
                params=params,
            )
            logger.debug("role_dispatch", method=method, path=path, role=role.value)
            return handler(ctx)
        return endpoint
