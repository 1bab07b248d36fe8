from datetime import timedelta

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ...config import settings
from ...domain.entities import Account, Role, RoleGroup, Session as AuthSession
from ...domain.errors import RoleMismatch, Unauthenticated
from ...application.account_store import AccountStore
from ...application.authenticator import ISessionStore, ITokenCodec, SessionAuthenticator
from ...application.role_groups import RoleGroupRegistry
from ...infrastructure.db import get_db
from ...infrastructure.repositories import AccountRepository
from ...infrastructure.security import JwtTokenCodec, PasswordHasher
from ...infrastructure.sessions import build_session_store

_session_store: ISessionStore | None = None
_role_groups: RoleGroupRegistry | None = None


def get_session_store() -> ISessionStore:
    global _session_store
    if _session_store is None:
        _session_store = build_session_store()
    return _session_store


def get_token_codec() -> ITokenCodec:
    return JwtTokenCodec()


def get_role_groups() -> RoleGroupRegistry:
    global _role_groups
    if _role_groups is None:
        _role_groups = RoleGroupRegistry.from_config(settings.ROLE_GROUPS)
    return _role_groups


def get_account_store(db: Session = Depends(get_db)) -> AccountStore:
    return AccountStore(repo=AccountRepository(db), hasher=PasswordHasher())


class RequestAuth:
    """Per-request view of which roles are signed in.

    Each role is checked with its own authenticator and cookie; lookups are
    cached for the lifetime of the request.
    """

    def __init__(self, request: Request, accounts: AccountStore, sessions: ISessionStore, tokens: ITokenCodec):
        self.request = request
        self.accounts = accounts
        self.sessions = sessions
        self.tokens = tokens
        self._authenticators: dict[Role, SessionAuthenticator] = {}
        self._sessions: dict[Role, AuthSession | None] = {}
        self._accounts: dict[Role, Account | None] = {}

    def authenticator(self, role: Role) -> SessionAuthenticator:
        if role not in self._authenticators:
            self._authenticators[role] = SessionAuthenticator(
                role=role,
                accounts=self.accounts,
                sessions=self.sessions,
                tokens=self.tokens,
                ttl=timedelta(minutes=settings.SESSION_TTL_MINUTES),
                remember_ttl=timedelta(days=settings.REMEMBER_ME_DAYS),
            )
        return self._authenticators[role]

    def token(self, role: Role) -> str | None:
        return self.request.cookies.get(role.cookie_name)

    def current_session(self, role: Role) -> AuthSession | None:
        if role not in self._sessions:
            self._sessions[role] = self.authenticator(role).current_session(self.token(role))
        return self._sessions[role]

    def is_signed_in(self, role: Role) -> bool:
        return self.current_account(role) is not None

    def current_account(self, role: Role) -> Account | None:
        if role not in self._accounts:
            account = None
            session = self.current_session(role)
            if session is not None:
                account = self.authenticator(role).current_account(self.token(role))
            self._accounts[role] = account
        return self._accounts[role]

    def signed_in_roles(self) -> tuple[Role, ...]:
        return tuple(r for r in Role if self.is_signed_in(r))

    def active_roles(self, group: RoleGroup) -> tuple[Role, ...]:
        return tuple(r for r in group.roles if self.is_signed_in(r))

    def forget(self, role: Role) -> None:
        self._sessions.pop(role, None)
        self._accounts.pop(role, None)


def get_request_auth(
    request: Request,
    accounts: AccountStore = Depends(get_account_store),
    sessions: ISessionStore = Depends(get_session_store),
    tokens: ITokenCodec = Depends(get_token_codec),
) -> RequestAuth:
    return RequestAuth(request, accounts, sessions, tokens)


def require_role(role: Role):
    def dependency(request: Request, auth: RequestAuth = Depends(get_request_auth)) -> Account:
        account = auth.current_account(role)
        if account is None:
            others = auth.signed_in_roles()
            if others:
                raise RoleMismatch(role, others)
            raise Unauthenticated(role)
        request.state.active_roles = (role,)
        return account
    return dependency


def require_group(name: str):
    def dependency(
        request: Request,
        auth: RequestAuth = Depends(get_request_auth),
        groups: RoleGroupRegistry = Depends(get_role_groups),
    ) -> tuple[Role, ...]:
        group = groups.get(name)
        active = auth.active_roles(group)
        if not active:
            # первая роль группы выигрывает
            raise Unauthenticated(group.primary)
        request.state.active_roles = active
        return active
    return dependency
