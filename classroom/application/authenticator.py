from datetime import timedelta

import structlog

from ..domain.entities import Account, Role, Session
from ..domain.errors import AccountNotFound, InvalidCredentials
from .account_store import AccountStore
from .dto import SignInResult

logger = structlog.get_logger()


class ISessionStore:
    def create(self, account_id: int, role: Role, ttl: timedelta) -> Session: ...
    def get(self, session_id: str) -> Session | None: ...
    def delete(self, session_id: str) -> None: ...


class ITokenCodec:
    def encode(self, session: Session) -> str: ...
    def decode(self, token: str) -> dict | None: ...


class SessionAuthenticator:
    """Sign-in state for a single role.

    Every role gets its own authenticator, cookie and session records, so a
    student session never answers a teacher check even though both roles live
    in the same accounts table.
    """

    def __init__(
        self,
        role: Role,
        accounts: AccountStore,
        sessions: ISessionStore,
        tokens: ITokenCodec,
        ttl: timedelta,
        remember_ttl: timedelta,
    ):
        self.role = role
        self.accounts = accounts
        self.sessions = sessions
        self.tokens = tokens
        self.ttl = ttl
        self.remember_ttl = remember_ttl

    def sign_in(
        self,
        email: str,
        password: str,
        remember_me: bool = False,
        previous_token: str | None = None,
    ) -> SignInResult:
        try:
            account = self.accounts.find_by_email_and_role(email, self.role)
        except AccountNotFound:
            self.accounts.burn_verify()
            logger.info("sign_in_failed", role=self.role.value, reason="not_found")
            raise InvalidCredentials()
        if not self.accounts.verify_credential(account, password):
            logger.info("sign_in_failed", role=self.role.value, reason="bad_password", account_id=account.id)
            raise InvalidCredentials()

        # одна активная сессия на (браузер, роль)
        previous = self.current_session(previous_token)
        if previous is not None:
            self.sign_out(previous)

        ttl = self.remember_ttl if remember_me else self.ttl
        session = self.sessions.create(account.id, self.role, ttl)
        token = self.tokens.encode(session)
        logger.info(
            "sign_in_succeeded",
            role=self.role.value,
            account_id=account.id,
            remember_me=remember_me,
        )
        return SignInResult(account=account, session=session, token=token)

    def sign_out(self, session: Session) -> None:
        self.sessions.delete(session.session_id)
        logger.info("signed_out", role=self.role.value, account_id=session.account_id)

    def current_session(self, token: str | None) -> Session | None:
        if not token:
            return None
        claims = self.tokens.decode(token)
        if not claims:
            return None
        if claims.get("role") != self.role.value:
            logger.warning("session_role_mismatch", expected=self.role.value, got=claims.get("role"))
            return None
        session = self.sessions.get(claims.get("sid", ""))
        if session is None or session.role is not self.role:
            return None
        if str(session.account_id) != str(claims.get("sub")):
            return None
        return session

    def is_signed_in(self, token: str | None) -> bool:
        return self.current_session(token) is not None

    def current_account(self, token: str | None) -> Account | None:
        session = self.current_session(token)
        if session is None:
            return None
        account = self.accounts.get(session.account_id)
        if account is None or account.role is not self.role:
            return None
        return account
