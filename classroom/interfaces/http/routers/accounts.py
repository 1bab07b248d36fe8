from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
import structlog

from ....config import settings
from ....domain.entities import Account, Role
from ....domain.errors import DuplicateEmail, InvalidCredentials
from ....application.account_store import AccountStore
from ....application.dto import SignInResult, UpdateAccountInput
from ....infrastructure.metrics import sign_in_attempts_total, sign_ups_total
from ..authz import RequestAuth, get_account_store, get_request_auth, require_role
from ..ratelimit import limiter, SIGN_IN_LIMIT, SIGN_UP_LIMIT
from ..schemas import (
    AccountResp,
    AccountUpdateReq,
    SessionResp,
    SignInFormResp,
    SignInReq,
    SignUpReq,
)

logger = structlog.get_logger()


def account_resp(account: Account) -> AccountResp:
    return AccountResp(
        id=account.id,
        email=account.email,
        name=account.name,
        role=account.role.value,
        created_at=account.created_at,
    )


def set_session_cookie(response: Response, role: Role, result: SignInResult, remember_me: bool) -> None:
    max_age = None
    if remember_me:
        max_age = int(timedelta(days=settings.REMEMBER_ME_DAYS).total_seconds())
    response.set_cookie(
        role.cookie_name,
        result.token,
        max_age=max_age,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def session_resp(role: Role, result: SignInResult) -> SessionResp:
    return SessionResp(account=account_resp(result.account), role=role.value, expires_at=result.session.expires_at)


def build_router(role: Role) -> APIRouter:
    """Sign-up / sign-in / sign-out / me endpoints scoped to one role."""
    router = APIRouter(prefix=role.scope, tags=[f"{role.value}s"])
    me_guard = require_role(role)

    def rate_limited(limit: str):
        # slowapi ведёт лимиты по имени функции: у каждой роли своё
        def decorator(fn):
            fn.__name__ = f"{role.value}_{fn.__name__}"
            return limiter.limit(limit)(fn)
        return decorator

    @router.post("/sign_up", response_model=SessionResp, status_code=status.HTTP_201_CREATED)
    @rate_limited(SIGN_UP_LIMIT)
    def sign_up(
        request: Request,
        payload: SignUpReq,
        response: Response,
        auth: RequestAuth = Depends(get_request_auth),
    ):
        try:
            account = auth.accounts.create(payload.email, payload.password, payload.name, role)
        except DuplicateEmail as e:
            logger.info("sign_up_rejected", role=role.value, reason="duplicate_email")
            raise HTTPException(status_code=400, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        sign_ups_total.labels(role=role.value).inc()
        logger.info("signed_up", role=role.value, account_id=account.id)

        # как в Devise: после регистрации сразу входим
        result = auth.authenticator(role).sign_in(payload.email, payload.password, previous_token=auth.token(role))
        set_session_cookie(response, role, result, remember_me=False)
        return session_resp(role, result)

    @router.get("/sign_in", response_model=SignInFormResp)
    def sign_in_form(auth: RequestAuth = Depends(get_request_auth)):
        return SignInFormResp(role=role.value, action=role.sign_in_path, signed_in=auth.is_signed_in(role))

    @router.post("/sign_in", response_model=SessionResp)
    @rate_limited(SIGN_IN_LIMIT)
    def sign_in(
        request: Request,
        payload: SignInReq,
        response: Response,
        auth: RequestAuth = Depends(get_request_auth),
    ):
        try:
            result = auth.authenticator(role).sign_in(
                payload.email,
                payload.password,
                remember_me=payload.remember_me,
                previous_token=auth.token(role),
            )
        except InvalidCredentials as e:
            sign_in_attempts_total.labels(role=role.value, outcome="failure").inc()
            raise HTTPException(status_code=401, detail=str(e))
        sign_in_attempts_total.labels(role=role.value, outcome="success").inc()
        auth.forget(role)
        set_session_cookie(response, role, result, remember_me=payload.remember_me)
        return session_resp(role, result)

    @router.delete("/sign_out", status_code=status.HTTP_204_NO_CONTENT)
    def sign_out(auth: RequestAuth = Depends(get_request_auth)):
        session = auth.current_session(role)
        if session is not None:
            auth.authenticator(role).sign_out(session)
            auth.forget(role)
        # куку другой роли не трогаем
        response = Response(status_code=status.HTTP_204_NO_CONTENT)
        response.delete_cookie(role.cookie_name, httponly=True, secure=settings.COOKIE_SECURE, samesite="lax")
        return response

    @router.get("/me", response_model=AccountResp)
    def me(account: Account = Depends(me_guard)):
        return account_resp(account)

    @router.patch("/me", response_model=AccountResp)
    def update_me(
        payload: AccountUpdateReq,
        account: Account = Depends(me_guard),
        accounts: AccountStore = Depends(get_account_store),
    ):
        data = UpdateAccountInput(
            current_password=payload.current_password,
            name=payload.name,
            email=payload.email,
            password=payload.password,
        )
        try:
            updated = accounts.update(account, data)
        except InvalidCredentials:
            raise HTTPException(status_code=400, detail="Current password is invalid")
        except DuplicateEmail as e:
            raise HTTPException(status_code=400, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        logger.info("account_updated", role=role.value, account_id=account.id)
        return account_resp(updated)

    return router
