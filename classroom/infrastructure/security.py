from passlib.context import CryptContext
from jose import jwt, JWTError
import structlog

from ..config import settings
from ..domain.entities import Session
from ..application.use_cases.register_account import IPasswordHasher
from ..application.authenticator import ITokenCodec

logger = structlog.get_logger()

pwd = CryptContext(
    schemes=["bcrypt_sha256"],
    deprecated="auto",
    bcrypt_sha256__truncate_error=False,
)

class PasswordHasher(IPasswordHasher):
    def hash(self, plain: str) -> str: return pwd.hash(plain)
    def verify(self, plain: str, hashed: str) -> bool: return pwd.verify(plain, hashed)
    def dummy_verify(self) -> None: pwd.dummy_verify()


def create_session_token(session: Session) -> str:
    payload = {
        "sub": str(session.account_id),
        "sid": session.session_id,
        "role": session.role.value,
        "iat": int(session.issued_at.timestamp()),
        "exp": int(session.expires_at.timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Возвращает claims сессии или кидает JWTError."""
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    if not payload.get("sub") or not payload.get("sid"):
        raise JWTError("No subject")
    return payload


class JwtTokenCodec(ITokenCodec):
    def encode(self, session: Session) -> str:
        return create_session_token(session)

    def decode(self, token: str) -> dict | None:
        try:
            return decode_token(token)
        except JWTError as e:
            logger.debug("session_token_rejected", error=str(e))
            return None
