from dataclasses import dataclass

from ..domain.entities import Account, Role, Session


@dataclass
class RegisterAccountInput:
    email: str
    password: str
    name: str
    role: Role


@dataclass
class UpdateAccountInput:
    current_password: str
    name: str | None = None
    email: str | None = None
    password: str | None = None


@dataclass
class SignInResult:
    account: Account
    session: Session
    token: str
