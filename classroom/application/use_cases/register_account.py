from ...domain.entities import Account, Role
from ...domain.errors import DuplicateEmail
from ..dto import RegisterAccountInput

MIN_PASSWORD_LENGTH = 6


class IAccountRepository:
    def get(self, account_id: int) -> Account | None: ...
    def get_by_email(self, email: str) -> Account | None: ...
    def get_password_hash(self, account_id: int) -> str | None: ...
    def create(self, email: str, password_hash: str, name: str, role: Role) -> Account: ...
    def update(self, account_id: int, **fields) -> Account: ...


class IPasswordHasher:
    def hash(self, plain: str) -> str: ...
    def verify(self, plain: str, hashed: str) -> bool: ...
    def dummy_verify(self) -> None: ...


def normalize_email(email: str) -> str:
    return email.strip().lower()


def check_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password is too short (minimum is {MIN_PASSWORD_LENGTH} characters)")


class RegisterAccount:
    def __init__(self, repo: IAccountRepository, hasher: IPasswordHasher):
        self.repo = repo
        self.hasher = hasher

    def execute(self, data: RegisterAccountInput) -> Account:
        email = normalize_email(data.email)
        if "@" not in email:
            raise ValueError("Invalid email")
        if not data.name.strip():
            raise ValueError("Name can't be blank")
        check_password(data.password)
        # быстрый отказ; атомарность обеспечивает уникальный индекс в repo.create
        if self.repo.get_by_email(email):
            raise DuplicateEmail(email)
        pwd_hash = self.hasher.hash(data.password)
        return self.repo.create(email, pwd_hash, data.name.strip(), Role(data.role))
