"""Account Store: one table of accounts shared by every role."""
from ..domain.entities import Account, Role
from ..domain.errors import AccountNotFound
from .dto import RegisterAccountInput, UpdateAccountInput
from .use_cases.register_account import IAccountRepository, IPasswordHasher, RegisterAccount, normalize_email
from .use_cases.update_account import UpdateAccount


class AccountStore:
    def __init__(self, repo: IAccountRepository, hasher: IPasswordHasher):
        self.repo = repo
        self.hasher = hasher

    def create(self, email: str, password: str, name: str, role: Role) -> Account:
        data = RegisterAccountInput(email=email, password=password, name=name, role=role)
        return RegisterAccount(self.repo, self.hasher).execute(data)

    def get(self, account_id: int) -> Account | None:
        return self.repo.get(account_id)

    def find_by_email_and_role(self, email: str, role: Role) -> Account:
        account = self.repo.get_by_email(normalize_email(email))
        if account is None or account.role is not role:
            raise AccountNotFound(email, role)
        return account

    def verify_credential(self, account: Account, password: str) -> bool:
        stored = self.repo.get_password_hash(account.id)
        if not stored:
            return False
        return self.hasher.verify(password, stored)

    def burn_verify(self) -> None:
        # выравнивает время ответа, когда аккаунт не найден
        self.hasher.dummy_verify()

    def update(self, account: Account, data: UpdateAccountInput) -> Account:
        return UpdateAccount(self.repo, self.hasher).execute(account, data)
