from ...domain.entities import Account
from ...domain.errors import DuplicateEmail, InvalidCredentials
from ..dto import UpdateAccountInput
from .register_account import IAccountRepository, IPasswordHasher, check_password, normalize_email


class UpdateAccount:
    """Изменение имени, email или пароля; роль не меняется никогда."""

    def __init__(self, repo: IAccountRepository, hasher: IPasswordHasher):
        self.repo = repo
        self.hasher = hasher

    def execute(self, account: Account, data: UpdateAccountInput) -> Account:
        stored = self.repo.get_password_hash(account.id)
        if not stored or not self.hasher.verify(data.current_password, stored):
            raise InvalidCredentials()

        fields = {}
        if data.name is not None:
            if not data.name.strip():
                raise ValueError("Name can't be blank")
            fields["name"] = data.name.strip()
        if data.email is not None:
            email = normalize_email(data.email)
            if email != account.email:
                other = self.repo.get_by_email(email)
                if other and other.id != account.id:
                    raise DuplicateEmail(email)
                fields["email"] = email
        if data.password is not None:
            check_password(data.password)
            fields["password_hash"] = self.hasher.hash(data.password)

        if not fields:
            return account
        return self.repo.update(account.id, **fields)
