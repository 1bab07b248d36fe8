from .entities import Role


class AuthError(Exception):
    """Базовая ошибка подсистемы аутентификации."""


class DuplicateEmail(AuthError):
    def __init__(self, email: str):
        super().__init__("Email already registered")
        self.email = email


class InvalidCredentials(AuthError):
    def __init__(self):
        super().__init__("Invalid credentials")


class AccountNotFound(AuthError):
    def __init__(self, email: str, role: Role):
        super().__init__(f"No {role.value} account for {email}")
        self.email = email
        self.role = role


class Unauthenticated(AuthError):
    def __init__(self, role: Role):
        super().__init__(f"{role.value} sign-in required")
        self.role = role


class RoleMismatch(AuthError):
    # обрабатывается как Unauthenticated для требуемой роли
    def __init__(self, required: Role, active: tuple[Role, ...] = ()):
        super().__init__(f"{required.value} session required")
        self.required = required
        self.active = active
