from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"

    @property
    def scope(self) -> str:
        # /students, /teachers
        return f"/{self.value}s"

    @property
    def sign_in_path(self) -> str:
        return f"{self.scope}/sign_in"

    @property
    def cookie_name(self) -> str:
        return f"{self.value}_session"


@dataclass(frozen=True)
class Account:
    id: int | None
    email: str
    name: str
    role: Role
    created_at: datetime | None = None


@dataclass(frozen=True)
class Session:
    session_id: str
    account_id: int
    role: Role
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class RoleGroup:
    name: str
    roles: tuple[Role, ...]

    def __post_init__(self):
        if not self.roles:
            raise ValueError(f"Role group {self.name!r} has no roles")
        if len(set(self.roles)) != len(self.roles):
            raise ValueError(f"Role group {self.name!r} lists a role twice")

    @property
    def primary(self) -> Role:
        return self.roles[0]


@dataclass(frozen=True)
class Subject:
    id: int | None
    title: str
    teacher_id: int
    description: str | None = None
    created_at: datetime | None = None
