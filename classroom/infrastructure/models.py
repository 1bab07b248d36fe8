from datetime import datetime, timezone

from sqlalchemy import String, Integer, Text, ForeignKey, TIMESTAMP, func
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from .db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccountORM(Base):
    # одна таблица на все роли, роль хранится в дискриминаторе
    __tablename__ = "accounts"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    role: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        default=_utcnow,
    )

    subjects: Mapped[list["SubjectORM"]] = relationship(
        "SubjectORM",
        back_populates="teacher",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("role")
    def _role_is_immutable(self, key, value):
        current = self.__dict__.get("role")
        if current is not None and current != value:
            raise ValueError("Account role cannot be changed")
        return value

    def __repr__(self) -> str:
        return f"AccountORM(id={self.id!r}, email={self.email!r}, role={self.role!r})"


class SubjectORM(Base):
    __tablename__ = "subjects"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    teacher_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        default=_utcnow,
    )

    teacher: Mapped["AccountORM"] = relationship("AccountORM", back_populates="subjects")

    def __repr__(self) -> str:
        return f"SubjectORM(id={self.id!r}, teacher_id={self.teacher_id!r}, title={self.title!r})"


__all__ = [
    "Base",
    "AccountORM",
    "SubjectORM",
]
