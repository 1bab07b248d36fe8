from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import AccountORM, SubjectORM
from ..domain.entities import Account, Role, Subject
from ..domain.errors import DuplicateEmail
from ..application.use_cases.register_account import IAccountRepository

def to_domain(u: AccountORM) -> Account:
    return Account(id=u.id, email=u.email, name=u.name, role=Role(u.role), created_at=u.created_at)

def subject_to_domain(s: SubjectORM) -> Subject:
    return Subject(id=s.id, title=s.title, description=s.description,
                   teacher_id=s.teacher_id, created_at=s.created_at)

class AccountRepository(IAccountRepository):
    def __init__(self, db: Session): self.db = db

    def get(self, account_id: int) -> Account | None:
        row = self.db.get(AccountORM, account_id)
        return to_domain(row) if row else None

    def get_by_email(self, email: str) -> Account | None:
        row = self.db.query(AccountORM).filter(AccountORM.email == email).first()
        return to_domain(row) if row else None

    def get_password_hash(self, account_id: int) -> str | None:
        row = self.db.get(AccountORM, account_id)
        return row.password_hash if row else None

    def create(self, email: str, password_hash: str, name: str, role: Role) -> Account:
        row = AccountORM(email=email, password_hash=password_hash, name=name, role=role.value)
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError:
            # гонка двух регистраций: уникальный индекс на email решает
            self.db.rollback()
            raise DuplicateEmail(email)
        self.db.refresh(row)
        return to_domain(row)

    def update(self, account_id: int, **fields) -> Account:
        row = self.db.get(AccountORM, account_id)
        if row is None:
            raise LookupError(f"account {account_id} not found")
        for key, value in fields.items():
            setattr(row, key, value)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateEmail(fields.get("email", row.email))
        self.db.refresh(row)
        return to_domain(row)

class SubjectRepository:
    def __init__(self, db: Session): self.db = db

    def list_all(self, limit: int = 50, offset: int = 0) -> list[Subject]:
        rows = (self.db.query(SubjectORM).order_by(SubjectORM.id)
                .limit(limit).offset(offset).all())
        return [subject_to_domain(r) for r in rows]

    def list_for_teacher(self, teacher_id: int, limit: int = 50, offset: int = 0) -> list[Subject]:
        rows = (self.db.query(SubjectORM).filter(SubjectORM.teacher_id == teacher_id)
                .order_by(SubjectORM.id).limit(limit).offset(offset).all())
        return [subject_to_domain(r) for r in rows]

    def count(self, teacher_id: int | None = None) -> int:
        q = self.db.query(SubjectORM)
        if teacher_id is not None:
            q = q.filter(SubjectORM.teacher_id == teacher_id)
        return q.count()

    def get(self, subject_id: int) -> Subject | None:
        row = self.db.get(SubjectORM, subject_id)
        return subject_to_domain(row) if row else None

    def create(self, teacher_id: int, title: str, description: str | None) -> Subject:
        row = SubjectORM(teacher_id=teacher_id, title=title, description=description)
        self.db.add(row); self.db.commit(); self.db.refresh(row)
        return subject_to_domain(row)

    def update(self, subject_id: int, title: str | None = None, description: str | None = None) -> Subject | None:
        row = self.db.get(SubjectORM, subject_id)
        if not row: return None
        if title is not None: row.title = title
        if description is not None: row.description = description
        self.db.commit(); self.db.refresh(row)
        return subject_to_domain(row)

    def delete(self, subject_id: int) -> bool:
        row = self.db.get(SubjectORM, subject_id)
        if not row: return False
        self.db.delete(row); self.db.commit()
        return True
