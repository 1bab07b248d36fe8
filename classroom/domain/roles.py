"""Role capability views built from a tagged Account.

An account is one row with a role discriminator; what the account may do is
decided here, not by subclassing the account type.
"""
from dataclasses import dataclass

from .entities import Account, Role
from .errors import RoleMismatch


@dataclass(frozen=True)
class StudentProfile:
    account: Account
    can_manage_subjects: bool = False

    @property
    def student_id(self) -> int:
        return self.account.id


@dataclass(frozen=True)
class TeacherProfile:
    account: Account
    can_manage_subjects: bool = True

    @property
    def teacher_id(self) -> int:
        return self.account.id

    def owns(self, teacher_id: int) -> bool:
        return self.account.id == teacher_id


_PROFILES = {
    Role.STUDENT: StudentProfile,
    Role.TEACHER: TeacherProfile,
}


def profile_for(account: Account) -> StudentProfile | TeacherProfile:
    return _PROFILES[account.role](account=account)


def as_student(account: Account) -> StudentProfile:
    if account.role is not Role.STUDENT:
        raise RoleMismatch(Role.STUDENT, (account.role,))
    return StudentProfile(account=account)


def as_teacher(account: Account) -> TeacherProfile:
    if account.role is not Role.TEACHER:
        raise RoleMismatch(Role.TEACHER, (account.role,))
    return TeacherProfile(account=account)
