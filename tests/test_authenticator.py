from datetime import timedelta

import pytest
from jose import jwt

from classroom.application.authenticator import SessionAuthenticator
from classroom.config import settings
from classroom.domain.entities import Role
from classroom.domain.errors import InvalidCredentials
from classroom.infrastructure.security import JwtTokenCodec


def make_authenticator(role, accounts, session_store, ttl=timedelta(hours=1)):
    return SessionAuthenticator(
        role=role,
        accounts=accounts,
        sessions=session_store,
        tokens=JwtTokenCodec(),
        ttl=ttl,
        remember_ttl=timedelta(days=14),
    )


@pytest.fixture
def students(accounts, session_store):
    return make_authenticator(Role.STUDENT, accounts, session_store)


@pytest.fixture
def teachers(accounts, session_store):
    return make_authenticator(Role.TEACHER, accounts, session_store)


@pytest.fixture
def seeded(accounts):
    accounts.create("a@x.com", "pw1pw1", "Alice", Role.STUDENT)
    accounts.create("b@x.com", "pw2pw2", "Bob", Role.TEACHER)


def test_sign_in_student(students, teachers, seeded):
    """Вход студента не даёт прав учителя"""
    result = students.sign_in("a@x.com", "pw1pw1")

    assert result.session.role is Role.STUDENT
    assert students.is_signed_in(result.token) is True
    assert teachers.is_signed_in(result.token) is False
    assert students.current_account(result.token).email == "a@x.com"
    assert teachers.current_account(result.token) is None


def test_teacher_sign_in_with_student_credentials(teachers, seeded):
    """Роль аккаунта - студент, поэтому вход учителем невозможен"""
    with pytest.raises(InvalidCredentials):
        teachers.sign_in("a@x.com", "pw1pw1")


@pytest.mark.parametrize("email,password", [
    ("a@x.com", "wrong-password"),
    ("nobody@x.com", "pw1pw1"),
])
def test_invalid_credentials(students, seeded, email, password):
    with pytest.raises(InvalidCredentials):
        students.sign_in(email, password)


def test_sign_out_revokes_session(students, seeded):
    result = students.sign_in("a@x.com", "pw1pw1")
    session = students.current_session(result.token)

    students.sign_out(session)

    assert students.current_session(result.token) is None
    assert students.is_signed_in(result.token) is False


def test_sign_out_student_keeps_teacher(students, teachers, seeded):
    student = students.sign_in("a@x.com", "pw1pw1")
    teacher = teachers.sign_in("b@x.com", "pw2pw2")

    students.sign_out(student.session)

    assert students.is_signed_in(student.token) is False
    assert teachers.is_signed_in(teacher.token) is True


def test_second_sign_in_replaces_previous_session(students, seeded, session_store):
    first = students.sign_in("a@x.com", "pw1pw1")
    second = students.sign_in("a@x.com", "pw1pw1", previous_token=first.token)

    assert students.is_signed_in(first.token) is False
    assert students.is_signed_in(second.token) is True
    assert len(session_store) == 1


def test_remember_me_extends_lifetime(students, seeded):
    short = students.sign_in("a@x.com", "pw1pw1")
    long = students.sign_in("a@x.com", "pw1pw1", remember_me=True)

    assert long.session.expires_at - long.session.issued_at == timedelta(days=14)
    assert short.session.expires_at - short.session.issued_at == timedelta(hours=1)


def test_expired_session(accounts, session_store, seeded):
    students = make_authenticator(Role.STUDENT, accounts, session_store, ttl=timedelta(seconds=-1))
    result = students.sign_in("a@x.com", "pw1pw1")

    assert students.current_session(result.token) is None


def test_tampered_token_rejected(students, seeded):
    result = students.sign_in("a@x.com", "pw1pw1")

    assert students.current_session(result.token + "x") is None
    assert students.current_session("garbage") is None
    assert students.current_session(None) is None


def test_forged_role_claim_rejected(students, teachers, seeded):
    """Подмена роли в токене без подписи сервера не проходит"""
    result = students.sign_in("a@x.com", "pw1pw1")
    claims = jwt.decode(result.token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    claims["role"] = "teacher"
    forged = jwt.encode(claims, "not-the-secret", algorithm=settings.JWT_ALGORITHM)

    assert teachers.current_session(forged) is None
