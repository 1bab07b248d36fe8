import pytest
from fastapi.testclient import TestClient

from classroom.application.role_groups import RoleGroupRegistry
from classroom.domain.entities import Role
from classroom.interfaces.http.authz import get_role_groups
from conftest import sign_up


@pytest.fixture
def student(app):
    c = TestClient(app)
    assert sign_up(c, Role.STUDENT, "a@x.com", "pw1pw1", "Alice").status_code == 201
    return c


@pytest.fixture
def teacher(app):
    c = TestClient(app)
    assert sign_up(c, Role.TEACHER, "b@x.com", "pw2pw2", "Bob").status_code == 201
    return c


@pytest.fixture
def other_teacher(app):
    c = TestClient(app)
    assert sign_up(c, Role.TEACHER, "c@x.com", "pw3pw3", "Carol").status_code == 201
    return c


def test_unauthenticated_redirects_to_student_sign_in(client):
    """Без сессии - редирект на вход первой роли группы"""
    response = client.get("/dashboard", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/students/sign_in"


def test_priority_reorder_redirects_to_teacher_sign_in(app, client):
    app.dependency_overrides[get_role_groups] = lambda: RoleGroupRegistry.from_config(
        {"user": ["teacher", "student"]}
    )
    response = client.get("/dashboard/subjects", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/teachers/sign_in"


def test_redirect_lands_on_sign_in_form(client):
    response = client.get("/dashboard")
    assert response.status_code == 200
    assert response.json()["action"] == "/students/sign_in"


def test_dashboard_per_role(student, teacher):
    data = student.get("/dashboard").json()
    assert data["role"] == "student"
    assert data["name"] == "Alice"
    assert data["active_roles"] == ["student"]
    assert data["can_manage_subjects"] is False

    data = teacher.get("/dashboard").json()
    assert data["role"] == "teacher"
    assert data["name"] == "Bob"
    assert data["can_manage_subjects"] is True


def test_teacher_manages_subjects(teacher):
    response = teacher.post("/dashboard/subjects", json={"title": "Algebra", "description": "Basics"})
    assert response.status_code == 201
    subject = response.json()
    assert subject["title"] == "Algebra"

    response = teacher.patch(f"/dashboard/subjects/{subject['id']}", json={"title": "Algebra I"})
    assert response.status_code == 200
    assert response.json()["title"] == "Algebra I"
    assert response.json()["description"] == "Basics"

    assert teacher.get("/dashboard").json()["subjects_count"] == 1

    response = teacher.delete(f"/dashboard/subjects/{subject['id']}")
    assert response.status_code == 204
    assert teacher.get("/dashboard/subjects").json() == []


def test_subject_validation(teacher):
    response = teacher.post("/dashboard/subjects", json={"title": ""})
    assert response.status_code == 422

    response = teacher.post(
        "/dashboard/subjects",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 422


def test_subjects_index_differs_by_role(student, teacher, other_teacher):
    """Один путь - разные обработчики для студента и учителя"""
    teacher.post("/dashboard/subjects", json={"title": "Algebra"})
    other_teacher.post("/dashboard/subjects", json={"title": "Biology"})

    assert [s["title"] for s in student.get("/dashboard/subjects").json()] == ["Algebra", "Biology"]
    assert [s["title"] for s in teacher.get("/dashboard/subjects").json()] == ["Algebra"]
    assert [s["title"] for s in other_teacher.get("/dashboard/subjects").json()] == ["Biology"]


def test_teacher_cannot_touch_foreign_subject(teacher, other_teacher, student):
    subject = other_teacher.post("/dashboard/subjects", json={"title": "Biology"}).json()
    path = f"/dashboard/subjects/{subject['id']}"

    assert teacher.get(path).status_code == 404
    assert teacher.patch(path, json={"title": "Mine"}).status_code == 404
    assert teacher.delete(path).status_code == 404
    # студент видит любой предмет
    assert student.get(path).status_code == 200


def test_student_cannot_create_subject(student):
    """У студента нет обработчика POST - просим войти учителем"""
    response = student.post("/dashboard/subjects", json={"title": "Hack"}, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/teachers/sign_in"


def test_unknown_subject(student):
    assert student.get("/dashboard/subjects/999").status_code == 404
    assert student.get("/dashboard/subjects/abc").status_code == 422


def test_subjects_pagination(teacher, student):
    for i in range(5):
        teacher.post("/dashboard/subjects", json={"title": f"Subject {i}"})

    assert len(student.get("/dashboard/subjects?limit=2").json()) == 2
    assert len(student.get("/dashboard/subjects?limit=2&offset=4").json()) == 1
    assert student.get("/dashboard/subjects?limit=0").status_code == 422
    assert student.get("/dashboard/subjects?limit=x").status_code == 422
    assert student.get("/dashboard/subjects?limit=500").status_code == 422
    assert student.get("/dashboard/subjects?offset=-1").status_code == 422


def test_both_roles_signed_in_uses_group_order(app):
    """Обе роли в одном браузере: студент выигрывает, пока он первый в группе"""
    c = TestClient(app)
    sign_up(c, Role.STUDENT, "a@x.com", "pw1pw1", "Alice")
    sign_up(c, Role.TEACHER, "b@x.com", "pw2pw2", "Bob")

    data = c.get("/dashboard").json()
    assert data["role"] == "student"
    assert data["active_roles"] == ["student", "teacher"]

    # POST есть только у учителя - он и обслуживает запрос
    assert c.post("/dashboard/subjects", json={"title": "Algebra"}).status_code == 201

    app.dependency_overrides[get_role_groups] = lambda: RoleGroupRegistry.from_config(
        {"user": ["teacher", "student"]}
    )
    assert c.get("/dashboard").json()["role"] == "teacher"


def test_dashboard_after_sign_out(student):
    student.delete("/students/sign_out")
    response = student.get("/dashboard", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/students/sign_in"


def test_subject_input_validated_for_teacher(teacher):
    """Некорректный id и тело отклоняет FastAPI до обработчика"""
    assert teacher.patch("/dashboard/subjects/abc", json={"title": "X"}).status_code == 422
    assert teacher.delete("/dashboard/subjects/abc").status_code == 422
    response = teacher.patch("/dashboard/subjects/1", json={"title": ""})
    assert response.status_code == 422


def test_invalid_input_without_session_redirects(client):
    """Без сессии сначала редирект, а не ошибка валидации"""
    response = client.get("/dashboard/subjects?limit=500", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/students/sign_in"


def test_dispatched_routes_in_openapi(client):
    """Вход обработчиков по ролям описан в схеме OpenAPI"""
    paths = client.get("/openapi.json").json()["paths"]

    create = paths["/dashboard/subjects"]["post"]
    schema = create["requestBody"]["content"]["application/json"]["schema"]
    assert schema["$ref"].endswith("/SubjectCreate")

    index_params = {p["name"] for p in paths["/dashboard/subjects"]["get"]["parameters"]}
    assert index_params == {"limit", "offset"}

    show = paths["/dashboard/subjects/{subject_id}"]["get"]["parameters"]
    assert show[0]["name"] == "subject_id"
    assert show[0]["schema"]["type"] == "integer"
