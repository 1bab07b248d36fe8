from dataclasses import dataclass

from fastapi import APIRouter, HTTPException, Query, Response, status

from ....domain.entities import Role
from ....domain.roles import as_student, as_teacher, profile_for
from ....infrastructure.repositories import SubjectRepository
from ..dispatch import RoleContext, RoleDispatchTable
from ..schemas import DashboardOut, SubjectCreate, SubjectOut, SubjectUpdate

router = APIRouter(tags=["dashboard"])
table = RoleDispatchTable(group="user")

SUBJECTS = "/dashboard/subjects"
SUBJECT = "/dashboard/subjects/{subject_id}"


# --- Request inputs, validated by FastAPI

@dataclass(frozen=True)
class Page:
    limit: int
    offset: int


@dataclass(frozen=True)
class SubjectChange:
    subject_id: int
    payload: SubjectUpdate


def page_params(limit: int = Query(50, ge=1, le=100), offset: int = Query(0, ge=0)) -> Page:
    return Page(limit=limit, offset=offset)


def subject_ref(subject_id: int) -> int:
    return subject_id


def subject_create_params(payload: SubjectCreate) -> SubjectCreate:
    return payload


def subject_change_params(subject_id: int, payload: SubjectUpdate) -> SubjectChange:
    return SubjectChange(subject_id=subject_id, payload=payload)


def _dashboard(ctx: RoleContext, subjects_count: int) -> DashboardOut:
    profile = profile_for(ctx.account)
    return DashboardOut(
        role=ctx.role.value,
        name=ctx.account.name,
        email=ctx.account.email,
        subjects_count=subjects_count,
        active_roles=[r.value for r in ctx.active_roles],
        can_manage_subjects=profile.can_manage_subjects,
    )


# --- Dashboard:

@table.route("GET", "/dashboard", Role.STUDENT)
def student_dashboard(ctx: RoleContext):
    as_student(ctx.account)
    return _dashboard(ctx, SubjectRepository(ctx.db).count())

@table.route("GET", "/dashboard", Role.TEACHER)
def teacher_dashboard(ctx: RoleContext):
    teacher = as_teacher(ctx.account)
    return _dashboard(ctx, SubjectRepository(ctx.db).count(teacher_id=teacher.teacher_id))


# --- Student subjects: only index/show

@table.route("GET", SUBJECTS, Role.STUDENT, params=page_params)
def student_subjects_index(ctx: RoleContext):
    page: Page = ctx.params
    rows = SubjectRepository(ctx.db).list_all(limit=page.limit, offset=page.offset)
    return [SubjectOut.model_validate(r) for r in rows]

@table.route("GET", SUBJECT, Role.STUDENT, params=subject_ref)
def student_subjects_show(ctx: RoleContext):
    row = SubjectRepository(ctx.db).get(ctx.params)
    if not row: raise HTTPException(404, "subject not found")
    return SubjectOut.model_validate(row)


# --- Teacher subjects: full CRUD over own subjects

def _own_subject(ctx: RoleContext, subject_id: int):
    teacher = as_teacher(ctx.account)
    row = SubjectRepository(ctx.db).get(subject_id)
    if not row or not teacher.owns(row.teacher_id):
        raise HTTPException(404, "subject not found")
    return row

@table.route("GET", SUBJECTS, Role.TEACHER, params=page_params)
def teacher_subjects_index(ctx: RoleContext):
    teacher = as_teacher(ctx.account)
    page: Page = ctx.params
    rows = SubjectRepository(ctx.db).list_for_teacher(teacher.teacher_id, limit=page.limit, offset=page.offset)
    return [SubjectOut.model_validate(r) for r in rows]

@table.route("POST", SUBJECTS, Role.TEACHER, status_code=status.HTTP_201_CREATED, params=subject_create_params)
def teacher_subjects_create(ctx: RoleContext):
    teacher = as_teacher(ctx.account)
    payload: SubjectCreate = ctx.params
    row = SubjectRepository(ctx.db).create(teacher.teacher_id, payload.title, payload.description)
    return SubjectOut.model_validate(row)

@table.route("GET", SUBJECT, Role.TEACHER, params=subject_ref)
def teacher_subjects_show(ctx: RoleContext):
    return SubjectOut.model_validate(_own_subject(ctx, ctx.params))

@table.route("PATCH", SUBJECT, Role.TEACHER, params=subject_change_params)
def teacher_subjects_update(ctx: RoleContext):
    change: SubjectChange = ctx.params
    row = _own_subject(ctx, change.subject_id)
    updated = SubjectRepository(ctx.db).update(
        row.id, title=change.payload.title, description=change.payload.description
    )
    return SubjectOut.model_validate(updated)

@table.route("DELETE", SUBJECT, Role.TEACHER, status_code=status.HTTP_204_NO_CONTENT, params=subject_ref)
def teacher_subjects_delete(ctx: RoleContext):
    row = _own_subject(ctx, ctx.params)
    SubjectRepository(ctx.db).delete(row.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


table.mount(router)
