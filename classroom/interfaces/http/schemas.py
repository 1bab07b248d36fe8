from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

class SignUpReq(BaseModel):
    email: EmailStr
    password: str
    name: str

class SignInReq(BaseModel):
    email: EmailStr
    password: str
    remember_me: bool = False

class AccountUpdateReq(BaseModel):
    current_password: str
    name: str | None = None
    email: EmailStr | None = None
    password: str | None = None

class AccountResp(BaseModel):
    id: int
    email: EmailStr
    name: str
    role: str
    created_at: datetime | None = None

class SessionResp(BaseModel):
    account: AccountResp
    role: str
    expires_at: datetime

class SignInFormResp(BaseModel):
    role: str
    action: str
    fields: list[str] = ["email", "password", "remember_me"]
    signed_in: bool = False

class HomeResp(BaseModel):
    signed_in: dict[str, bool]

class DashboardOut(BaseModel):
    role: str
    name: str
    email: EmailStr
    subjects_count: int
    active_roles: list[str]
    can_manage_subjects: bool

class SubjectCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None

class SubjectUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None

class SubjectOut(BaseModel):
    id: int
    title: str
    description: str | None = None
    teacher_id: int
    class Config: from_attributes = True
