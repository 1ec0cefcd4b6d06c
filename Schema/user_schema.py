from pydantic import AfterValidator, EmailStr, Field, field_validator
from typing import Annotated, Optional, List
from datetime import datetime

from model.usermodels import UserRole
from model.Project_model import Priority
from model.task_model import TaskStatus
from Schema.common_schema import CamelModel, StrictCamelModel, ProjectSummary

# bcrypt only accepts passwords up to 72 bytes
PASSWORD_MAX_BYTES = 72


def check_password_bytes(v: str) -> str:
    if len(v.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
    return v


PasswordStr = Annotated[str, Field(min_length=6, max_length=72), AfterValidator(check_password_bytes)]


class RegisterRequest(StrictCamelModel):
    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: PasswordStr

    @field_validator('first_name', 'last_name')
    @classmethod
    def strip_names(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError('Name must be at least 2 characters')
        return v

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        return v.lower()


class LoginRequest(StrictCamelModel):
    email: EmailStr
    password: str


class ChangePasswordRequest(StrictCamelModel):
    current_password: str
    new_password: PasswordStr


class ProfileUpdate(StrictCamelModel):
    first_name: Optional[str] = Field(None, min_length=2, max_length=50)
    last_name: Optional[str] = Field(None, min_length=2, max_length=50)
    avatar: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=30)
    department: Optional[str] = Field(None, max_length=100)
    position: Optional[str] = Field(None, max_length=100)


class UserUpdate(ProfileUpdate):
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        return v.lower() if v else v


class UserResponse(CamelModel):
    id: int
    first_name: str
    last_name: str
    full_name: str
    email: str
    role: UserRole
    is_active: bool
    avatar: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


class AssignedTaskSummary(CamelModel):
    id: int
    title: str
    status: TaskStatus
    priority: Priority
    project_id: int


class UserDetailResponse(UserResponse):
    managed_projects: List[ProjectSummary] = []
    assigned_tasks: List[AssignedTaskSummary] = []


class AuthResponse(CamelModel):
    user: UserResponse
    token: str
    refresh_token: str


class RefreshTokenRequest(StrictCamelModel):
    refresh_token: str
