from datetime import datetime
from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional


class RegisterIn(BaseModel):
    username: str
    email: EmailStr
    password: str


class UserOut(BaseModel):
    id: int
    username: str
    email: str
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class LoginIn(BaseModel):
    # username or email
    username: str
    password: str


class LoginOut(BaseModel):
    ok: bool = True
    message: str = 'Login successful'
    token: str
    token_type: str = 'bearer'
    user: UserOut


class UserUpdateIn(BaseModel):
    username: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None

    @field_validator('email', mode='before')
    @classmethod
    def blank_email_is_unset(cls, v):
        # blank means "leave unchanged", same as the other fields
        if isinstance(v, str) and not v.strip():
            return None
        return v


class UserSearchOut(BaseModel):
    ok: bool = True
    user: UserOut
    total_results: int


class UserStatusIn(BaseModel):
    status: str


class UserStatusOut(BaseModel):
    user_id: int
    username: str
    status: str
