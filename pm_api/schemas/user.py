"""User schemas."""
from typing import List
from pydantic import BaseModel, EmailStr


class UserResponse(BaseModel):
    user_id: int
    email: EmailStr
    full_name: str
    role: str
    authorities: List[str] = []


class Token(BaseModel):
    access_token: str
    token_type: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
