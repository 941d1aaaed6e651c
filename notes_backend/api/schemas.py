from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .security import password_problem


# Pydantic models for serialization and validation

class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=64, description="User's username")
    password: str = Field(..., min_length=5, max_length=72)

    @field_validator("password")
    @classmethod
    def password_must_be_hashable(cls, value: str) -> str:
        problem = password_problem(value)
        if problem:
            raise ValueError(problem)
        return value

class SignupOut(BaseModel):
    user_id: int
    username: str

class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    created_at: datetime

class Token(BaseModel):
    access_token: str
    token_type: str
    expires_in: int

class NoteBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=128)
    content: str = Field(default="", description="Note content")

class NoteCreate(NoteBase):
    pass

class NoteUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=128)
    content: Optional[str] = Field(None)

class NoteOut(NoteBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    created_at: datetime
    updated_at: datetime
