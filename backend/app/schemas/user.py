"""Pydantic schemas for Users.

Update inputs rely on pydantic's fields-set tracking: a field left out of the
payload is left untouched, a field sent as null clears the stored value.
"""
from typing import Optional
from pydantic import BaseModel


class UserCreate(BaseModel):
    email: str
    name: str
    avatar_url: Optional[str] = None
    external_id: Optional[str] = None


class UserUpdate(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    external_id: Optional[str] = None


class UserOut(BaseModel):
    id: str
    email: str
    name: str
    avatar_url: Optional[str] = None
    external_id: Optional[str] = None
    created_at: str
    updated_at: str
