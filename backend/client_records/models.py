"""
Pydantic schemas for the clients API.

Responses use the envelope ``{success, count?, message?, data}``.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class ClientPublic(BaseModel):
    """One row of the ``clients`` table."""

    id: int
    full_name: str
    email: str
    phone: str | None = None
    company: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ClientCreate(BaseModel):
    """Body for POST /clients; full_name and email are checked by the route (400)."""

    full_name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    company: str | None = Field(default=None, max_length=255)


class ClientUpdate(BaseModel):
    """Body for PUT /clients/{id}; only fields present in the body are updated."""

    full_name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    company: str | None = Field(default=None, max_length=255)


class ClientListOut(BaseModel):
    success: bool = True
    count: int
    data: list[ClientPublic]


class ClientCountOut(BaseModel):
    success: bool = True
    count: int


class ClientOut(BaseModel):
    success: bool = True
    message: str | None = None
    data: ClientPublic


class ClientDetailOut(BaseModel):
    success: bool = True
    data: ClientPublic
