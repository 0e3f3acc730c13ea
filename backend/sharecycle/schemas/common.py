"""Shared schema types: error responses and embedded user summaries."""

import uuid

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    type: str
    title: str
    status: int
    detail: str | dict | list
    instance: str


class UserSummary(BaseModel):
    id: uuid.UUID
    full_name: str
    city: str | None

    model_config = {"from_attributes": True}
