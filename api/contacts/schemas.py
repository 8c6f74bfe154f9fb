"""
Contact API schemas (request/response models).
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, get_args

from pydantic import BaseModel, Field

ServiceName = Literal["basic-scan", "pentest", "training", "audit", "wordpress", "other"]
SubmissionStatus = Literal["new", "contacted", "converted", "archived"]

SERVICES: tuple[str, ...] = get_args(ServiceName)
STATUSES: tuple[str, ...] = get_args(SubmissionStatus)


class ContactRequest(BaseModel):
    # Everything optional here: presence and shape are checked by
    # service.submit so failures come back as 400 with a readable message.
    name: str | None = None
    email: str | None = None
    company: str | None = None
    service: str | None = None
    message: str | None = None


class ContactCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    company: str = ""
    service: ServiceName
    message: str = Field(..., min_length=1)


class StatusUpdateRequest(BaseModel):
    status: str | None = None


class Submission(BaseModel):
    id: int
    name: str
    email: str
    company: str = ""
    service: ServiceName
    message: str
    status: SubmissionStatus = "new"
    created_at: datetime
    updated_at: datetime
    # False for records that never reached the store (degraded mode).
    persisted: bool = True
