"""
Contact-form intake.

Validation runs in a fixed order and stops at the first failure:
1. required fields present (name, email, service, message; company optional)
2. email shape
3. service is one of the offered services
Nothing is written unless all three pass.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from . import repository, schemas

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

REQUIRED_FIELDS = ("name", "email", "service", "message")

ACCEPTED_MESSAGE = "Thank you! Your message has been sent successfully. We'll get back to you soon."


@dataclass(frozen=True)
class SubmitResult:
    success: bool
    message: str
    persisted: bool = False
    submission: schemas.Submission | None = None


def _clean(value: str | None) -> str:
    return (value or "").strip()


def is_valid_email(email: str) -> bool:
    return EMAIL_RE.match(email or "") is not None


def validate(payload: schemas.ContactRequest) -> str | None:
    """
    Return a human-readable error, or None when the payload is acceptable.
    """
    missing = [field for field in REQUIRED_FIELDS if not _clean(getattr(payload, field))]
    if missing:
        return f"Please fill in all required fields. Missing: {', '.join(missing)}."

    if not is_valid_email(_clean(payload.email)):
        return "Please provide a valid email address."

    if _clean(payload.service) not in schemas.SERVICES:
        return f"Please choose a valid service. Must be one of: {', '.join(schemas.SERVICES)}."

    return None


async def submit(payload: schemas.ContactRequest) -> SubmitResult:
    error = validate(payload)
    if error is not None:
        return SubmitResult(success=False, message=error)

    submission = await repository.create(
        schemas.ContactCreate(
            name=_clean(payload.name),
            email=_clean(payload.email),
            company=_clean(payload.company),
            service=_clean(payload.service),
            message=_clean(payload.message),
        )
    )
    # Live and degraded inserts both count as accepted; `persisted` tells them apart.
    return SubmitResult(
        success=True,
        message=ACCEPTED_MESSAGE,
        persisted=submission.persisted,
        submission=submission,
    )
