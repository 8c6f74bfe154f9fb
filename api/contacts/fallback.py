"""
Degraded-mode data for the contacts repository.

Used only when the store is classified unreachable (see
`core.db.ConnectivityError`). Nothing produced here is stored anywhere; every
record carries `persisted=False`.

Synthetic ids are negative. The store assigns ids from a BIGSERIAL sequence
starting at 1, so a synthetic id can never collide with a stored one.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

from . import schemas

SYNTHETIC_ID_MIN = -1_000_000
SYNTHETIC_ID_MAX = -1_000


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DegradedModeSource:
    """
    Default fallback: random synthetic ids and two illustrative sample records.

    Tests (or other deployments) can pass any object with the same two
    methods to the repository functions via `fallback=`.
    """

    def accepted(self, payload: schemas.ContactCreate) -> schemas.Submission:
        now = _utc_now()
        return schemas.Submission(
            id=random.randint(SYNTHETIC_ID_MIN, SYNTHETIC_ID_MAX),
            name=payload.name,
            email=payload.email,
            company=payload.company,
            service=payload.service,
            message=payload.message,
            status="new",
            created_at=now,
            updated_at=now,
            persisted=False,
        )

    def sample_submissions(self) -> list[schemas.Submission]:
        now = _utc_now()
        return [
            schemas.Submission(
                id=-1,
                name="John Doe",
                email="john@example.com",
                company="Tech Corp",
                service="pentest",
                message="This is a sample contact form submission for testing purposes.",
                status="new",
                created_at=now,
                updated_at=now,
                persisted=False,
            ),
            schemas.Submission(
                id=-2,
                name="Jane Smith",
                email="jane@example.com",
                company="Security Inc",
                service="audit",
                message="Another sample contact for demonstration.",
                status="contacted",
                created_at=now - timedelta(days=1),
                updated_at=now,
                persisted=False,
            ),
        ]


default_source = DegradedModeSource()
