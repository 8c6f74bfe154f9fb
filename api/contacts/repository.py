"""
Contacts persistence (raw SQL).

Degraded mode: when the store is classified unreachable
(`db.ConnectivityError`), `create` and `list_all` answer from a fallback
source instead of failing. `get_by_id` and `update_status` let the
connectivity error through, since substituting data there would hide a
write or show a record that does not exist. `db.DataError` always
propagates.
"""

from __future__ import annotations

import logging
from typing import Any

from core import db

from . import fallback as fallback_data
from . import schemas

logger = logging.getLogger(__name__)

_COLUMNS = "id, name, email, company, service, message, status, created_at, updated_at"


class InvalidStatusError(ValueError):
    pass


def _to_submission(row: dict[str, Any]) -> schemas.Submission:
    return schemas.Submission(
        id=int(row["id"]),
        name=str(row["name"]),
        email=str(row["email"]),
        company=str(row.get("company") or ""),
        service=row["service"],
        message=str(row["message"]),
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        persisted=True,
    )


async def create(
    payload: schemas.ContactCreate,
    *,
    fallback: fallback_data.DegradedModeSource | None = None,
) -> schemas.Submission:
    source = fallback or fallback_data.default_source
    try:
        row = await db.fetch_one(
            f"""
            INSERT INTO contacts (name, email, company, service, message, status)
            VALUES ($1, $2, $3, $4, $5, 'new')
            RETURNING {_COLUMNS}
            """,
            payload.name,
            payload.email,
            payload.company or "",
            payload.service,
            payload.message,
        )
    except db.ConnectivityError as exc:
        submission = source.accepted(payload)
        logger.warning(
            "contact_store_unavailable op=create reason=%s synthetic_id=%s",
            exc.reason,
            submission.id,
        )
        return submission

    if row is None:
        raise db.DataError("Insert returned no row.")
    submission = _to_submission(row)
    logger.info("contact_created id=%s service=%s", submission.id, submission.service)
    return submission


async def list_all(
    *,
    fallback: fallback_data.DegradedModeSource | None = None,
) -> list[schemas.Submission]:
    """
    All submissions, most recent first.
    """
    source = fallback or fallback_data.default_source
    try:
        rows = await db.fetch_all(
            f"""
            SELECT {_COLUMNS}
            FROM contacts
            ORDER BY created_at DESC, id DESC
            """
        )
    except db.ConnectivityError as exc:
        logger.warning("contact_store_unavailable op=list reason=%s", exc.reason)
        return source.sample_submissions()

    return [_to_submission(row) for row in rows]


async def get_by_id(submission_id: int) -> schemas.Submission | None:
    row = await db.fetch_one(
        f"""
        SELECT {_COLUMNS}
        FROM contacts
        WHERE id = $1
        """,
        submission_id,
    )
    if row is None:
        logger.info("contact_not_found id=%s", submission_id)
        return None
    return _to_submission(row)


async def update_status(submission_id: int, status: str) -> bool:
    """
    Set a new status. Returns False when no submission has this id.

    Any status may follow any other; only the value itself is checked.
    """
    if status not in schemas.STATUSES:
        raise InvalidStatusError(
            f"Invalid status. Must be one of: {', '.join(schemas.STATUSES)}"
        )

    row = await db.fetch_one(
        """
        UPDATE contacts
        SET status = $2,
            updated_at = GREATEST(now(), updated_at)
        WHERE id = $1
        RETURNING id
        """,
        submission_id,
        status,
    )
    if row is None:
        logger.info("contact_not_found id=%s", submission_id)
        return False

    logger.info("contact_status_updated id=%s status=%s", submission_id, status)
    return True
