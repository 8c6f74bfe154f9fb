"""
New-submission notifications.

There is no email delivery: the notification is rendered and written to the
log. Runs as a FastAPI background task after the response is sent.
"""

from __future__ import annotations

import logging

from . import schemas

logger = logging.getLogger(__name__)


def render_notification(submission: schemas.Submission) -> str:
    submitted_on = submission.created_at.strftime("%Y-%m-%d %H:%M:%S %Z").strip()
    return "\n".join(
        [
            "New Contact Form Submission",
            "",
            f"Name: {submission.name}",
            f"Email: {submission.email}",
            f"Company: {submission.company or 'Not provided'}",
            f"Service: {submission.service}",
            "",
            "Message:",
            submission.message,
            "",
            f"Submitted on: {submitted_on}",
        ]
    )


async def notify_new_submission(submission: schemas.Submission) -> None:
    """
    BackgroundTasks entrypoint. Must never raise into the request path.
    """
    try:
        body = render_notification(submission)
        logger.info(
            "contact_notification id=%s persisted=%s\n%s",
            submission.id,
            submission.persisted,
            body,
        )
    except Exception:
        logger.exception("contact_notification_failed id=%s", submission.id)
