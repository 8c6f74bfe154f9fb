"""
Contact API endpoints.

Response envelope: `{"success": bool, "message": str, ...}`. Errors are raised
as HTTPException and shaped into the same envelope by the handlers in
`api/main.py`.
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, HTTPException, Path, status

from . import notifications, repository, schemas, service

router = APIRouter(prefix="/api")

# BIGSERIAL bounds; anything outside cannot be an id and is rejected up front.
_ID_MIN = -(2**63)
_ID_MAX = 2**63 - 1


@router.get("/contact")
async def contact_info() -> dict:
    return {
        "success": False,
        "message": "This endpoint only accepts POST requests for contact form submissions.",
        "info": {
            "method": "POST",
            "endpoint": "/api/contact",
            "required_fields": list(service.REQUIRED_FIELDS),
            "optional_fields": ["company"],
            "services": list(schemas.SERVICES),
        },
        "example": {
            "name": "John Doe",
            "email": "john@example.com",
            "company": "Company Name",
            "service": "pentest",
            "message": "Your message here",
        },
    }


@router.post("/contact")
async def submit_contact(
    request: schemas.ContactRequest,
    background_tasks: BackgroundTasks,
) -> dict:
    result = await service.submit(request)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)

    if result.submission is not None:
        background_tasks.add_task(notifications.notify_new_submission, result.submission)

    return {
        "success": True,
        "message": result.message,
        "persisted": result.persisted,
    }


@router.get("/contacts")
async def list_contacts() -> dict:
    submissions = await repository.list_all()
    return {
        "success": True,
        "message": f"Fetched {len(submissions)} contacts.",
        "data": submissions,
    }


@router.get("/contacts/{submission_id}")
async def get_contact(
    submission_id: int = Path(..., ge=_ID_MIN, le=_ID_MAX),
) -> dict:
    submission = await repository.get_by_id(submission_id)
    if submission is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found.")
    return {
        "success": True,
        "message": "Contact fetched.",
        "data": submission,
    }


@router.put("/contacts/{submission_id}/status")
async def update_contact_status(
    request: schemas.StatusUpdateRequest,
    submission_id: int = Path(..., ge=_ID_MIN, le=_ID_MAX),
) -> dict:
    try:
        updated = await repository.update_status(submission_id, request.status or "")
    except repository.InvalidStatusError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found.")
    return {
        "success": True,
        "message": "Contact status updated successfully.",
    }
