"""Reminder API endpoints."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from phone_reminders.api.deps import ReminderRepo
from phone_reminders.models.reminder import (
    ReminderCreate,
    ReminderListResponse,
    ReminderResponse,
    ReminderStats,
    ReminderUpdate,
)

router = APIRouter(prefix="/api/reminders", tags=["Reminders"])


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Reminder not found",
    )


@router.get("", response_model=ReminderListResponse)
def list_reminders_endpoint(repo: ReminderRepo) -> ReminderListResponse:
    """List the caller's reminders, earliest scheduled first."""
    reminders = repo.list_reminders()
    return ReminderListResponse(
        reminders=[ReminderResponse.model_validate(r) for r in reminders],
        total=len(reminders),
    )


@router.get("/stats", response_model=ReminderStats)
def reminder_stats_endpoint(repo: ReminderRepo) -> ReminderStats:
    """Delivery counters for the caller's reminders."""
    return repo.get_stats()


@router.post("", response_model=ReminderResponse, status_code=status.HTTP_201_CREATED)
def create_reminder_endpoint(repo: ReminderRepo, reminder_data: ReminderCreate) -> ReminderResponse:
    """Create a new reminder for the authenticated owner."""
    reminder = repo.create_reminder(reminder_data)
    return ReminderResponse.model_validate(reminder)


@router.get("/{reminder_id}", response_model=ReminderResponse)
def get_reminder_endpoint(repo: ReminderRepo, reminder_id: UUID) -> ReminderResponse:
    """Get a specific reminder by ID."""
    reminder = repo.get_reminder(reminder_id)
    if reminder is None:
        raise _not_found()
    return ReminderResponse.model_validate(reminder)


@router.patch("/{reminder_id}", response_model=ReminderResponse)
def update_reminder_endpoint(
    repo: ReminderRepo,
    reminder_id: UUID,
    reminder_data: ReminderUpdate,
) -> ReminderResponse:
    """Partially update a reminder."""
    try:
        reminder = repo.update_reminder(reminder_id, reminder_data)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
    if reminder is None:
        raise _not_found()
    return ReminderResponse.model_validate(reminder)


@router.patch("/{reminder_id}/complete", response_model=ReminderResponse)
def complete_reminder_endpoint(repo: ReminderRepo, reminder_id: UUID) -> ReminderResponse:
    """Mark a reminder complete. Repeating the call is harmless."""
    reminder = repo.complete_reminder(reminder_id)
    if reminder is None:
        raise _not_found()
    return ReminderResponse.model_validate(reminder)


@router.delete("/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reminder_endpoint(repo: ReminderRepo, reminder_id: UUID) -> None:
    """Delete a reminder."""
    if not repo.delete_reminder(reminder_id):
        raise _not_found()
