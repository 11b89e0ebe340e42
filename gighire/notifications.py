"""
Domain events and notification dispatch.

Transitions write ``OutboxEvent`` rows in the same transaction as the state
change. After commit the dispatcher drains pending rows into a ``Notifier``.
Dispatch is fire-and-forget: a failing notifier marks the event ``failed`` and
is logged, the transition that produced it is already committed.
"""
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Protocol

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from . import models


class EventType(str, Enum):
    APPLICATION_SUBMITTED = "ApplicationSubmitted"
    SEEKER_INVITED = "SeekerInvited"
    INVITATION_ACCEPTED = "InvitationAccepted"
    APPLICATION_SHORTLISTED = "ApplicationShortlisted"
    HIRE_REQUESTED = "HireRequested"
    HIRE_ACCEPTED = "HireAccepted"
    HIRE_REJECTED = "HireRejected"
    INTERVIEW_SCHEDULED = "InterviewScheduled"
    INTERVIEW_RESPONDED = "InterviewResponded"
    APPLICATION_ACCEPTED = "ApplicationAccepted"
    APPLICATION_REJECTED = "ApplicationRejected"
    APPLICATION_DECLINED = "ApplicationDeclined"
    APPLICATION_WITHDRAWN = "ApplicationWithdrawn"
    ABSENCE_REPORTED = "AbsenceReported"
    JOB_COMPLETED = "JobCompleted"
    JOB_CANCELLED = "JobCancelled"
    INTERVIEW_RESCHEDULED = "InterviewRescheduled"
    INTERVIEW_CONFIRMED = "InterviewConfirmed"
    INTERVIEW_CANCELLED = "InterviewCancelled"
    INTERVIEW_COMPLETED = "InterviewCompleted"
    INTERVIEW_NO_SHOW = "InterviewNoShow"


def _jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


class EventOutbox:
    def __init__(self, db: Session):
        self.db = db

    def emit(self, event_type: EventType, aggregate_id: str, **payload: Any) -> models.OutboxEvent:
        event = models.OutboxEvent(
            event_type=event_type.value,
            aggregate_id=aggregate_id,
            payload={k: _jsonable(v) for k, v in payload.items()},
            status="pending",
            attempts=0,
        )
        self.db.add(event)
        return event

    def emit_for_application(self, event_type: EventType, application: models.JobApplication, **extra: Any) -> models.OutboxEvent:
        return self.emit(
            event_type,
            application.id,
            applicationId=application.application_id,
            jobId=application.job_id,
            seekerId=application.seeker_id,
            companyId=application.company_id,
            jobTitle=application.job_title,
            companyName=application.company_name,
            status=application.status,
            **extra,
        )


class Notifier(Protocol):
    def send(self, event_type: str, payload: dict) -> None: ...


class LoggingNotifier:
    """Default notifier: email/push delivery is an external service; record the intent."""

    def send(self, event_type: str, payload: dict) -> None:
        recipient = payload.get("seekerId") if event_type in _SEEKER_FACING else payload.get("companyId")
        logger.info(f"Notification {event_type} -> {recipient} (application {payload.get('applicationId')})")


_SEEKER_FACING = {
    EventType.SEEKER_INVITED.value,
    EventType.APPLICATION_SHORTLISTED.value,
    EventType.HIRE_REQUESTED.value,
    EventType.INTERVIEW_SCHEDULED.value,
    EventType.APPLICATION_ACCEPTED.value,
    EventType.APPLICATION_REJECTED.value,
    EventType.APPLICATION_DECLINED.value,
    EventType.INTERVIEW_RESCHEDULED.value,
    EventType.INTERVIEW_CANCELLED.value,
    EventType.INTERVIEW_COMPLETED.value,
}


class NotificationDispatcher:
    def __init__(self, db: Session, notifier: Notifier | None = None):
        self.db = db
        self.notifier = notifier or LoggingNotifier()

    def dispatch_pending(self, limit: int = 100) -> int:
        """Deliver pending events oldest first; returns how many were sent."""
        events = self.db.execute(
            select(models.OutboxEvent)
            .where(models.OutboxEvent.status == "pending")
            .order_by(models.OutboxEvent.created_at.asc())
            .limit(limit)
        ).scalars().all()

        sent = 0
        for event in events:
            event.attempts += 1
            event.processed_at = models.utcnow()
            try:
                self.notifier.send(event.event_type, event.payload)
            except Exception as exc:
                logger.exception(f"Failed to dispatch {event.event_type} for {event.aggregate_id}")
                event.status = "failed"
                event.last_error = str(exc)
            else:
                event.status = "sent"
                sent += 1
        self.db.commit()
        return sent
