"""FastAPI dependency factories for the service layer."""
from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from .applications import ApplicationService
from .database import get_db
from .interviews import InterviewService
from .notifications import LoggingNotifier, NotificationDispatcher, Notifier


def get_notifier() -> Notifier:
    return LoggingNotifier()


def get_dispatcher(db: Session = Depends(get_db), notifier: Notifier = Depends(get_notifier)) -> NotificationDispatcher:
    return NotificationDispatcher(db, notifier)


def get_application_service(
    db: Session = Depends(get_db), dispatcher: NotificationDispatcher = Depends(get_dispatcher)
) -> ApplicationService:
    return ApplicationService(db, dispatcher=dispatcher)


def get_interview_service(
    db: Session = Depends(get_db), dispatcher: NotificationDispatcher = Depends(get_dispatcher)
) -> InterviewService:
    return InterviewService(db, dispatcher=dispatcher)
