"""
Interview scheduling.

An interview hangs off an application but runs its own small lifecycle
(``state_machine.INTERVIEW_TRANSITIONS``). Times are stored as ``HH:MM``
strings on a calendar date; overlap checks work on minutes since midnight with
half-open intervals, so back-to-back slots never conflict.
"""
from __future__ import annotations

from datetime import date
from typing import Any

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from . import models
from .billing import UsageLedger
from .config import settings
from .errors import Forbidden, InvalidTransition, NotFound, SchedulingConflict, ValidationError
from .identity import Actor, IdentityResolver
from .notifications import EventOutbox, EventType, NotificationDispatcher
from .state_machine import OPEN_INTERVIEW_STATUSES, ActorType, InterviewStatus, next_interview_status
from .transaction import run_in_transaction

INTERVIEW_TYPES = ("in-person", "phone", "video", "group")
INTERVIEW_RESULTS = ("pass", "fail", "pending")
_OPEN = [s.value for s in OPEN_INTERVIEW_STATUSES]
_DAY_MINUTES = 24 * 60


def to_minutes(value: str, end_of_day: bool = False) -> int:
    """Minutes since midnight. ``end_of_day`` also admits ``24:00``, which only ever closes a slot."""
    try:
        hours, minutes = value.split(":")
        hours, minutes = int(hours), int(minutes)
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid time '{value}', expected HH:MM")
    if end_of_day and (hours, minutes) == (24, 0):
        return _DAY_MINUTES
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValidationError(f"Invalid time '{value}', expected HH:MM")
    return hours * 60 + minutes


def from_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def normalize_time(value: str) -> str:
    """``9:00`` and ``09:00`` name the same slot."""
    return from_minutes(to_minutes(value))


def end_time(start_time: str, duration: int) -> str:
    if duration <= 0:
        raise ValidationError("Interview duration must be positive")
    end = to_minutes(start_time) + duration
    # interviews never cross midnight
    if end > _DAY_MINUTES:
        raise ValidationError("Interview must end on the same day it starts")
    return from_minutes(end)


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    return start_a < end_b and end_a > start_b


class InterviewService:
    def __init__(
        self,
        db: Session,
        identity: IdentityResolver | None = None,
        ledger: UsageLedger | None = None,
        outbox: EventOutbox | None = None,
        dispatcher: NotificationDispatcher | None = None,
    ):
        self.db = db
        self.identity = identity or IdentityResolver(db)
        self.ledger = ledger or UsageLedger(db)
        self.outbox = outbox or EventOutbox(db)
        self.dispatcher = dispatcher

    # --- lookups ---

    def find(self, ref: str) -> models.Interview | None:
        interview = self.db.get(models.Interview, ref)
        if interview is None:
            interview = self.db.execute(
                select(models.Interview).where(models.Interview.interview_id == ref)
            ).scalar_one_or_none()
        return interview

    def require(self, ref: str) -> models.Interview:
        interview = self.find(ref)
        if interview is None:
            raise NotFound("Interview", ref)
        return interview

    def open_interview_for(self, application_pk: str) -> models.Interview | None:
        return self.db.execute(
            select(models.Interview)
            .where(models.Interview.application_id == application_pk, models.Interview.status.in_(_OPEN))
            .order_by(models.Interview.created_at.desc())
            .limit(1)
        ).scalar_one_or_none()

    def for_application(self, application_pk: str) -> list[models.Interview]:
        return list(
            self.db.execute(
                select(models.Interview)
                .where(models.Interview.application_id == application_pk)
                .order_by(models.Interview.interview_date.asc(), models.Interview.start_time.asc())
            ).scalars()
        )

    # --- scheduling assist ---

    def check_conflicts(
        self,
        company_id: str,
        interview_date: date,
        start_time: str,
        duration: int,
        exclude_id: str | None = None,
    ) -> list[models.Interview]:
        """Same-company, same-day open interviews intersecting ``[start, start+duration)``."""
        start = to_minutes(start_time)
        end_time(start_time, duration)  # rejects slots past midnight
        end = start + duration
        query = select(models.Interview).where(
            models.Interview.company_id == company_id,
            models.Interview.interview_date == interview_date,
            models.Interview.status.in_(_OPEN),
        )
        if exclude_id is not None:
            query = query.where(models.Interview.id != exclude_id)
        return [
            existing
            for existing in self.db.execute(query).scalars()
            if overlaps(start, end, to_minutes(existing.start_time), to_minutes(existing.end_time, end_of_day=True))
        ]

    def available_slots(self, company_id: str, interview_date: date, duration: int | None = None) -> list[dict]:
        duration = duration or settings.INTERVIEW_DEFAULT_DURATION
        if duration <= 0:
            raise ValidationError("Interview duration must be positive")
        day_start = to_minutes(settings.BUSINESS_HOURS_START)
        day_end = to_minutes(settings.BUSINESS_HOURS_END, end_of_day=True)
        booked = [
            (to_minutes(i.start_time), to_minutes(i.end_time, end_of_day=True))
            for i in self.db.execute(
                select(models.Interview).where(
                    models.Interview.company_id == company_id,
                    models.Interview.interview_date == interview_date,
                    models.Interview.status.in_(_OPEN),
                )
            ).scalars()
        ]

        slots = []
        cursor = day_start
        while cursor + duration <= day_end:
            if not any(overlaps(cursor, cursor + duration, s, e) for s, e in booked):
                slots.append({
                    "startTime": from_minutes(cursor),
                    "endTime": from_minutes(cursor + duration),
                    "duration": duration,
                })
            cursor += settings.SLOT_STEP_MINUTES
        return slots

    # --- called from the application service, inside its transaction ---

    def schedule_for_application(
        self,
        application: models.JobApplication,
        company: models.Company,
        slot: dict[str, Any],
        scheduled_by: str,
    ) -> tuple[models.Interview, bool]:
        """
        Create the application's interview, or move the open one.

        Returns ``(interview, created)``. A new interview consumes one
        ``interview`` usage entry; moving an existing one goes through the
        reschedule rules instead.
        """
        interview_date = slot["interview_date"]
        start_time = normalize_time(slot["start_time"])
        duration = slot.get("duration") or settings.INTERVIEW_DEFAULT_DURATION
        interview_type = slot.get("interview_type") or "in-person"
        if interview_type not in INTERVIEW_TYPES:
            raise ValidationError(f"interview_type must be one of {', '.join(INTERVIEW_TYPES)}")

        existing = self.open_interview_for(application.id)
        if existing is not None:
            if (existing.interview_date, existing.start_time, existing.duration) != (interview_date, start_time, duration):
                self._move(existing, interview_date, start_time, duration, slot.get("reason") or "Rescheduled by company")
            existing.interview_type = interview_type
            existing.location = slot.get("location", existing.location)
            existing.notes = slot.get("notes", existing.notes)
            self.db.flush()
            return existing, False

        end = end_time(start_time, duration)
        conflicts = self.check_conflicts(company.id, interview_date, start_time, duration)
        if conflicts:
            raise SchedulingConflict([c.interview_id for c in conflicts])
        self.ledger.record(company, "interview", source_ref=application.id)

        interview = models.Interview(
            application_id=application.id,
            job_id=application.job_id,
            company_id=application.company_id,
            seeker_id=application.seeker_id,
            interview_date=interview_date,
            start_time=start_time,
            duration=duration,
            end_time=end,
            interview_type=interview_type,
            location=slot.get("location"),
            notes=slot.get("notes"),
            status=InterviewStatus.SCHEDULED.value,
            confirmation_status="pending",
            reschedule_history=[],
            reschedule_count=0,
            max_reschedules=settings.INTERVIEW_MAX_RESCHEDULES,
            scheduled_by=scheduled_by,
        )
        self.db.add(interview)
        self.db.flush()
        logger.info(f"Interview {interview.interview_id} scheduled for application {application.application_id} on {interview_date} {start_time}")
        return interview, True

    def _move(self, interview: models.Interview, new_date: date, new_time: str, duration: int, reason: str | None) -> None:
        target = next_interview_status("reschedule", interview.status)
        if interview.reschedule_count >= interview.max_reschedules:
            raise InvalidTransition("Maximum reschedule limit reached")
        new_time = normalize_time(new_time)
        new_end = end_time(new_time, duration)
        conflicts = self.check_conflicts(interview.company_id, new_date, new_time, duration, exclude_id=interview.id)
        if conflicts:
            raise SchedulingConflict([c.interview_id for c in conflicts])

        # JSON columns only persist on reassignment
        interview.reschedule_history = [
            *interview.reschedule_history,
            {
                "date": interview.interview_date.isoformat(),
                "startTime": interview.start_time,
                "endTime": interview.end_time,
                "rescheduledAt": models.utcnow().isoformat(),
                "reason": reason,
            },
        ]
        interview.interview_date = new_date
        interview.start_time = new_time
        interview.duration = duration
        interview.end_time = new_end
        interview.status = target.value
        interview.confirmation_status = "pending"
        interview.reschedule_count += 1
        self.outbox.emit(
            EventType.INTERVIEW_RESCHEDULED,
            interview.id,
            interviewId=interview.interview_id,
            applicationId=interview.application_id,
            seekerId=interview.seeker_id,
            companyId=interview.company_id,
            interviewDate=new_date,
            startTime=new_time,
            reason=reason,
        )

    # --- standalone interview operations ---

    def _authorize(self, actor: Actor, interview: models.Interview) -> None:
        if actor.is_company:
            if self.identity.company(actor).id != interview.company_id:
                raise Forbidden("Not authorized to manage this interview")
        elif self.identity.seeker(actor).id != interview.seeker_id:
            raise Forbidden("Not authorized to manage this interview")

    def _emit(self, event_type: EventType, interview: models.Interview, **extra: Any) -> None:
        self.outbox.emit(
            event_type,
            interview.id,
            interviewId=interview.interview_id,
            applicationId=interview.application_id,
            seekerId=interview.seeker_id,
            companyId=interview.company_id,
            status=interview.status,
            **extra,
        )

    def _clear_application_flag(self, interview: models.Interview) -> None:
        if interview.application_id is None:
            return
        application = self.db.get(models.JobApplication, interview.application_id)
        if application is not None:
            application.interview_scheduled = False

    def get(self, actor: Actor, ref: str) -> models.Interview:
        interview = self.require(ref)
        self._authorize(actor, interview)
        return interview

    def reschedule(self, actor: Actor, ref: str, new_date: date, new_time: str, reason: str | None = None, duration: int | None = None) -> models.Interview:
        def work():
            interview = self.require(ref)
            self._authorize(actor, interview)
            if actor.user_type is ActorType.SEEKER and not interview.allow_rescheduling:
                raise Forbidden("Rescheduling is not allowed for this interview")
            self._move(interview, new_date, new_time, duration or interview.duration, reason)
            self.db.flush()
            logger.info(f"Interview {interview.interview_id} rescheduled to {new_date} {new_time}")
            return interview

        return run_in_transaction(self.db, work, self.dispatcher, label="reschedule_interview")

    def confirm(self, actor: Actor, ref: str) -> models.Interview:
        def work():
            if actor.is_company:
                raise Forbidden("Only seeker accounts can confirm an interview")
            interview = self.require(ref)
            self._authorize(actor, interview)
            interview.status = next_interview_status("confirm", interview.status).value
            interview.confirmation_status = "confirmed"
            self._emit(EventType.INTERVIEW_CONFIRMED, interview)
            self.db.flush()
            return interview

        return run_in_transaction(self.db, work, self.dispatcher, label="confirm_interview")

    def cancel(self, actor: Actor, ref: str, reason: str | None = None) -> models.Interview:
        def work():
            interview = self.require(ref)
            self._authorize(actor, interview)
            interview.status = next_interview_status("cancel", interview.status).value
            interview.cancellation_reason = reason
            interview.cancelled_at = models.utcnow()
            self._clear_application_flag(interview)
            self._emit(EventType.INTERVIEW_CANCELLED, interview, reason=reason)
            self.db.flush()
            logger.info(f"Interview {interview.interview_id} cancelled by {actor.user_type.value}")
            return interview

        return run_in_transaction(self.db, work, self.dispatcher, label="cancel_interview")

    def complete(
        self,
        actor: Actor,
        ref: str,
        rating: int | None = None,
        feedback: str | None = None,
        result: str = "pending",
        next_steps: str | None = None,
    ) -> models.Interview:
        def work():
            if not actor.is_company:
                raise Forbidden("Only company accounts can complete an interview")
            interview = self.require(ref)
            self._authorize(actor, interview)
            if result not in INTERVIEW_RESULTS:
                raise ValidationError(f"result must be one of {', '.join(INTERVIEW_RESULTS)}")
            if rating is not None and not 1 <= rating <= 5:
                raise ValidationError("rating must be between 1 and 5")
            interview.status = next_interview_status("complete", interview.status).value
            interview.rating = rating
            interview.feedback = feedback
            interview.result = result
            interview.next_steps = next_steps
            interview.completed_at = models.utcnow()
            self._emit(EventType.INTERVIEW_COMPLETED, interview, result=result)
            self.db.flush()
            return interview

        return run_in_transaction(self.db, work, self.dispatcher, label="complete_interview")

    def mark_no_show(self, actor: Actor, ref: str) -> models.Interview:
        def work():
            if not actor.is_company:
                raise Forbidden("Only company accounts can mark an interview as no-show")
            interview = self.require(ref)
            self._authorize(actor, interview)
            interview.status = next_interview_status("no_show", interview.status).value
            interview.no_show_at = models.utcnow()
            self._clear_application_flag(interview)
            self._emit(EventType.INTERVIEW_NO_SHOW, interview)
            self.db.flush()
            return interview

        return run_in_transaction(self.db, work, self.dispatcher, label="no_show_interview")
