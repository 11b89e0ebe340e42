"""
Job application lifecycle.

``ApplicationService`` is stateless apart from its collaborators, all of which
are injected so tests can swap in fakes (chat factory, notifier, ledger).

Every mutating operation follows the same order of checks:

1. caller class may run the operation at all (``Forbidden``)
2. application exists (``NotFound``)
3. caller has a profile (``ProfileNotFound``)
4. caller owns the application (``Forbidden``)
5. current status is a valid source (``InvalidTransition``)

then applies the status patch, counters, chat, usage, history row and outbox
events as one transaction (see ``transaction.run_in_transaction``).
"""
from __future__ import annotations

from datetime import date
from typing import Any, Callable

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models
from .billing import UsageLedger
from .chat import ChatFactory
from .errors import (
    DuplicateApplication,
    Forbidden,
    InvalidTransition,
    JobNotAcceptingApplications,
    NotFound,
    SeekerBlocked,
    ValidationError,
)
from .identity import Actor, IdentityResolver
from .interviews import InterviewService
from .job_repository import JobRepository
from .notifications import EventOutbox, EventType, NotificationDispatcher
from .state_machine import (
    ACTIVE_STATUSES,
    DECLINE_REASONS,
    ApplicationStatus,
    HireStatus,
    InterviewStatus,
    Operation,
    check_actor,
    next_status,
)
from .transaction import run_in_transaction

HIRE_RESPONSES = (HireStatus.ACCEPTED.value, HireStatus.REJECTED.value)
INTERVIEW_RESPONSES = ("accepted", "declined")
ABSENCE_STATUSES = ("absent", "late", "left_early")
_ACTIVE = [s.value for s in ACTIVE_STATUSES]


class ApplicationService:
    def __init__(
        self,
        db: Session,
        identity: IdentityResolver | None = None,
        jobs: JobRepository | None = None,
        chats: ChatFactory | None = None,
        ledger: UsageLedger | None = None,
        outbox: EventOutbox | None = None,
        dispatcher: NotificationDispatcher | None = None,
        interviews: InterviewService | None = None,
    ):
        self.db = db
        self.identity = identity or IdentityResolver(db)
        self.jobs = jobs or JobRepository(db)
        self.chats = chats or ChatFactory(db)
        self.ledger = ledger or UsageLedger(db)
        self.outbox = outbox or EventOutbox(db)
        self.dispatcher = dispatcher or NotificationDispatcher(db)
        self.interviews = interviews or InterviewService(
            db, identity=self.identity, ledger=self.ledger, outbox=self.outbox, dispatcher=self.dispatcher
        )

    # --- lookups ---

    def find_application(self, ref: str) -> models.JobApplication | None:
        """Storage id first; the display ``application_id`` is accepted for older clients."""
        application = self.db.get(models.JobApplication, ref)
        if application is None:
            application = self.db.execute(
                select(models.JobApplication).where(models.JobApplication.application_id == ref)
            ).scalar_one_or_none()
        return application

    def _load(self, ref: str) -> models.JobApplication:
        application = self.find_application(ref)
        if application is None:
            raise NotFound("Application", ref)
        return application

    def _job_of(self, application: models.JobApplication) -> models.Job:
        job = self.db.get(models.Job, application.job_id)
        if job is None:
            raise NotFound("Job", application.job_id)
        return job

    def _authorize(self, actor: Actor, application: models.JobApplication) -> str:
        """Return the caller's profile id once it is known to own the application."""
        if actor.is_company:
            company_id = self.identity.company(actor).id
            if company_id != self._job_of(application).company_id:
                raise Forbidden("Not authorized to manage this application")
            return company_id
        seeker_id = self.identity.seeker(actor).id
        if seeker_id != application.seeker_id:
            raise Forbidden("Not authorized to access this application")
        return seeker_id

    def _begin(self, operation: Operation, actor: Actor, ref: str) -> tuple[models.JobApplication, str]:
        check_actor(operation, actor.user_type)
        application = self._load(ref)
        profile_id = self._authorize(actor, application)
        return application, profile_id

    def _active_block(self, company_id: str, seeker_id: str) -> models.BlockedSeeker | None:
        return self.db.execute(
            select(models.BlockedSeeker).where(
                models.BlockedSeeker.company_id == company_id,
                models.BlockedSeeker.seeker_id == seeker_id,
                models.BlockedSeeker.is_active.is_(True),
            )
        ).scalar_one_or_none()

    def _active_application(self, job_pk: str, seeker_id: str) -> models.JobApplication | None:
        return self.db.execute(
            select(models.JobApplication).where(
                models.JobApplication.job_id == job_pk,
                models.JobApplication.seeker_id == seeker_id,
                models.JobApplication.status.in_(_ACTIVE),
            )
        ).scalar_one_or_none()

    # --- transition plumbing ---

    def _run(self, label: str, work: Callable[[], Any]) -> Any:
        return run_in_transaction(self.db, work, self.dispatcher, label=label)

    def _move(self, application: models.JobApplication, target: ApplicationStatus | str) -> str:
        previous = application.status
        target = ApplicationStatus(target).value
        if target != previous:
            application.status = target
            application.status_changed_at = models.utcnow()
        return previous

    def _history(
        self,
        application: models.JobApplication,
        action: str,
        from_status: str | None,
        actor: Actor,
        reason: str | None = None,
        notes: str | None = None,
        **details: Any,
    ) -> None:
        self.db.add(models.ApplicationHistory(
            application_id=application.id,
            job_id=application.job_id,
            seeker_id=application.seeker_id,
            company_id=application.company_id,
            action=action,
            from_status=from_status,
            to_status=application.status,
            actor_type=actor.user_type.value,
            actor_id=actor.account_id,
            reason=reason,
            notes=notes,
            details={k: v for k, v in details.items() if v is not None},
        ))

    def _ensure_chat(self, application: models.JobApplication) -> str:
        # chats are never recreated once linked
        if application.chat_id is None:
            application.chat_id = self.chats.create(
                application.company_id, application.seeker_id, application.job_id, application.job_title
            )
        return application.chat_id

    def _consume_instant_match(self, application: models.JobApplication, job: models.Job) -> None:
        if job.hiring_type == "Instant Hire":
            company = self.db.get(models.Company, job.company_id)
            self.ledger.record(company, "instant_match", source_ref=application.id)

    # --- creation ---

    def apply(self, actor: Actor, job_ref: str, availability: str | None = None) -> models.JobApplication:
        def work():
            check_actor(Operation.APPLY, actor.user_type)
            job = self.jobs.require(job_ref)
            seeker = self.identity.seeker(actor)
            if job.job_status != "published":
                raise JobNotAcceptingApplications(job.job_status)
            block = self._active_block(job.company_id, seeker.id)
            if block is not None:
                raise SeekerBlocked(block.reason)
            if self._active_application(job.id, seeker.id) is not None:
                raise DuplicateApplication()

            application = models.JobApplication(
                job_id=job.id,
                seeker_id=seeker.id,
                company_id=job.company_id,
                job_title=job.role_name,
                company_name=job.company_name,
                hiring_type=job.hiring_type,
                status=ApplicationStatus.APPLIED.value,
                application_source="applied",
                availability=availability,
                report_history=[],
            )
            self.db.add(application)
            self.db.flush()
            self.jobs.increment_applications(job.id)
            self._history(application, "applied", None, actor)
            self.outbox.emit_for_application(EventType.APPLICATION_SUBMITTED, application)
            logger.info(f"Seeker {seeker.id} applied to job {job.job_id} ({application.application_id})")
            return application

        return self._create("apply", work)

    def invite(self, actor: Actor, job_ref: str, seeker_id: str, message: str | None = None) -> models.JobApplication:
        def work():
            check_actor(Operation.INVITE, actor.user_type)
            job = self.jobs.require(job_ref)
            company = self.identity.company(actor)
            if company.id != job.company_id:
                raise Forbidden("Not authorized to invite seekers to this job")
            if job.job_status != "published":
                raise JobNotAcceptingApplications(job.job_status)
            if self.db.get(models.Seeker, seeker_id) is None:
                raise NotFound("Seeker", seeker_id)
            block = self._active_block(company.id, seeker_id)
            if block is not None:
                raise SeekerBlocked(block.reason)
            if self._active_application(job.id, seeker_id) is not None:
                raise DuplicateApplication()

            application = models.JobApplication(
                job_id=job.id,
                seeker_id=seeker_id,
                company_id=company.id,
                job_title=job.role_name,
                company_name=job.company_name,
                hiring_type=job.hiring_type,
                status=ApplicationStatus.INVITED.value,
                application_source="invited",
                report_history=[],
            )
            self.db.add(application)
            self.db.flush()
            self.jobs.increment_applications(job.id)
            self._history(application, "invited", None, actor, notes=message)
            self.outbox.emit_for_application(EventType.SEEKER_INVITED, application, message=message)
            logger.info(f"Company {company.id} invited seeker {seeker_id} to job {job.job_id}")
            return application

        return self._create("invite", work)

    def _create(self, label: str, work: Callable[[], models.JobApplication]) -> models.JobApplication:
        try:
            return self._run(label, work)
        except IntegrityError:
            # lost the race against a concurrent request for the same (job, seeker)
            logger.warning(f"{label}: active application already exists")
            raise DuplicateApplication()

    # --- transitions ---

    def accept_invitation(self, actor: Actor, ref: str) -> models.JobApplication:
        def work():
            application, _ = self._begin(Operation.ACCEPT_INVITATION, actor, ref)
            previous = self._move(application, next_status(Operation.ACCEPT_INVITATION, application.status))
            application.application_source = "invited_applied"
            self._history(application, "invitation_accepted", previous, actor)
            self.outbox.emit_for_application(EventType.INVITATION_ACCEPTED, application)
            return application

        return self._run("accept_invitation", work)

    def shortlist(self, actor: Actor, ref: str, notes: str | None = None) -> models.JobApplication:
        def work():
            application, _ = self._begin(Operation.SHORTLIST, actor, ref)
            previous = self._move(application, next_status(Operation.SHORTLIST, application.status))
            self._history(application, "shortlisted", previous, actor, notes=notes)
            self.outbox.emit_for_application(EventType.APPLICATION_SHORTLISTED, application)
            return application

        return self._run("shortlist", work)

    def send_hire_request(self, actor: Actor, ref: str, message: str | None = None) -> models.JobApplication:
        def work():
            application, _ = self._begin(Operation.SEND_HIRE_REQUEST, actor, ref)
            target = next_status(Operation.SEND_HIRE_REQUEST, application.status)
            self._consume_instant_match(application, self._job_of(application))
            application.pre_hire_status = application.status
            previous = self._move(application, target)
            application.hire_status = HireStatus.PENDING.value
            application.hire_response = None
            application.hire_requested_at = models.utcnow()
            application.hire_responded_at = None
            self._history(application, "hire_requested", previous, actor, notes=message)
            self.outbox.emit_for_application(EventType.HIRE_REQUESTED, application, message=message)
            logger.info(f"Hire request sent for application {application.application_id}")
            return application

        return self._run("send_hire_request", work)

    def respond_to_hire_request(self, actor: Actor, ref: str, response: str) -> models.JobApplication:
        def work():
            application, _ = self._begin(Operation.RESPOND_TO_HIRE_REQUEST, actor, ref)
            next_status(Operation.RESPOND_TO_HIRE_REQUEST, application.status)
            if application.hire_status != HireStatus.PENDING.value:
                raise InvalidTransition("There is no pending hire request for this application")
            if response not in HIRE_RESPONSES:
                raise ValidationError(f"response must be one of {', '.join(HIRE_RESPONSES)}")

            application.hire_status = response
            application.hire_response = response
            application.hire_responded_at = models.utcnow()
            if response == HireStatus.ACCEPTED.value:
                previous = application.status
                application.reporting_enabled = True
                self.jobs.increment_hired(application.job_id)
                event = EventType.HIRE_ACCEPTED
            else:
                previous = self._move(application, application.pre_hire_status or ApplicationStatus.APPLIED)
                event = EventType.HIRE_REJECTED
            self._history(application, f"hire_{response}", previous, actor)
            self.outbox.emit_for_application(event, application)
            return application

        return self._run("respond_to_hire_request", work)

    def schedule_interview(self, actor: Actor, ref: str, slot: dict[str, Any]) -> models.JobApplication:
        """Create the interview (or move the open one) and link a chat thread."""
        def work():
            application, company_id = self._begin(Operation.SCHEDULE_INTERVIEW, actor, ref)
            target = next_status(Operation.SCHEDULE_INTERVIEW, application.status)
            company = self.db.get(models.Company, company_id)
            interview, created = self.interviews.schedule_for_application(
                application, company, slot, scheduled_by=actor.account_id
            )
            previous = self._move(application, target)
            application.interview_scheduled = True
            application.interview_response = None
            chat_id = self._ensure_chat(application)
            self._history(
                application,
                "interview_scheduled" if created else "interview_updated",
                previous,
                actor,
                notes=slot.get("notes"),
                interviewId=interview.interview_id,
                interviewDate=interview.interview_date.isoformat(),
                startTime=interview.start_time,
            )
            if created:
                self.outbox.emit_for_application(
                    EventType.INTERVIEW_SCHEDULED,
                    application,
                    interviewId=interview.interview_id,
                    interviewDate=interview.interview_date,
                    startTime=interview.start_time,
                    chatId=chat_id,
                )
            return application

        return self._run("schedule_interview", work)

    def respond_to_interview_request(self, actor: Actor, ref: str, response: str) -> models.JobApplication:
        def work():
            application, _ = self._begin(Operation.RESPOND_TO_INTERVIEW_REQUEST, actor, ref)
            next_status(Operation.RESPOND_TO_INTERVIEW_REQUEST, application.status)
            if not application.interview_scheduled:
                raise InvalidTransition("No interview has been scheduled for this application")
            if response not in INTERVIEW_RESPONSES:
                raise ValidationError(f"response must be one of {', '.join(INTERVIEW_RESPONSES)}")

            application.interview_response = response
            interview = self.interviews.open_interview_for(application.id)
            if interview is not None:
                if response == "accepted" and interview.status != InterviewStatus.CONFIRMED.value:
                    interview.status = InterviewStatus.CONFIRMED.value
                    interview.confirmation_status = "confirmed"
                elif response == "declined":
                    interview.confirmation_status = "declined"
            self._history(application, f"interview_{response}", application.status, actor)
            self.outbox.emit_for_application(EventType.INTERVIEW_RESPONDED, application, response=response)
            return application

        return self._run("respond_to_interview_request", work)

    def accept(self, actor: Actor, ref: str) -> models.JobApplication:
        def work():
            application, _ = self._begin(Operation.ACCEPT, actor, ref)
            if (
                application.status == ApplicationStatus.HIRED.value
                and application.hire_status is None
                and application.chat_id is not None
            ):
                # replayed accept: nothing to do, same chat
                return application
            target = next_status(Operation.ACCEPT, application.status)
            self._consume_instant_match(application, self._job_of(application))
            previous = self._move(application, target)
            application.reporting_enabled = True
            application.hire_status = None
            self.jobs.increment_hired(application.job_id)
            chat_id = self._ensure_chat(application)
            self._history(application, "accepted", previous, actor, chatId=chat_id)
            self.outbox.emit_for_application(EventType.APPLICATION_ACCEPTED, application, chatId=chat_id)
            logger.info(f"Application {application.application_id} accepted, chat {chat_id}")
            return application

        return self._run("accept", work)

    def reject(self, actor: Actor, ref: str, reason: str | None = None) -> models.JobApplication:
        def work():
            application, _ = self._begin(Operation.REJECT, actor, ref)
            previous = self._move(application, next_status(Operation.REJECT, application.status))
            self._history(application, "rejected", previous, actor, reason=reason)
            self.outbox.emit_for_application(EventType.APPLICATION_REJECTED, application, reason=reason)
            return application

        return self._run("reject", work)

    def decline(self, actor: Actor, ref: str, reason: str | None) -> models.JobApplication:
        def work():
            application, _ = self._begin(Operation.DECLINE, actor, ref)
            target = next_status(Operation.DECLINE, application.status)
            if reason not in DECLINE_REASONS:
                raise ValidationError("A valid decline reason is required", errors=list(DECLINE_REASONS))
            previous = self._move(application, target)
            application.decline_reason = reason
            self._history(application, "declined", previous, actor, reason=reason)
            self.outbox.emit_for_application(EventType.APPLICATION_DECLINED, application, reason=reason)
            return application

        return self._run("decline", work)

    def withdraw(self, actor: Actor, ref: str, reason: str | None = None) -> models.JobApplication:
        def work():
            application, _ = self._begin(Operation.WITHDRAW, actor, ref)
            previous = self._move(application, next_status(Operation.WITHDRAW, application.status))
            self.jobs.decrement_applications(application.job_id)
            self._history(application, "withdrawn", previous, actor, reason=reason)
            self.outbox.emit_for_application(EventType.APPLICATION_WITHDRAWN, application, reason=reason)
            logger.info(f"Application {application.application_id} withdrawn")
            return application

        return self._run("withdraw", work)

    def report_absence(
        self,
        actor: Actor,
        ref: str,
        absence_date: date | None = None,
        absence_status: str = "absent",
        reason: str | None = None,
        notes: str | None = None,
    ) -> models.JobApplication:
        def work():
            application, company_id = self._begin(Operation.REPORT_ABSENCE, actor, ref)
            next_status(Operation.REPORT_ABSENCE, application.status)
            if absence_status not in ABSENCE_STATUSES:
                raise ValidationError(f"status must be one of {', '.join(ABSENCE_STATUSES)}")
            now = models.utcnow()
            entry = {
                "date": (absence_date or now.date()).isoformat(),
                "status": absence_status,
                "reason": reason,
                "notes": notes,
                "reportedBy": company_id,
                "reportedAt": now.isoformat(),
            }
            # reassign so the JSON column is flushed
            application.report_history = [*application.report_history, entry]
            self._history(application, "absence_reported", application.status, actor, reason=reason, notes=notes, date=entry["date"])
            self.outbox.emit_for_application(EventType.ABSENCE_REPORTED, application, report=entry)
            return application

        return self._run("report_absence", work)

    def complete_job(self, actor: Actor, ref: str, notes: str | None = None) -> models.JobApplication:
        def work():
            application, _ = self._begin(Operation.COMPLETE_JOB, actor, ref)
            previous = self._move(application, next_status(Operation.COMPLETE_JOB, application.status))
            self._history(application, "completed", previous, actor, notes=notes)
            self.outbox.emit_for_application(EventType.JOB_COMPLETED, application, by=actor.user_type.value)
            return application

        return self._run("complete_job", work)

    def cancel_job(self, actor: Actor, ref: str, reason: str | None = None) -> models.JobApplication:
        def work():
            application, _ = self._begin(Operation.CANCEL_JOB, actor, ref)
            previous = self._move(application, next_status(Operation.CANCEL_JOB, application.status))
            application.decline_reason = reason
            self._history(application, "cancelled", previous, actor, reason=reason)
            self.outbox.emit_for_application(
                EventType.JOB_CANCELLED, application, reason=reason, by=actor.user_type.value
            )
            return application

        return self._run("cancel_job", work)

    # --- reads ---

    def get_application(self, actor: Actor, ref: str) -> models.JobApplication:
        application = self._load(ref)
        self._authorize(actor, application)
        return application

    def list_seeker_applications(
        self, actor: Actor, status: str | None = None, limit: int = 20, offset: int = 0
    ) -> list[models.JobApplication]:
        if actor.is_company:
            raise Forbidden("Only seeker accounts can list their applications")
        seeker = self.identity.seeker(actor)
        query = select(models.JobApplication).where(models.JobApplication.seeker_id == seeker.id)
        if status:
            query = query.where(models.JobApplication.status == ApplicationStatus(status).value)
        query = query.order_by(models.JobApplication.applied_at.desc()).limit(limit).offset(offset)
        return list(self.db.execute(query).scalars())

    def application_status(self, actor: Actor, job_ref: str) -> tuple[bool, models.JobApplication | None]:
        """Whether the seeker holds an active application for the job, plus their latest one."""
        if actor.is_company:
            raise Forbidden("Only seeker accounts can check application status")
        job = self.jobs.require(job_ref)
        seeker = self.identity.seeker(actor)
        active = self._active_application(job.id, seeker.id)
        if active is not None:
            return True, active
        latest = self.db.execute(
            select(models.JobApplication)
            .where(models.JobApplication.job_id == job.id, models.JobApplication.seeker_id == seeker.id)
            .order_by(models.JobApplication.applied_at.desc())
            .limit(1)
        ).scalar_one_or_none()
        return False, latest

    def list_seeker_applications_for_company(
        self, actor: Actor, seeker_id: str, status: str | None = None, limit: int = 50, offset: int = 0
    ) -> list[models.JobApplication]:
        if not actor.is_company:
            raise Forbidden("Only company accounts can view a seeker's applications")
        company = self.identity.company(actor)
        if self.db.get(models.Seeker, seeker_id) is None:
            raise NotFound("Seeker", seeker_id)
        # only applications to this company's own jobs
        query = select(models.JobApplication).where(
            models.JobApplication.seeker_id == seeker_id,
            models.JobApplication.company_id == company.id,
        )
        if status:
            query = query.where(models.JobApplication.status == ApplicationStatus(status).value)
        query = query.order_by(models.JobApplication.applied_at.desc()).limit(limit).offset(offset)
        return list(self.db.execute(query).scalars())

    def _owned_job(self, actor: Actor, job_ref: str) -> models.Job:
        job, _ = self.jobs.require_owned(actor, job_ref, action="view applications for")
        return job

    def list_job_applications(
        self, actor: Actor, job_ref: str, status: str | None = None, limit: int = 50, offset: int = 0
    ) -> list[models.JobApplication]:
        job = self._owned_job(actor, job_ref)
        query = select(models.JobApplication).where(models.JobApplication.job_id == job.id)
        if status:
            query = query.where(models.JobApplication.status == ApplicationStatus(status).value)
        query = query.order_by(models.JobApplication.applied_at.desc()).limit(limit).offset(offset)
        return list(self.db.execute(query).scalars())

    def application_stats(self, actor: Actor, job_ref: str) -> dict[str, int]:
        job = self._owned_job(actor, job_ref)
        rows = self.db.execute(
            select(models.JobApplication.status, func.count())
            .where(models.JobApplication.job_id == job.id)
            .group_by(models.JobApplication.status)
        ).all()
        stats = {s.value: 0 for s in ApplicationStatus}
        for status, count in rows:
            stats[status] = count
        stats["total"] = sum(count for _, count in rows)
        return stats

    def get_history(self, actor: Actor, ref: str) -> list[models.ApplicationHistory]:
        application = self.get_application(actor, ref)
        return list(
            self.db.execute(
                select(models.ApplicationHistory)
                .where(models.ApplicationHistory.application_id == application.id)
                .order_by(models.ApplicationHistory.action_at.asc())
            ).scalars()
        )

    def get_reports(self, actor: Actor, ref: str) -> list[dict]:
        return list(self.get_application(actor, ref).report_history)

    def list_interviews(self, actor: Actor, ref: str) -> list[models.Interview]:
        application = self.get_application(actor, ref)
        return self.interviews.for_application(application.id)

    # --- blocking ---

    def block_seeker(self, actor: Actor, seeker_id: str, reason: str | None = None) -> models.BlockedSeeker:
        def work():
            if not actor.is_company:
                raise Forbidden("Only company accounts can block seekers")
            company = self.identity.company(actor)
            if self.db.get(models.Seeker, seeker_id) is None:
                raise NotFound("Seeker", seeker_id)
            if self._active_block(company.id, seeker_id) is not None:
                raise ValidationError("Seeker is already blocked")
            block = models.BlockedSeeker(
                company_id=company.id, seeker_id=seeker_id, reason=reason, blocked_by=actor.account_id
            )
            self.db.add(block)
            self.db.flush()
            logger.info(f"Company {company.id} blocked seeker {seeker_id}")
            return block

        return run_in_transaction(self.db, work, label="block_seeker")

    def unblock_seeker(self, actor: Actor, seeker_id: str, reason: str | None = None) -> models.BlockedSeeker:
        def work():
            if not actor.is_company:
                raise Forbidden("Only company accounts can unblock seekers")
            company = self.identity.company(actor)
            block = self._active_block(company.id, seeker_id)
            if block is None:
                raise NotFound("Blocked seeker", seeker_id)
            block.is_active = False
            block.unblocked_at = models.utcnow()
            block.unblock_reason = reason
            block.unblocked_by = actor.account_id
            logger.info(f"Company {company.id} unblocked seeker {seeker_id}")
            return block

        return run_in_transaction(self.db, work, label="unblock_seeker")

    def list_blocked_seekers(self, actor: Actor) -> list[models.BlockedSeeker]:
        if not actor.is_company:
            raise Forbidden("Only company accounts can view blocked seekers")
        company = self.identity.company(actor)
        return list(
            self.db.execute(
                select(models.BlockedSeeker)
                .where(models.BlockedSeeker.company_id == company.id, models.BlockedSeeker.is_active.is_(True))
                .order_by(models.BlockedSeeker.blocked_at.desc())
            ).scalars()
        )
