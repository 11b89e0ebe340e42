"""Job postings: lookup, publish checks and the counters applications depend on."""
from __future__ import annotations

from typing import Any

from loguru import logger
from sqlalchemy import case, select, update
from sqlalchemy.orm import Session

from . import models
from .billing import UsageLedger
from .errors import Forbidden, NotFound, ValidationError
from .identity import Actor, IdentityResolver

JOB_STATUSES = ("draft", "published", "paused", "closed")
HIRING_TYPES = ("Instant Hire", "Interview First")

_BASE_PUBLISH_FIELDS = ("company_id", "brand_location_id", "job_summary", "hiring_type")
_PUBLISH_FIELDS_BY_TYPE = {
    "Instant Hire": ("pay_per_hour", "hours_per_day", "start_date", "payment_terms"),
    "Interview First": ("work_type",),
}


def missing_fields(job: models.Job) -> list[str]:
    missing = []
    if not job.role_name:
        missing.append("role_name")
    for field in _BASE_PUBLISH_FIELDS + _PUBLISH_FIELDS_BY_TYPE.get(job.hiring_type, ()):
        if getattr(job, field) in (None, ""):
            missing.append(field)
    return missing


def can_publish(job: models.Job) -> bool:
    return not missing_fields(job)


class JobRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_job_id(self, job_ref: str) -> models.Job | None:
        """Display id (``JOB-…``) first, storage id as a fallback."""
        job = self.db.execute(select(models.Job).where(models.Job.job_id == job_ref)).scalar_one_or_none()
        if job is None:
            job = self.db.get(models.Job, job_ref)
        return job

    def require(self, job_ref: str) -> models.Job:
        job = self.find_by_job_id(job_ref)
        if job is None:
            raise NotFound("Job", job_ref)
        return job

    def require_owned(self, actor: Actor, job_ref: str, action: str = "manage") -> tuple[models.Job, models.Company]:
        """The one job-ownership rule: a company account whose profile owns the job."""
        if not actor.is_company:
            raise Forbidden(f"Only company accounts can {action} this job")
        job = self.require(job_ref)
        company = IdentityResolver(self.db).company(actor)
        if company.id != job.company_id:
            raise Forbidden(f"Not authorized to {action} this job")
        return job, company

    @staticmethod
    def snapshot(job: models.Job) -> dict[str, Any]:
        return {
            "jobId": job.job_id,
            "companyId": job.company_id,
            "userId": job.user_id,
            "jobStatus": job.job_status,
            "roleName": job.role_name,
            "companyName": job.company_name,
            "hiringType": job.hiring_type,
        }

    # Counters are single UPDATE statements so concurrent transitions don't lose increments.

    def increment_applications(self, job_pk: str) -> None:
        self.db.execute(
            update(models.Job)
            .where(models.Job.id == job_pk)
            .values(applications_count=models.Job.applications_count + 1)
            .execution_options(synchronize_session="fetch")
        )

    def decrement_applications(self, job_pk: str) -> None:
        self.db.execute(
            update(models.Job)
            .where(models.Job.id == job_pk)
            .values(
                applications_count=case(
                    (models.Job.applications_count > 0, models.Job.applications_count - 1),
                    else_=0,
                )
            )
            .execution_options(synchronize_session="fetch")
        )

    def increment_hired(self, job_pk: str) -> None:
        self.db.execute(
            update(models.Job)
            .where(models.Job.id == job_pk)
            .values(hired_count=models.Job.hired_count + 1)
            .execution_options(synchronize_session="fetch")
        )

    def increment_views(self, job_pk: str) -> None:
        self.db.execute(
            update(models.Job)
            .where(models.Job.id == job_pk)
            .values(views_count=models.Job.views_count + 1)
            .execution_options(synchronize_session="fetch")
        )

    def create(self, company: models.Company, account_id: str, **fields: Any) -> models.Job:
        hiring_type = fields.get("hiring_type") or "Instant Hire"
        if hiring_type not in HIRING_TYPES:
            raise ValidationError(f"hiring_type must be one of {', '.join(HIRING_TYPES)}")
        job = models.Job(
            company_id=company.id,
            user_id=account_id,
            company_name=company.company_name,
            job_status="draft",
            **{**fields, "hiring_type": hiring_type},
        )
        self.db.add(job)
        self.db.flush()
        logger.info(f"Job {job.job_id} drafted by company {company.id}")
        return job

    def publish(self, job: models.Job, company: models.Company, ledger: UsageLedger) -> models.Job:
        if job.job_status == "published":
            return job
        missing = missing_fields(job)
        if missing:
            raise ValidationError("Job missing required fields for publishing", errors=missing)
        ledger.record(company, "job_posting", source_ref=job.id)
        job.job_status = "published"
        job.published_at = models.utcnow()
        self.db.flush()
        logger.info(f"Job {job.job_id} published")
        return job

    def set_status(self, job: models.Job, job_status: str) -> models.Job:
        if job_status not in JOB_STATUSES or job_status == "draft":
            raise ValidationError("job_status must be one of published, paused, closed")
        if job_status == "published" and job.published_at is None:
            raise ValidationError("Use the publish endpoint to publish a draft job")
        job.job_status = job_status
        self.db.flush()
        return job
