# gighire/models.py
from __future__ import annotations
import secrets
import string
import time
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import JSON, Boolean, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base
from .state_machine import TERMINAL_STATUSES

_B36 = string.digits + string.ascii_uppercase


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def display_id(prefix: str) -> str:
    """Human-facing key like APP-LX2K9Q3AB7F: base36 millis + 5 random chars."""
    n, stamp = int(time.time() * 1000), ""
    while n:
        n, r = divmod(n, 36)
        stamp = _B36[r] + stamp
    suffix = "".join(secrets.choice(_B36) for _ in range(5))
    return f"{prefix}-{stamp}{suffix}"


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    # RFC 5321 cap is 320 chars; unique + indexed for login lookups
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    user_type: Mapped[str] = mapped_column(String(16), nullable=False)  # 'seeker' | 'company'
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


# --- Profiles ---

class Seeker(Base):
    __tablename__ = "seekers"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    company_email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    # 'trial' | 'starter' | 'pro' | 'custom' | 'payAsYouGo'
    subscription_plan: Mapped[str | None] = mapped_column(String(32), default="trial", nullable=True)
    trial_start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    trial_end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    next_billing_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    blocked_seekers: Mapped[list["BlockedSeeker"]] = relationship(back_populates="company", cascade="all, delete-orphan")


class BlockedSeeker(Base):
    __tablename__ = "blocked_seekers"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    company_id: Mapped[str] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), index=True)
    seeker_id: Mapped[str] = mapped_column(ForeignKey("seekers.id", ondelete="CASCADE"), index=True)
    reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    blocked_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # deactivated instead of deleted so the audit trail survives an unblock
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    blocked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    unblocked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    unblock_reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    unblocked_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    company: Mapped[Company] = relationship(back_populates="blocked_seekers")


class UsageEvent(Base):
    """Append-only usage ledger; counters are always derived from these rows."""
    __tablename__ = "usage_events"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    company_id: Mapped[str] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), index=True)
    action: Mapped[str] = mapped_column(String(32), index=True, nullable=False)  # 'instant_match' | 'interview' | 'job_posting'
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    source_ref: Mapped[str | None] = mapped_column(String(64), nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True, nullable=False)


# --- Jobs ---

class Job(Base):
    __tablename__ = "jobs"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    job_id: Mapped[str] = mapped_column(String(32), unique=True, index=True, default=lambda: display_id("JOB"))
    company_id: Mapped[str] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[str] = mapped_column(String(32), index=True)  # owning account

    role_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    job_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    brand_location_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    hiring_type: Mapped[str] = mapped_column(String(32), default="Instant Hire", nullable=False)  # 'Instant Hire' | 'Interview First'
    pay_per_hour: Mapped[float | None] = mapped_column(Float, nullable=True)
    hours_per_day: Mapped[float | None] = mapped_column(Float, nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    payment_terms: Mapped[str | None] = mapped_column(String(64), nullable=True)
    work_type: Mapped[str | None] = mapped_column(String(16), nullable=True)  # 'hourly' | 'short' | 'full'

    job_status: Mapped[str] = mapped_column(String(16), default="draft", index=True, nullable=False)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    applications_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    views_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    hired_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class JobApplication(Base):
    __tablename__ = "job_applications"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    application_id: Mapped[str] = mapped_column(String(32), unique=True, index=True, default=lambda: display_id("APP"))

    # foreign keys always hold storage/profile ids, never account ids
    job_id: Mapped[str] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), index=True)
    seeker_id: Mapped[str] = mapped_column(ForeignKey("seekers.id", ondelete="CASCADE"), index=True)
    company_id: Mapped[str] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), index=True)

    # snapshot of the job at creation time; not resynced when the job changes
    job_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    hiring_type: Mapped[str | None] = mapped_column(String(32), nullable=True)

    status: Mapped[str] = mapped_column(String(16), index=True, nullable=False)
    application_source: Mapped[str] = mapped_column(String(16), default="applied", nullable=False)
    availability: Mapped[str | None] = mapped_column(String(255), nullable=True)

    hire_status: Mapped[str | None] = mapped_column(String(16), nullable=True)
    hire_response: Mapped[str | None] = mapped_column(String(16), nullable=True)
    pre_hire_status: Mapped[str | None] = mapped_column(String(16), nullable=True)
    hire_requested_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    hire_responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    interview_scheduled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    interview_response: Mapped[str | None] = mapped_column(String(16), nullable=True)

    decline_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reporting_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    report_history: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    chat_id: Mapped[str | None] = mapped_column(String(32), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    applied_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    status_changed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}


# one active application per (job, seeker); terminal rows don't count
_terminal_sql = ", ".join(f"'{s.value}'" for s in sorted(TERMINAL_STATUSES, key=lambda s: s.value))
Index(
    "uq_job_applications_active_pair",
    JobApplication.job_id,
    JobApplication.seeker_id,
    unique=True,
    sqlite_where=text(f"status NOT IN ({_terminal_sql})"),
    postgresql_where=text(f"status NOT IN ({_terminal_sql})"),
)


class Interview(Base):
    __tablename__ = "interviews"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    interview_id: Mapped[str] = mapped_column(String(32), unique=True, index=True, default=lambda: display_id("INT"))
    application_id: Mapped[str | None] = mapped_column(ForeignKey("job_applications.id", ondelete="CASCADE"), index=True, nullable=True)
    job_id: Mapped[str] = mapped_column(String(32), index=True)
    company_id: Mapped[str] = mapped_column(String(32), index=True)
    seeker_id: Mapped[str] = mapped_column(String(32), index=True)

    interview_date: Mapped[date] = mapped_column(Date, index=True, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM, 24h
    duration: Mapped[int] = mapped_column(Integer, default=30, nullable=False)  # minutes
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)

    interview_type: Mapped[str] = mapped_column(String(16), default="in-person", nullable=False)
    location: Mapped[str | None] = mapped_column(String(512), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(16), default="scheduled", index=True, nullable=False)
    confirmation_status: Mapped[str] = mapped_column(String(16), default="pending", nullable=False)

    reschedule_history: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    reschedule_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    max_reschedules: Mapped[int] = mapped_column(Integer, default=2, nullable=False)
    allow_rescheduling: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    result: Mapped[str | None] = mapped_column(String(16), nullable=True)  # 'pass' | 'fail' | 'pending'
    next_steps: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(String(512), nullable=True)

    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    no_show_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    scheduled_by: Mapped[str | None] = mapped_column(String(32), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}


# --- Chat ---

class Chat(Base):
    __tablename__ = "chats"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    company_id: Mapped[str] = mapped_column(String(32), index=True)
    seeker_id: Mapped[str] = mapped_column(String(32), index=True)
    job_id: Mapped[str] = mapped_column(String(32), index=True)
    job_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_message_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    messages: Mapped[list["ChatMessage"]] = relationship(back_populates="chat", cascade="all, delete-orphan")


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    chat_id: Mapped[str] = mapped_column(ForeignKey("chats.id", ondelete="CASCADE"), index=True)
    sender_type: Mapped[str] = mapped_column(String(16), nullable=False)  # 'system' | 'company' | 'seeker'
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    chat: Mapped[Chat] = relationship(back_populates="messages")


# --- Audit & events ---

class ApplicationHistory(Base):
    __tablename__ = "application_history"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    history_id: Mapped[str] = mapped_column(String(32), unique=True, default=lambda: display_id("HIST"))
    application_id: Mapped[str] = mapped_column(String(32), index=True)
    job_id: Mapped[str] = mapped_column(String(32), index=True)
    seeker_id: Mapped[str] = mapped_column(String(32), index=True)
    company_id: Mapped[str] = mapped_column(String(32), index=True)

    action: Mapped[str] = mapped_column(String(32), nullable=False)
    from_status: Mapped[str | None] = mapped_column(String(16), nullable=True)
    to_status: Mapped[str | None] = mapped_column(String(16), nullable=True)
    actor_type: Mapped[str] = mapped_column(String(16), nullable=False)
    actor_id: Mapped[str] = mapped_column(String(32), nullable=False)
    reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    action_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True, nullable=False)


class OutboxEvent(Base):
    __tablename__ = "outbox_events"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    event_type: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    aggregate_id: Mapped[str] = mapped_column(String(32), index=True, nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="pending", index=True, nullable=False)  # 'pending' | 'sent' | 'failed'
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
