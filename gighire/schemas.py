from datetime import datetime, date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel

from .state_machine import DECLINE_REASONS


class CamelModel(BaseModel):
    """Wire format is camelCase; Python side stays snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def envelope(message: str, data: Any = None, errors: list | None = None, success: bool = True) -> dict:
    body: dict[str, Any] = {"success": success, "message": message}
    if data is not None:
        if isinstance(data, BaseModel):
            data = data.model_dump(mode="json", by_alias=True)
        elif isinstance(data, list):
            data = [d.model_dump(mode="json", by_alias=True) if isinstance(d, BaseModel) else d for d in data]
        body["data"] = data
    if errors is not None:
        body["errors"] = errors
    return body


# Auth
class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=8)
    user_type: Literal["seeker", "company"]
    full_name: str | None = None
    phone: str | None = None
    company_name: str | None = None

    @model_validator(mode="after")
    def company_needs_name(self):
        if self.user_type == "company" and not self.company_name:
            raise ValueError("company_name is required for company accounts")
        return self


class UserOut(CamelModel):
    id: str
    email: EmailStr
    user_type: str
    created_at: datetime
    profile_id: str | None = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


# Jobs
class JobCreate(CamelModel):
    role_name: str | None = None
    job_summary: str | None = None
    brand_location_id: str | None = None
    hiring_type: Literal["Instant Hire", "Interview First"] = "Instant Hire"
    pay_per_hour: float | None = Field(None, ge=0)
    hours_per_day: float | None = Field(None, gt=0, le=24)
    start_date: date | None = None
    payment_terms: str | None = None
    work_type: Literal["hourly", "short", "full"] | None = None


class JobStatusUpdate(CamelModel):
    job_status: Literal["published", "paused", "closed"]


class JobOut(CamelModel):
    id: str
    job_id: str
    company_id: str
    user_id: str
    role_name: str | None = None
    company_name: str | None = None
    job_summary: str | None = None
    brand_location_id: str | None = None
    hiring_type: str
    pay_per_hour: float | None = None
    hours_per_day: float | None = None
    start_date: date | None = None
    payment_terms: str | None = None
    work_type: str | None = None
    job_status: str
    published_at: datetime | None = None
    applications_count: int
    views_count: int
    hired_count: int
    created_at: datetime
    updated_at: datetime


# Applications
class ApplyIn(CamelModel):
    availability: str | None = Field(None, max_length=255)


class InviteIn(CamelModel):
    seeker_id: str
    message: str | None = Field(None, max_length=1000)


class NotesIn(CamelModel):
    notes: str | None = Field(None, max_length=1000)


class ReasonIn(CamelModel):
    reason: str | None = Field(None, max_length=512)


class DeclineIn(CamelModel):
    reason: str | None = Field(None, description=f"One of: {', '.join(DECLINE_REASONS)}")


class HireRequestIn(CamelModel):
    message: str | None = Field(None, max_length=1000)


class HireResponseIn(CamelModel):
    response: Literal["accepted", "rejected"]


class InterviewResponseIn(CamelModel):
    response: Literal["accepted", "declined"]


class ScheduleInterviewIn(CamelModel):
    interview_date: date
    start_time: str = Field(pattern=r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")
    duration: int | None = Field(None, ge=15, le=180)
    interview_type: Literal["in-person", "phone", "video", "group"] = "in-person"
    location: str | None = Field(None, max_length=255)
    notes: str | None = Field(None, max_length=1000)
    reason: str | None = Field(None, max_length=512)

    def as_slot(self) -> dict:
        return self.model_dump()


class ReportAbsenceIn(CamelModel):
    absence_date: date | None = Field(None, alias="date")
    status: Literal["absent", "late", "left_early"] = "absent"
    reason: str | None = Field(None, max_length=512)
    notes: str | None = Field(None, max_length=1000)


class ApplicationOut(CamelModel):
    id: str
    application_id: str
    job_id: str
    seeker_id: str
    company_id: str
    job_title: str | None = None
    company_name: str | None = None
    hiring_type: str | None = None
    status: str
    application_source: str
    availability: str | None = None
    hire_status: str | None = None
    hire_response: str | None = None
    hire_requested_at: datetime | None = None
    hire_responded_at: datetime | None = None
    interview_scheduled: bool
    interview_response: str | None = None
    decline_reason: str | None = None
    reporting_enabled: bool
    chat_id: str | None = None
    version: int
    applied_at: datetime
    status_changed_at: datetime | None = None
    updated_at: datetime


class HistoryOut(CamelModel):
    history_id: str
    application_id: str
    action: str
    from_status: str | None = None
    to_status: str | None = None
    actor_type: str
    actor_id: str
    reason: str | None = None
    notes: str | None = None
    details: dict
    action_at: datetime


# Interviews
class RescheduleIn(CamelModel):
    new_date: date
    new_time: str = Field(pattern=r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")
    duration: int | None = Field(None, ge=15, le=180)
    reason: str | None = Field(None, max_length=512)


class CompleteInterviewIn(CamelModel):
    rating: int | None = Field(None, ge=1, le=5)
    feedback: str | None = Field(None, max_length=2000)
    result: Literal["pass", "fail", "pending"] = "pending"
    next_steps: str | None = Field(None, max_length=1000)


class InterviewOut(CamelModel):
    id: str
    interview_id: str
    application_id: str | None = None
    job_id: str
    company_id: str
    seeker_id: str
    interview_date: date
    start_time: str
    end_time: str
    duration: int
    interview_type: str
    location: str | None = None
    notes: str | None = None
    status: str
    confirmation_status: str
    reschedule_history: list
    reschedule_count: int
    max_reschedules: int
    allow_rescheduling: bool
    rating: int | None = None
    feedback: str | None = None
    result: str | None = None
    next_steps: str | None = None
    cancellation_reason: str | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


# Companies
class BlockSeekerIn(CamelModel):
    seeker_id: str
    reason: str | None = Field(None, max_length=512)


class BlockedSeekerOut(CamelModel):
    id: str
    company_id: str
    seeker_id: str
    reason: str | None = None
    blocked_by: str | None = None
    is_active: bool
    blocked_at: datetime
    unblocked_at: datetime | None = None
    unblock_reason: str | None = None
