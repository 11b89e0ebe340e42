"""
Exception hierarchy shared by the services and the HTTP layer.

Every error carries the HTTP status it maps to, so the exception handlers in
``main.py`` can translate it into the response envelope without a lookup table.
"""
from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base exception for all domain errors"""

    status_code = 500

    def __init__(self, message: str, errors: list[Any] | None = None):
        self.message = message
        self.errors = errors
        super().__init__(message)


class ValidationError(DomainError):
    """Malformed or incomplete input"""

    status_code = 400


class SchedulingConflict(ValidationError):
    """Requested interview slot overlaps an existing one"""

    def __init__(self, conflicts: list[Any]):
        self.conflicts = conflicts
        super().__init__(
            f"Scheduling conflict detected. {len(conflicts)} overlapping interview(s) found."
        )


class NotFound(DomainError):
    """Requested aggregate does not exist"""

    status_code = 404

    def __init__(self, resource_type: str, identifier: str):
        self.resource_type = resource_type
        self.identifier = identifier
        super().__init__(f"{resource_type} not found: {identifier}")


class ProfileNotFound(NotFound):
    """Authenticated account has no seeker/company profile"""

    def __init__(self, user_type: str, account_id: str):
        super().__init__(f"{user_type.capitalize()} profile", account_id)


class Forbidden(DomainError):
    """Caller role or ownership does not allow the operation"""

    status_code = 403


class SeekerBlocked(Forbidden):
    def __init__(self, reason: str | None):
        self.reason = reason
        super().__init__(
            f"You are blocked from applying to this company. Reason: {reason or 'No reason provided'}"
        )


class PlanLimitExceeded(Forbidden):
    def __init__(self, action: str, limit: int):
        self.action = action
        self.limit = limit
        super().__init__(f"Plan limit reached for {action} ({limit})")


class InvalidTransition(DomainError):
    """Application or interview state does not allow the operation"""

    status_code = 400


class DuplicateApplication(InvalidTransition):
    def __init__(self):
        super().__init__("You have already applied to this job")


class JobNotAcceptingApplications(InvalidTransition):
    def __init__(self, job_status: str):
        self.job_status = job_status
        super().__init__(f"Cannot apply to a job that is {job_status}")


class ConcurrencyConflict(DomainError):
    """Version conflict persisted after all retries"""

    status_code = 409


class UpstreamFailure(DomainError):
    """Document store or dispatch failure"""

    status_code = 500
