"""
Lifecycle rules for job applications and interviews.

Pure data and checks only: nothing in this module touches the database. The
services load an aggregate, ask this module whether an operation is legal for
the caller and the current status, and apply the returned target.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import Forbidden, InvalidTransition


class ActorType(str, Enum):
    SEEKER = "seeker"
    COMPANY = "company"


class ApplicationStatus(str, Enum):
    APPLIED = "applied"
    INVITED = "invited"
    SHORTLISTED = "shortlisted"
    INTERVIEWED = "interviewed"
    HIRED = "hired"
    REJECTED = "rejected"
    DECLINED = "declined"
    WITHDRAWN = "withdrawn"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class HireStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Operation(str, Enum):
    APPLY = "apply"
    INVITE = "invite"
    ACCEPT_INVITATION = "accept_invitation"
    SHORTLIST = "shortlist"
    SEND_HIRE_REQUEST = "send_hire_request"
    RESPOND_TO_HIRE_REQUEST = "respond_to_hire_request"
    SCHEDULE_INTERVIEW = "schedule_interview"
    RESPOND_TO_INTERVIEW_REQUEST = "respond_to_interview_request"
    ACCEPT = "accept"
    REJECT = "reject"
    DECLINE = "decline"
    WITHDRAW = "withdraw"
    REPORT_ABSENCE = "report_absence"
    COMPLETE_JOB = "complete_job"
    CANCEL_JOB = "cancel_job"


TERMINAL_STATUSES = frozenset({
    ApplicationStatus.REJECTED,
    ApplicationStatus.DECLINED,
    ApplicationStatus.WITHDRAWN,
    ApplicationStatus.CANCELLED,
    ApplicationStatus.COMPLETED,
})
ACTIVE_STATUSES = frozenset(ApplicationStatus) - TERMINAL_STATUSES

DECLINE_REASONS = (
    "Another candidate selected",
    "Not the right fit",
    "Limited experience",
    "Position filled",
)

_S = ApplicationStatus
_SEEKER = frozenset({ActorType.SEEKER})
_COMPANY = frozenset({ActorType.COMPANY})
_EITHER = frozenset(ActorType)


@dataclass(frozen=True)
class Transition:
    actors: frozenset[ActorType]
    sources: frozenset[ApplicationStatus]  # empty for creation operations
    target: ApplicationStatus | None  # None leaves status unchanged

    @property
    def creates(self) -> bool:
        return not self.sources


TRANSITIONS: dict[Operation, Transition] = {
    Operation.APPLY: Transition(_SEEKER, frozenset(), _S.APPLIED),
    Operation.INVITE: Transition(_COMPANY, frozenset(), _S.INVITED),
    Operation.ACCEPT_INVITATION: Transition(_SEEKER, frozenset({_S.INVITED}), _S.APPLIED),
    Operation.SHORTLIST: Transition(_COMPANY, frozenset({_S.APPLIED, _S.INVITED}), _S.SHORTLISTED),
    Operation.SEND_HIRE_REQUEST: Transition(
        _COMPANY, frozenset({_S.SHORTLISTED, _S.APPLIED, _S.INTERVIEWED}), _S.HIRED
    ),
    # target depends on the seeker's answer; the service decides
    Operation.RESPOND_TO_HIRE_REQUEST: Transition(_SEEKER, frozenset({_S.HIRED}), None),
    Operation.SCHEDULE_INTERVIEW: Transition(
        _COMPANY, frozenset({_S.APPLIED, _S.SHORTLISTED, _S.INVITED, _S.INTERVIEWED}), _S.INTERVIEWED
    ),
    Operation.RESPOND_TO_INTERVIEW_REQUEST: Transition(_SEEKER, frozenset({_S.INTERVIEWED}), None),
    Operation.ACCEPT: Transition(_COMPANY, frozenset({_S.APPLIED, _S.SHORTLISTED}), _S.HIRED),
    Operation.REJECT: Transition(_COMPANY, ACTIVE_STATUSES, _S.REJECTED),
    Operation.DECLINE: Transition(_COMPANY, ACTIVE_STATUSES, _S.DECLINED),
    Operation.WITHDRAW: Transition(_SEEKER, ACTIVE_STATUSES, _S.WITHDRAWN),
    Operation.REPORT_ABSENCE: Transition(_COMPANY, frozenset({_S.INTERVIEWED, _S.HIRED}), None),
    Operation.COMPLETE_JOB: Transition(_EITHER, frozenset({_S.HIRED}), _S.COMPLETED),
    Operation.CANCEL_JOB: Transition(_EITHER, ACTIVE_STATUSES, _S.CANCELLED),
}


def is_terminal(status: str) -> bool:
    return ApplicationStatus(status) in TERMINAL_STATUSES


def check_actor(operation: Operation, actor_type: ActorType | str) -> None:
    """Raise Forbidden if this class of caller may never run the operation."""
    transition = TRANSITIONS[operation]
    if ActorType(actor_type) not in transition.actors:
        allowed = " or ".join(sorted(a.value for a in transition.actors))
        raise Forbidden(f"Only {allowed} accounts can {operation.value.replace('_', ' ')}")


def next_status(operation: Operation, current: ApplicationStatus | str) -> ApplicationStatus:
    """
    Return the status an application moves to when ``operation`` runs from ``current``.

    Operations that leave the status unchanged return ``current``. Raises
    InvalidTransition when ``current`` is not a valid source, which includes
    every terminal status.
    """
    transition = TRANSITIONS[operation]
    current = ApplicationStatus(current)
    if transition.creates:
        raise InvalidTransition(f"{operation.value} creates an application and has no source state")
    if current not in transition.sources:
        raise InvalidTransition(
            f"Cannot {operation.value.replace('_', ' ')} an application that is {current.value}"
        )
    return transition.target or current


class InterviewStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    RESCHEDULED = "rescheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


_I = InterviewStatus
OPEN_INTERVIEW_STATUSES = frozenset({_I.SCHEDULED, _I.CONFIRMED, _I.RESCHEDULED})

INTERVIEW_TRANSITIONS: dict[str, tuple[frozenset[InterviewStatus], InterviewStatus]] = {
    "confirm": (frozenset({_I.SCHEDULED, _I.RESCHEDULED}), _I.CONFIRMED),
    "reschedule": (OPEN_INTERVIEW_STATUSES, _I.RESCHEDULED),
    "complete": (OPEN_INTERVIEW_STATUSES, _I.COMPLETED),
    "cancel": (OPEN_INTERVIEW_STATUSES, _I.CANCELLED),
    "no_show": (OPEN_INTERVIEW_STATUSES, _I.NO_SHOW),
}


def next_interview_status(action: str, current: InterviewStatus | str) -> InterviewStatus:
    sources, target = INTERVIEW_TRANSITIONS[action]
    current = InterviewStatus(current)
    if current not in sources:
        raise InvalidTransition(f"Cannot {action.replace('_', ' ')} an interview that is {current.value}")
    return target
