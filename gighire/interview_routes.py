# gighire/interview_routes.py
from datetime import date

from fastapi import APIRouter, Depends, Query

from .auth import get_current_actor
from .config import settings
from .dependencies import get_interview_service
from .errors import ValidationError
from .identity import Actor
from .interviews import InterviewService, normalize_time
from .schemas import CompleteInterviewIn, InterviewOut, ReasonIn, RescheduleIn, envelope

router = APIRouter(prefix="/api/interviews", tags=["interviews"])

_TIME_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"


def _company_scope(actor: Actor, service: InterviewService, company_id: str | None) -> str:
    """Companies see their own calendar; seekers must name the company."""
    if actor.is_company:
        return service.identity.company(actor).id
    if not company_id:
        raise ValidationError("companyId is required")
    return company_id


def _out(interview) -> InterviewOut:
    return InterviewOut.model_validate(interview)


@router.get("/available-slots")
def available_slots(
    day: date = Query(..., alias="date", description="ISO date YYYY-MM-DD"),
    duration: int | None = Query(None, ge=15, le=180),
    company_id: str | None = Query(None, alias="companyId"),
    actor: Actor = Depends(get_current_actor),
    service: InterviewService = Depends(get_interview_service),
):
    scope = _company_scope(actor, service, company_id)
    slots = service.available_slots(scope, day, duration)
    return envelope("Available slots retrieved successfully", {"date": day.isoformat(), "slots": slots})


@router.get("/conflicts")
def check_conflicts(
    day: date = Query(..., alias="date"),
    start_time: str = Query(..., alias="startTime", pattern=_TIME_PATTERN),
    duration: int | None = Query(None, ge=15, le=180),
    exclude_id: str | None = Query(None, alias="excludeId"),
    company_id: str | None = Query(None, alias="companyId"),
    actor: Actor = Depends(get_current_actor),
    service: InterviewService = Depends(get_interview_service),
):
    scope = _company_scope(actor, service, company_id)
    conflicts = service.check_conflicts(
        scope, day, normalize_time(start_time), duration or settings.INTERVIEW_DEFAULT_DURATION, exclude_id=exclude_id
    )
    return envelope(
        "Conflict check completed",
        {
            "hasConflicts": bool(conflicts),
            "conflicts": [_out(c).model_dump(mode="json", by_alias=True) for c in conflicts],
        },
    )


@router.get("/{interview_id}")
def get_interview(
    interview_id: str,
    actor: Actor = Depends(get_current_actor),
    service: InterviewService = Depends(get_interview_service),
):
    return envelope("Interview retrieved successfully", _out(service.get(actor, interview_id)))


@router.put("/{interview_id}/reschedule")
def reschedule_interview(
    interview_id: str,
    payload: RescheduleIn,
    actor: Actor = Depends(get_current_actor),
    service: InterviewService = Depends(get_interview_service),
):
    interview = service.reschedule(
        actor,
        interview_id,
        payload.new_date,
        payload.new_time,
        reason=payload.reason,
        duration=payload.duration,
    )
    return envelope("Interview rescheduled successfully", _out(interview))


@router.put("/{interview_id}/confirm")
def confirm_interview(
    interview_id: str,
    actor: Actor = Depends(get_current_actor),
    service: InterviewService = Depends(get_interview_service),
):
    return envelope("Interview confirmed", _out(service.confirm(actor, interview_id)))


@router.put("/{interview_id}/cancel")
def cancel_interview(
    interview_id: str,
    payload: ReasonIn | None = None,
    actor: Actor = Depends(get_current_actor),
    service: InterviewService = Depends(get_interview_service),
):
    interview = service.cancel(actor, interview_id, reason=payload.reason if payload else None)
    return envelope("Interview cancelled", _out(interview))


@router.put("/{interview_id}/complete")
def complete_interview(
    interview_id: str,
    payload: CompleteInterviewIn,
    actor: Actor = Depends(get_current_actor),
    service: InterviewService = Depends(get_interview_service),
):
    interview = service.complete(
        actor,
        interview_id,
        rating=payload.rating,
        feedback=payload.feedback,
        result=payload.result,
        next_steps=payload.next_steps,
    )
    return envelope("Interview completed", _out(interview))


@router.put("/{interview_id}/no-show")
def mark_no_show(
    interview_id: str,
    actor: Actor = Depends(get_current_actor),
    service: InterviewService = Depends(get_interview_service),
):
    return envelope("Interview marked as no-show", _out(service.mark_no_show(actor, interview_id)))
