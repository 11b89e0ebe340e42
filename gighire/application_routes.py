# gighire/application_routes.py
from fastapi import APIRouter, Depends, Query, status

from .applications import ApplicationService
from .auth import get_current_actor
from .dependencies import get_application_service
from .identity import Actor
from .schemas import (
    ApplicationOut,
    ApplyIn,
    DeclineIn,
    HireRequestIn,
    HireResponseIn,
    HistoryOut,
    InterviewOut,
    InterviewResponseIn,
    InviteIn,
    NotesIn,
    ReasonIn,
    ReportAbsenceIn,
    ScheduleInterviewIn,
    envelope,
)
from .state_machine import ApplicationStatus

router = APIRouter(prefix="/api", tags=["applications"])


def _out(application) -> ApplicationOut:
    return ApplicationOut.model_validate(application)


# --- creation ---

@router.post("/jobs/{job_id}/apply", status_code=status.HTTP_201_CREATED)
def apply_to_job(
    job_id: str,
    payload: ApplyIn | None = None,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.apply(actor, job_id, availability=payload.availability if payload else None)
    return envelope("Application submitted successfully", _out(application))


@router.post("/jobs/{job_id}/invite", status_code=status.HTTP_201_CREATED)
def invite_seeker(
    job_id: str,
    payload: InviteIn,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.invite(actor, job_id, payload.seeker_id, message=payload.message)
    return envelope("Seeker invited successfully", _out(application))


# --- reads ---

@router.get("/jobs/{job_id}/applications")
def list_job_applications(
    job_id: str,
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    applications = service.list_job_applications(
        actor, job_id, status=status_filter.value if status_filter else None, limit=limit, offset=offset
    )
    return envelope("Applications retrieved successfully", [_out(a) for a in applications])


@router.get("/jobs/{job_id}/applications/stats")
def job_application_stats(
    job_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    return envelope("Application statistics retrieved successfully", service.application_stats(actor, job_id))


@router.get("/jobs/{job_id}/application-status")
def check_application_status(
    job_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    has_applied, application = service.application_status(actor, job_id)
    return envelope(
        "Application found" if application is not None else "No application found",
        {"hasApplied": has_applied, "application": _out(application).model_dump(mode="json", by_alias=True) if application else None},
    )


@router.get("/seekers/{seeker_id}/applications")
def list_seeker_applications_for_company(
    seeker_id: str,
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    applications = service.list_seeker_applications_for_company(
        actor, seeker_id, status=status_filter.value if status_filter else None, limit=limit, offset=offset
    )
    return envelope("Seeker applications retrieved successfully", [_out(a) for a in applications])


@router.get("/applications")
def list_my_applications(
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    applications = service.list_seeker_applications(
        actor, status=status_filter.value if status_filter else None, limit=limit, offset=offset
    )
    return envelope("Applications retrieved successfully", [_out(a) for a in applications])


@router.get("/applications/{application_id}")
def get_application(
    application_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    return envelope("Application retrieved successfully", _out(service.get_application(actor, application_id)))


@router.get("/applications/{application_id}/history")
def get_application_history(
    application_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    history = service.get_history(actor, application_id)
    return envelope("Application history retrieved successfully", [HistoryOut.model_validate(h) for h in history])


@router.get("/applications/{application_id}/reports")
def get_application_reports(
    application_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    return envelope("Reports retrieved successfully", service.get_reports(actor, application_id))


@router.get("/applications/{application_id}/interviews")
def get_application_interviews(
    application_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    interviews = service.list_interviews(actor, application_id)
    return envelope("Interviews retrieved successfully", [InterviewOut.model_validate(i) for i in interviews])


# --- transitions ---

@router.put("/applications/{application_id}/accept-invitation")
def accept_invitation(
    application_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    return envelope("Invitation accepted", _out(service.accept_invitation(actor, application_id)))


@router.put("/applications/{application_id}/shortlist")
def shortlist_application(
    application_id: str,
    payload: NotesIn | None = None,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.shortlist(actor, application_id, notes=payload.notes if payload else None)
    return envelope("Application shortlisted", _out(application))


@router.put("/applications/{application_id}/hire")
def send_hire_request(
    application_id: str,
    payload: HireRequestIn | None = None,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.send_hire_request(actor, application_id, message=payload.message if payload else None)
    return envelope("Hire request sent", _out(application))


@router.put("/applications/{application_id}/hire-response")
def respond_to_hire_request(
    application_id: str,
    payload: HireResponseIn,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.respond_to_hire_request(actor, application_id, payload.response)
    return envelope(f"Hire request {payload.response}", _out(application))


@router.put("/applications/{application_id}/interview")
def schedule_interview(
    application_id: str,
    payload: ScheduleInterviewIn,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.schedule_interview(actor, application_id, payload.as_slot())
    interview = service.interviews.open_interview_for(application.id)
    data = _out(application).model_dump(mode="json", by_alias=True)
    data["interview"] = InterviewOut.model_validate(interview).model_dump(mode="json", by_alias=True) if interview else None
    return envelope("Interview scheduled successfully", data)


@router.put("/applications/{application_id}/interview-response")
def respond_to_interview_request(
    application_id: str,
    payload: InterviewResponseIn,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.respond_to_interview_request(actor, application_id, payload.response)
    return envelope(f"Interview {payload.response}", _out(application))


@router.put("/applications/{application_id}/accept")
def accept_application(
    application_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    return envelope("Application accepted", _out(service.accept(actor, application_id)))


@router.put("/applications/{application_id}/reject")
def reject_application(
    application_id: str,
    payload: ReasonIn | None = None,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.reject(actor, application_id, reason=payload.reason if payload else None)
    return envelope("Application rejected", _out(application))


@router.put("/applications/{application_id}/decline")
def decline_application(
    application_id: str,
    payload: DeclineIn | None = None,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.decline(actor, application_id, payload.reason if payload else None)
    return envelope("Application declined", _out(application))


@router.put("/applications/{application_id}/withdraw")
def withdraw_application(
    application_id: str,
    payload: ReasonIn | None = None,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.withdraw(actor, application_id, reason=payload.reason if payload else None)
    return envelope("Application withdrawn", _out(application))


@router.post("/applications/{application_id}/report-absence")
def report_absence(
    application_id: str,
    payload: ReportAbsenceIn,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.report_absence(
        actor,
        application_id,
        absence_date=payload.absence_date,
        absence_status=payload.status,
        reason=payload.reason,
        notes=payload.notes,
    )
    return envelope("Absence reported", _out(application))


@router.put("/applications/{application_id}/complete")
def complete_job(
    application_id: str,
    payload: NotesIn | None = None,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.complete_job(actor, application_id, notes=payload.notes if payload else None)
    return envelope("Job marked as completed", _out(application))


@router.put("/applications/{application_id}/cancel")
def cancel_job(
    application_id: str,
    payload: ReasonIn | None = None,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.cancel_job(actor, application_id, reason=payload.reason if payload else None)
    return envelope("Job cancelled", _out(application))
