from datetime import date, timedelta

import pytest
from sqlalchemy import func, select

from gighire import models
from gighire.applications import ApplicationService
from gighire.errors import (
    DuplicateApplication,
    Forbidden,
    InvalidTransition,
    JobNotAcceptingApplications,
    NotFound,
    PlanLimitExceeded,
    ProfileNotFound,
    SeekerBlocked,
    ValidationError,
)
from gighire.identity import Actor
from gighire.notifications import NotificationDispatcher
from gighire.state_machine import ActorType

SLOT = {"interview_date": date(2030, 1, 2), "start_time": "10:00", "duration": 30}


def _count(db, model, *where):
    return db.execute(select(func.count()).select_from(model).where(*where)).scalar_one()


@pytest.fixture()
def parties(make_seeker, make_company, make_job):
    seeker_actor, seeker = make_seeker()
    company_actor, company = make_company()
    job = make_job(company)
    return seeker_actor, seeker, company_actor, company, job


def test_apply_creates_application_and_increments_count(service, parties, db_session, notifier):
    seeker_actor, seeker, _, company, job = parties

    application = service.apply(seeker_actor, job.job_id, availability="weekends")

    assert application.status == "applied"
    assert application.seeker_id == seeker.id
    assert application.company_id == company.id
    assert application.job_title == "Barista"
    assert application.application_id.startswith("APP-")
    assert application.version == 1
    db_session.refresh(job)
    assert job.applications_count == 1
    assert _count(db_session, models.ApplicationHistory, models.ApplicationHistory.application_id == application.id) == 1
    assert notifier.event_types == ["ApplicationSubmitted"]


def test_apply_to_unpublished_job(service, make_seeker, make_company, make_job):
    seeker_actor, _ = make_seeker()
    _, company = make_company()
    job = make_job(company, job_status="draft")
    with pytest.raises(JobNotAcceptingApplications):
        service.apply(seeker_actor, job.job_id)


def test_duplicate_apply_rejected_while_active(service, parties, db_session):
    seeker_actor, _, _, _, job = parties
    first = service.apply(seeker_actor, job.job_id)
    with pytest.raises(DuplicateApplication):
        service.apply(seeker_actor, job.job_id)

    service.withdraw(seeker_actor, first.id)
    again = service.apply(seeker_actor, job.job_id)
    assert again.id != first.id
    db_session.refresh(job)
    assert job.applications_count == 1


def test_interview_scenario_reuses_chat_and_withdraw_decrements(service, parties, db_session):
    seeker_actor, _, company_actor, _, job = parties
    application = service.apply(seeker_actor, job.job_id)

    application = service.schedule_interview(company_actor, application.id, SLOT)
    assert application.status == "interviewed"
    assert application.interview_scheduled is True
    chat_id = application.chat_id
    assert chat_id

    application = service.schedule_interview(company_actor, application.id, SLOT)
    assert application.chat_id == chat_id
    assert _count(db_session, models.Chat) == 1
    assert _count(db_session, models.Interview) == 1

    application = service.withdraw(seeker_actor, application.id)
    assert application.status == "withdrawn"
    db_session.refresh(job)
    assert job.applications_count == 0


def test_rescheduling_through_schedule_interview_keeps_history(service, parties, db_session):
    seeker_actor, _, company_actor, _, job = parties
    application = service.apply(seeker_actor, job.job_id)
    service.schedule_interview(company_actor, application.id, SLOT)
    service.schedule_interview(company_actor, application.id, {**SLOT, "start_time": "14:00"})

    interview = service.interviews.open_interview_for(application.id)
    assert interview.start_time == "14:00"
    assert interview.status == "rescheduled"
    assert interview.reschedule_count == 1
    assert interview.reschedule_history[0]["startTime"] == "10:00"
    # one interview consumed, moving it is free
    assert _count(db_session, models.UsageEvent, models.UsageEvent.action == "interview") == 1


def test_accept_twice_returns_same_chat_without_side_effects(service, parties, db_session):
    seeker_actor, _, company_actor, _, job = parties
    application = service.apply(seeker_actor, job.job_id)

    first = service.accept(company_actor, application.id)
    chat_id = first.chat_id
    assert first.status == "hired"
    assert first.reporting_enabled is True
    second = service.accept(company_actor, application.id)

    assert second.chat_id == chat_id
    assert _count(db_session, models.Chat) == 1
    assert _count(db_session, models.OutboxEvent, models.OutboxEvent.event_type == "ApplicationAccepted") == 1
    assert _count(db_session, models.UsageEvent, models.UsageEvent.action == "instant_match") == 1


def test_hire_request_after_interview_keeps_chat(service, parties, db_session):
    seeker_actor, _, company_actor, _, job = parties
    application = service.apply(seeker_actor, job.job_id)
    application = service.shortlist(company_actor, application.id)
    assert application.status == "shortlisted"
    chat_id = service.schedule_interview(company_actor, application.id, SLOT).chat_id

    # interviewed is not a source for accept; the hire goes through a hire request
    with pytest.raises(InvalidTransition):
        service.accept(company_actor, application.id)
    application = service.send_hire_request(company_actor, application.id)
    assert application.chat_id == chat_id
    assert _count(db_session, models.Chat) == 1


def test_invite_then_accept_invitation(service, parties, db_session):
    seeker_actor, seeker, company_actor, _, job = parties

    application = service.invite(company_actor, job.job_id, seeker.id)
    assert application.status == "invited"
    assert application.application_source == "invited"
    with pytest.raises(DuplicateApplication):
        service.invite(company_actor, job.job_id, seeker.id)

    application = service.accept_invitation(seeker_actor, application.id)
    assert application.status == "applied"
    assert application.application_source == "invited_applied"
    db_session.refresh(job)
    assert job.applications_count == 1


def test_invite_unknown_seeker(service, parties):
    _, _, company_actor, _, job = parties
    with pytest.raises(NotFound):
        service.invite(company_actor, job.job_id, "no-such-seeker")


def test_terminal_applications_reject_further_transitions(service, parties):
    seeker_actor, _, company_actor, _, job = parties
    application = service.apply(seeker_actor, job.job_id)
    service.reject(company_actor, application.id, reason="Schedule mismatch")

    attempts = [
        lambda: service.shortlist(company_actor, application.id),
        lambda: service.accept(company_actor, application.id),
        lambda: service.decline(company_actor, application.id, "Position filled"),
        lambda: service.withdraw(seeker_actor, application.id),
        lambda: service.cancel_job(seeker_actor, application.id),
        lambda: service.schedule_interview(company_actor, application.id, SLOT),
    ]
    for attempt in attempts:
        with pytest.raises(InvalidTransition):
            attempt()
    assert service.find_application(application.id).status == "rejected"


def test_other_company_and_other_seeker_are_forbidden(service, parties, make_seeker, make_company):
    seeker_actor, _, company_actor, _, job = parties
    application = service.apply(seeker_actor, job.job_id)
    stranger_company, _ = make_company("Other Co")
    stranger_seeker, _ = make_seeker("Someone Else")

    for call in (
        lambda: service.accept(stranger_company, application.id),
        lambda: service.shortlist(stranger_company, application.id),
        lambda: service.reject(stranger_company, application.id),
        lambda: service.get_application(stranger_company, application.id),
        lambda: service.withdraw(stranger_seeker, application.id),
        lambda: service.get_application(stranger_seeker, application.id),
    ):
        with pytest.raises(Forbidden):
            call()
    assert service.find_application(application.id).status == "applied"


def test_check_order_actor_class_before_lookup(service, make_seeker, make_company):
    seeker_actor, _ = make_seeker()
    company_actor, _ = make_company()
    # wrong class wins even when the application does not exist
    with pytest.raises(Forbidden):
        service.accept(seeker_actor, "missing")
    with pytest.raises(NotFound):
        service.accept(company_actor, "missing")


def test_account_without_profile_is_reported_after_lookup(service, parties):
    seeker_actor, _, _, _, job = parties
    application = service.apply(seeker_actor, job.job_id)
    ghost = Actor(account_id="no-such-account", user_type=ActorType.COMPANY)
    with pytest.raises(ProfileNotFound):
        service.accept(ghost, application.id)
    # the application lookup comes first
    with pytest.raises(NotFound) as exc:
        service.accept(ghost, "missing")
    assert not isinstance(exc.value, ProfileNotFound)


def test_decline_requires_listed_reason(service, parties):
    seeker_actor, _, company_actor, _, job = parties
    application = service.apply(seeker_actor, job.job_id)

    with pytest.raises(ValidationError):
        service.decline(company_actor, application.id, None)
    with pytest.raises(ValidationError):
        service.decline(company_actor, application.id, "Because")

    application = service.decline(company_actor, application.id, "Position filled")
    assert application.status == "declined"
    assert application.decline_reason == "Position filled"


def test_hire_request_rejected_reverts_then_accepted(service, parties):
    seeker_actor, _, company_actor, _, job = parties
    application = service.apply(seeker_actor, job.job_id)
    service.shortlist(company_actor, application.id)

    application = service.send_hire_request(company_actor, application.id)
    assert application.status == "hired"
    assert application.hire_status == "pending"

    application = service.respond_to_hire_request(seeker_actor, application.id, "rejected")
    assert application.status == "shortlisted"
    assert application.hire_response == "rejected"

    service.send_hire_request(company_actor, application.id)
    application = service.respond_to_hire_request(seeker_actor, application.id, "accepted")
    assert application.status == "hired"
    assert application.hire_status == "accepted"
    assert application.reporting_enabled is True

    with pytest.raises(InvalidTransition):
        service.respond_to_hire_request(seeker_actor, application.id, "accepted")
    with pytest.raises(InvalidTransition):
        service.accept(company_actor, application.id)


def test_respond_to_interview_request(service, parties):
    seeker_actor, _, company_actor, _, job = parties
    application = service.apply(seeker_actor, job.job_id)
    with pytest.raises(InvalidTransition):
        service.respond_to_interview_request(seeker_actor, application.id, "accepted")

    service.schedule_interview(company_actor, application.id, SLOT)
    application = service.respond_to_interview_request(seeker_actor, application.id, "accepted")
    assert application.status == "interviewed"
    assert application.interview_response == "accepted"
    assert service.interviews.open_interview_for(application.id).status == "confirmed"


def test_report_absence_annotates_without_status_change(service, parties):
    seeker_actor, _, company_actor, company, job = parties
    application = service.apply(seeker_actor, job.job_id)
    service.accept(company_actor, application.id)

    application = service.report_absence(
        company_actor, application.id, absence_date=date(2030, 1, 5), reason="No call", notes="Second time"
    )
    assert application.status == "hired"
    assert len(application.report_history) == 1
    entry = application.report_history[0]
    assert entry["date"] == "2030-01-05"
    assert entry["status"] == "absent"
    assert entry["reportedBy"] == company.id
    assert service.get_reports(company_actor, application.id) == application.report_history


def test_complete_and_cancel(service, parties, make_seeker):
    seeker_actor, _, company_actor, _, job = parties
    application = service.apply(seeker_actor, job.job_id)
    service.accept(company_actor, application.id)
    assert service.complete_job(seeker_actor, application.id).status == "completed"

    other_actor, _ = make_seeker()
    second = service.apply(other_actor, job.job_id)
    second = service.cancel_job(company_actor, second.id, reason="Shift cancelled")
    assert second.status == "cancelled"
    assert second.decline_reason == "Shift cancelled"


def test_withdraw_clamps_counter_at_zero(service, parties, db_session):
    seeker_actor, _, _, _, job = parties
    application = service.apply(seeker_actor, job.job_id)
    job.applications_count = 0
    db_session.commit()

    service.withdraw(seeker_actor, application.id)
    db_session.refresh(job)
    assert job.applications_count == 0


def test_failing_notifier_does_not_fail_transition(db_session, parties, failing_notifier):
    seeker_actor, _, _, _, job = parties
    service = ApplicationService(db_session, dispatcher=NotificationDispatcher(db_session, failing_notifier))

    application = service.apply(seeker_actor, job.job_id)

    assert service.find_application(application.id).status == "applied"
    event = db_session.execute(select(models.OutboxEvent)).scalar_one()
    assert event.status == "failed"
    assert "push gateway unavailable" in event.last_error


def test_blocked_seeker_cannot_apply_until_unblocked(service, parties):
    seeker_actor, seeker, company_actor, _, job = parties
    service.block_seeker(company_actor, seeker.id, reason="No-show twice")
    assert [b.seeker_id for b in service.list_blocked_seekers(company_actor)] == [seeker.id]

    with pytest.raises(SeekerBlocked, match="No-show twice"):
        service.apply(seeker_actor, job.job_id)
    with pytest.raises(SeekerBlocked):
        service.invite(company_actor, job.job_id, seeker.id)

    block = service.unblock_seeker(company_actor, seeker.id, reason="Second chance")
    assert block.is_active is False
    assert service.list_blocked_seekers(company_actor) == []
    assert service.apply(seeker_actor, job.job_id).status == "applied"
    with pytest.raises(Forbidden):
        service.list_blocked_seekers(seeker_actor)


def test_plan_limit_blocks_instant_hire(service, parties, db_session):
    seeker_actor, _, company_actor, company, job = parties
    company.subscription_plan = "starter"
    company.next_billing_date = models.utcnow() + timedelta(days=10)
    db_session.add_all([models.UsageEvent(company_id=company.id, action="instant_match") for _ in range(20)])
    db_session.commit()
    application = service.apply(seeker_actor, job.job_id)

    with pytest.raises(PlanLimitExceeded):
        service.accept(company_actor, application.id)
    assert service.find_application(application.id).status == "applied"
    assert service.find_application(application.id).chat_id is None


def test_find_application_by_display_id(service, parties):
    seeker_actor, _, _, _, job = parties
    application = service.apply(seeker_actor, job.job_id)
    assert service.find_application(application.application_id).id == application.id
    assert service.find_application("APP-NOPE") is None


def test_reads_history_stats_and_lists(service, parties, make_seeker):
    seeker_actor, _, company_actor, _, job = parties
    application = service.apply(seeker_actor, job.job_id)
    service.shortlist(company_actor, application.id)
    other_actor, _ = make_seeker()
    service.apply(other_actor, job.job_id)

    history = service.get_history(seeker_actor, application.id)
    assert [h.action for h in history] == ["applied", "shortlisted"]
    assert history[1].from_status == "applied"
    assert history[1].to_status == "shortlisted"

    stats = service.application_stats(company_actor, job.job_id)
    assert stats["applied"] == 1
    assert stats["shortlisted"] == 1
    assert stats["total"] == 2

    assert len(service.list_job_applications(company_actor, job.job_id)) == 2
    assert len(service.list_job_applications(company_actor, job.job_id, status="shortlisted")) == 1
    assert [a.id for a in service.list_seeker_applications(seeker_actor)] == [application.id]
    with pytest.raises(Forbidden):
        service.list_seeker_applications(company_actor)
    with pytest.raises(Forbidden):
        service.list_job_applications(seeker_actor, job.job_id)
