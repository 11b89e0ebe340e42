from datetime import date

import pytest

from gighire import models
from gighire.errors import Forbidden, InvalidTransition, SchedulingConflict, ValidationError
from gighire.interviews import end_time, normalize_time, overlaps, to_minutes

DAY = date(2030, 3, 4)


@pytest.fixture()
def scheduled(service, make_seeker, make_company, make_job):
    seeker_actor, _ = make_seeker()
    company_actor, company = make_company()
    job = make_job(company, hiring_type="Interview First")
    application = service.apply(seeker_actor, job.job_id)
    service.schedule_interview(
        company_actor, application.id, {"interview_date": DAY, "start_time": "10:00", "duration": 60}
    )
    interview = service.interviews.open_interview_for(application.id)
    return service.interviews, seeker_actor, company_actor, company, application, interview


def test_time_helpers():
    assert to_minutes("09:30") == 570
    assert normalize_time("9:05") == "09:05"
    assert end_time("23:30", 30) == "24:00"
    with pytest.raises(ValidationError):
        end_time("23:45", 30)
    with pytest.raises(ValidationError):
        to_minutes("25:00")
    # half-open: touching intervals don't overlap
    assert not overlaps(600, 660, 660, 690)
    assert overlaps(600, 660, 659, 690)
    assert to_minutes("24:00", end_of_day=True) == 24 * 60
    with pytest.raises(ValidationError):
        to_minutes("24:00")


def test_check_conflicts_is_interval_intersection(scheduled):
    interviews, _, _, company, _, interview = scheduled

    assert [c.id for c in interviews.check_conflicts(company.id, DAY, "10:30", 30)] == [interview.id]
    assert [c.id for c in interviews.check_conflicts(company.id, DAY, "09:30", 45)] == [interview.id]
    assert interviews.check_conflicts(company.id, DAY, "11:00", 30) == []
    assert interviews.check_conflicts(company.id, DAY, "09:00", 60) == []
    assert interviews.check_conflicts(company.id, date(2030, 3, 5), "10:00", 60) == []
    assert interviews.check_conflicts("other-company", DAY, "10:00", 60) == []
    assert interviews.check_conflicts(company.id, DAY, "10:00", 60, exclude_id=interview.id) == []


def test_available_slots_skip_booked_time(scheduled):
    interviews, _, _, company, _, _ = scheduled

    slots = interviews.available_slots(company.id, DAY, 30)
    starts = [s["startTime"] for s in slots]
    assert starts[0] == "09:00"
    assert "10:00" not in starts
    assert "10:30" not in starts
    assert "11:00" in starts
    assert starts[-1] == "17:30"
    assert slots[-1]["endTime"] == "18:00"
    assert all(s["duration"] == 30 for s in slots)


def test_second_application_cannot_double_book(scheduled, service, make_seeker, make_job):
    _, _, company_actor, company, _, _ = scheduled
    other_seeker, _ = make_seeker()
    job = make_job(company)
    application = service.apply(other_seeker, job.job_id)

    with pytest.raises(SchedulingConflict) as exc:
        service.schedule_interview(
            company_actor, application.id, {"interview_date": DAY, "start_time": "10:30", "duration": 30}
        )
    assert len(exc.value.conflicts) == 1
    assert service.find_application(application.id).status == "applied"


def test_reschedule_preserves_history_and_limit(scheduled):
    interviews, seeker_actor, company_actor, _, _, interview = scheduled

    moved = interviews.reschedule(company_actor, interview.id, date(2030, 3, 5), "15:00", reason="Manager away")
    assert moved.status == "rescheduled"
    assert moved.interview_date == date(2030, 3, 5)
    assert moved.end_time == "16:00"
    assert moved.reschedule_history == [
        {
            "date": "2030-03-04",
            "startTime": "10:00",
            "endTime": "11:00",
            "rescheduledAt": moved.reschedule_history[0]["rescheduledAt"],
            "reason": "Manager away",
        }
    ]

    interviews.reschedule(seeker_actor, interview.id, date(2030, 3, 6), "9:00")
    with pytest.raises(InvalidTransition, match="Maximum reschedule limit"):
        interviews.reschedule(company_actor, interview.id, date(2030, 3, 7), "09:00")
    assert interviews.require(interview.id).reschedule_count == 2


def test_seeker_reschedule_respects_flag(scheduled, db_session):
    interviews, seeker_actor, _, _, _, interview = scheduled
    interview.allow_rescheduling = False
    db_session.commit()
    with pytest.raises(Forbidden):
        interviews.reschedule(seeker_actor, interview.id, date(2030, 3, 5), "15:00")


def test_confirm_then_complete(scheduled):
    interviews, seeker_actor, company_actor, _, _, interview = scheduled

    with pytest.raises(Forbidden):
        interviews.confirm(company_actor, interview.id)
    confirmed = interviews.confirm(seeker_actor, interview.id)
    assert confirmed.status == "confirmed"
    assert confirmed.confirmation_status == "confirmed"

    with pytest.raises(Forbidden):
        interviews.complete(seeker_actor, interview.id)
    done = interviews.complete(company_actor, interview.id, rating=4, feedback="Great", result="pass")
    assert done.status == "completed"
    assert done.completed_at is not None
    with pytest.raises(InvalidTransition):
        interviews.cancel(company_actor, interview.id)


def test_cancel_clears_application_flag(scheduled, db_session):
    interviews, seeker_actor, _, _, application, interview = scheduled

    cancelled = interviews.cancel(seeker_actor, interview.id, reason="Found another job")
    assert cancelled.status == "cancelled"
    assert cancelled.cancellation_reason == "Found another job"
    db_session.refresh(application)
    assert application.interview_scheduled is False
    # a cancelled slot is free again
    assert interviews.check_conflicts(interview.company_id, DAY, "10:00", 60) == []


def test_no_show_by_company_only(scheduled, db_session):
    interviews, seeker_actor, company_actor, _, application, interview = scheduled

    with pytest.raises(Forbidden):
        interviews.mark_no_show(seeker_actor, interview.id)
    marked = interviews.mark_no_show(company_actor, interview.id)
    assert marked.status == "no_show"
    assert marked.no_show_at is not None
    db_session.refresh(application)
    assert application.interview_scheduled is False


def test_strangers_cannot_touch_interview(scheduled, make_company, make_seeker):
    interviews, _, _, _, _, interview = scheduled
    other_company, _ = make_company("Rival")
    other_seeker, _ = make_seeker()
    with pytest.raises(Forbidden):
        interviews.get(other_company, interview.interview_id)
    with pytest.raises(Forbidden):
        interviews.cancel(other_seeker, interview.id)


def test_new_interview_consumes_usage(scheduled, db_session):
    _, _, _, company, _, _ = scheduled
    events = db_session.query(models.UsageEvent).filter_by(company_id=company.id, action="interview").all()
    assert len(events) == 1


def test_last_slot_of_the_day_ends_at_midnight(scheduled, service, make_seeker, make_job):
    interviews, _, company_actor, company, _, _ = scheduled
    assert interviews.check_conflicts(company.id, DAY, "23:30", 30) == []

    seeker_actor, _ = make_seeker()
    application = service.apply(seeker_actor, make_job(company).job_id)
    service.schedule_interview(
        company_actor, application.id, {"interview_date": DAY, "start_time": "23:30", "duration": 30}
    )
    late = interviews.open_interview_for(application.id)
    assert late.end_time == "24:00"

    assert [c.id for c in interviews.check_conflicts(company.id, DAY, "23:45", 15)] == [late.id]
    assert interviews.check_conflicts(company.id, DAY, "23:00", 30) == []
