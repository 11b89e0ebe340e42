import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from gighire import models
from gighire.applications import ApplicationService
from gighire.errors import ConcurrencyConflict, InvalidTransition
from gighire.transaction import run_in_transaction


class ExplodingDispatcher:
    def dispatch_pending(self, limit=100):
        raise RuntimeError("broker down")


def test_retries_on_version_conflict(db_session):
    calls = []

    def work():
        calls.append(1)
        if len(calls) < 3:
            raise StaleDataError("row was updated concurrently")
        return "done"

    assert run_in_transaction(db_session, work, max_retries=3) == "done"
    assert len(calls) == 3


def test_gives_up_after_max_retries(db_session):
    def work():
        raise StaleDataError("row was updated concurrently")

    with pytest.raises(ConcurrencyConflict):
        run_in_transaction(db_session, work, max_retries=2)


def test_domain_errors_roll_back_and_propagate(db_session, make_company):
    _, company = make_company("Before")

    def work():
        company.company_name = "After"
        raise InvalidTransition("nope")

    with pytest.raises(InvalidTransition):
        run_in_transaction(db_session, work)
    assert db_session.get(models.Company, company.id).company_name == "Before"


def test_dispatch_failure_after_commit_is_swallowed(db_session, make_company):
    _, company = make_company("Before")

    def work():
        company.company_name = "After"
        return company

    result = run_in_transaction(db_session, work, dispatcher=ExplodingDispatcher())
    assert result.company_name == "After"


def test_concurrent_accept_retries_against_fresh_version(db_session, make_seeker, make_company, make_job):
    seeker_actor, _ = make_seeker()
    company_actor, company = make_company()
    job = make_job(company)
    first = ApplicationService(db_session)
    application = first.apply(seeker_actor, job.job_id)
    # session A now holds the row at its current version
    stale = first.find_application(application.id)
    assert stale.version == 1

    other = sessionmaker(bind=db_session.get_bind(), autoflush=False, future=True)()
    try:
        winner = ApplicationService(other).accept(company_actor, application.id)
        winner_chat = winner.chat_id
    finally:
        other.close()

    # A's write hits the stale version, rolls back, reloads and sees the committed hire
    result = first.accept(company_actor, application.id)
    assert result.status == "hired"
    assert result.chat_id == winner_chat
    assert db_session.execute(select(func.count()).select_from(models.Chat)).scalar_one() == 1
    db_session.refresh(job)
    assert job.hired_count == 1
