"""
Company plans, trial window and metered usage.

Usage is never stored as a mutable counter. Each metered action appends a
``UsageEvent`` and the "usage vs. limit" check is computed from those rows for
the current period.
"""
from __future__ import annotations

from datetime import datetime, timezone

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from . import models
from .config import settings
from .errors import PlanLimitExceeded, ValidationError

METERED_ACTIONS = ("instant_match", "interview", "job_posting")

# None means unlimited
PLAN_LIMITS: dict[str, dict] = {
    "trial": {
        "instant_match": None, "interview": None, "job_posting": None,
        "locations": 1, "team_members": 1, "analytics": "basic", "support": "email",
    },
    "starter": {
        "instant_match": 20, "interview": 20, "job_posting": None,
        "locations": 1, "team_members": 3, "analytics": "basic", "support": "email",
    },
    "pro": {
        "instant_match": 50, "interview": 50, "job_posting": None,
        "locations": 1, "team_members": 10, "analytics": "advanced", "support": "priority",
    },
    "custom": {
        "instant_match": None, "interview": None, "job_posting": None,
        "locations": None, "team_members": None, "analytics": "enterprise", "support": "dedicated",
    },
}
NO_PLAN_LIMITS = {
    "instant_match": 0, "interview": 0, "job_posting": 0,
    "locations": 1, "team_members": 1, "analytics": "none", "support": "none",
}


def _aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def trial_status(company: models.Company, now: datetime | None = None) -> dict:
    """Calendar-day countdown: the day the trial starts shows the full window remaining."""
    now = now or models.utcnow()
    total = settings.TRIAL_DAYS
    start = _aware(company.trial_start_date)
    if start is None:
        remaining = 0
    else:
        days_passed = (now.date() - start.date()).days
        remaining = max(0, min(total, total - days_passed))
    return {
        "isActive": company.subscription_plan == "trial" and remaining > 0,
        "daysRemaining": remaining,
        "totalDays": total,
        "daysPassed": total - remaining,
        "expired": remaining == 0,
        "startDate": start,
        "endDate": _aware(company.trial_end_date),
        "displayText": f"{remaining}/{total} days",
    }


def subscription_status(company: models.Company, now: datetime | None = None) -> str:
    now = now or models.utcnow()
    if company.subscription_plan == "trial":
        return "trial" if trial_status(company, now)["isActive"] else "expired"
    if company.subscription_plan == "payAsYouGo":
        return "active"
    billing = _aware(company.next_billing_date)
    if billing is not None:
        return "active" if billing > now else "expired"
    return "inactive"


def plan_limits(company: models.Company, now: datetime | None = None) -> dict:
    if company.subscription_plan == "trial" and not trial_status(company, now)["isActive"]:
        return dict(NO_PLAN_LIMITS)
    return dict(PLAN_LIMITS.get(company.subscription_plan or "", NO_PLAN_LIMITS))


class UsageLedger:
    def __init__(self, db: Session):
        self.db = db

    def period_start(self, company: models.Company, now: datetime | None = None) -> datetime:
        """Trials meter over the whole trial window, paid plans per calendar month."""
        now = now or models.utcnow()
        if company.subscription_plan == "trial" and company.trial_start_date is not None:
            return _aware(company.trial_start_date)
        return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    def usage(self, company: models.Company, action: str, now: datetime | None = None) -> int:
        total = self.db.execute(
            select(func.coalesce(func.sum(models.UsageEvent.quantity), 0)).where(
                models.UsageEvent.company_id == company.id,
                models.UsageEvent.action == action,
                models.UsageEvent.occurred_at >= self.period_start(company, now),
            )
        ).scalar_one()
        return int(total)

    def can_perform_action(self, company: models.Company, action: str, now: datetime | None = None) -> bool:
        if action not in METERED_ACTIONS:
            raise ValidationError(f"Unknown metered action: {action}")
        limit = plan_limits(company, now)[action]
        if limit is None:
            return True
        return self.usage(company, action, now) < limit

    def record(self, company: models.Company, action: str, source_ref: str | None = None, quantity: int = 1) -> models.UsageEvent:
        """Check the ceiling, then append. Never appends past the limit."""
        if not self.can_perform_action(company, action):
            raise PlanLimitExceeded(action, plan_limits(company)[action])
        event = models.UsageEvent(company_id=company.id, action=action, quantity=quantity, source_ref=source_ref)
        self.db.add(event)
        self.db.flush()
        logger.debug(f"Usage {action} x{quantity} recorded for company {company.id} ({source_ref})")
        return event

    def summary(self, company: models.Company) -> dict:
        now = models.utcnow()
        limits = plan_limits(company, now)
        return {
            "subscriptionPlan": company.subscription_plan,
            "subscriptionStatus": subscription_status(company, now),
            "trial": trial_status(company, now),
            "planLimits": {k: ("unlimited" if v is None else v) for k, v in limits.items()},
            "usageStats": {
                "instantMatches": self.usage(company, "instant_match", now),
                "interviews": self.usage(company, "interview", now),
                "jobPostings": self.usage(company, "job_posting", now),
            },
            "periodStart": self.period_start(company, now),
        }
