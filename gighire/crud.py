from __future__ import annotations
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from . import models, security
from .config import settings

def get_user(db: Session, user_id: str) -> models.User | None:
    return db.get(models.User, user_id)

def get_user_by_email(db: Session, email: str) -> models.User | None:
    return db.query(models.User).filter(models.User.email == email).first()

def create_user(db: Session, email: str, password: str, user_type: str) -> models.User:
    hashed_pw = security.hash_password(password)
    user = models.User(email=email, hashed_password=hashed_pw, user_type=user_type)
    db.add(user)
    db.flush()
    return user

def create_seeker(db: Session, user: models.User, full_name: str | None = None, phone: str | None = None) -> models.Seeker:
    seeker = models.Seeker(user_id=user.id, full_name=full_name, email=user.email, phone=phone)
    db.add(seeker)
    db.flush()
    return seeker

def create_company(db: Session, user: models.User, company_name: str) -> models.Company:
    """New companies start on the trial plan with a fixed-length window."""
    start = models.utcnow()
    company = models.Company(
        user_id=user.id,
        company_name=company_name,
        company_email=user.email,
        subscription_plan="trial",
        trial_start_date=start,
        trial_end_date=start + timedelta(days=settings.TRIAL_DAYS),
    )
    db.add(company)
    db.flush()
    return company

def register_account(
    db: Session,
    email: str,
    password: str,
    user_type: str,
    full_name: str | None = None,
    phone: str | None = None,
    company_name: str | None = None,
) -> tuple[models.User, models.Seeker | models.Company]:
    """Create the account and its profile in one commit."""
    user = create_user(db, email, password, user_type)
    if user_type == "company":
        profile = create_company(db, user, company_name or email)
    else:
        profile = create_seeker(db, user, full_name=full_name, phone=phone)
    db.commit()
    db.refresh(user)
    return user, profile

def get_seeker_by_user_id(db: Session, user_id: str) -> models.Seeker | None:
    return db.execute(select(models.Seeker).where(models.Seeker.user_id == user_id)).scalar_one_or_none()

def get_company_by_user_id(db: Session, user_id: str) -> models.Company | None:
    return db.execute(select(models.Company).where(models.Company.user_id == user_id)).scalar_one_or_none()
