"""
Identity resolution.

Tokens carry the account id, while every aggregate references profile ids
(``Seeker.id`` / ``Company.id``). All authorization goes through this resolver
so raw account ids never end up compared against foreign keys.
"""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from . import crud, models
from .errors import ProfileNotFound
from .state_machine import ActorType


@dataclass(frozen=True)
class Actor:
    """The authenticated caller as carried by the access token."""
    account_id: str
    user_type: ActorType

    @classmethod
    def from_user(cls, user: models.User) -> "Actor":
        return cls(account_id=user.id, user_type=ActorType(user.user_type))

    @property
    def is_company(self) -> bool:
        return self.user_type is ActorType.COMPANY


class IdentityResolver:
    def __init__(self, db: Session):
        self.db = db

    def seeker(self, actor: Actor) -> models.Seeker:
        seeker = crud.get_seeker_by_user_id(self.db, actor.account_id)
        if seeker is None:
            raise ProfileNotFound("seeker", actor.account_id)
        return seeker

    def company(self, actor: Actor) -> models.Company:
        company = crud.get_company_by_user_id(self.db, actor.account_id)
        if company is None:
            raise ProfileNotFound("company", actor.account_id)
        return company

    def resolve(self, actor: Actor) -> str:
        """Return the profile id for the caller; ProfileNotFound if none exists."""
        if actor.is_company:
            return self.company(actor).id
        return self.seeker(actor).id
