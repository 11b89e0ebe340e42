"""Chat thread creation. Message delivery lives outside this service."""
from __future__ import annotations

from loguru import logger
from sqlalchemy.orm import Session

from . import models


class ChatFactory:
    """
    Creates one conversation thread between a company and a seeker.

    Not idempotent on its own: callers check ``JobApplication.chat_id`` before
    calling ``create``.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, company_id: str, seeker_id: str, job_id: str, job_title: str | None) -> str:
        chat = models.Chat(
            company_id=company_id,
            seeker_id=seeker_id,
            job_id=job_id,
            job_title=job_title or "Job Application",
        )
        self.db.add(chat)
        self.db.flush()
        self.send_system_message(chat.id, f"Chat started for {chat.job_title}")
        logger.info(f"Chat {chat.id} created for job {job_id} (company={company_id}, seeker={seeker_id})")
        return chat.id

    def send_system_message(self, chat_id: str, content: str) -> None:
        message = models.ChatMessage(chat_id=chat_id, sender_type="system", content=content)
        self.db.add(message)
        chat = self.db.get(models.Chat, chat_id)
        if chat is not None:
            chat.last_message_at = models.utcnow()
        self.db.flush()
