"""
Contact inbox: public submissions and the admin response workflow.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from auth.dependencies import Principal
from core.exceptions import NotFoundError, ValidationError
from core.logger import logger
from database.models import Contact, ContactStatus, ContactSubject, User


def _loader_options() -> list:
    return [joinedload(Contact.assignee), joinedload(Contact.responder)]


class ContactService:
    """Service for contact inbox operations."""

    @staticmethod
    def load(db: Session, contact_id: int) -> Contact:
        contact = (
            db.query(Contact)
            .options(*_loader_options())
            .filter(Contact.id == contact_id)
            .first()
        )
        if contact is None:
            raise NotFoundError("Contact message not found")
        return contact

    @staticmethod
    def submit(db: Session, data: Dict[str, Any]) -> Contact:
        contact = Contact(
            name=data["name"].strip(),
            email=data["email"].strip().lower(),
            phone=data.get("phone"),
            subject=ContactSubject(data["subject"]),
            message=data["message"],
            status=ContactStatus.NEW,
        )
        db.add(contact)
        db.commit()
        db.refresh(contact)
        logger.info(f"Contact message {contact.id} received ({contact.subject.value})")
        return contact

    @staticmethod
    def list_messages(
        db: Session,
        page: int,
        limit: int,
        status: Optional[str] = None,
    ) -> Tuple[List[Contact], int]:
        query = db.query(Contact)
        if status:
            try:
                query = query.filter(Contact.status == ContactStatus(status))
            except ValueError:
                raise ValidationError("Validation error", errors=[f"Invalid status: {status}"])
        total = query.with_entities(func.count(Contact.id)).scalar() or 0
        contacts = (
            query.options(*_loader_options())
            .order_by(Contact.created_at.desc(), Contact.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return contacts, total

    @staticmethod
    def update_status(
        db: Session,
        contact_id: int,
        status: str,
        assigned_to: Optional[int] = None,
    ) -> Contact:
        contact = ContactService.load(db, contact_id)
        contact.status = ContactStatus(status)
        if assigned_to is not None:
            if db.query(User.id).filter(User.id == assigned_to).first() is None:
                raise ValidationError("Validation error", errors=["Assigned user does not exist"])
            contact.assigned_to = assigned_to
        db.commit()
        logger.info(f"Contact {contact_id} status set to {contact.status.value}")
        return ContactService.load(db, contact_id)

    @staticmethod
    def respond(db: Session, contact_id: int, principal: Principal, message: str) -> Contact:
        """Store the response and resolve the inquiry. Mailing is left to the caller."""
        contact = ContactService.load(db, contact_id)
        contact.response_message = message
        contact.responded_by = principal.id
        contact.responded_at = datetime.utcnow()
        contact.status = ContactStatus.RESOLVED
        db.commit()
        logger.info(f"Contact {contact_id} answered by user {principal.id}")
        return ContactService.load(db, contact_id)
