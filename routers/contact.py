"""
Contact form and admin inbox APIs.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from database.models import ContactStatus, ContactSubject
from auth.dependencies import Principal, get_db_session, require_admin
from core.responses import success, pagination
from core.validators import normalize_pagination
from services.audit_service import AuditService
from services.contact_service import ContactService
from services.email_service import EmailService
from services.serializers import contact_to_dict


router = APIRouter(prefix="/api/contact", tags=["contact"])


# Request Models
class ContactCreate(BaseModel):
    """Public contact form submission."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    subject: ContactSubject
    message: str = Field(..., min_length=10)


class ContactStatusUpdate(BaseModel):
    """Inbox status change and optional assignee."""
    status: ContactStatus
    assignedTo: Optional[int] = None


class ContactResponseCreate(BaseModel):
    """Admin reply to an inquiry."""
    message: str = Field(..., min_length=1)


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_contact(
    request_data: ContactCreate,
    db: Session = Depends(get_db_session)
):
    """Submit the contact form. Public."""
    contact = ContactService.submit(db, request_data.model_dump())
    return success(contact_to_dict(contact), message="Message sent successfully")


@router.get("")
async def list_contacts(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """Inbox, newest first. Admin only."""
    page, limit = normalize_pagination(page, limit)
    contacts, total = ContactService.list_messages(db, page, limit, status=status_filter)
    return success({
        "contacts": [contact_to_dict(c, expand=("assignedTo", "respondedBy")) for c in contacts],
        "pagination": pagination(page, limit, total),
    })


@router.put("/{contact_id}/status")
async def update_contact_status(
    contact_id: int,
    request_data: ContactStatusUpdate,
    request: Request,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    contact = ContactService.update_status(db, contact_id, request_data.status.value, request_data.assignedTo)
    AuditService.log_from_request(
        db=db,
        request=request,
        action="contact_status",
        user_id=principal.id,
        resource_type="contact",
        resource_id=contact_id,
        details={"status": request_data.status.value, "assignedTo": request_data.assignedTo}
    )
    return success(contact_to_dict(contact, expand=("assignedTo", "respondedBy")), message="Status updated successfully")


@router.post("/{contact_id}/response")
async def respond_to_contact(
    contact_id: int,
    request_data: ContactResponseCreate,
    request: Request,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """Answer an inquiry; the reply is emailed to the sender when mail is configured."""
    contact = ContactService.respond(db, contact_id, principal, request_data.message)
    email_sent = await EmailService.send_contact_response(
        getattr(request.app.state, "mail", None), contact, request_data.message
    )
    AuditService.log_from_request(
        db=db,
        request=request,
        action="contact_response",
        user_id=principal.id,
        resource_type="contact",
        resource_id=contact_id,
        details={"emailSent": email_sent}
    )
    return success(
        contact_to_dict(contact, expand=("assignedTo", "respondedBy")),
        message="Response sent successfully",
        emailSent=email_sent,
    )
