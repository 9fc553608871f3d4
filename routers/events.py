"""
Campus event endpoints.
"""
from datetime import datetime
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from database.models import EventStatus, EventType
from auth.dependencies import Principal, get_db_session, get_current_principal, require_faculty
from core.responses import success, pagination
from core.validators import normalize_pagination
from services.audit_service import AuditService
from services.event_service import EventService
from services.serializers import event_to_dict


router = APIRouter(prefix="/api/events", tags=["events"])

# Request body name -> Event column
FIELD_NAMES = {
    "endDate": "end_date",
    "maxParticipants": "max_participants",
    "registrationDeadline": "registration_deadline",
    "contactInfo": "contact_info",
}


def _to_columns(data: Dict[str, Any]) -> Dict[str, Any]:
    return {FIELD_NAMES.get(key, key): value for key, value in data.items()}


# Request Models
class EventCreate(BaseModel):
    """Create event request."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    date: datetime
    endDate: Optional[datetime] = None
    venue: str = Field(..., min_length=1)
    type: EventType
    organizer: str = Field(..., min_length=1)
    image: Optional[str] = None
    maxParticipants: Optional[int] = Field(None, ge=1)
    status: Optional[EventStatus] = None
    registrationDeadline: Optional[datetime] = None
    tags: Optional[List[str]] = None
    requirements: Optional[List[str]] = None
    contactInfo: Optional[Dict[str, Any]] = None


class EventUpdate(BaseModel):
    """Update event request; participants can only change through register/unregister."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    date: Optional[datetime] = None
    endDate: Optional[datetime] = None
    venue: Optional[str] = None
    type: Optional[EventType] = None
    organizer: Optional[str] = None
    image: Optional[str] = None
    maxParticipants: Optional[int] = Field(None, ge=1)
    status: Optional[EventStatus] = None
    registrationDeadline: Optional[datetime] = None
    tags: Optional[List[str]] = None
    requirements: Optional[List[str]] = None
    contactInfo: Optional[Dict[str, Any]] = None


@router.get("")
async def list_events(
    type_filter: Optional[str] = Query(None, alias="type"),
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: Session = Depends(get_db_session)
):
    """List events by date. Public."""
    page, limit = normalize_pagination(page, limit)
    events, total = EventService.list_events(db, page, limit, event_type=type_filter, status=status_filter)
    return success({
        "events": [event_to_dict(e, expand=("participants",)) for e in events],
        "pagination": pagination(page, limit, total),
    })


@router.get("/user/registered")
async def my_registered_events(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db_session)
):
    events = EventService.registered_events(db, principal.id)
    return success([event_to_dict(e) for e in events])


@router.get("/{event_id}")
async def get_event(
    event_id: int,
    db: Session = Depends(get_db_session)
):
    event = EventService.load(db, event_id, populate=("participants",))
    return success(event_to_dict(event, expand=("participants",)))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_event(
    request_data: EventCreate,
    request: Request,
    principal: Principal = Depends(require_faculty),
    db: Session = Depends(get_db_session)
):
    """Create an event. Faculty or admin."""
    event = EventService.create_event(db, principal, _to_columns(request_data.model_dump()))
    AuditService.log_from_request(
        db=db,
        request=request,
        action="event_create",
        user_id=principal.id,
        resource_type="event",
        resource_id=event.id
    )
    return success(event_to_dict(event), message="Event created successfully")


@router.put("/{event_id}")
async def update_event(
    event_id: int,
    request_data: EventUpdate,
    request: Request,
    principal: Principal = Depends(require_faculty),
    db: Session = Depends(get_db_session)
):
    """Update an event. Faculty or admin."""
    changes = _to_columns(request_data.model_dump(exclude_unset=True))
    event = EventService.update_event(db, event_id, principal, changes)
    AuditService.log_from_request(
        db=db,
        request=request,
        action="event_update",
        user_id=principal.id,
        resource_type="event",
        resource_id=event_id,
        details={"fields": sorted(changes)}
    )
    return success(event_to_dict(event), message="Event updated successfully")


@router.post("/{event_id}/register")
async def register_for_event(
    event_id: int,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db_session)
):
    event = EventService.register(db, event_id, principal)
    AuditService.log_from_request(
        db=db,
        request=request,
        action="event_register",
        user_id=principal.id,
        resource_type="event",
        resource_id=event_id
    )
    return success(event_to_dict(event), message="Successfully registered for event")


@router.post("/{event_id}/unregister")
async def unregister_from_event(
    event_id: int,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db_session)
):
    event = EventService.unregister(db, event_id, principal)
    AuditService.log_from_request(
        db=db,
        request=request,
        action="event_unregister",
        user_id=principal.id,
        resource_type="event",
        resource_id=event_id
    )
    return success(event_to_dict(event), message="Successfully unregistered from event")
