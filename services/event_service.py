"""
Event catalog and registration.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from auth.dependencies import Principal
from core.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from core.logger import logger
from core.roster import BoundedRoster, RosterLabels
from database.models import Event, EventParticipant, EventStatus, EventType
import config

REGISTRATION = BoundedRoster(
    owner_model=Event,
    member_model=EventParticipant,
    owner_key="event_id",
    count_attr="participant_count",
    capacity_attr="max_participants",
    labels=RosterLabels(
        already_member="Already registered for this event",
        full="Event is full",
        not_member="You are not registered for this event",
    ),
)

UPDATABLE_FIELDS = (
    "title", "description", "date", "end_date", "venue", "type", "organizer",
    "image", "max_participants", "status", "registration_deadline", "tags",
    "requirements", "contact_info",
)


def _registration_open(event: Event) -> None:
    if event.registration_deadline and datetime.utcnow() > event.registration_deadline:
        raise InvalidStateError("Registration deadline has passed")


def _loader_options(populate: Iterable[str]) -> list:
    if "participants" in populate:
        return [selectinload(Event.participants).joinedload(EventParticipant.user)]
    return [selectinload(Event.participants)]


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Store datetimes as naive UTC, like every other timestamp column."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class EventService:
    """Service for event operations."""

    @staticmethod
    def load(db: Session, event_id: int, populate: Iterable[str] = ()) -> Event:
        event = (
            db.query(Event)
            .options(*_loader_options(populate))
            .filter(Event.id == event_id)
            .first()
        )
        if event is None:
            raise NotFoundError("Event not found")
        return event

    @staticmethod
    def list_events(
        db: Session,
        page: int,
        limit: int,
        event_type: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Tuple[List[Event], int]:
        query = db.query(Event)
        try:
            if event_type:
                query = query.filter(Event.type == EventType(event_type))
            if status:
                query = query.filter(Event.status == EventStatus(status))
        except ValueError as e:
            raise ValidationError("Validation error", errors=[str(e)])
        total = query.with_entities(func.count(Event.id)).scalar() or 0
        events = (
            query.options(*_loader_options(("participants",)))
            .order_by(Event.date.asc(), Event.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return events, total

    @staticmethod
    def create_event(db: Session, principal: Principal, data: Dict[str, Any]) -> Event:
        event = Event(
            title=data["title"],
            description=data["description"],
            date=_naive_utc(data["date"]),
            end_date=_naive_utc(data.get("end_date")),
            venue=data["venue"],
            type=EventType(data["type"]),
            organizer=data["organizer"],
            image=data.get("image"),
            max_participants=data.get("max_participants") or config.DEFAULT_EVENT_CAPACITY,
            status=EventStatus(data.get("status") or EventStatus.UPCOMING),
            registration_deadline=_naive_utc(data.get("registration_deadline")),
            tags=data.get("tags") or [],
            requirements=data.get("requirements") or [],
            contact_info=data.get("contact_info"),
        )
        db.add(event)
        db.commit()
        logger.info(f"Event created: {event.id} ({event.title}) by user {principal.id}")
        return EventService.load(db, event.id)

    @staticmethod
    def update_event(db: Session, event_id: int, principal: Principal, changes: Dict[str, Any]) -> Event:
        event = EventService.load(db, event_id)
        changes = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS and v is not None}

        capacity = changes.pop("max_participants", None)
        for name in ("date", "end_date", "registration_deadline"):
            if name in changes:
                changes[name] = _naive_utc(changes[name])
        if "type" in changes:
            changes["type"] = EventType(changes["type"])
        if "status" in changes:
            changes["status"] = EventStatus(changes["status"])

        for name, value in changes.items():
            setattr(event, name, value)
        if capacity is not None:
            if not REGISTRATION.resize(db, event.id, int(capacity)):
                db.rollback()
                raise ConflictError(
                    "Maximum participants cannot be lower than the number of registered participants"
                )
            changes["max_participants"] = capacity
        db.commit()
        logger.info(f"Event {event_id} updated by user {principal.id}: {sorted(changes)}")
        return EventService.load(db, event_id)

    @staticmethod
    def register(db: Session, event_id: int, principal: Principal) -> Event:
        """Register the acting user. Deadline, duplicate and capacity are checked in that order."""
        event = EventService.load(db, event_id)
        REGISTRATION.join(
            db, event, principal.id,
            gates=(_registration_open,),
            registered_at=datetime.utcnow(),
        )
        logger.info(f"User {principal.id} registered for event {event_id}")
        return EventService.load(db, event_id)

    @staticmethod
    def unregister(db: Session, event_id: int, principal: Principal) -> Event:
        event = EventService.load(db, event_id)
        REGISTRATION.leave(db, event, principal.id)
        logger.info(f"User {principal.id} unregistered from event {event_id}")
        return EventService.load(db, event_id)

    @staticmethod
    def registered_events(db: Session, user_id: int) -> List[Event]:
        return (
            db.query(Event)
            .join(EventParticipant, EventParticipant.event_id == Event.id)
            .options(*_loader_options(()))
            .filter(EventParticipant.user_id == user_id)
            .order_by(Event.date.asc(), Event.id)
            .all()
        )
