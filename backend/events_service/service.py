"""
Event service: ownership rules and the RSVP capacity/uniqueness invariant.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from backend.errors import CapacityExceeded, Conflict, Forbidden, NotFound, ValidationError
from backend.events_service.images import ImageUploader
from backend.events_service.store import Event, EventFields, EventStore

# --- CONSTANTS FOR VALIDATION ---
TITLE_MAX_LENGTH = 200
TIME_MAX_LENGTH = 50
CAPACITY_MAX = 2147483647  # INTEGER column
REQUIRED_FIELDS = ["title", "date", "time", "location", "capacity"]


def parse_date(val: Any) -> Optional[date]:
    """
    Parse an ISO-8601 date or datetime string into a date.

    Returns:
        date: The parsed date, or None if invalid.
    """
    if not val or not isinstance(val, str):
        return None
    try:
        # Handles 'YYYY-MM-DD', 'YYYY-MM-DDTHH:MM' and '...Z'
        if val.endswith("Z"):
            val = val[:-1] + "+00:00"
        if "T" in val or " " in val:
            return datetime.fromisoformat(val).date()
        return date.fromisoformat(val)
    except ValueError:
        return None


def parse_capacity(val: Any) -> Optional[int]:
    """Accept positive integers, including numeric strings from form posts."""
    if isinstance(val, bool):
        return None
    if isinstance(val, int):
        capacity = val
    elif isinstance(val, str) and val.strip().isdigit():
        capacity = int(val.strip())
    else:
        return None
    return capacity if 1 <= capacity <= CAPACITY_MAX else None


def parse_event_fields(data: Dict[str, Any]) -> EventFields:
    """
    Validate a create/update payload.

    Raises:
        ValidationError: A required field is missing or malformed.
    """
    missing = [k for k in REQUIRED_FIELDS if data.get(k) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    title = data["title"]
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("Title cannot be empty")
    title = title.strip()
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title must be {TITLE_MAX_LENGTH} characters or less.")

    event_date = parse_date(data["date"])
    if event_date is None:
        raise ValidationError("Invalid date format. Use ISO-8601.")

    event_time = data["time"]
    if not isinstance(event_time, str) or len(event_time) > TIME_MAX_LENGTH:
        raise ValidationError("Invalid time")

    location = data["location"]
    if not isinstance(location, str) or not location.strip():
        raise ValidationError("Location cannot be empty")

    capacity = parse_capacity(data["capacity"])
    if capacity is None:
        raise ValidationError("Capacity must be a positive whole number")

    description = data.get("description") or ""
    if not isinstance(description, str):
        raise ValidationError("Description must be text")

    return EventFields(
        title=title,
        description=description,
        date=event_date,
        time=event_time.strip(),
        location=location.strip(),
        capacity=capacity,
    )


class EventService:

    def __init__(self, events: EventStore, images: ImageUploader):
        self.events = events
        self.images = images

    def create(self, actor_id: int, data: Dict[str, Any]) -> Event:
        """
        Create an event owned by `actor_id`.

        The image is uploaded before anything is written, so a failed upload
        leaves no event behind.
        """
        fields = parse_event_fields(data)

        image = data.get("image")
        if image:
            fields.image_url = self.images.upload(image)

        event = self.events.insert(fields, actor_id)
        logging.info(f"[Events] Event {event.id} created by user {actor_id}")
        return event

    def update(self, actor_id: int, event_id: int, data: Dict[str, Any]) -> Event:
        """
        Replace all mutable fields of an event. Creator only.

        An absent image keeps the stored one; an unchanged image is not
        uploaded again.
        """
        current = self._get_owned(actor_id, event_id, "update")
        fields = parse_event_fields(data)
        if fields.capacity < len(current.attendee_ids):
            raise ValidationError(self._capacity_message(len(current.attendee_ids)))

        image = data.get("image")
        if image and image != current.image_url:
            fields.image_url = self.images.upload(image)
        else:
            fields.image_url = current.image_url

        updated = self.events.update(event_id, actor_id, fields)
        if updated is None:
            # The conditional write did not apply; find out why
            latest = self.events.find(event_id)
            if latest is None:
                raise NotFound("Event not found")
            raise ValidationError(self._capacity_message(len(latest.attendee_ids)))

        logging.info(f"[Events] Event {event_id} updated by user {actor_id}")
        return updated

    def delete(self, actor_id: int, event_id: int) -> None:
        self._get_owned(actor_id, event_id, "delete")
        if not self.events.delete(event_id, actor_id):
            raise NotFound("Event not found")
        logging.info(f"[Events] Event {event_id} deleted by user {actor_id}")

    def rsvp(self, actor_id: int, event_id: int) -> Event:
        """
        Add the actor to the attendees.

        Raises:
            NotFound: No such event.
            Conflict: The actor already RSVP'd (checked before capacity).
            CapacityExceeded: The event is full.
        """
        event = self.events.add_attendee(event_id, actor_id)
        if event is not None:
            logging.info(f"[Events] User {actor_id} RSVP'd to event {event_id}")
            return event

        current = self.events.find(event_id)
        if current is None:
            raise NotFound("Event not found")
        if actor_id in current.attendee_ids:
            raise Conflict("You have already RSVP'd to this event")

        logging.info(f"[Events] RSVP rejected, event {event_id} is full")
        raise CapacityExceeded("Event is full")

    def cancel_rsvp(self, actor_id: int, event_id: int) -> Event:
        """Remove the actor from the attendees; not being one is fine."""
        event = self.events.remove_attendee(event_id, actor_id)
        if event is None:
            raise NotFound("Event not found")
        return event

    def list_all(self) -> List[Event]:
        return self.events.list_all()

    def list_mine(self, actor_id: int) -> List[Event]:
        return self.events.list_by_creator(actor_id)

    def get_by_id(self, event_id: int) -> Event:
        event = self.events.find_detailed(event_id)
        if event is None:
            raise NotFound("Event not found")
        return event

    def _get_owned(self, actor_id: int, event_id: int, action: str) -> Event:
        event = self.events.find(event_id)
        if event is None:
            raise NotFound("Event not found")
        if event.creator_id != actor_id:
            logging.info(f"[Events] User {actor_id} denied access to event {event_id}")
            raise Forbidden(f"Not authorized to {action} this event")
        return event

    @staticmethod
    def _capacity_message(attendee_count: int) -> str:
        return f"Capacity cannot be lower than the current number of attendees ({attendee_count})"
