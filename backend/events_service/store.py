"""
Event store: event records and their attendee sets in PostgreSQL.

The attendee list is an ordered integer array on the event row. Writes that
must respect the membership and capacity invariants are single conditional
UPDATE statements, so concurrent requests cannot push the list past capacity
or add the same user twice.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from backend.database.db_connection import PostgresStore

EVENT_COLUMNS = """
    e.event_id, e.title, e.description, e.event_date, e.event_time,
    e.location, e.capacity, e.image_url, e.creator_id, e.attendees,
    e.created_at, e.updated_at
"""


@dataclass
class Member:
    """Display fields of a user referenced by an event."""

    id: int
    name: str
    email: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "email": self.email}


@dataclass
class EventFields:
    """The mutable fields of an event, already validated."""

    title: str
    description: str
    date: date
    time: str
    location: str
    capacity: int
    image_url: str = ""


@dataclass
class Event:
    id: int
    title: str
    description: str
    date: date
    time: str
    location: str
    capacity: int
    image_url: str
    creator_id: int
    attendee_ids: List[int] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Filled in only by the queries that resolve identities
    creator: Optional[Member] = None
    attendees: Optional[List[Member]] = None

    def to_dict(self) -> Dict[str, Any]:
        creator: Union[int, Dict[str, Any]] = self.creator.to_dict() if self.creator else self.creator_id
        if self.attendees is not None:
            attendees: List[Any] = [m.to_dict() for m in self.attendees]
        else:
            attendees = list(self.attendee_ids)

        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "date": self.date.isoformat() if self.date else None,
            "time": self.time,
            "location": self.location,
            "capacity": self.capacity,
            "image_url": self.image_url,
            "creator": creator,
            "attendees": attendees,
            "attendee_count": len(self.attendee_ids),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


def _row_to_event(row) -> Event:
    event = Event(
        id=row["event_id"],
        title=row["title"],
        description=row["description"],
        date=row["event_date"],
        time=row["event_time"],
        location=row["location"],
        capacity=row["capacity"],
        image_url=row["image_url"],
        creator_id=row["creator_id"],
        attendee_ids=list(row["attendees"] or []),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
    if "creator_name" in row.keys():
        event.creator = Member(row["creator_id"], row["creator_name"], row["creator_email"])
    return event


class EventStore(PostgresStore):

    def insert(self, fields: EventFields, creator_id: int) -> Event:
        sql = """
            INSERT INTO events (
                title, description, event_date, event_time,
                location, capacity, image_url, creator_id
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING *;
        """
        with self.cursor() as cur:
            cur.execute(sql, (
                fields.title, fields.description, fields.date, fields.time,
                fields.location, fields.capacity, fields.image_url, creator_id,
            ))
            row = cur.fetchone()
        return _row_to_event(row)

    def find(self, event_id: int) -> Optional[Event]:
        """The raw event record, ids unresolved."""
        sql = f"SELECT {EVENT_COLUMNS} FROM events e WHERE e.event_id = %s;"
        with self.cursor() as cur:
            cur.execute(sql, (event_id,))
            row = cur.fetchone()
        return _row_to_event(row) if row else None

    def find_detailed(self, event_id: int) -> Optional[Event]:
        """The event with creator and attendees resolved to display fields."""
        sql = f"""
            SELECT {EVENT_COLUMNS},
                   u.name AS creator_name, u.email AS creator_email
            FROM events e
            JOIN users u ON u.user_id = e.creator_id
            WHERE e.event_id = %s;
        """
        with self.cursor() as cur:
            cur.execute(sql, (event_id,))
            row = cur.fetchone()
            if not row:
                return None
            event = _row_to_event(row)
            self._attach_attendees(cur, [event])
        return event

    def list_all(self) -> List[Event]:
        """All events, newest first, creator resolved."""
        sql = f"""
            SELECT {EVENT_COLUMNS},
                   u.name AS creator_name, u.email AS creator_email
            FROM events e
            JOIN users u ON u.user_id = e.creator_id
            ORDER BY e.created_at DESC, e.event_id DESC;
        """
        with self.cursor() as cur:
            cur.execute(sql)
            return [_row_to_event(row) for row in cur.fetchall()]

    def list_by_creator(self, creator_id: int) -> List[Event]:
        """A user's own events, newest first, attendees resolved."""
        sql = f"""
            SELECT {EVENT_COLUMNS}
            FROM events e
            WHERE e.creator_id = %s
            ORDER BY e.created_at DESC, e.event_id DESC;
        """
        with self.cursor() as cur:
            cur.execute(sql, (creator_id,))
            events = [_row_to_event(row) for row in cur.fetchall()]
            self._attach_attendees(cur, events)
        return events

    def update(self, event_id: int, creator_id: int, fields: EventFields) -> Optional[Event]:
        """
        Replace the mutable fields of an event owned by `creator_id`.

        The write only applies when the current attendee count fits in the
        new capacity.

        Returns:
            Event: The updated record, or None when the event is missing, owned
            by someone else, or has more attendees than the new capacity.
        """
        sql = """
            UPDATE events
            SET title = %s, description = %s, event_date = %s, event_time = %s,
                location = %s, capacity = %s, image_url = %s,
                updated_at = CURRENT_TIMESTAMP
            WHERE event_id = %s
              AND creator_id = %s
              AND cardinality(attendees) <= %s
            RETURNING *;
        """
        with self.cursor() as cur:
            cur.execute(sql, (
                fields.title, fields.description, fields.date, fields.time,
                fields.location, fields.capacity, fields.image_url,
                event_id, creator_id, fields.capacity,
            ))
            row = cur.fetchone()
        return _row_to_event(row) if row else None

    def delete(self, event_id: int, creator_id: int) -> bool:
        sql = "DELETE FROM events WHERE event_id = %s AND creator_id = %s;"
        with self.cursor() as cur:
            cur.execute(sql, (event_id, creator_id))
            return cur.rowcount > 0

    def add_attendee(self, event_id: int, user_id: int) -> Optional[Event]:
        """
        Append `user_id` to the attendees iff not already present and the event
        is below capacity.

        Returns:
            Event: The updated record, or None when the condition did not hold
            (or the event does not exist).
        """
        sql = """
            UPDATE events
            SET attendees = array_append(attendees, %(user_id)s),
                updated_at = CURRENT_TIMESTAMP
            WHERE event_id = %(event_id)s
              AND NOT (%(user_id)s = ANY(attendees))
              AND cardinality(attendees) < capacity
            RETURNING *;
        """
        with self.cursor() as cur:
            cur.execute(sql, {"event_id": event_id, "user_id": user_id})
            row = cur.fetchone()
        return _row_to_event(row) if row else None

    def remove_attendee(self, event_id: int, user_id: int) -> Optional[Event]:
        """
        Remove `user_id` from the attendees if present.

        Returns:
            Event: The updated record, or None when the event does not exist.
        """
        sql = """
            UPDATE events
            SET attendees = array_remove(attendees, %(user_id)s),
                updated_at = CURRENT_TIMESTAMP
            WHERE event_id = %(event_id)s
            RETURNING *;
        """
        with self.cursor() as cur:
            cur.execute(sql, {"event_id": event_id, "user_id": user_id})
            row = cur.fetchone()
        return _row_to_event(row) if row else None

    def _attach_attendees(self, cur, events: Iterable[Event]) -> None:
        """Resolve attendee ids to display fields, keeping RSVP order."""
        events = list(events)
        if not events:
            return

        sql = """
            SELECT e.event_id, u.user_id, u.name, u.email
            FROM events e
            CROSS JOIN LATERAL unnest(e.attendees) WITH ORDINALITY AS a(user_id, position)
            JOIN users u ON u.user_id = a.user_id
            WHERE e.event_id = ANY(%s)
            ORDER BY e.event_id, a.position;
        """
        cur.execute(sql, ([e.id for e in events],))

        by_event: Dict[int, List[Member]] = {e.id: [] for e in events}
        for row in cur.fetchall():
            by_event[row["event_id"]].append(Member(row["user_id"], row["name"], row["email"]))

        for event in events:
            event.attendees = by_event[event.id]
