"""
Credential store: user records in PostgreSQL.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from backend.database.db_connection import PostgresStore


@dataclass
class User:
    id: int
    name: str
    email: str
    password_hash: str
    created_at: Optional[datetime] = None

    def to_public(self, include_created: bool = False) -> Dict[str, Any]:
        """Public fields only; the password hash never leaves the service."""
        data: Dict[str, Any] = {"id": self.id, "name": self.name, "email": self.email}
        if include_created:
            data["created_at"] = self.created_at.isoformat() if self.created_at else None
        return data


def _row_to_user(row) -> User:
    return User(
        id=row["user_id"],
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        created_at=row["created_at"],
    )


class UserStore(PostgresStore):

    def find_by_email(self, email: str) -> Optional[User]:
        sql = "SELECT user_id, name, email, password_hash, created_at FROM users WHERE email = %s;"
        with self.cursor() as cur:
            cur.execute(sql, (email,))
            row = cur.fetchone()
        return _row_to_user(row) if row else None

    def find_by_id(self, user_id: int) -> Optional[User]:
        sql = "SELECT user_id, name, email, password_hash, created_at FROM users WHERE user_id = %s;"
        with self.cursor() as cur:
            cur.execute(sql, (user_id,))
            row = cur.fetchone()
        return _row_to_user(row) if row else None

    def insert(self, name: str, email: str, password_hash: str) -> Optional[User]:
        """
        Insert a user unless the email is already taken.

        Returns:
            User: The new record, or None when another user owns the email.
        """
        sql = """
            INSERT INTO users (name, email, password_hash)
            VALUES (%s, %s, %s)
            ON CONFLICT (email) DO NOTHING
            RETURNING user_id, name, email, password_hash, created_at;
        """
        with self.cursor() as cur:
            cur.execute(sql, (name, email, password_hash))
            row = cur.fetchone()
        return _row_to_user(row) if row else None
