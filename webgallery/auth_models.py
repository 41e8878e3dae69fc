"""Records of the authentication service and their SQLite storage."""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

_SCHEMA = """
CREATE TABLE IF NOT EXISTS invitations (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL,
    expires_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS users (
    email TEXT PRIMARY KEY,
    password TEXT NOT NULL,
    created_at TEXT NOT NULL
);
"""


@dataclass(frozen=True)
class SlimUser:
    """What the service tells about a user: only the address."""

    email: str


@dataclass(frozen=True)
class User:
    """A registered user with a hashed password."""

    email: str
    password: str
    created_at: datetime

    def slim(self) -> SlimUser:
        """Return the user without the password and timestamp."""
        return SlimUser(self.email)


@dataclass(frozen=True)
class Invitation:
    """An invitation to register, valid until ``expires_at``."""

    id: uuid.UUID
    email: str
    expires_at: datetime


def new_user(email: str, password: str) -> User:
    """Make a user created now."""
    return User(email, password, datetime.now())


class Database:
    """SQLite store of users and invitations."""

    def __init__(self, path: str | Path = ":memory:") -> None:
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._conn.executescript(_SCHEMA)

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def insert_user(self, user: User) -> User:
        """Store a user and return it as stored."""
        with self._conn:
            self._conn.execute(
                "INSERT INTO users (email, password, created_at) VALUES (?, ?, ?)",
                (user.email, user.password, user.created_at.isoformat()),
            )
        return user

    def find_users_by_email(self, email: str) -> list[User]:
        """Return the users with this address."""
        rows = self._conn.execute(
            "SELECT email, password, created_at FROM users WHERE email = ?", (email,)
        )
        return [User(e, p, datetime.fromisoformat(c)) for e, p, c in rows]

    def insert_invitation(self, invitation: Invitation) -> Invitation:
        """Store an invitation and return it as stored."""
        with self._conn:
            self._conn.execute(
                "INSERT INTO invitations (id, email, expires_at) VALUES (?, ?, ?)",
                (str(invitation.id), invitation.email, invitation.expires_at.isoformat()),
            )
        return invitation

    def find_invitations(self, invitation_id: uuid.UUID) -> list[Invitation]:
        """Return the invitations with this id."""
        rows = self._conn.execute(
            "SELECT id, email, expires_at FROM invitations WHERE id = ?", (str(invitation_id),)
        )
        return [Invitation(uuid.UUID(i), e, datetime.fromisoformat(x)) for i, e, x in rows]

    def close(self) -> None:
        """Close the connection."""
        self._conn.close()