"""User profiles and role management."""
import logging
import sqlite3
import uuid
from datetime import datetime
from typing import Optional

from skill_diag.db import get_connection
from skill_diag.errors import DuplicateUser, UnknownUser
from skill_diag.models import ROLES, UserProfile

logger = logging.getLogger(__name__)


def _profile(row: sqlite3.Row) -> UserProfile:
    return UserProfile(
        user_id=row["user_id"],
        name=row["name"] or "",
        email=row["email"],
        role=row["role"],
        created_at=row["created_at"],
    )


def register_user(db_path: str, name: str, email: str, role: str = "student") -> UserProfile:
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")
    profile = UserProfile(
        user_id=str(uuid.uuid4()),
        name=name,
        email=email.strip().lower(),
        role=role,
        created_at=datetime.now().isoformat(),
    )
    conn = get_connection(db_path)
    try:
        conn.execute(
            "INSERT INTO profiles (user_id, name, email, role, created_at) VALUES (?, ?, ?, ?, ?)",
            (profile.user_id, profile.name, profile.email, profile.role, profile.created_at),
        )
        conn.commit()
    except sqlite3.IntegrityError as e:
        raise DuplicateUser(f"A user with email {profile.email} already exists") from e
    finally:
        conn.close()
    logger.info("Registered user %s (%s)", profile.user_id, profile.role)
    return profile


def get_user(db_path: str, user_id: str) -> Optional[UserProfile]:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM profiles WHERE user_id = ?", (user_id,)).fetchone()
    conn.close()
    return _profile(row) if row else None


def find_user_by_email(db_path: str, email: str) -> Optional[UserProfile]:
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM profiles WHERE email = ?", (email.strip().lower(),)
    ).fetchone()
    conn.close()
    return _profile(row) if row else None


def list_users(db_path: str) -> list[UserProfile]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM profiles ORDER BY created_at DESC, rowid DESC").fetchall()
    conn.close()
    return [_profile(r) for r in rows]


def set_role(db_path: str, user_id: str, role: str) -> UserProfile:
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")
    conn = get_connection(db_path)
    cur = conn.execute("UPDATE profiles SET role = ? WHERE user_id = ?", (role, user_id))
    conn.commit()
    conn.close()
    if cur.rowcount == 0:
        raise UnknownUser(user_id)
    logger.info("Role of user %s set to %s", user_id, role)
    return get_user(db_path, user_id)


def is_admin(db_path: str, user_id: str) -> bool:
    user = get_user(db_path, user_id)
    return user is not None and user.role == "admin"


def delete_user(db_path: str, user_id: str) -> None:
    """Delete a profile together with its answers and result snapshots."""
    conn = get_connection(db_path)
    cur = conn.execute("DELETE FROM profiles WHERE user_id = ?", (user_id,))
    conn.commit()
    conn.close()
    if cur.rowcount == 0:
        raise UnknownUser(user_id)
    logger.info("Deleted user %s", user_id)
