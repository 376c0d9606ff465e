from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import bcrypt

from makeable.database.connection import with_connection

ROLES = ("admin", "student")
COURSES = ("Design Thinking", "Prof. Wamsler Projekt")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def check_password(password: str, stored_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), stored_hash.encode("utf-8"))
    except ValueError:
        return False


@with_connection
def create_user(
    conn: sqlite3.Connection,
    email: str,
    password: str,
    name: str,
    role: str = "student",
    course: Optional[str] = None,
) -> Dict[str, Any]:
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")
    normalized_email = email.strip().lower()
    cursor = conn.cursor()
    cursor.execute("SELECT id FROM users WHERE email = ?", (normalized_email,))
    if cursor.fetchone():
        raise ValueError("User with this email already exists")
    cursor.execute(
        """
        INSERT INTO users (email, password_hash, name, role, course, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            normalized_email,
            hash_password(password),
            name.strip(),
            role,
            course if role == "student" else None,
            datetime.now(timezone.utc).isoformat(),
        ),
    )
    conn.commit()
    cursor.execute("SELECT * FROM users WHERE id = ?", (cursor.lastrowid,))
    return dict(cursor.fetchone())


@with_connection
def get_user_by_email(conn: sqlite3.Connection, email: str) -> Optional[Dict[str, Any]]:
    row = conn.execute("SELECT * FROM users WHERE email = ?", (email.strip().lower(),)).fetchone()
    return dict(row) if row else None


@with_connection
def get_user_by_id(conn: sqlite3.Connection, user_id: int) -> Optional[Dict[str, Any]]:
    row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    return dict(row) if row else None


@with_connection
def list_users(conn: sqlite3.Connection) -> List[Dict[str, Any]]:
    return [dict(row) for row in conn.execute("SELECT * FROM users ORDER BY id").fetchall()]


def authenticate(email: str, password: str) -> Optional[Dict[str, Any]]:
    user = get_user_by_email(email)
    if not user or not check_password(password, user["password_hash"]):
        return None
    return user


@with_connection
def update_user(
    conn: sqlite3.Connection,
    user_id: int,
    *,
    name: Optional[str] = None,
    profile_picture: Optional[str] = None,
    clear_picture: bool = False,
    role: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    fields = []
    params: List[Any] = []
    if name:
        fields.append("name = ?")
        params.append(name.strip())
    if profile_picture is not None or clear_picture:
        fields.append("profile_picture = ?")
        params.append(profile_picture)
    if role:
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role}")
        fields.append("role = ?")
        params.append(role)
    if fields:
        params.append(user_id)
        conn.execute(f"UPDATE users SET {', '.join(fields)} WHERE id = ?", params)
        conn.commit()
    row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    return dict(row) if row else None


@with_connection
def update_password(conn: sqlite3.Connection, user_id: int, new_password: str) -> bool:
    cursor = conn.execute(
        "UPDATE users SET password_hash = ? WHERE id = ?",
        (hash_password(new_password), user_id),
    )
    conn.commit()
    return cursor.rowcount > 0


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(user["id"]),
        "email": user["email"],
        "name": user["name"],
        "profilePicture": user.get("profile_picture"),
        "role": user["role"],
        "course": user.get("course"),
        "createdAt": user.get("created_at"),
    }
