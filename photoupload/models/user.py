"""
Domain model for an account.
"""
from datetime import datetime, timezone
from typing import Optional


class User:
    """Registered user with a bcrypt password hash."""

    def __init__(
        self,
        user_id: str,
        email: str,
        password_hash: str,
        created_at: Optional[datetime] = None
    ):
        self.user_id = user_id
        self.email = email
        self.password_hash = password_hash
        self.created_at = created_at or datetime.now(timezone.utc)

    def __repr__(self):
        return f"User(user_id={self.user_id}, email={self.email})"
