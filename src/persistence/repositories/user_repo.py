"""User repository for database operations."""

from typing import Optional

import aiosqlite

from src.domain.models.actor import User
from src.persistence.database import connection_scope, to_db_timestamp


class UserRepository:
    """Minimal user store; accounts are managed by the auth gateway."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def create(
        self, user: User, db: Optional[aiosqlite.Connection] = None
    ) -> User:
        async with connection_scope(self.db_path, db) as conn:
            await conn.execute(
                "INSERT INTO users (id, role, email, name, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    user.id,
                    user.role.value,
                    user.email,
                    user.name,
                    to_db_timestamp(user.created_at),
                ),
            )
        return user

    async def get(
        self, user_id: str, db: Optional[aiosqlite.Connection] = None
    ) -> Optional[User]:
        """Get a user by ID."""
        async with connection_scope(self.db_path, db) as conn:
            cursor = await conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = await cursor.fetchone()
            if not row:
                return None
            return User(
                id=row["id"],
                role=row["role"],
                email=row["email"],
                name=row["name"],
                created_at=row["created_at"],
            )
