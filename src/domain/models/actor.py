"""User and actor models.

The engine does not authenticate anyone. Callers pass an Actor describing
the already-authenticated user and role performing an operation.
"""

from enum import Enum

from pydantic import BaseModel, Field

from src.domain.models.common import UTCDateTime, utc_now


class UserRole(str, Enum):
    CLIENT = "client"
    INTERPRETER = "interpreter"
    ADMIN = "admin"


class User(BaseModel):
    """Platform user as stored in the users table."""

    model_config = {"frozen": True, "from_attributes": True}

    id: str
    role: UserRole
    email: str
    name: str
    created_at: UTCDateTime = Field(default_factory=utc_now)


class Actor(BaseModel):
    """Authenticated identity performing an operation."""

    model_config = {"frozen": True}

    user_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
