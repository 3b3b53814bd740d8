"""Repository implementations."""

from src.persistence.repositories.interpreter_repo import InterpreterRepository
from src.persistence.repositories.session_repo import SessionRepository
from src.persistence.repositories.user_repo import UserRepository

__all__ = [
    "InterpreterRepository",
    "SessionRepository",
    "UserRepository",
]
