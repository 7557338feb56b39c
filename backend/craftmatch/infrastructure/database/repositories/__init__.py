from .profile_repository import SQLAlchemyProfileRepository

__all__ = [
    "SQLAlchemyProfileRepository",
]
