from .base import Base
from .session import engine, async_session_factory, create_engine, create_session_factory
from .models import ArtisanProfileModel

__all__ = [
    "Base",
    "engine",
    "async_session_factory",
    "create_engine",
    "create_session_factory",
    "ArtisanProfileModel",
]
