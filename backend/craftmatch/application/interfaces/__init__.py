from .chat_provider import ChatProvider
from .profile_repository import ProfileRepository
from .profession_classifier_client import (
    ProfessionClassificationRequest,
    ProfessionClassificationResponse,
    ProfessionClassifierClient,
)

__all__ = [
    "ChatProvider",
    "ProfileRepository",
    "ProfessionClassificationRequest",
    "ProfessionClassificationResponse",
    "ProfessionClassifierClient",
]
