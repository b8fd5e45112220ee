from enum import Enum
from typing import Optional

from pydantic import BaseModel


class MessageType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    VOICE = "voice"


class DispatchStatus(str, Enum):
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


class DispatchReason(str, Enum):
    NO_USER = "no_user"
    NO_TOKEN = "no_token"
    INVALID_MESSAGE = "invalid_message"
    DELIVERY_ERROR = "delivery_error"


class DispatchOutcome(BaseModel):
    """Result of a single dispatch attempt"""
    status: DispatchStatus
    reason: Optional[DispatchReason] = None
    receiver_id: Optional[str] = None
    chat_room_id: Optional[str] = None
    message_id: Optional[str] = None
    fcm_message_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def delivered(self) -> bool:
        return self.status == DispatchStatus.SENT
