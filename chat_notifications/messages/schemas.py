from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..time_utils import to_utc_datetime, utc_now


def _stringify_scalar(value: Any) -> Any:
    if isinstance(value, (bool, int, float)):
        return str(value)
    return value


class ChatMessage(BaseModel):
    """A chat message document as written under Chat_rooms/{chatRoomId}/Messages.

    Optional fields are resolved to their defaults here, once, so the rest of
    the pipeline never deals with missing values.
    """
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    receiver_id: str = Field(alias='receiverId', min_length=1)
    sender_id: str = Field(
        validation_alias=AliasChoices('senderID', 'senderId', 'sender_id'),
        serialization_alias='senderID',
    )
    sender_name: str = Field(alias='senderName')
    message: str = ''
    type: str = 'text'
    sender_photo_url: str = Field(default='', alias='senderPhotoUrl')
    timestamp: datetime = Field(default_factory=utc_now)
    local_id: str = Field(default='', alias='localId')

    @field_validator('receiver_id', 'sender_id', 'sender_name', mode='before')
    @classmethod
    def coerce_required_text(cls, v):
        return _stringify_scalar(v)

    @field_validator('receiver_id')
    @classmethod
    def receiver_not_blank(cls, v):
        if not v.strip():
            raise ValueError("receiverId must not be blank")
        return v

    @field_validator('message', 'sender_photo_url', 'local_id', mode='before')
    @classmethod
    def coerce_optional_text(cls, v):
        if v is None:
            return ''
        return _stringify_scalar(v)

    @field_validator('type', mode='before')
    @classmethod
    def coerce_type(cls, v):
        if v is None or v == '':
            return 'text'
        return _stringify_scalar(v)

    @field_validator('timestamp', mode='before')
    @classmethod
    def coerce_timestamp(cls, v):
        if v is None:
            return utc_now()
        try:
            return to_utc_datetime(v)
        except ValueError:
            # Unparseable timestamps fall back to the invocation time
            return utc_now()

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> 'ChatMessage':
        return cls.model_validate(data or {})


class UserRecord(BaseModel):
    """Users/{userId} document; only the push registration token matters here."""
    model_config = ConfigDict(extra='ignore')

    token: Optional[str] = None

    @field_validator('token', mode='before')
    @classmethod
    def blank_token_is_none(cls, v):
        v = _stringify_scalar(v)
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def has_token(self) -> bool:
        return bool(self.token)

    @classmethod
    def from_document(cls, data: Optional[Dict[str, Any]], token_field: str = 'token') -> 'UserRecord':
        data = data or {}
        return cls(token=data.get(token_field))


class TriggerContext(BaseModel):
    """Path parameters of the document that fired the trigger"""
    model_config = ConfigDict(populate_by_name=True)

    chat_room_id: str = Field(alias='chatRoomId')
    message_id: str = Field(alias='messageId')
