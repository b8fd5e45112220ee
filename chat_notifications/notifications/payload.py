from typing import Dict

from firebase_admin import messaging

from ..config import settings
from ..messages.schemas import ChatMessage, TriggerContext
from .schemas import MessageType

# Media is never embedded in a push; a placeholder is shown instead
MEDIA_PLACEHOLDERS: Dict[str, str] = {
    MessageType.IMAGE.value: "📷 Sent a photo",
    MessageType.VIDEO.value: "🎥 Sent a video",
    MessageType.VOICE.value: "🎤 Sent a voice message",
}


def derive_body_text(message_type: str, message: str) -> str:
    """Return the notification body shown for a message of the given type."""
    return MEDIA_PLACEHOLDERS.get(message_type, message)


def build_data(chat_message: ChatMessage, context: TriggerContext) -> Dict[str, str]:
    """
    Build the FCM data section handed to the client after the notification is opened.

    FCM only accepts string values, so everything is stringified here.

    Args:
        chat_message: Parsed chat message
        context: Trigger path parameters

    Returns:
        Dict of string keys to string values
    """
    data = {
        'clickAction': settings.click_action,
        'senderID': chat_message.sender_id,
        'receiverId': chat_message.receiver_id,
        'senderName': chat_message.sender_name,
        'photoUrl': chat_message.sender_photo_url,
        'type': chat_message.type,
        'message': chat_message.message,
        'timestamp': chat_message.timestamp.isoformat(),
        'localId': chat_message.local_id,
        'chatRoomId': context.chat_room_id,
    }
    return {key: str(value) for key, value in data.items()}


def build_message(chat_message: ChatMessage, token: str, context: TriggerContext) -> messaging.Message:
    """
    Assemble the FCM message for one recipient device.

    Notifications from the same sender share a tag, collapse key and APNs
    thread id so they stack in the recipient's tray.

    Args:
        chat_message: Parsed chat message
        token: Recipient's FCM registration token
        context: Trigger path parameters

    Returns:
        firebase_admin.messaging.Message ready for messaging.send
    """
    group_key = chat_message.sender_id

    return messaging.Message(
        token=token,
        notification=messaging.Notification(
            title=chat_message.sender_name,
            body=derive_body_text(chat_message.type, chat_message.message),
        ),
        android=messaging.AndroidConfig(
            collapse_key=group_key,
            notification=messaging.AndroidNotification(
                click_action=settings.click_action,
                sound=settings.notification_sound,
                tag=group_key,
                notification_count=1,
            ),
        ),
        apns=messaging.APNSConfig(
            payload=messaging.APNSPayload(
                aps=messaging.Aps(
                    sound=settings.notification_sound,
                    badge=1,
                    thread_id=group_key,
                ),
            ),
        ),
        data=build_data(chat_message, context),
    )
