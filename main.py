import logging

import functions_framework

from chat_notifications.events import InvalidEventError, decode_document_event
from chat_notifications.firebase import get_firebase_app, get_firestore_db
from chat_notifications.logging_config import setup_logging
from chat_notifications.notifications.service import NotificationDispatcher

setup_logging()
logger = logging.getLogger("chat_notifications")

dispatcher = None


def get_dispatcher() -> NotificationDispatcher:
    global dispatcher
    if dispatcher is None:
        dispatcher = NotificationDispatcher(get_firestore_db(), get_firebase_app())
    return dispatcher


@functions_framework.cloud_event
def send_chat_notification(cloud_event):
    """Triggered when a document is created under Chat_rooms/{chatRoomId}/Messages/{messageId}"""
    try:
        record, context = decode_document_event(
            cloud_event.data,
            document=cloud_event.get('document'),
            content_type=cloud_event.get('datacontenttype'),
        )
    except InvalidEventError as e:
        logger.error(f"Discarding undecodable event {cloud_event.get('id')}: {str(e)}")
        return

    get_dispatcher().handle(record, context)
