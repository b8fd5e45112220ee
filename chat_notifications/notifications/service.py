import logging
from typing import Any, Dict, Optional

import firebase_admin
import google.cloud.firestore
from firebase_admin import messaging
from pydantic import ValidationError

from ..config import settings
from ..messages.schemas import ChatMessage, TriggerContext, UserRecord
from .payload import build_message
from .schemas import DispatchOutcome, DispatchReason, DispatchStatus

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Forwards newly created chat messages to the recipient's device via FCM."""

    def __init__(self,
                 firestore_db: google.cloud.firestore.Client,
                 app: Optional[firebase_admin.App] = None):
        """
        Initialize the dispatcher.

        Args:
            firestore_db: Firestore client used for the recipient lookup
            app: Firebase app used for FCM delivery; the default app when None
        """
        self.firestore_db = firestore_db
        self.app = app
        logger.info("Notification dispatcher initialized")

    def dispatch(self, record: Dict[str, Any], context: TriggerContext) -> DispatchOutcome:
        """
        Attempt a single delivery for one chat message document.

        Never raises: every branch is reported through the returned outcome.

        Args:
            record: Raw fields of the created message document
            context: Chat room and message ids from the document path

        Returns:
            DispatchOutcome describing what happened
        """
        outcome = DispatchOutcome(
            status=DispatchStatus.FAILED,
            chat_room_id=context.chat_room_id,
            message_id=context.message_id,
        )

        try:
            chat_message = ChatMessage.from_document(record)
        except Exception as e:
            outcome.reason = DispatchReason.INVALID_MESSAGE
            if isinstance(record, dict) and record.get('receiverId') is not None:
                outcome.receiver_id = str(record['receiverId'])
            if isinstance(e, ValidationError):
                outcome.error = str(e)
            else:
                outcome.error = f"{type(e).__name__}: {str(e)}"
            return outcome

        outcome.receiver_id = chat_message.receiver_id
        logger.info(f"New message from {chat_message.sender_name} to {chat_message.receiver_id}")

        try:
            user = self._get_user(chat_message.receiver_id)
            if user is None:
                outcome.status = DispatchStatus.SKIPPED
                outcome.reason = DispatchReason.NO_USER
                return outcome

            if not user.has_token:
                outcome.status = DispatchStatus.SKIPPED
                outcome.reason = DispatchReason.NO_TOKEN
                return outcome

            message = build_message(chat_message, user.token, context)
            outcome.fcm_message_id = messaging.send(message, app=self.app)
            outcome.status = DispatchStatus.SENT
            return outcome

        except Exception as e:
            outcome.reason = DispatchReason.DELIVERY_ERROR
            outcome.error = f"{type(e).__name__}: {str(e)}"
            return outcome

    def handle(self, record: Dict[str, Any], context: TriggerContext) -> None:
        """Dispatch and log the outcome; the triggering platform discards the result."""
        outcome = self.dispatch(record, context)
        self._log_outcome(outcome)

    def _get_user(self, user_id: str) -> Optional[UserRecord]:
        """
        Read a user document from Firestore.

        Args:
            user_id: The user's ID

        Returns:
            UserRecord, or None if the document does not exist
        """
        user_ref = self.firestore_db.collection(settings.users_collection).document(user_id)
        user = user_ref.get()

        if not user.exists:
            return None

        return UserRecord.from_document(user.to_dict(), settings.token_field)

    @staticmethod
    def _log_outcome(outcome: DispatchOutcome) -> None:
        extra = {
            'status': outcome.status.value,
            'reason': outcome.reason.value if outcome.reason else None,
            'receiverId': outcome.receiver_id,
            'chatRoomId': outcome.chat_room_id,
            'messageId': outcome.message_id,
        }

        if outcome.status == DispatchStatus.SENT:
            logger.info(f"Notification sent successfully: {outcome.fcm_message_id}", extra=extra)
        elif outcome.reason == DispatchReason.NO_USER:
            logger.info(f"No user found for {outcome.receiver_id}", extra=extra)
        elif outcome.reason == DispatchReason.NO_TOKEN:
            logger.info(f"User {outcome.receiver_id} has no FCM token registered", extra=extra)
        elif outcome.reason == DispatchReason.INVALID_MESSAGE:
            logger.error(f"Invalid chat message document: {outcome.error}", extra=extra)
        else:
            logger.error(f"Error sending notification: {outcome.error}", extra=extra)
