import base64
import json
import logging
from typing import Any, Dict, Optional, Tuple, Union

from google.events.cloud import firestore as firestoredata
from google.protobuf.message import DecodeError

from .config import settings
from .messages.schemas import TriggerContext
from .time_utils import parse_rfc3339

logger = logging.getLogger(__name__)

PROTOBUF_CONTENT_TYPE = 'application/protobuf'


class InvalidEventError(ValueError):
    """Raised when a trigger event cannot be decoded into a message document."""


def decode_value(value: Dict[str, Any]) -> Any:
    """
    Convert a typed Firestore JSON value into a plain Python value.

    Args:
        value: Dict with exactly one Firestore type key, e.g. {"stringValue": "hi"}

    Returns:
        The decoded Python value
    """
    if not isinstance(value, dict) or not value:
        raise InvalidEventError(f"Malformed Firestore value: {value!r}")

    try:
        return _convert_value(value)
    except InvalidEventError:
        raise
    except (TypeError, ValueError, AttributeError) as e:
        # binascii.Error from bad base64 is a ValueError
        raise InvalidEventError(f"Malformed Firestore value {value!r}: {str(e)}") from e


def _convert_value(value: Dict[str, Any]) -> Any:
    if 'nullValue' in value:
        return None
    if 'stringValue' in value:
        return value['stringValue']
    if 'booleanValue' in value:
        return bool(value['booleanValue'])
    if 'integerValue' in value:
        # int64 values are JSON encoded as strings
        return int(value['integerValue'])
    if 'doubleValue' in value:
        return float(value['doubleValue'])
    if 'timestampValue' in value:
        try:
            return parse_rfc3339(value['timestampValue'])
        except (TypeError, ValueError) as e:
            raise InvalidEventError(f"Invalid timestamp value: {value['timestampValue']!r}") from e
    if 'referenceValue' in value:
        return value['referenceValue']
    if 'bytesValue' in value:
        return base64.b64decode(value['bytesValue'])
    if 'geoPointValue' in value:
        point = value['geoPointValue'] or {}
        return {'latitude': point.get('latitude', 0.0), 'longitude': point.get('longitude', 0.0)}
    if 'mapValue' in value:
        return decode_fields((value['mapValue'] or {}).get('fields', {}))
    if 'arrayValue' in value:
        return [decode_value(v) for v in (value['arrayValue'] or {}).get('values', [])]

    raise InvalidEventError(f"Unsupported Firestore value type: {list(value.keys())}")


def decode_fields(fields: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    if not fields:
        return {}
    if not isinstance(fields, dict):
        raise InvalidEventError(f"Document fields must be an object, got {type(fields).__name__}")
    return {name: decode_value(value) for name, value in fields.items()}


def parse_document_path(name: str) -> TriggerContext:
    """
    Extract the chat room and message ids from a message document path.

    Accepts a full resource name
    (projects/{p}/databases/{d}/documents/Chat_rooms/{room}/Messages/{msg})
    or the relative path Chat_rooms/{room}/Messages/{msg}.
    """
    if not name or not isinstance(name, str):
        raise InvalidEventError("Event carries no document path")

    path = name.split('/documents/', 1)[1] if '/documents/' in name else name
    segments = path.strip('/').split('/')

    if (len(segments) != 4
            or segments[0] != settings.chat_rooms_collection
            or segments[2] != settings.messages_collection
            or not segments[1] or not segments[3]):
        raise InvalidEventError(f"Document path does not match a chat message: {name}")

    return TriggerContext(chat_room_id=segments[1], message_id=segments[3])


def decode_protobuf_event(data: bytes) -> Dict[str, Any]:
    """
    Convert a protobuf-encoded DocumentEventData into its JSON form.

    Eventarc delivers Firestore events as application/protobuf unless the
    trigger asks for JSON; both forms decode to the same typed-value dict.
    """
    try:
        event = firestoredata.DocumentEventData.deserialize(bytes(data))
    except DecodeError as e:
        raise InvalidEventError(f"Invalid protobuf in event data: {str(e)}") from e
    return json.loads(firestoredata.DocumentEventData.to_json(event))


def decode_document_event(data: Union[Dict[str, Any], str, bytes],
                          document: Optional[str] = None,
                          content_type: Optional[str] = None) -> Tuple[Dict[str, Any], TriggerContext]:
    """
    Decode the payload of a Firestore document-created event.

    Args:
        data: Event data, either already parsed, JSON text/bytes or protobuf bytes
        document: The CloudEvent "document" attribute, used when the payload has no name
        content_type: The CloudEvent "datacontenttype" attribute

    Returns:
        Tuple of (decoded document fields, trigger context)
    """
    if isinstance(data, (bytes, bytearray)):
        if content_type and content_type.startswith(PROTOBUF_CONTENT_TYPE):
            data = decode_protobuf_event(data)
        else:
            try:
                data = data.decode('utf-8')
            except UnicodeDecodeError as e:
                raise InvalidEventError(f"Event data is not UTF-8 JSON: {str(e)}") from e

    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise InvalidEventError(f"Invalid JSON in event data: {str(e)}") from e

    if not isinstance(data, dict):
        raise InvalidEventError("Event data must be a JSON object")

    value = data.get('value')
    if not isinstance(value, dict):
        raise InvalidEventError("Event has no created document value")

    context = parse_document_path(value.get('name') or document)
    fields = decode_fields(value.get('fields', {}))

    logger.debug(f"Decoded message {context.message_id} in chat room {context.chat_room_id}")
    return fields, context
