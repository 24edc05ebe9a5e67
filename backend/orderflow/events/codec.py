"""JSON wire codec for event envelopes.

Wire format::

    {"event_id": "<uuid>", "event_type": "order.placed",
     "timestamp": "<RFC3339>", "data": {...}}

Money travels as decimal strings so that no float ever touches an amount.
"""
import json
import logging
from datetime import datetime
from typing import Union
from uuid import UUID

import pydantic
from pydantic import BaseModel

from orderflow.events.types import PAYLOAD_TYPES, Envelope, UnknownEvent
from orderflow.exceptions import MalformedEvent

logger = logging.getLogger(__name__)

_timestamp = pydantic.TypeAdapter(datetime)


def encode(envelope: Envelope) -> str:
    """Serialize an envelope to its JSON wire form."""
    data = envelope.data
    if isinstance(data, UnknownEvent):
        body = data.data
    elif isinstance(data, BaseModel):
        body = data.model_dump(mode="json")
    else:
        body = data
    return json.dumps(
        {
            "event_id": str(envelope.event_id),
            "event_type": envelope.event_type,
            "timestamp": envelope.timestamp.isoformat(),
            "data": body,
        }
    )


def decode(raw: Union[str, bytes]) -> Envelope:
    """Parse a wire message.

    Unknown type tags decode to an ``UnknownEvent`` payload. Anything that
    cannot be parsed, lacks a type tag, or fails payload validation raises
    ``MalformedEvent``.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedEvent(f"Event payload is not UTF-8: {exc}") from exc

    try:
        document = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedEvent(f"Failed to parse event: {exc}") from exc

    if not isinstance(document, dict):
        raise MalformedEvent("Event must be a JSON object")

    event_type = document.get("event_type")
    if not isinstance(event_type, str) or not event_type:
        raise MalformedEvent("Missing event_type field")

    try:
        event_id = UUID(str(document["event_id"]))
        timestamp = _timestamp.validate_python(document["timestamp"])
    except (KeyError, ValueError, pydantic.ValidationError) as exc:
        raise MalformedEvent(f"Invalid envelope for {event_type}: {exc}") from exc

    payload_cls = PAYLOAD_TYPES.get(event_type)
    if payload_cls is None:
        payload = UnknownEvent(event_type=event_type, data=document.get("data"))
    else:
        try:
            payload = payload_cls.model_validate(document.get("data"))
        except pydantic.ValidationError as exc:
            raise MalformedEvent(f"Failed to parse {event_type} event: {exc}") from exc

    return Envelope(event_id=event_id, event_type=event_type, timestamp=timestamp, data=payload)
