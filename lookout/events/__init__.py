"""Event records, their wire encoding and content bounds.

Public API
----------
Event
    Tagged union of :class:`PageViewEvent`, :class:`VitalEvent`,
    :class:`ErrorEvent` and :class:`CustomEvent`.
Envelope
    Page snapshot shared by every record.
EnvelopeFactory
    Builds envelopes from a :class:`lookout.page.PageEnvironment`.
encode_batch / decode_batch
    Convert records to and from the ``{"events": [...]}`` body.
sanitize_properties / truncate
    Bound custom properties and error text.

"""

from lookout.events.bounds import (
    MAX_MESSAGE_LENGTH,
    MAX_STACK_LENGTH,
    bound_event_name,
    sanitize_properties,
    truncate,
)
from lookout.events.envelope import EnvelopeFactory
from lookout.events.models import (
    CustomEvent,
    Envelope,
    ErrorEvent,
    Event,
    EventBase,
    EventBatch,
    EventKind,
    PageViewEvent,
    PropertyValue,
    VitalEvent,
    VitalName,
    VitalRating,
    decode_batch,
    encode_batch,
)

__all__ = [
    "MAX_MESSAGE_LENGTH",
    "MAX_STACK_LENGTH",
    "CustomEvent",
    "Envelope",
    "EnvelopeFactory",
    "ErrorEvent",
    "Event",
    "EventBase",
    "EventBatch",
    "EventKind",
    "PageViewEvent",
    "PropertyValue",
    "VitalEvent",
    "VitalName",
    "VitalRating",
    "bound_event_name",
    "decode_batch",
    "encode_batch",
    "sanitize_properties",
    "truncate",
]
