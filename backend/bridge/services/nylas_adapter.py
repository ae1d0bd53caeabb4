"""
Nylas notification adapter.

Normalizes the different shapes a Nylas message notification can take into a
single tagged value, so the resolver never inspects raw payload dicts.

Nylas v3 message notification field assumptions
-----------------------------------------------
A message.created / message.updated notification looks like:

  type   str  - event type, e.g. "message.created"
  data   dict - contains:
                   object  dict - the message: id, grant_id, subject,
                                  body (HTML), snippet, ...

Variants seen in the wild:
  - message.*.truncated events omit body when the message exceeds the
    payload size limit; object still carries id and grant_id.
  - Some deliveries carry only {id, grant_id} (a stub) and expect the
    receiver to fetch the message.
  - Older deliveries put the message fields directly under data.

If Nylas changes their schema, only this file needs updating.
"""

import logging
from typing import Any, Optional

from bridge.models.notification import (
    InboundNotification,
    MessagePayload,
    MessageRecord,
    MessageReference,
    NormalizedMessage,
)

logger = logging.getLogger(__name__)

# Event types that carry (or reference) an email message
MESSAGE_EVENT_TYPES = frozenset({
    "message.created",
    "message.updated",
    "message.created.truncated",
    "message.updated.truncated",
})

_CONTENT_KEYS = ("subject", "body", "snippet")


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _ident(value: Any) -> Optional[str]:
    if isinstance(value, (str, int)) and str(value).strip():
        return str(value).strip()
    return None


def message_record_from_dict(message: dict, grant_id: Optional[str] = None) -> MessageRecord:
    """
    Build a MessageRecord from a Nylas message object.

    Used both for inline webhook objects and for the `data` object of the
    message API response. Non-string text fields become "".
    """
    return MessageRecord(
        id=_ident(message.get("id")),
        grant_id=_ident(message.get("grant_id")) or grant_id,
        subject=_text(message.get("subject")),
        body=_text(message.get("body")),
        snippet=_text(message.get("snippet")),
    )


def normalize_notification(notification: InboundNotification) -> Optional[NormalizedMessage]:
    """
    Turn a notification's data block into a MessagePayload or MessageReference.

    Rules, in order:
      1. The candidate message is data["object"] when it is a dict, otherwise
         data itself.
      2. If the candidate has any of subject/body/snippet, it is inline
         content -> MessagePayload.
      3. Otherwise, if it has an id and a grant id (from the candidate or
         from data), it is a stub -> MessageReference.
      4. Otherwise there is nothing to resolve -> None.
    """
    data = notification.data or {}
    obj = data.get("object")
    candidate = obj if isinstance(obj, dict) else data

    grant_id = _ident(candidate.get("grant_id")) or _ident(data.get("grant_id"))

    if any(key in candidate for key in _CONTENT_KEYS):
        return MessagePayload(record=message_record_from_dict(candidate, grant_id))

    message_id = _ident(candidate.get("id"))
    if message_id and grant_id:
        return MessageReference(message_id=message_id, grant_id=grant_id)

    logger.debug("Notification %r carries no message data", notification.type)
    return None
