"""
Nylas notification and message models.

InboundNotification is the raw webhook envelope. The adapter layer turns it
into exactly one of MessagePayload (the message content arrived inline) or
MessageReference (only ids arrived and the message must be fetched). The
resolver and the extractor work exclusively with MessageRecord.
"""

from typing import Literal, Optional, Union
from pydantic import BaseModel, Field


class InboundNotification(BaseModel):
    """
    Subset of the Nylas webhook envelope that the bridge cares about.

    Nylas sends more keys (specversion, id, source, time); unknown keys are
    silently ignored.
    """
    model_config = {"extra": "ignore"}

    type: str = ""
    data: dict = Field(default_factory=dict)


class MessageRecord(BaseModel):
    """A single email message, either inline from a webhook or fetched."""

    id: Optional[str] = None
    grant_id: Optional[str] = None
    subject: str = ""
    body: str = ""          # HTML or plain text
    snippet: str = ""

    @property
    def has_body(self) -> bool:
        return bool(self.body.strip())


class MessagePayload(BaseModel):
    """Notification that carried message content inline."""

    kind: Literal["message"] = "message"
    record: MessageRecord


class MessageReference(BaseModel):
    """Notification that carried only the ids needed to fetch the message."""

    kind: Literal["reference"] = "reference"
    message_id: str
    grant_id: str


NormalizedMessage = Union[MessagePayload, MessageReference]


class ExtractedFields(BaseModel):
    """
    Business fields recovered from a message.

    Each field is independently optional. A missing value is None, never an
    empty string.
    """

    organization_name: Optional[str] = None
    domain: Optional[str] = None
    salesperson_email: Optional[str] = None

    @property
    def is_dispatchable(self) -> bool:
        """An order needs at least a domain or an organization name."""
        return bool(self.domain or self.organization_name)
