"""
Outbound chat notification and fan-out result models.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class AttachmentTitle(BaseModel):
    value: str
    link: Optional[str] = None


class AttachmentField(BaseModel):
    title: str
    value: str
    short: bool = True


class NotificationAttachment(BaseModel):
    """Rich card attached to a chat message."""

    title: AttachmentTitle
    text: str = ""
    fields: List[AttachmentField] = Field(default_factory=list)


class Notification(BaseModel):
    """Message text plus attachments, handed to the host's send primitive."""

    text: str = ""
    attachments: List[NotificationAttachment] = Field(default_factory=list)


class DispatchOutcome(BaseModel):
    """Result of delivering one notification to one room."""

    room_id: str
    delivered: bool
    error: Optional[str] = None


class WebhookAck(BaseModel):
    """
    What the router reports back for a webhook.

    ``status`` is always 200; delivery problems live in ``outcomes``.
    """

    status: int = 200
    event_type: Optional[str] = None
    notified: int = 0
    skipped_reason: Optional[str] = None
    outcomes: List[DispatchOutcome] = Field(default_factory=list)

    @property
    def failures(self) -> List[DispatchOutcome]:
        return [o for o in self.outcomes if not o.delivered]


class CommandReply(Notification):
    """Reply to a slash command; shown only to the user who typed it."""

    ephemeral: bool = True
