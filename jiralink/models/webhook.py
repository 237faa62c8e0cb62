"""Pydantic models for inbound Jira webhook payloads."""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class WebhookEventType(str, Enum):
    """Webhook events the router knows how to turn into notifications."""

    COMMENT_CREATED = "comment_created"
    COMMENT_UPDATED = "comment_updated"
    ISSUE_CREATED = "jira:issue_created"
    ISSUE_UPDATED = "jira:issue_updated"

    @property
    def is_comment(self) -> bool:
        return self in (WebhookEventType.COMMENT_CREATED, WebhookEventType.COMMENT_UPDATED)


class JiraUser(BaseModel):
    """Jira user information."""
    model_config = ConfigDict(extra="ignore")

    accountId: Optional[str] = None
    displayName: str = "Someone"


class JiraNamed(BaseModel):
    """Status, priority and issue type all share this shape."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    name: str = ""


class JiraProject(BaseModel):
    """Jira project information."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = ""
    self_url: Optional[str] = Field(None, alias="self")
    key: str
    name: str = ""


class JiraAttachment(BaseModel):
    """Attachment metadata used to link thumbnails."""
    model_config = ConfigDict(extra="ignore")

    filename: str
    thumbnail: Optional[str] = None
    content: Optional[str] = None


class JiraIssueFields(BaseModel):
    """Subset of issue fields used when rendering notifications."""
    model_config = ConfigDict(extra="ignore")

    summary: str = ""
    description: Optional[Any] = None
    status: JiraNamed = Field(default_factory=JiraNamed)
    priority: JiraNamed = Field(default_factory=JiraNamed)
    issuetype: JiraNamed = Field(default_factory=JiraNamed)
    project: Optional[JiraProject] = None
    assignee: Optional[JiraUser] = None
    attachment: List[JiraAttachment] = Field(default_factory=list)


class JiraIssue(BaseModel):
    """Jira issue information."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[str] = None
    self_url: str = Field(..., alias="self")
    key: str
    fields: JiraIssueFields = Field(default_factory=JiraIssueFields)

    @property
    def project_key(self) -> Optional[str]:
        return self.fields.project.key if self.fields.project else None


class JiraComment(BaseModel):
    """Jira comment information."""
    model_config = ConfigDict(extra="ignore")

    id: str
    body: Optional[Any] = None
    author: Optional[JiraUser] = None
    updateAuthor: Optional[JiraUser] = None


class InboundEvent(BaseModel):
    """A parsed webhook POST body."""
    model_config = ConfigDict(extra="ignore")

    webhookEvent: str
    timestamp: Optional[int] = None
    issue: Optional[JiraIssue] = None
    comment: Optional[JiraComment] = None
    user: Optional[JiraUser] = None

    @property
    def event_type(self) -> Optional[WebhookEventType]:
        """The known event type, or ``None`` when unsupported."""
        try:
            return WebhookEventType(self.webhookEvent)
        except ValueError:
            return None
