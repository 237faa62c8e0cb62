"""
Builders for the chat messages the bridge posts.
"""

import re
from typing import Any, List, Optional, Union

from loguru import logger

from jiralink.formatting.jira_markup import translate
from jiralink.models.notification import (
    AttachmentField,
    AttachmentTitle,
    Notification,
    NotificationAttachment,
)
from jiralink.models.webhook import InboundEvent, JiraIssue, WebhookEventType

_DOMAIN_RE = re.compile(r"^https?://[^/]+")

COMMENT_TAB_PANEL = "com.atlassian.jira.plugin.system.issuetabpanels%3Acomment-tabpanel"


def parse_jira_domain(url: str) -> str:
    """
    Scheme and host of a Jira REST URL.

    Args:
        url: Any URL on the Jira site, e.g. an issue's ``self`` link

    Returns:
        ``https://example.atlassian.net``
    """
    match = _DOMAIN_RE.match(url or "")
    return match.group(0) if match else ""


def browse_url(self_url: str, key: str) -> str:
    return f"{parse_jira_domain(self_url)}/browse/{key}"


def comment_url(issue: JiraIssue, comment_id: str) -> str:
    return (
        f"{browse_url(issue.self_url, issue.key)}?focusedCommentId={comment_id}"
        f"&page={COMMENT_TAB_PANEL}#comment-{comment_id}"
    )


def adf_to_text(adf_content: Any) -> str:
    """
    Extract plain text from Atlassian Document Format (ADF) JSON.

    REST API v3 returns descriptions and comment bodies as ADF; webhooks may
    send wiki markup strings. Strings pass through unchanged.

    Args:
        adf_content: ADF content (dict, list or str)

    Returns:
        Plain text extracted from ADF
    """
    if adf_content is None:
        return ""
    if isinstance(adf_content, str):
        return adf_content

    text_parts: List[str] = []

    def extract_recursive(node):
        if isinstance(node, dict):
            node_type = node.get('type')

            if node_type == 'text':
                text_parts.append(node.get('text', ''))
            elif node_type == 'hardBreak':
                text_parts.append('\n')
            elif node_type == 'inlineCard':
                url = node.get('attrs', {}).get('url', '')
                if url:
                    text_parts.append(url)

            for child in node.get('content', []):
                extract_recursive(child)

            if node_type in ('paragraph', 'heading', 'codeBlock', 'listItem'):
                text_parts.append('\n')
        elif isinstance(node, list):
            for item in node:
                extract_recursive(item)

    extract_recursive(adf_content)
    return ''.join(text_parts).strip()


def _body_text(body: Any, attachments: Optional[list] = None) -> str:
    if isinstance(body, (dict, list)):
        return adf_to_text(body)
    return translate(body, attachments)


def build_comment_notification(event: InboundEvent, event_type: WebhookEventType) -> Notification:
    """
    Notification for ``comment_created`` / ``comment_updated``.

    Raises:
        ValueError: If the event has no issue or comment
    """
    issue, comment = event.issue, event.comment
    if issue is None or comment is None:
        raise ValueError("Comment event without issue or comment")

    author = comment.updateAuthor or comment.author or event.user
    who = author.displayName if author else "Someone"
    action = "commented on" if event_type == WebhookEventType.COMMENT_CREATED else "edited a comment on"

    return Notification(
        text=f"*{who}* {action} a `{issue.fields.issuetype.name}` in `{issue.fields.status.name}`",
        attachments=[
            NotificationAttachment(
                title=AttachmentTitle(
                    value=f"{issue.key}: {issue.fields.summary}",
                    link=comment_url(issue, comment.id),
                ),
                text=_body_text(comment.body, issue.fields.attachment),
            )
        ],
    )


def build_issue_notification(event: InboundEvent, event_type: WebhookEventType) -> Notification:
    """
    Notification for ``jira:issue_created`` / ``jira:issue_updated``.

    Raises:
        ValueError: If the event has no issue
    """
    issue = event.issue
    if issue is None:
        raise ValueError("Issue event without issue")

    who = event.user.displayName if event.user else "Someone"
    action = "created" if event_type == WebhookEventType.ISSUE_CREATED else "updated"

    return Notification(
        text=f"*{who}* {action} a `{issue.fields.issuetype.name}` in `{issue.fields.status.name}`",
        attachments=[
            NotificationAttachment(
                title=AttachmentTitle(
                    value=f"{issue.key}: {issue.fields.summary}",
                    link=browse_url(issue.self_url, issue.key),
                ),
                text=_body_text(issue.fields.description, issue.fields.attachment),
            )
        ],
    )


def format_issue_message(issue: Union[JiraIssue, dict]) -> Notification:
    """Issue card shown by the issue lookup command."""
    if isinstance(issue, dict):
        issue = JiraIssue.model_validate(issue)

    fields = issue.fields
    logger.debug(f"Formatting issue card for {issue.key}")

    return Notification(
        attachments=[
            NotificationAttachment(
                title=AttachmentTitle(
                    value=f"{issue.key} - {fields.summary}",
                    link=browse_url(issue.self_url, issue.key),
                ),
                text=_body_text(fields.description, fields.attachment),
                fields=[
                    AttachmentField(title="Status", value=f"`{fields.status.name}`"),
                    AttachmentField(title="Priority", value=f"`{fields.priority.name}`"),
                    AttachmentField(title="Type", value=f"`{fields.issuetype.name}`"),
                    AttachmentField(
                        title="Assignee",
                        value=fields.assignee.displayName if fields.assignee else "Unassigned",
                    ),
                ],
            )
        ],
    )
