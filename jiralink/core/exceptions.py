"""
Error taxonomy for the Jira <-> chat bridge.

Signing and registry errors are raised to the immediate caller (slash
command, CLI). Webhook processing never lets these escape; the router turns
them into outcome values.
"""

from typing import Optional


class JiraLinkError(Exception):
    """Base class for all jiralink errors."""


class NotInstalled(JiraLinkError):
    """No credential has been stored, or it was removed."""

    def __init__(self, message: str = "The app has not been installed on a Jira instance"):
        super().__init__(message)


class MissingCredential(JiraLinkError):
    """A signing operation was attempted without a usable credential."""

    def __init__(self, message: str = "No active credential available for signing"):
        super().__init__(message)


class NotConnected(JiraLinkError):
    """The project is not connected to the room."""

    def __init__(self, room_id: str, project_key: str):
        self.room_id = room_id
        self.project_key = project_key
        super().__init__(f'Project "{project_key}" is not connected to room "{room_id}"')


class InvalidInput(JiraLinkError, ValueError):
    """Malformed method, path or issue key."""


class RoomResolutionFailed(JiraLinkError):
    """A connected room could not be resolved during fan-out."""

    def __init__(self, room_id: str):
        self.room_id = room_id
        super().__init__(f'Invalid room id "{room_id}"')


class UnknownWebhookEvent(JiraLinkError):
    """The webhook event type is not one the router handles."""

    def __init__(self, event_type: Optional[str]):
        self.event_type = event_type
        super().__init__(f"Unknown event received: {event_type}")


class InvalidToken(JiraLinkError):
    """An inbound Connect token failed verification."""


class JiraApiError(JiraLinkError):
    """A Jira REST call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
