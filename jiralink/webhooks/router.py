"""
Routing of inbound Jira webhooks to connected chat rooms.

Every call to ``handle`` acknowledges with status 200: Jira retries
deliveries that fail, and a missing room or a failed post to one room is
not something a retry would fix. Per-room results are returned as
``DispatchOutcome`` values instead.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError

from jiralink.config.settings import settings
from jiralink.core.exceptions import RoomResolutionFailed, UnknownWebhookEvent
from jiralink.core.protocols import MessageSender, RoomResolver, UserResolver
from jiralink.formatting.messages import build_comment_notification, build_issue_notification
from jiralink.models.notification import DispatchOutcome, Notification, WebhookAck
from jiralink.models.webhook import InboundEvent, WebhookEventType
from jiralink.monitoring.metrics import PerformanceMetrics, get_metrics
from jiralink.storage.connection_registry import ConnectionRegistry
from jiralink.storage.installation_store import CredentialStore

Formatter = Callable[[InboundEvent, WebhookEventType], Notification]

FORMATTERS: Dict[WebhookEventType, Formatter] = {
    WebhookEventType.COMMENT_CREATED: build_comment_notification,
    WebhookEventType.COMMENT_UPDATED: build_comment_notification,
    WebhookEventType.ISSUE_CREATED: build_issue_notification,
    WebhookEventType.ISSUE_UPDATED: build_issue_notification,
}

DISPATCH_OPERATION = "webhook.dispatch"


class WebhookRouter:
    """
    Turns one webhook into one notification per connected room.

    Collaborators:
    - registry: room <-> project connections
    - room_resolver / message_sender: host chat primitives
    - user_resolver: resolves the sender identity (optional)
    - credential_store: when given, events are ignored until the app is installed
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        room_resolver: RoomResolver,
        message_sender: MessageSender,
        user_resolver: Optional[UserResolver] = None,
        credential_store: Optional[CredentialStore] = None,
        sender_username: Optional[str] = None,
        metrics: Optional[PerformanceMetrics] = None,
    ):
        self.registry = registry
        self.room_resolver = room_resolver
        self.message_sender = message_sender
        self.user_resolver = user_resolver
        self.credential_store = credential_store
        self.sender_username = sender_username or settings.sender_username
        self.metrics = metrics or get_metrics()

    async def handle(self, payload: Dict[str, Any]) -> WebhookAck:
        """
        Process a webhook POST body.

        Args:
            payload: Parsed JSON body sent by Jira

        Returns:
            WebhookAck, always with status 200
        """
        event_name = payload.get("webhookEvent") if isinstance(payload, dict) else None

        try:
            event = InboundEvent.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed webhook payload ({event_name}): {e.error_count()} errors")
            return WebhookAck(event_type=event_name, skipped_reason="malformed payload")

        event_type = event.event_type
        if event_type is None:
            error = UnknownWebhookEvent(event.webhookEvent)
            logger.warning(str(error))
            return WebhookAck(event_type=event.webhookEvent, skipped_reason=str(error))

        try:
            async with self.metrics.track(f"webhook.{event_type.value}"):
                return await self._route(event, event_type)
        except Exception as e:
            logger.exception(f"Failed to process {event_type.value} webhook: {e}")
            return WebhookAck(event_type=event_type.value, skipped_reason=f"processing error: {e}")

    async def _route(self, event: InboundEvent, event_type: WebhookEventType) -> WebhookAck:
        ack = WebhookAck(event_type=event_type.value)

        if self.credential_store is not None and not self.credential_store.is_installed():
            logger.info("Notification received, but the app is not installed")
            ack.skipped_reason = "not installed"
            return ack

        connections = self.registry.get_connections()
        if not connections:
            logger.info("Notification received, but there are no connected rooms to send a message")
            ack.skipped_reason = "no connected rooms"
            return ack

        sender = await self._resolve_sender()
        if sender is None:
            logger.error(f"No sender `{self.sender_username}` configured for the app")
            ack.skipped_reason = "no sender"
            return ack

        try:
            notification = FORMATTERS[event_type](event, event_type)
        except ValueError as e:
            logger.warning(f"Cannot format {event_type.value} event: {e}")
            ack.skipped_reason = str(e)
            return ack

        project_key = event.issue.project_key if event.issue else None
        if not project_key:
            logger.warning(f"{event_type.value} event for {event.issue.key if event.issue else '?'} has no project")
            ack.skipped_reason = "no project"
            return ack

        room_ids = self.registry.rooms_for_project(project_key)
        if not room_ids:
            logger.debug(f"No rooms connected to project {project_key}")
            return ack

        ack.outcomes = await self._fan_out(room_ids, notification, sender)
        ack.notified = sum(1 for o in ack.outcomes if o.delivered)

        logger.info(
            f"Dispatched {event_type.value} for {event.issue.key} to {ack.notified}/{len(room_ids)} rooms"
        )
        return ack

    async def _resolve_sender(self) -> Any:
        if self.user_resolver is None:
            return self.sender_username
        try:
            return await self.user_resolver.get_user(self.sender_username)
        except Exception as e:
            logger.error(f"Failed to resolve sender {self.sender_username}: {e}")
            return None

    async def _fan_out(
        self, room_ids: List[str], notification: Notification, sender: Any
    ) -> List[DispatchOutcome]:
        """Attempt every room, collect every result, never abort the batch."""
        results = await asyncio.gather(
            *(self._deliver(room_id, notification, sender) for room_id in room_ids),
            return_exceptions=True,
        )

        outcomes = []
        for room_id, result in zip(room_ids, results):
            if isinstance(result, BaseException):
                logger.error(f"Delivery to room {room_id} failed: {result}")
                self.metrics.record_outcome(DISPATCH_OPERATION, False)
                outcomes.append(DispatchOutcome(room_id=room_id, delivered=False, error=str(result)))
            else:
                outcomes.append(result)
        return outcomes

    async def _deliver(self, room_id: str, notification: Notification, sender: Any) -> DispatchOutcome:
        try:
            room = await self.room_resolver.get_room(room_id)
            if room is None:
                raise RoomResolutionFailed(room_id)
            await self.message_sender.send(room, notification, sender)
        except RoomResolutionFailed as e:
            logger.error(str(e))
            self.metrics.record_outcome(DISPATCH_OPERATION, False)
            return DispatchOutcome(room_id=room_id, delivered=False, error=str(e))
        except Exception as e:
            logger.error(f"Failed to send notification to room {room_id}: {e}")
            self.metrics.record_error(DISPATCH_OPERATION)
            self.metrics.record_outcome(DISPATCH_OPERATION, False)
            return DispatchOutcome(room_id=room_id, delivered=False, error=str(e))

        self.metrics.record_outcome(DISPATCH_OPERATION, True)
        return DispatchOutcome(room_id=room_id, delivered=True)
