"""
Protocol interfaces for the host chat platform.
The core never talks to the chat server directly; the host hands in
objects satisfying these contracts.
"""

from typing import Any, Optional, Protocol

from jiralink.models.notification import Notification


class Room(Protocol):
    """A chat room as exposed by the host."""

    id: str


class User(Protocol):
    """A chat user as exposed by the host."""

    username: str


class RoomResolver(Protocol):
    """Looks up rooms by id."""

    async def get_room(self, room_id: str) -> Optional[Room]:
        """
        Resolve a room.

        Args:
            room_id: Room identifier stored in the connection registry

        Returns:
            Room object, or None when the room no longer exists
        """
        ...


class UserResolver(Protocol):
    """Looks up users by username."""

    async def get_user(self, username: str) -> Optional[User]:
        """
        Resolve the user notifications are sent as.

        Args:
            username: Username configured as the sender

        Returns:
            User object, or None when it does not exist
        """
        ...


class MessageSender(Protocol):
    """Host primitive that posts a message to a room."""

    async def send(self, room: Room, notification: Notification, sender: Any) -> None:
        """
        Deliver a notification.

        Args:
            room: Resolved target room
            notification: Text and attachments to post
            sender: User the message is posted as

        Raises:
            Exception: Any delivery failure; the caller records it per room
        """
        ...
