"""
Registry of which Jira projects are connected to which chat rooms.

Each room has one record, stored under ``[room:<id>, misc:projects]``.
Every mutation rewrites the whole record (remove, then create); there is
no field-level merge. Mutations for the same room are serialised with a
per-room lock, so concurrent connect/disconnect calls on one room no longer
lose writes inside a single process.
"""

import threading
from collections import defaultdict
from typing import Dict, List, Optional

from loguru import logger

from jiralink.core.exceptions import NotConnected
from jiralink.models.connection import ConnectionRecord, ProjectRef
from jiralink.storage.persistence import Association, InMemoryBackend, PersistenceBackend

PROJECTS_ASSOCIATION = Association.misc("projects")


class ConnectionRegistry:
    """Persistent many-to-many relationship between rooms and projects."""

    def __init__(self, backend: Optional[PersistenceBackend] = None):
        self.backend = backend or InMemoryBackend()
        self._room_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def _room_lock(self, room_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._room_locks[room_id]

    @staticmethod
    def _associations(room_id: Optional[str] = None) -> List[Association]:
        associations = [PROJECTS_ASSOCIATION]
        if room_id is not None:
            associations.append(Association.room(room_id))
        return associations

    def get_connections(self, room_id: Optional[str] = None) -> List[ConnectionRecord]:
        """
        Read connection records.

        Args:
            room_id: Restrict to this room (at most one record). None reads every room

        Returns:
            List of ConnectionRecord objects
        """
        records = self.backend.read_by_associations(self._associations(room_id))
        connections = [ConnectionRecord.model_validate(r) for r in records]
        return connections[:1] if room_id is not None else connections

    def get_connected_projects(self, room_id: str) -> Dict[str, ProjectRef]:
        """Projects connected to a room, keyed by project key."""
        connections = self.get_connections(room_id)
        return dict(connections[0].connected_projects) if connections else {}

    def _persist(self, room_id: str, connected_projects: Dict[str, ProjectRef]) -> ConnectionRecord:
        record = ConnectionRecord(room_id=room_id, connected_projects=connected_projects)
        associations = self._associations(room_id)
        self.backend.remove_by_associations(associations)
        self.backend.create_with_associations(record.to_record(), associations)
        return record

    def connect(self, room_id: str, project: ProjectRef) -> Dict[str, ProjectRef]:
        """
        Connect a project to a room, overwriting any existing entry for its key.

        Keys are stored upper case, as Jira reports them.

        Args:
            room_id: Room to connect
            project: Project to connect

        Returns:
            The room's updated project map
        """
        with self._room_lock(room_id):
            connected = self.get_connected_projects(room_id)
            project = project.model_copy(update={"key": project.key.upper()})
            connected[project.key] = project
            record = self._persist(room_id, connected)

        logger.info(f"Connected project {project.key} to room {room_id}")
        return dict(record.connected_projects)

    def disconnect(self, room_id: str, project_key: str) -> ProjectRef:
        """
        Disconnect a project from a room.

        Args:
            room_id: Room to disconnect from
            project_key: Key of the project, case-insensitive

        Returns:
            The removed ProjectRef

        Raises:
            NotConnected: If the project is not connected to the room
        """
        key = project_key.upper()
        with self._room_lock(room_id):
            connected = self.get_connected_projects(room_id)
            if key not in connected:
                raise NotConnected(room_id, key)
            project = connected.pop(key)
            self._persist(room_id, connected)

        logger.info(f"Disconnected project {key} from room {room_id}")
        return project

    def is_project_connected(self, project_key: str, room_id: Optional[str] = None) -> bool:
        """True if any room (or the given room) has the project connected."""
        return any(c.has_project(project_key) for c in self.get_connections(room_id))

    def rooms_for_project(self, project_key: str) -> List[str]:
        """Ids of every room the project is connected to."""
        return [c.room_id for c in self.get_connections() if c.has_project(project_key)]
