"""
Models for room <-> project connections.
"""

from typing import Dict
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field


class ProjectRef(BaseModel):
    """Minimal cached identity of a Jira project, enough to render a link."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    self_url: str = Field(..., alias="self")
    key: str
    name: str

    @property
    def browse_url(self) -> str:
        """Link to the project in the Jira UI."""
        parts = urlsplit(self.self_url)
        return f"{parts.scheme}://{parts.netloc}/browse/{self.key}"


class ConnectionRecord(BaseModel):
    """
    One record per chat room, holding every project connected to it.

    ``connected_projects`` is keyed by project key; the same project may be
    present in many rooms' records.
    """

    model_config = ConfigDict(populate_by_name=True)

    room_id: str = Field(..., alias="room")
    connected_projects: Dict[str, ProjectRef] = Field(
        default_factory=dict, alias="connectedProjects"
    )

    def has_project(self, project_key: str) -> bool:
        """Case-insensitive; keys are stored upper case."""
        return project_key.upper() in self.connected_projects

    def to_record(self) -> dict:
        """Serialized shape written to persistence."""
        return self.model_dump(mode="json", by_alias=True)
