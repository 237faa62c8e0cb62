"""
The ``/jira`` slash command.

Subcommands:
- ``help``: list the commands
- ``install``: steps to install the app in Jira Cloud
- ``connect [KEY]``: list projects, or connect one to the room
- ``disconnect [KEY]``: list connected projects, or disconnect one
- anything else is treated as an issue key to look up
"""

from enum import Enum
from typing import Dict, List, Optional, Sequence

from loguru import logger

from jiralink.config.settings import settings
from jiralink.connect.descriptor import DESCRIPTOR_PATH
from jiralink.core.exceptions import (
    InvalidInput,
    JiraApiError,
    MissingCredential,
    NotConnected,
    NotInstalled,
)
from jiralink.formatting.messages import format_issue_message
from jiralink.integrations.jira_client import JiraClient
from jiralink.models.connection import ProjectRef
from jiralink.models.notification import AttachmentTitle, CommandReply, NotificationAttachment
from jiralink.storage.connection_registry import ConnectionRegistry


class Subcommand(str, Enum):
    HELP = "help"
    INSTALL = "install"
    CONNECT = "connect"
    DISCONNECT = "disconnect"


HELP_TEXT = """These are the commands I can understand:
`/jira install` Instructions to install the app on a Jira instance
`/jira connect` Connects this room to a Jira project
`/jira disconnect` Disconnects this room from a Jira project
`/jira ISSUEKEY-123` Show information about a specific issues
`/jira help` Shows this message"""

INSTALL_TEXT = """These are the steps to install the Jira App in your Jira Cloud instance:

- Log in to your Jira, as an administrator
- Go to *Jira Settings* > *Apps* > *Manage apps*
- Click on *Settings* below the "User-installed apps" list
- Check the "Enable development mode" checkbox and click on *Save*
- Click on *Upload app*
- In the field "From this URL", paste the following URL:
    `{descriptor_url}`
- Click on *Upload*

Done!
Now this app will be installed on the instance
The next step is to connect to the available Jira projects so you start receiving notifications"""

NOT_INSTALLED_TEXT = (
    "The Jira app is not installed on a Jira instance yet. Type `/jira install` to see how to install it"
)


def project_line(project: ProjectRef, description: str = "") -> str:
    """Markdown list entry linking to a project."""
    line = f"[{project.key} - {project.name}]({project.browse_url})"
    return f"{line} {description}".rstrip() if description else line


class JiraCommand:
    """Executes ``/jira`` invocations for a room."""

    def __init__(self, registry: ConnectionRegistry, jira_client: JiraClient):
        self.registry = registry
        self.jira_client = jira_client

    async def execute(self, room_id: str, args: Sequence[str]) -> CommandReply:
        """
        Run a ``/jira`` invocation.

        Args:
            room_id: Room the command was typed in
            args: Whitespace-split arguments after ``/jira``

        Returns:
            CommandReply for the invoking user
        """
        command = args[0] if args else Subcommand.HELP.value
        argument = args[1] if len(args) > 1 else None
        logger.info(f"/jira {' '.join(args)} in room {room_id}")

        try:
            if command == Subcommand.HELP:
                return self.help()
            if command == Subcommand.INSTALL:
                return self.install()
            if command == Subcommand.CONNECT:
                return await self.connect(room_id, argument)
            if command == Subcommand.DISCONNECT:
                return self.disconnect(room_id, argument)
            return await self.issue(room_id, command)
        except (NotInstalled, MissingCredential) as e:
            logger.warning(f"/jira {command} used before install: {e}")
            return CommandReply(text=NOT_INSTALLED_TEXT)

    def help(self) -> CommandReply:
        return CommandReply(text=HELP_TEXT)

    def install(self) -> CommandReply:
        descriptor_url = settings.app_base_url.rstrip("/") + DESCRIPTOR_PATH
        return CommandReply(text=INSTALL_TEXT.format(descriptor_url=descriptor_url))

    async def connect(self, room_id: str, project_key: Optional[str] = None) -> CommandReply:
        if not project_key:
            return await self._list_projects_to_connect(room_id)

        found = await self.jira_client.find_project(project_key)
        if found is None:
            return CommandReply(text=f'Project with key "{project_key}" could not be found')

        project, description = found
        self.registry.connect(room_id, project)

        return CommandReply(
            text=(
                f"Jira project *{project.name}* successfully connected! "
                "This room will now be notified of certain events in the project"
            ),
            attachments=[
                NotificationAttachment(
                    title=AttachmentTitle(
                        value=f"{project.key} - {project.name}", link=project.browse_url
                    ),
                    text=description,
                )
            ],
        )

    async def _list_projects_to_connect(self, room_id: str) -> CommandReply:
        connected = self.registry.get_connected_projects(room_id)
        response = await self.jira_client.list_projects()

        connected_lines: List[str] = []
        available_lines: List[str] = []
        if response.get("total"):
            for value in response.get("values") or []:
                project = ProjectRef.model_validate(value)
                line = "- " + project_line(project, value.get("description") or "")
                if project.key.upper() in connected:
                    connected_lines.append(line)
                else:
                    available_lines.append(line)

        sections = []
        if connected_lines:
            sections.append(
                "These are the projects already connected to this room:\n" + "\n".join(connected_lines)
            )
        if available_lines:
            sections.append(
                "These are the currently available projects for you to connect to:\n"
                + "\n".join(available_lines)
                + "\n\nYou can connect to Jira projects by typing `/jira connect PROJECT_KEY`"
            )
        else:
            sections.append("There are currently no available projects for you to connect :/")

        return CommandReply(text="\n\n".join(sections))

    def disconnect(self, room_id: str, project_key: Optional[str] = None) -> CommandReply:
        if not project_key:
            return self._list_projects_to_disconnect(self.registry.get_connected_projects(room_id))

        try:
            project = self.registry.disconnect(room_id, project_key)
        except NotConnected:
            return CommandReply(text=f'Project with key "{project_key}" is not connected')

        return CommandReply(
            text=(
                f"Jira project *{project.name}* successfully disconnected! "
                "This room will no longer receive notifications about it"
            )
        )

    @staticmethod
    def _list_projects_to_disconnect(connected: Dict[str, ProjectRef]) -> CommandReply:
        if not connected:
            return CommandReply(text="There are no connected projects in this room")

        lines = "\n".join(project_line(p) for p in connected.values())
        return CommandReply(
            text=(
                f"These are the currently connected projects in this room:\n{lines}\n\n"
                "You can disconnect a Jira project by typing `/jira disconnect PROJECT_KEY`"
            )
        )

    async def issue(self, room_id: str, issue_key: str) -> CommandReply:
        """Show an issue card, only for projects connected to this room."""
        not_found = CommandReply(text=f'Issue "{issue_key}" not found')

        try:
            issue = await self.jira_client.get_issue(issue_key)
        except (InvalidInput, JiraApiError) as e:
            logger.info(f"Issue lookup for {issue_key} failed: {e}")
            return not_found

        project_key = ((issue.get("fields") or {}).get("project") or {}).get("key")
        if not project_key or not self.registry.is_project_connected(project_key, room_id):
            return not_found

        card = format_issue_message(issue)
        return CommandReply(text=card.text, attachments=card.attachments)
