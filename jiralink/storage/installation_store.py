"""
Storage for the Atlassian Connect installation credential.

Exactly one installation is active at a time: the credential lives under
the fixed ``misc:auth`` association, and installing again replaces it.
Credentials are not keyed by clientKey, so a second Jira site installing
the app takes over from the first.
"""

import threading
from typing import Optional, Union

from loguru import logger
from pydantic import ValidationError

from jiralink.core.exceptions import InvalidInput, NotInstalled
from jiralink.models.installation import Credential
from jiralink.storage.persistence import Association, InMemoryBackend, PersistenceBackend

AUTH_ASSOCIATION = Association.misc("auth")


class CredentialStore:
    """
    Manages the single active installation credential.

    The stored record holds:
    - client_key: Jira instance identifier
    - shared_secret: For JWT signing
    - base_url: Jira instance URL
    """

    def __init__(self, backend: Optional[PersistenceBackend] = None):
        """
        Initialize the credential store.

        Args:
            backend: Persistence backend. Defaults to an in-memory backend
        """
        self.backend = backend or InMemoryBackend()
        self._lock = threading.Lock()

    def set_credential(self, data: Union[Credential, dict]) -> Credential:
        """
        Replace the active credential.

        The old record is removed and the new one written while holding the
        store lock, so no reader sees zero or two credentials mid-update.

        Args:
            data: Credential, or the install callback body (camelCase keys)

        Returns:
            The stored credential

        Raises:
            InvalidInput: If the data is not a valid credential
        """
        try:
            credential = data if isinstance(data, Credential) else Credential.model_validate(data)
        except ValidationError as e:
            raise InvalidInput(f"Invalid installation data: {e}") from e

        with self._lock:
            self.backend.remove_by_association(AUTH_ASSOCIATION)
            self.backend.create_with_associations(
                credential.model_dump(mode="json", by_alias=True),
                [AUTH_ASSOCIATION],
            )

        logger.info(f"Saved installation for {credential.client_key} ({credential.base_url})")
        return credential

    def get_credential(self) -> Credential:
        """
        Return the active credential.

        Raises:
            NotInstalled: If no credential is stored
        """
        with self._lock:
            records = self.backend.read_by_association(AUTH_ASSOCIATION)

        if not records:
            raise NotInstalled()

        if len(records) > 1:
            logger.warning(f"Found {len(records)} credential records, using the first one")

        return Credential.model_validate(records[0])

    def clear(self) -> bool:
        """
        Remove the active credential.

        Returns:
            True if a credential was removed
        """
        with self._lock:
            removed = self.backend.remove_by_association(AUTH_ASSOCIATION)

        if removed:
            logger.info("Removed installation credential")
        return bool(removed)

    def is_installed(self) -> bool:
        try:
            self.get_credential()
            return True
        except NotInstalled:
            return False
