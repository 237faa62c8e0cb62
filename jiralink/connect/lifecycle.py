"""
Atlassian Connect lifecycle handlers.

The host wires its HTTP endpoints (``/app-installed-callback`` and
``/app-uninstalled-callback``) to these functions with the parsed JSON body.
"""

from typing import Union

from loguru import logger
from pydantic import ValidationError

from jiralink.core.exceptions import InvalidInput, NotInstalled
from jiralink.models.installation import Credential, LifecyclePayload
from jiralink.storage.installation_store import CredentialStore


def _parse(payload: Union[LifecyclePayload, dict]) -> LifecyclePayload:
    if isinstance(payload, LifecyclePayload):
        return payload
    try:
        return LifecyclePayload.model_validate(payload)
    except ValidationError as e:
        raise InvalidInput(f"Invalid lifecycle payload: {e}") from e


def handle_installed(payload: Union[LifecyclePayload, dict], store: CredentialStore) -> Credential:
    """
    Called when the app is installed in a Jira instance.

    Replaces whatever credential was active with the new one.

    Raises:
        InvalidInput: If the payload is malformed or has no shared secret
    """
    lifecycle = _parse(payload)
    if not lifecycle.sharedSecret:
        raise InvalidInput("Install callback did not include a shared secret")

    logger.info(f"App installed in {lifecycle.clientKey} ({lifecycle.baseUrl})")
    return store.set_credential(lifecycle.to_credential())


def handle_uninstalled(payload: Union[LifecyclePayload, dict], store: CredentialStore) -> bool:
    """
    Called when the app is uninstalled from a Jira instance.

    The credential is only removed when it belongs to the uninstalling
    instance; a stale uninstall from a previously replaced site is ignored.

    Returns:
        True if the active credential was removed
    """
    lifecycle = _parse(payload)
    try:
        active = store.get_credential()
    except NotInstalled:
        logger.warning(f"Uninstall from {lifecycle.clientKey} but nothing is installed")
        return False

    if active.client_key != lifecycle.clientKey:
        logger.warning(
            f"Ignoring uninstall from {lifecycle.clientKey}; active installation is {active.client_key}"
        )
        return False

    logger.info(f"App uninstalled from {lifecycle.clientKey}")
    return store.clear()
