"""
Atlassian Connect app descriptor.

Jira fetches this JSON when an administrator uploads the app by URL.
"""

from typing import Any, Dict, Optional

from jiralink.config.settings import settings

INSTALLED_PATH = "/app-installed-callback"
UNINSTALLED_PATH = "/app-uninstalled-callback"
DESCRIPTOR_PATH = "/manifest.json"
ISSUE_WEBHOOK_PATH = "/on_issue"
COMMENT_WEBHOOK_PATH = "/on_comment"


def build_descriptor(base_url: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the descriptor served at ``/manifest.json``.

    Args:
        base_url: Public base URL of the app (defaults to settings.app_base_url)

    Returns:
        Descriptor dictionary
    """
    base_url = (base_url or settings.app_base_url).rstrip("/")

    return {
        "key": settings.app_key,
        "name": settings.app_name,
        "description": settings.app_description,
        "vendor": {
            "name": settings.app_vendor_name,
            "url": settings.app_vendor_url,
        },
        "baseUrl": base_url,
        "links": {
            "self": f"{base_url}{DESCRIPTOR_PATH}",
        },
        "scopes": ["read", "write"],
        "authentication": {"type": "jwt"},
        "lifecycle": {
            "installed": INSTALLED_PATH,
            "uninstalled": UNINSTALLED_PATH,
        },
        "modules": {
            "webhooks": [
                {"event": "jira:issue_created", "url": ISSUE_WEBHOOK_PATH},
                {"event": "jira:issue_updated", "url": ISSUE_WEBHOOK_PATH},
                {"event": "comment_created", "url": COMMENT_WEBHOOK_PATH},
                {"event": "comment_updated", "url": COMMENT_WEBHOOK_PATH},
            ],
        },
    }
