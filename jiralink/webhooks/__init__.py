"""
Inbound Jira webhook routing.
"""

from .router import WebhookRouter

__all__ = ['WebhookRouter']
