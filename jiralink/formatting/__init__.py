"""
Jira wiki markup translation and chat message builders.
"""

from .jira_markup import translate

__all__ = ['translate']
