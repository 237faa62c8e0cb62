"""
JiraLink: bridges a Jira Cloud instance and chat rooms through Atlassian Connect.
"""

__version__ = "1.0.0"
