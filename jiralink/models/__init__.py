"""
Data models for installations, connections, webhooks and notifications.
"""
