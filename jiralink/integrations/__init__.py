"""
Clients for external services.
"""
