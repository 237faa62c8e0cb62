"""
Shared exceptions and host collaborator protocols.
"""
