"""
Association-keyed persistence, the installation credential and room connections.
"""

from .connection_registry import ConnectionRegistry
from .installation_store import CredentialStore
from .persistence import Association, InMemoryBackend, JsonFileBackend, PersistenceBackend

__all__ = [
    'Association',
    'ConnectionRegistry',
    'CredentialStore',
    'InMemoryBackend',
    'JsonFileBackend',
    'PersistenceBackend',
]
