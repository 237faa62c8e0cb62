"""
Atlassian Connect request signing and token verification.
"""

from .qsh import canonical_request, query_string_hash
from .signer import RequestSigner, SignedToken, verify_token

__all__ = [
    'RequestSigner',
    'SignedToken',
    'canonical_request',
    'query_string_hash',
    'verify_token',
]
