"""
Context carried by a verified inbound Connect token.
"""

from dataclasses import dataclass
from typing import Mapping, Optional

from jiralink.models.installation import Credential

JWT_SCHEME = "JWT "


@dataclass(frozen=True)
class ConnectContext:
    """Who called the app, as established by a verified token."""

    client_key: str
    base_url: str
    user_account_id: Optional[str] = None
    issued_at: Optional[int] = None
    expires_at: Optional[int] = None

    @classmethod
    def from_jwt_payload(cls, claims: dict, credential: Credential) -> "ConnectContext":
        """
        Args:
            claims: Verified token claims
            credential: Installation the token was checked against

        Returns:
            ConnectContext; the account id comes from ``context.user`` or ``sub``
        """
        user = (claims.get("context") or {}).get("user") or {}
        return cls(
            client_key=claims.get("iss", ""),
            base_url=credential.base_url,
            user_account_id=user.get("accountId") or claims.get("sub"),
            issued_at=claims.get("iat"),
            expires_at=claims.get("exp"),
        )


def get_jwt_from_request(query_params: Mapping[str, str], headers: Mapping[str, str]) -> Optional[str]:
    """
    Find the Connect token of an inbound request.

    Webhooks and lifecycle callbacks put it in the ``jwt`` query parameter;
    other calls send ``Authorization: JWT <token>``.
    """
    token = query_params.get("jwt")
    if token:
        return token

    for name in ("Authorization", "authorization"):
        value = headers.get(name) or ""
        if value.startswith(JWT_SCHEME):
            return value[len(JWT_SCHEME):]
    return None
