"""
Signing of outbound Jira requests and verification of inbound Connect tokens.

Outbound calls carry ``Authorization: JWT <token>`` where the token is an
HS256 JWT signed with the installation's shared secret, holding the app key
as issuer, a 180 second lifetime and the QSH of the exact request.
"""

import time
from dataclasses import dataclass
from typing import Optional, Tuple

import jwt
from loguru import logger

from jiralink.auth.context import ConnectContext
from jiralink.auth.qsh import (
    CONTEXT_QSH,
    QueryInput,
    canonical_request,
    query_string_hash,
    split_url,
)
from jiralink.config.settings import settings
from jiralink.core.exceptions import InvalidInput, InvalidToken, MissingCredential, NotInstalled
from jiralink.models.installation import Credential
from jiralink.storage.installation_store import CredentialStore

ALGORITHM = "HS256"
TOKEN_LIFETIME_SECONDS = 180


@dataclass(frozen=True)
class SignedToken:
    """A signed, time-bounded authorization token for one request."""

    issuer: str
    issued_at: int
    expires_at: int
    query_hash: str
    raw: str

    @property
    def authorization_header(self) -> str:
        return f"JWT {self.raw}"

    def is_expired(self, now: Optional[int] = None) -> bool:
        current = int(time.time()) if now is None else now
        return current >= self.expires_at


class RequestSigner:
    """
    Builds signed tokens for outbound requests.

    Signing is pure given the clock: the same inputs and ``now`` always give
    the same token.
    """

    def __init__(
        self,
        credential_store: Optional[CredentialStore] = None,
        issuer: Optional[str] = None,
    ):
        """
        Initialize the signer.

        Args:
            credential_store: Source of the active credential when none is passed to sign()
            issuer: Token issuer (defaults to settings.app_key)
        """
        self.credential_store = credential_store
        self.issuer = issuer or settings.app_key

    def _resolve_credential(self, credential: Optional[Credential]) -> Credential:
        if credential is None:
            if self.credential_store is None:
                raise MissingCredential()
            try:
                credential = self.credential_store.get_credential()
            except NotInstalled as e:
                raise MissingCredential() from e

        if not credential.shared_secret:
            raise MissingCredential("Active credential has no shared secret")
        return credential

    def sign(
        self,
        method: str,
        path: str,
        query: QueryInput = None,
        credential: Optional[Credential] = None,
        now: Optional[int] = None,
    ) -> SignedToken:
        """
        Sign a request.

        Args:
            method: HTTP method
            path: Request path relative to the Jira base URL, optionally with its own ``?query``
            query: Query string, mapping or list of pairs
            credential: Credential to sign with (defaults to the store's active one)
            now: Unix time used as issuedAt (defaults to the current time)

        Returns:
            SignedToken

        Raises:
            MissingCredential: If there is no credential or it has no shared secret
            InvalidInput: If the method is not a known HTTP verb, or the path
                carries a query and ``query`` is given as well
        """
        credential = self._resolve_credential(credential)

        if path and "?" in path:
            if query:
                raise InvalidInput(f"Query given both in path and separately: {path!r}")
            path, query = split_url(path)

        qsh = query_string_hash(method, path, query, credential.base_url)
        issued_at = int(time.time()) if now is None else int(now)
        claims = {
            "iss": self.issuer,
            "iat": issued_at,
            "exp": issued_at + TOKEN_LIFETIME_SECONDS,
            "qsh": qsh,
        }
        raw = jwt.encode(claims, credential.shared_secret, algorithm=ALGORITHM)

        logger.debug(
            f"Signed {canonical_request(method, path, query, credential.base_url)} "
            f"(exp {claims['exp']})"
        )

        return SignedToken(
            issuer=self.issuer,
            issued_at=issued_at,
            expires_at=claims["exp"],
            query_hash=qsh,
            raw=raw,
        )

    def sign_url(
        self,
        method: str,
        url: str,
        credential: Optional[Credential] = None,
        now: Optional[int] = None,
    ) -> Tuple[str, SignedToken]:
        """
        Sign a relative URL such as ``/rest/api/3/project/search?expand=description``.

        Returns:
            Tuple of (absolute URL on the Jira site, SignedToken)
        """
        credential = self._resolve_credential(credential)
        path, query = split_url(url)
        token = self.sign(method, path, query, credential=credential, now=now)
        if "://" in url:
            return url, token
        return f"{credential.base_url.rstrip('/')}/{url.lstrip('/')}", token


def verify_token(
    raw: str,
    method: str,
    path: str,
    query: QueryInput,
    credential: Credential,
    leeway: Optional[int] = None,
) -> ConnectContext:
    """
    Verify a token Jira sent with an inbound request.

    Checks the HS256 signature against the shared secret, expiry (with
    leeway), that the issuer is the installation's clientKey, and that the
    QSH matches the request unless the token carries ``context-qsh``.

    Returns:
        ConnectContext built from the verified claims

    Raises:
        InvalidToken: If any check fails
    """
    if not raw:
        raise InvalidToken("Missing JWT token")

    leeway = settings.jwt_leeway_seconds if leeway is None else leeway

    try:
        payload = jwt.decode(
            raw,
            credential.shared_secret,
            algorithms=[ALGORITHM],
            leeway=leeway,
            options={"verify_aud": False, "require": ["iss", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise InvalidToken("JWT token has expired") from e
    except jwt.InvalidTokenError as e:
        raise InvalidToken(f"Invalid JWT token: {e}") from e

    if payload.get("iss") != credential.client_key:
        raise InvalidToken("JWT issuer mismatch")

    qsh = payload.get("qsh")
    if qsh != CONTEXT_QSH:
        expected = query_string_hash(method, path, query, credential.base_url)
        if qsh != expected:
            logger.warning(f"QSH mismatch for {method} {path}")
            raise InvalidToken("JWT query string hash does not match the request")

    return ConnectContext.from_jwt_payload(payload, credential)
