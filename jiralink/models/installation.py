"""
Models for Atlassian Connect installation data.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Credential(BaseModel):
    """
    The single active installation of the app in a Jira instance.

    Holds the shared secret used to sign outbound requests and the base URL
    of the Jira site. Field names accept both the snake_case attribute names
    and the camelCase keys Jira sends in the install callback.
    """

    model_config = ConfigDict(populate_by_name=True)

    client_key: str = Field(
        ...,
        alias="clientKey",
        description="Unique identifier for the Jira instance"
    )

    shared_secret: str = Field(
        ...,
        alias="sharedSecret",
        description="Shared secret for JWT signing and verification"
    )

    base_url: str = Field(
        ...,
        alias="baseUrl",
        description="Base URL of the Jira instance (e.g., https://example.atlassian.net)"
    )

    public_key: Optional[str] = Field(
        default=None,
        alias="publicKey",
        description="Public key sent by Jira (unused for HS256 signing)"
    )

    server_version: Optional[str] = Field(
        default=None,
        alias="serverVersion",
        description="Jira server version reported at install time"
    )

    plugins_version: Optional[str] = Field(
        default=None,
        alias="pluginsVersion",
        description="Connect plugin version reported at install time"
    )

    product_type: str = Field(
        default="jira",
        alias="productType",
        description="Product type (jira, confluence, etc.)"
    )

    description: Optional[str] = Field(
        default=None,
        description="Human-readable description of the instance"
    )

    installed_at: datetime = Field(
        default_factory=datetime.now,
        alias="installedAt",
        description="Timestamp when the credential was stored"
    )


class LifecyclePayload(BaseModel):
    """Payload received from Jira during lifecycle events."""

    model_config = ConfigDict(extra="ignore")

    key: Optional[str] = None
    clientKey: str
    publicKey: Optional[str] = None
    sharedSecret: Optional[str] = None
    serverVersion: Optional[str] = None
    pluginsVersion: Optional[str] = None
    baseUrl: str
    productType: str = "jira"
    description: Optional[str] = None
    eventType: Optional[str] = None

    def to_credential(self) -> Credential:
        """Build the credential stored for an ``installed`` event."""
        return Credential(
            client_key=self.clientKey,
            shared_secret=self.sharedSecret or "",
            base_url=self.baseUrl,
            public_key=self.publicKey,
            server_version=self.serverVersion,
            plugins_version=self.pluginsVersion,
            product_type=self.productType,
            description=self.description,
        )
