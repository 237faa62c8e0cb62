"""
Configuration settings for the application.
Loads environment variables and provides type-safe configuration.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # General
    environment: str = Field(default="production", description="Environment (development/production/test)")
    log_level: str = Field(default="INFO", description="Logging level")

    # Atlassian Connect app identity
    app_key: str = Field(default="chat.rocket.jira", description="App key, used as the issuer of signed tokens")
    app_name: str = Field(default="Rocket.Chat", description="App name shown in the Connect descriptor")
    app_description: str = Field(default="Rocket.Chat integration", description="App description for the descriptor")
    app_vendor_name: str = Field(default="Rocket.Chat", description="Vendor name for the descriptor")
    app_vendor_url: str = Field(default="https://rocket.chat", description="Vendor URL for the descriptor")
    app_base_url: str = Field(
        default="http://localhost:3000/api/apps/public/jira",
        description="Public base URL where Jira reaches this app",
    )

    # Signed tokens
    jwt_leeway_seconds: int = Field(default=30, description="Clock tolerance when verifying inbound tokens")

    # Persistence
    storage_path: str = Field(default="./data/jiralink.json", description="JSON file used by the file backend")

    # Chat side
    sender_username: str = Field(default="rocket.cat", description="User notifications are sent as")

    # Outbound HTTP
    http_timeout: float = Field(default=30.0, description="Outbound HTTP timeout in seconds")
    http_user_agent: str = Field(default="JiraLink/1.0", description="User agent for outbound requests")


# Global settings instance
settings = Settings()
