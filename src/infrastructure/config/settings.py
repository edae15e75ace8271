"""
Typed configuration loaded from environment variables and an optional .env file.
See docs/Architecture.md (Infrastructure layer) for the architectural rationale.

Only the composition root reads Settings; use cases receive plain values.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.domain.entities.connection_profile import ConnectionProfile
from src.domain.errors import ConfigurationError

DEFAULT_QUERY_BY = (
    "name,category,description,category_l4,category_l3,category_l2,"
    "category_l1,manufacturer,brand"
)
INSECURE_DEFAULT_SECRET = "change-me"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Credential store
    database_url: str = Field(default="sqlite:///./console.db", description="SQLAlchemy URL of the admin table")

    # Session tokens
    session_secret: str = Field(default=INSECURE_DEFAULT_SECRET, description="HS256 signing key")
    session_ttl_minutes: int = Field(default=480, ge=1)

    # Search engine
    engine_timeout_seconds: float = Field(default=10.0, gt=0)
    search_query_by: str = Field(default=DEFAULT_QUERY_BY)
    search_per_page: int = Field(default=12, ge=1, le=250)

    # Destination presets
    staging_host: str = "localhost"
    staging_port: int = 8108
    staging_protocol: Literal["http", "https"] = "http"
    staging_path: str = ""
    production_host: str = "localhost"
    production_port: int = 443
    production_protocol: Literal["http", "https"] = "https"
    production_path: str = ""

    # Persisted console state
    state_dir: str = "./state"
    state_max_bytes: int = Field(default=64 * 1024, ge=256)

    # Live sessions
    max_sessions_per_user: int = Field(default=5, ge=1)

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Optional AWS Secrets Manager secret merged into the environment at startup
    console_secret_arn: str = ""

    @property
    def uses_default_secret(self) -> bool:
        return self.session_secret == INSECURE_DEFAULT_SECRET

    def destination_profile(self, destination: str, api_key: str) -> ConnectionProfile:
        """Build a profile from a named preset ("staging" or "production").

        Raises:
            ConfigurationError: for an unknown destination name.
        """
        if destination == "staging":
            return ConnectionProfile(
                host=self.staging_host,
                api_key=api_key,
                port=self.staging_port,
                protocol=self.staging_protocol,
                path=self.staging_path,
            )
        if destination == "production":
            return ConnectionProfile(
                host=self.production_host,
                api_key=api_key,
                port=self.production_port,
                protocol=self.production_protocol,
                path=self.production_path,
            )
        raise ConfigurationError(f"unknown destination: {destination!r}")
