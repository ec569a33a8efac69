"""Application settings and configuration.

This module defines all configuration options for the Covenant Gate service.
Settings are loaded from environment variables (or a `.env` file). The chat
platform credentials, the registry and reputation API keys and the public base
URL are required: importing this module without them raises a
`pydantic.ValidationError`, which stops the process before it starts serving.
"""

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RoleTier(BaseModel):
    """A reputation threshold and the role granted at or above it."""

    threshold: int = Field(..., ge=0)
    role: str = Field(..., min_length=1)


DEFAULT_ROLE_TIERS = [
    RoleTier(threshold=70, role="Chosen One"),
    RoleTier(threshold=20, role="O.G. HUMN"),
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Required values have no default; everything else mirrors the observed
    production deployment and can be overridden per environment.
    """

    # Application metadata
    app_name: str = Field(default="Covenant Gate", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")

    # Chat platform (required)
    bot_token: str = Field(alias="BOT_TOKEN")
    application_id: int = Field(alias="CLIENT_ID")
    guild_id: int = Field(alias="GUILD_ID")
    discord_enabled: bool = Field(default=True, alias="DISCORD_ENABLED")

    # Public base URL used to build signer links (required)
    external_url: str = Field(
        validation_alias=AliasChoices("EXTERNAL_URL", "RENDER_EXTERNAL_URL"),
    )

    # Whitelist registry
    whitelist_api_key: str = Field(alias="WHITELIST_API_KEY")
    whitelist_api_url: str = Field(
        default="http://manifest.human.tech/api/covenant/signers-export",
        alias="WHITELIST_API_URL",
    )

    # Reputation scoring service
    reputation_api_key: str = Field(alias="PASSPORT_API_KEY")
    reputation_api_url: str = Field(
        default="https://api.passport.xyz/v2/stamps/9325/score",
        alias="REPUTATION_API_URL",
    )

    # Outbound HTTP calls; expiry counts as an adapter failure
    http_timeout_seconds: float = Field(default=10.0, gt=0, alias="HTTP_TIMEOUT_SECONDS")

    # Verification flow
    verify_cooldown_seconds: int = Field(default=300, ge=0, alias="VERIFY_COOLDOWN_SECONDS")
    session_ttl_seconds: int = Field(default=900, gt=0, alias="SESSION_TTL_SECONDS")
    max_signature_attempts: int = Field(default=3, ge=1, alias="MAX_SIGNATURE_ATTEMPTS")
    channel_delete_delay_seconds: float = Field(
        default=8.0,
        ge=0,
        alias="CHANNEL_DELETE_DELAY_SECONDS",
    )

    # Role catalog
    base_role_name: str = Field(default="Covenant Verified Signatory", alias="BASE_ROLE_NAME")
    role_tiers: list[RoleTier] = Field(
        default_factory=lambda: list(DEFAULT_ROLE_TIERS),
        alias="ROLE_TIERS",
    )

    # CORS configuration for the signer page
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("external_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


settings = Settings()  # type: ignore[call-arg]
