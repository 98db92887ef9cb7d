"""Process configuration loaded from environment variables.

Runtime parameters (ACS credentials, analytic selection, items ...) live in the
parameter store; the ``param_*`` fields below only seed it at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Project-wide settings."""

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[1] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_id: str = Field(
        "MetadataACS",
        description="Application id; the control surface is served under /local/<app_id>/.",
    )
    http_host: str = Field("0.0.0.0", description="Bind address for the control surface.")
    http_port: int = Field(8080, ge=1, le=65535, description="Port for the control surface.")
    acs_api_path: str = Field(
        "/Acs/Api/ExternalDataFacade/AddExternalData",
        description="Path of the ACS external data endpoint.",
    )
    acs_timeout_seconds: float = Field(
        2.0,
        gt=0.0,
        description="Total deadline for one ACS request, auth negotiation included.",
    )
    acs_verify_tls: bool = Field(
        False,
        description="Verify the ACS server certificate. ACS servers usually run self-signed.",
    )
    acs_send_workers: int = Field(
        4,
        ge=1,
        description="Worker threads used for fire-and-forget sends.",
    )
    acs_max_pending: int = Field(
        64,
        ge=1,
        description="Fire-and-forget sends allowed to wait for a worker; further events are dropped.",
    )
    overlay_duration_ms: int = Field(
        3000,
        ge=0,
        description="How long the overlay keeps showing the last extracted items.",
    )
    max_items: int = Field(20, ge=1, description="Maximum number of items read from an event.")
    log_level: str = Field("INFO", description="Base log level when DebugEnabled is off.")
    log_format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Format passed to logging.basicConfig.",
    )

    param_server_address: str = Field("", description="Initial ServerAddress (host[:port]).")
    param_source_id: str = Field("", description="Initial SourceID.")
    param_username: str = Field("", description="Initial Username.")
    param_password: str = Field("", description="Initial Password.")
    param_enabled: str = Field("no", description="Initial Enabled (yes/no).")
    param_analytic: str = Field(" ", description="Initial Analytic, blank means not saved.")
    param_category: str = Field(" ", description="Initial Category, blank means not saved.")
    param_items: str = Field(" ", description="Initial Items, e.g. plate;country;")
    param_content_filter: str = Field(" ", description="Initial ContentFilter, key=value or blank.")
    param_debug_enabled: str = Field("no", description="Initial DebugEnabled (yes/no).")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()
