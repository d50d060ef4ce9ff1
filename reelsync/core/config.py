"""Application configuration."""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    Environment variables will be loaded and validated using Pydantic.
    """

    app_name: str = "ReelSync"
    version: str = "0.1.0"

    # Streaming provider credentials
    MUX_TOKEN_ID: str = ""
    MUX_TOKEN_SECRET: str = ""
    MUX_BASE_URL: str = "https://api.mux.com"
    STREAM_BASE_URL: str = "https://stream.mux.com"

    # Per-call provider timeouts in seconds
    PROVIDER_TIMEOUT: float = Field(default=30.0, gt=0)
    PROVIDER_CONNECT_TIMEOUT: float = Field(default=10.0, gt=0)

    # Reconciliation
    PROCESSING_SOFT_THRESHOLD_SECONDS: int = Field(default=120, ge=0)
    RECONCILE_MAX_CAS_RETRIES: int = Field(default=3, ge=1)
    RECONCILE_SWEEP_DELAY: float = Field(default=0.5, ge=0)

    # Content store
    CONTENT_STORE_PATH: str = "content_store"

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",  # Allow extra fields in environment
    )

    @model_validator(mode="after")
    def strip_credentials(self) -> "Settings":
        """Strip stray whitespace picked up from env files."""
        self.MUX_TOKEN_ID = self.MUX_TOKEN_ID.strip()
        self.MUX_TOKEN_SECRET = self.MUX_TOKEN_SECRET.strip()
        return self

    @model_validator(mode="after")
    def use_test_store_for_testing(self) -> "Settings":
        """Use an isolated content store for tests."""
        import os

        if os.getenv("TESTING") == "true":
            test_store_path = os.getenv("TEST_CONTENT_STORE_PATH")
            if test_store_path:
                self.CONTENT_STORE_PATH = test_store_path
            elif "test_" not in self.CONTENT_STORE_PATH:
                # Never point tests at the real store
                self.CONTENT_STORE_PATH = f"test_{self.CONTENT_STORE_PATH}"
        return self


# Create settings instance
settings = Settings()
