"""Configuration with 4-layer resolution: defaults -> YAML -> env -> CLI.

Uses pydantic-settings with YamlConfigSettingsSource for layered configuration.
Supports ``.env`` file loading, ``TRANSCRIPT_SCRAPER_`` prefixed env vars, and
nested delimiter ``__`` for overriding sub-model fields, e.g.
``TRANSCRIPT_SCRAPER_CREDENTIALS__USERNAME``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, Field, SecretStr, ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)

_DEFAULT_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--mute-audio",
    "--disable-dev-shm-usage",
    "--disable-background-networking",
    "--disable-default-apps",
    "--disable-extensions",
    "--disable-sync",
]


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class SiteSettings(BaseModel):
    """Target site URLs and selectors.

    These mirror the markup of the target site and change when the site
    does, not when this package does.
    """

    login_url: str = "https://accounts.spotify.com/login"
    resource_url_template: str = "https://open.spotify.com/episode/{resource_id}"

    username_selector: str = "#login-username"
    password_selector: str = "#login-password"
    submit_selector: str = "#login-button"
    logged_in_marker: str = '[data-testid="user-widget-link"]'

    activator_selector: str = "a"
    activator_keyword: str = "transcript"
    container_selector: str = 'div[class^="NavBar__NavBarPage"]'
    time_label_xpath: str = './/span[@data-encore-id="text"]'
    text_xpath: str = './/span[@dir="auto"]'


class CredentialSettings(BaseModel):
    """Login credentials for the single account the scraper uses."""

    username: str = ""
    password: SecretStr = SecretStr("")

    @property
    def configured(self) -> bool:
        return bool(self.username) and bool(self.password.get_secret_value())


class BrowserSettings(BaseModel):
    """Playwright browser launch and timeout configuration.

    All timeouts are in milliseconds, matching Playwright's API.
    """

    browser_type: Literal["chromium", "firefox", "webkit"] = "chromium"
    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    launch_args: list[str] = Field(default_factory=lambda: list(_DEFAULT_LAUNCH_ARGS))
    launch_timeout: int = Field(default=10_000, gt=0)
    default_timeout: int = Field(default=60_000, gt=0)
    navigation_timeout: int = Field(default=60_000, gt=0)
    login_check_timeout: int = Field(default=10_000, gt=0)
    content_timeout: int = Field(default=10_000, gt=0)


class SessionSettings(BaseModel):
    """Persisted login session configuration."""

    state_file: Path = Path("./data/session.json")
    validity_days: int = Field(
        default=7, gt=0, description="Sessions older than this are re-verified by login."
    )

    @property
    def validity_ms(self) -> int:
        return self.validity_days * 24 * 60 * 60 * 1000


class CacheSettings(BaseModel):
    """Redis transcript cache configuration."""

    redis_url: str = "redis://localhost:6379/0"
    key_prefix: str = "transcript:"
    ttl_seconds: int = Field(default=86_400, gt=0)
    socket_timeout: float = Field(default=5.0, gt=0.0)


class APISettings(BaseModel):
    """FastAPI server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)


class LoggingSettings(BaseModel):
    """Logging / observability configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json"] = "console"
    file: Path | None = None


# ---------------------------------------------------------------------------
# Main Settings (4-layer resolution)
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Top-level application settings.

    Resolution order (last wins):
        1. Field defaults (defined above)
        2. YAML config file (``config.yaml`` or ``--config`` path)
        3. Environment variables (prefixed ``TRANSCRIPT_SCRAPER_``)
        4. CLI overrides (applied programmatically after loading)
    """

    model_config = SettingsConfigDict(
        env_prefix="TRANSCRIPT_SCRAPER_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        yaml_file="config.yaml",
        yaml_file_encoding="utf-8",
        extra="ignore",
    )

    _config_path_override: ClassVar[Path | None] = None

    site: SiteSettings = Field(default_factory=SiteSettings)
    credentials: CredentialSettings = Field(default_factory=CredentialSettings)
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    api: APISettings = Field(default_factory=APISettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings source priority.

        Resolution order (first = highest priority):
            init_settings (CLI) > env_settings > dotenv (.env) > yaml > defaults
        """
        yaml_file = cls._config_path_override or settings_cls.model_config.get(
            "yaml_file", "config.yaml"
        )
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file),
        )

    @classmethod
    def load(cls, config_path: Path | None = None, **overrides: Any) -> Settings:
        """Load settings with optional config path and CLI overrides.

        Args:
            config_path: Optional path to a YAML config file.
            **overrides: Key-value CLI overrides applied at highest priority.

        Returns:
            Fully-resolved Settings instance.

        Raises:
            ValidationError: If any setting value fails validation.
        """
        cls._config_path_override = config_path
        try:
            return cls(**overrides)
        finally:
            cls._config_path_override = None


def format_validation_error(exc: ValidationError) -> str:
    """Format a Pydantic ValidationError into a user-friendly message.

    Args:
        exc: The validation error to format.

    Returns:
        A multi-line string with each error on its own line.
    """
    lines: list[str] = []
    for error in exc.errors():
        loc = " -> ".join(str(part) for part in error["loc"])
        msg = error["msg"]
        raw_input = error.get("input")
        if raw_input is not None:
            lines.append(f"  {loc}: {msg} (got {raw_input!r})")
        else:
            lines.append(f"  {loc}: {msg}")
    return "Configuration error:\n" + "\n".join(lines)
