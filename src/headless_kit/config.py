"""Configuration models for browser launch, stealth, interception and clusters.

Every helper in the kit also takes plain keyword arguments; these models
exist so an app can keep all of its knobs in one YAML file or in
``HEADLESS_KIT_*`` environment variables.
"""
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LaunchConfig(BaseModel):
    """Browser launch and context defaults."""

    headless: bool = True
    executable_path: str = ""
    cdp_port: int = 9222
    prefer_system_chrome: bool = False
    user_data_dir: str = ""
    extra_args: list[str] = Field(default_factory=list)
    no_sandbox: bool = False
    viewport_width: int = 1920
    viewport_height: int = 1080
    locale: str = "en-US"
    timezone_id: str = ""
    user_agent: str = ""
    default_timeout_ms: int = 30000
    navigation_timeout_ms: int = 30000

    @property
    def viewport(self) -> dict[str, int]:
        return {"width": self.viewport_width, "height": self.viewport_height}


class StealthConfig(BaseModel):
    """Fingerprint values fed into the stealth shim."""

    enabled: bool = True
    stealth_js_path: str = ""
    hardware_concurrency: int = 8
    device_memory: int = 8
    platform: str = "Windows"
    platform_version: str = "15.0.0"
    architecture: str = "x86"
    screen_width: int = 1920
    screen_height: int = 1080
    screen_avail_height: int = 1040
    color_depth: int = 24
    webgl_vendor: str = "Google Inc. (Intel)"
    webgl_renderer: str = (
        "ANGLE (Intel, Intel(R) UHD Graphics 630 Direct3D11 vs_5_0 ps_5_0, D3D11)"
    )
    languages: list[str] = Field(default_factory=lambda: ["en-US", "en"])


class InterceptionConfig(BaseModel):
    """Request blocking rules (see ``browser.interception``)."""

    enabled: bool = False
    blocked_resource_types: list[str] = Field(
        default_factory=lambda: ["image", "media", "font"]
    )
    blocked_domains: list[str] = Field(default_factory=list)
    allowed_domains: list[str] = Field(default_factory=list)
    block_trackers: bool = True


class ClusterConfig(BaseModel):
    """Worker cluster settings.

    ``task_timeout_ms`` becomes the page's default action and navigation
    timeout. It does not bound the task function as a whole: a task busy in
    Python code or ``time.sleep`` runs past it.
    """

    concurrency: str = "context"
    max_concurrency: int = Field(default=2, ge=1)
    retry_limit: int = Field(default=0, ge=0)
    retry_delay: float = Field(default=0.0, ge=0)
    task_timeout_ms: int = Field(default=30000, ge=0)
    recycle_after: int = Field(default=0, ge=0)

    @field_validator("concurrency")
    @classmethod
    def _known_mode(cls, value: str) -> str:
        value = value.lower()
        if value not in ("page", "context", "browser"):
            raise ValueError(f"unknown concurrency mode: {value!r}")
        return value


class RetryConfig(BaseModel):
    """Exponential backoff settings."""

    attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=30.0, ge=0)
    jitter: bool = True


class Settings(BaseSettings):
    """Application settings loaded from YAML or environment."""

    model_config = SettingsConfigDict(
        env_prefix="HEADLESS_KIT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    launch: LaunchConfig = Field(default_factory=LaunchConfig)
    stealth: StealthConfig = Field(default_factory=StealthConfig)
    interception: InterceptionConfig = Field(default_factory=InterceptionConfig)
    cluster: ClusterConfig = Field(default_factory=ClusterConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    log_level: str = "INFO"
    event_log_dir: str = "data/logs/task_events"

    @classmethod
    def from_yaml(cls, path: Path | str) -> "Settings":
        """Load settings from a YAML file.

        Args:
            path: Path to the YAML configuration file.

        Returns:
            Settings instance with loaded configuration.
        """
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at the top level")
        return cls(**data)
