"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from typing import Annotated, Optional, List, Union, TYPE_CHECKING
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pathlib import Path

if TYPE_CHECKING:
    from gosling_screenshot.models.schemas import BrowserLaunchOptions, RenderOptions


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="Gosling Screenshot", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )

    # Input Configuration
    spec_extension: str = Field(
        default=".json", description="File extension of spec files in directory inputs"
    )
    default_format: str = Field(default="png", description="Default output image format")

    # Gosling Library Configuration
    cdn_base_url: str = Field(
        default="https://unpkg.com", description="CDN serving the visualization libraries"
    )
    react_version: str = Field(default="17", description="React version loaded by the page")
    pixijs_version: str = Field(default="6", description="PixiJS version loaded by the page")
    higlass_version: str = Field(default="1.11", description="Higlass version loaded by the page")
    gosling_version: str = Field(
        default="0.9.17", description="Gosling version loaded by the page"
    )

    # Rendering Configuration
    component_selector: str = Field(
        default=".gosling-component", description="CSS selector of the rendered visualization"
    )
    selector_timeout: int = Field(
        default=30000, gt=0, description="Wait for the visualization element, in milliseconds"
    )
    navigation_timeout: int = Field(
        default=60000, gt=0, description="Page load timeout in milliseconds"
    )
    viewport_width: int = Field(default=1280, gt=0, description="Browser viewport width")
    viewport_height: int = Field(default=1024, gt=0, description="Browser viewport height")
    device_scale_factor: float = Field(default=1.0, gt=0, description="Device pixel ratio")
    image_quality: Optional[int] = Field(
        default=None, ge=0, le=100, description="JPEG/WebP quality (0-100)"
    )
    transparent_background: bool = Field(
        default=False, description="Capture PNG/WebP without the white page background"
    )
    load_via_tempfile: bool = Field(
        default=False, description="Navigate to a per-job temp file instead of in-memory content"
    )
    temp_path: Optional[Path] = Field(
        default=None, description="Directory for per-job HTML files (system default if unset)"
    )

    # Browser Configuration
    playwright_headless: bool = Field(default=True, description="Run browser in headless mode")
    use_swiftshader: bool = Field(
        default=True, description="Software GL for consistent rendering of transparent elements"
    )
    no_sandbox: bool = Field(default=False, description="Disable the Chromium sandbox")
    disable_dev_shm_usage: bool = Field(
        default=False, description="Use /tmp instead of /dev/shm (small containers)"
    )
    # NoDecode: env values are comma-separated, not JSON
    extra_browser_args: Annotated[List[str], NoDecode] = Field(
        default_factory=list, description="Additional Chromium command line flags"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[Path] = Field(default=None, description="Optional rotating log file")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("spec_extension")
    @classmethod
    def normalize_spec_extension(cls, v: str) -> str:
        """Lower-case the extension and make sure it carries a leading dot."""
        v = v.strip().lower()
        if not v:
            raise ValueError("Spec extension must not be empty")
        return v if v.startswith(".") else f".{v}"

    @field_validator("extra_browser_args", mode="before")
    @classmethod
    def parse_extra_browser_args(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse browser flags from a comma-separated string or list."""
        if isinstance(v, str):
            return [arg.strip() for arg in v.split(",") if arg.strip()]
        return v

    def launch_options(self) -> "BrowserLaunchOptions":
        """Browser launch flags as a launch options model."""
        from gosling_screenshot.models.schemas import BrowserLaunchOptions

        return BrowserLaunchOptions(
            headless=self.playwright_headless,
            use_swiftshader=self.use_swiftshader,
            no_sandbox=self.no_sandbox,
            disable_dev_shm_usage=self.disable_dev_shm_usage,
            extra_args=list(self.extra_browser_args),
        )

    def render_options(self) -> "RenderOptions":
        """Default render options derived from settings."""
        from gosling_screenshot.models.schemas import LibraryVersions, RenderOptions

        return RenderOptions(
            libraries=LibraryVersions(
                cdn_base_url=self.cdn_base_url,
                react_version=self.react_version,
                pixijs_version=self.pixijs_version,
                higlass_version=self.higlass_version,
                gosling_version=self.gosling_version,
            ),
            browser=self.launch_options(),
            selector=self.component_selector,
            selector_timeout=self.selector_timeout,
            navigation_timeout=self.navigation_timeout,
            width=self.viewport_width,
            height=self.viewport_height,
            device_scale_factor=self.device_scale_factor,
            quality=self.image_quality,
            transparent_background=self.transparent_background,
            load_via_tempfile=self.load_via_tempfile,
            temp_path=self.temp_path,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="GOSLING_SCREENSHOT_",
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
