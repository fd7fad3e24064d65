"""
Pydantic Models and Schemas
===========================

Core data models for spec sources, render jobs, render options and batch results.
"""

from typing import Optional, List, Dict, Any
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Enums
class ImageFormat(str, Enum):
    """Supported output image formats."""
    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"

    @classmethod
    def parse(cls, value: str) -> "ImageFormat":
        """Parse a format name, case-insensitively. Raises ValueError if unsupported."""
        normalized = value.strip().lower()
        try:
            return cls(normalized)
        except ValueError:
            supported = ", ".join(f"'{fmt.value}'" for fmt in cls)
            raise ValueError(
                f"Invalid output format '{value}'. Please use {supported}."
            ) from None

    @classmethod
    def from_suffix(cls, suffix: str) -> "ImageFormat":
        """Infer the format from a filename suffix such as '.png' or '.jpg'."""
        normalized = suffix.lower().lstrip(".")
        if normalized == "jpg":
            normalized = "jpeg"
        return cls.parse(normalized)

    @property
    def extension(self) -> str:
        return f".{self.value}"


class SourceKind(str, Enum):
    """Kind of input given on the command line."""
    FILE = "file"
    DIRECTORY = "directory"


class JobStatus(str, Enum):
    """Render job lifecycle states."""
    PENDING = "pending"
    RENDERING = "rendering"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED)


# Input Models
class SpecSource(BaseModel):
    """A resolved spec file or directory of spec files."""
    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Resolved absolute path")
    kind: SourceKind = Field(..., description="Single file or directory")

    @property
    def name(self) -> str:
        return self.path.name


class RenderJob(BaseModel):
    """One spec-to-image conversion task."""
    model_config = ConfigDict(frozen=True)

    source: Path = Field(..., description="Spec file to render")
    destination: Path = Field(..., description="Image file to write")
    format: ImageFormat = Field(ImageFormat.PNG, description="Output image format")

    @property
    def name(self) -> str:
        return self.source.name


# Rendering Models
class LibraryVersions(BaseModel):
    """Pinned versions of the scripts and styles loaded by the embedding page."""
    cdn_base_url: str = Field("https://unpkg.com", description="CDN base URL")
    react_version: str = Field("17", description="React and ReactDOM version")
    pixijs_version: str = Field("6", description="PixiJS version")
    higlass_version: str = Field("1.11", description="Higlass version")
    gosling_version: str = Field("0.9.17", description="Gosling version")

    @field_validator("cdn_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Strip the trailing slash so URLs can be joined with '/'."""
        return v.rstrip("/")


class BrowserLaunchOptions(BaseModel):
    """Chromium launch flags as named options."""
    headless: bool = Field(True, description="Run browser in headless mode")
    use_swiftshader: bool = Field(
        True, description="Software GL (--use-gl=swiftshader) for consistent transparency"
    )
    no_sandbox: bool = Field(False, description="Pass --no-sandbox and --disable-setuid-sandbox")
    disable_dev_shm_usage: bool = Field(False, description="Pass --disable-dev-shm-usage")
    extra_args: List[str] = Field(default_factory=list, description="Additional raw flags")

    def to_args(self) -> List[str]:
        """Chromium command line flags for these options."""
        args: List[str] = []
        if self.use_swiftshader:
            args.append("--use-gl=swiftshader")
        if self.no_sandbox:
            args.extend(["--no-sandbox", "--disable-setuid-sandbox"])
        if self.disable_dev_shm_usage:
            args.append("--disable-dev-shm-usage")
        args.extend(arg for arg in self.extra_args if arg not in args)
        return args


class RenderOptions(BaseModel):
    """Options for rendering a spec to an image."""
    libraries: LibraryVersions = Field(default_factory=LibraryVersions)
    browser: BrowserLaunchOptions = Field(default_factory=BrowserLaunchOptions)

    # Page options
    selector: str = Field(".gosling-component", min_length=1, description="Element to capture")
    selector_timeout: int = Field(30000, gt=0, description="Selector wait in milliseconds")
    navigation_timeout: int = Field(60000, gt=0, description="Page load timeout in milliseconds")
    width: int = Field(1280, gt=0, le=8000, description="Viewport width")
    height: int = Field(1024, gt=0, le=8000, description="Viewport height")
    device_scale_factor: float = Field(1.0, gt=0, le=4.0, description="Device pixel ratio")

    # Image options
    quality: Optional[int] = Field(None, ge=0, le=100, description="JPEG/WebP quality (0-100)")
    transparent_background: bool = Field(False, description="Omit the white page background")

    # Loading strategy
    load_via_tempfile: bool = Field(
        False, description="Navigate to a per-job temp file instead of setting content"
    )
    temp_path: Optional[Path] = Field(None, description="Directory for per-job HTML files")


# Result Models
class RenderResult(BaseModel):
    """Outcome of a single render job."""
    job: RenderJob
    status: JobStatus = Field(..., description="Terminal job status")
    error: Optional[str] = Field(None, description="Error detail for failed jobs")
    file_size: int = Field(0, ge=0, description="Bytes written")
    duration: float = Field(0.0, ge=0, description="Elapsed seconds")

    @property
    def succeeded(self) -> bool:
        return self.status == JobStatus.SUCCEEDED


class BatchSummary(BaseModel):
    """Ordered results of a batch run."""
    results: List[RenderResult] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.succeeded)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def failures(self) -> List[RenderResult]:
        return [result for result in self.results if not result.succeeded]

    def as_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "succeeded": self.succeeded, "failed": self.failed}
