"""
Batch Conversion Driver
=======================

Turn one input (spec file or directory) into one image per spec.

Jobs run one at a time, each with its own browser. A failing job is logged
and recorded; it never aborts the jobs after it.
"""

from typing import Awaitable, Callable, Iterable, Iterator, List, Optional, Union
import asyncio
import time
from pathlib import Path

from gosling_screenshot.config.logging import get_logger
from gosling_screenshot.config.settings import get_settings
from gosling_screenshot.core.batch.discovery import resolve_inputs, resolve_source
from gosling_screenshot.core.rendering.html_generator import HTMLGenerationError, generate_html
from gosling_screenshot.core.rendering.screenshot import ElementScreenshotter, RenderError
from gosling_screenshot.models.schemas import (
    BatchSummary,
    ImageFormat,
    JobStatus,
    RenderJob,
    RenderOptions,
    RenderResult,
    SourceKind,
    SpecSource,
)

logger = get_logger(__name__)

Renderer = Callable[[str, ImageFormat, RenderOptions], Awaitable[bytes]]
ResultCallback = Callable[[RenderResult], None]


class ConfigurationError(Exception):
    """Exception raised for invalid batch configuration."""

    pass


def parse_format(
    fmt: Optional[Union[str, ImageFormat]], output_path: Optional[Path] = None
) -> ImageFormat:
    """
    Determine the output format.

    An explicit format wins; otherwise it is inferred from the suffix of
    ``output_path``, then taken from settings. An ``output_path`` without a
    suffix never constrains the format.

    Raises:
        ConfigurationError: If the format is unsupported or contradicts
            ``output_path``
    """
    try:
        if output_path is not None and output_path.suffix:
            inferred = ImageFormat.from_suffix(output_path.suffix)
            if fmt is not None and ImageFormat.parse(str(_format_value(fmt))) is not inferred:
                raise ConfigurationError(
                    f"Output file '{output_path.name}' does not match format '{_format_value(fmt)}'"
                )
            return inferred
        if fmt is None:
            fmt = get_settings().default_format
        return ImageFormat.parse(str(_format_value(fmt)))
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


def _format_value(fmt: Union[str, ImageFormat]) -> str:
    return fmt.value if isinstance(fmt, ImageFormat) else fmt


def destination_for(source: Path, output_dir: Path, fmt: ImageFormat) -> Path:
    """``<output_dir>/<source name without extension>.<format>``"""
    return output_dir / f"{source.stem}{fmt.extension}"


def build_jobs(
    sources: Iterable[SpecSource], output_dir: Path, fmt: ImageFormat
) -> Iterator[RenderJob]:
    """One render job per spec source."""
    for source in sources:
        yield RenderJob(
            source=source.path,
            destination=destination_for(source.path, output_dir, fmt),
            format=fmt,
        )


async def render_one(
    spec_text: str,
    fmt: ImageFormat,
    options: RenderOptions,
    screenshotter: Optional[ElementScreenshotter] = None,
) -> bytes:
    """
    Render a spec to image bytes.

    Args:
        spec_text: Raw spec file contents
        fmt: Output image format
        options: Rendering options
        screenshotter: Screenshot implementation, a fresh one by default

    Returns:
        Encoded image bytes

    Raises:
        RenderError: If the page cannot be generated, rendered or captured
    """
    try:
        html_content = await generate_html(spec_text, options)
    except HTMLGenerationError as e:
        raise RenderError(str(e)) from e

    screenshotter = screenshotter or ElementScreenshotter()
    return await screenshotter.render_to_element_screenshot(
        html_content, options.selector, options.selector_timeout, fmt, options
    )


def _write_image(destination: Path, image_bytes: bytes) -> int:
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(image_bytes)
    return len(image_bytes)


async def process_job(
    job: RenderJob,
    options: Optional[RenderOptions] = None,
    renderer: Optional[Renderer] = None,
) -> RenderResult:
    """
    Render one job and write its image.

    Never raises for job-level problems: read, render and write failures are
    returned as a failed result carrying the job and the error detail.
    """
    options = options or get_settings().render_options()
    renderer = renderer or render_one
    job_logger = logger.bind(file=job.name, destination=str(job.destination))

    status = JobStatus.PENDING
    started = time.perf_counter()
    try:
        spec_text = await asyncio.to_thread(job.source.read_text, encoding="utf-8")

        status = JobStatus.RENDERING
        job_logger.debug("Rendering spec", status=status.value, format=job.format.value)
        image_bytes = await renderer(spec_text, job.format, options)

        file_size = await asyncio.to_thread(_write_image, job.destination, image_bytes)
    except Exception as e:
        duration = time.perf_counter() - started
        job_logger.error(
            "Render job failed", failed_while=status.value, error=str(e), duration=duration
        )
        return RenderResult(
            job=job,
            status=JobStatus.FAILED,
            error=str(e) or e.__class__.__name__,
            duration=duration,
        )

    duration = time.perf_counter() - started
    job_logger.info("Render job succeeded", file_size=file_size, duration=round(duration, 3))
    return RenderResult(
        job=job, status=JobStatus.SUCCEEDED, file_size=file_size, duration=duration
    )


async def run_batch(
    input_path: Union[str, Path],
    output_dir: Optional[Union[str, Path]] = None,
    fmt: Optional[Union[str, ImageFormat]] = None,
    options: Optional[RenderOptions] = None,
    output_path: Optional[Union[str, Path]] = None,
    renderer: Optional[Renderer] = None,
    on_result: Optional[ResultCallback] = None,
) -> BatchSummary:
    """
    Convert a spec file or directory into images.

    Jobs are processed sequentially in discovery order. Configuration problems
    are detected before any rendering starts.

    Args:
        input_path: Spec file or directory of spec files
        output_dir: Directory for images; required for directory inputs
        fmt: Output image format, defaults to the configured one
        options: Rendering options, defaults to settings
        output_path: Exact destination for a single-file input
        renderer: Render implementation, ``render_one`` by default
        on_result: Called with each result as soon as its job finishes

    Returns:
        Summary of all job results

    Raises:
        ConfigurationError: Unsupported format, missing output directory or no
            spec files found
        NotFoundError: If the input path does not exist
        OSError: If a directory input cannot be listed
    """
    explicit_output = Path(output_path) if output_path is not None else None
    image_format = parse_format(fmt, explicit_output)
    options = options or get_settings().render_options()

    source = resolve_source(input_path)
    batch_logger = logger.bind(input=str(source.path), format=image_format.value)

    if source.kind is SourceKind.DIRECTORY:
        if explicit_output is not None:
            raise ConfigurationError("An output file can only be given for a single spec file")
        if output_dir is None:
            raise ConfigurationError("An output directory is required when the input is a directory")
    elif explicit_output is not None and output_dir is not None:
        raise ConfigurationError("Give either an output file or an output directory, not both")

    if explicit_output is not None:
        jobs: List[RenderJob] = [
            RenderJob(source=source.path, destination=explicit_output.resolve(), format=image_format)
        ]
    else:
        target_dir = Path(output_dir).resolve() if output_dir is not None else source.path.parent
        jobs = list(build_jobs(resolve_inputs(source.path), target_dir, image_format))

    if not jobs:
        raise ConfigurationError(f"No spec files found in {source.path}")

    batch_logger.info("Starting batch", jobs=len(jobs))

    summary = BatchSummary()
    for job in jobs:
        result = await process_job(job, options, renderer)
        summary.results.append(result)
        if on_result is not None:
            on_result(result)

    batch_logger.info("Batch finished", **summary.as_dict())
    return summary
