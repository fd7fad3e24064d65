"""
Batch Module
============

Spec discovery and the sequential batch conversion driver.

Components:
- discovery: Resolve a file or directory input into spec sources
- driver: Per-job render-and-write with failure isolation, batch orchestration
"""

from gosling_screenshot.core.batch.discovery import NotFoundError, resolve_inputs, resolve_source
from gosling_screenshot.core.batch.driver import (
    ConfigurationError,
    build_jobs,
    destination_for,
    parse_format,
    process_job,
    render_one,
    run_batch,
)

__all__ = [
    "ConfigurationError",
    "NotFoundError",
    "build_jobs",
    "destination_for",
    "parse_format",
    "process_job",
    "render_one",
    "resolve_inputs",
    "resolve_source",
    "run_batch",
]
