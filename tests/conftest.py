"""
Test Configuration
==================

Pytest configuration with fixtures for all test types.
Provides test settings, spec documents and spec directories.
"""

import json
from pathlib import Path
from typing import Any, Dict, Generator
from unittest.mock import patch

import pytest

from gosling_screenshot.config import settings as settings_module
from gosling_screenshot.config.settings import Settings
from gosling_screenshot.models.schemas import RenderOptions

from tests.utils.helpers import write_spec


# Test settings override
class TestSettings(Settings):
    """Test-specific settings."""

    environment: str = "testing"
    log_level: str = "DEBUG"
    selector_timeout: int = 5000


@pytest.fixture(scope="session")
def test_settings() -> TestSettings:
    """Test settings fixture."""
    return TestSettings(_env_file=None)


@pytest.fixture(autouse=True)
def override_settings(test_settings: TestSettings) -> Generator[TestSettings, None, None]:
    """Override application settings for testing."""
    with patch.object(settings_module, "settings", test_settings):
        yield test_settings


@pytest.fixture
def render_options(test_settings: TestSettings) -> RenderOptions:
    """Render options derived from test settings."""
    return test_settings.render_options()


@pytest.fixture
def sample_spec() -> Dict[str, Any]:
    """A small Gosling spec reading a tab-separated file."""
    return {
        "title": "Sample",
        "tracks": [
            {
                "data": {
                    "url": "https://example.org/peaks.tsv",
                    "type": "csv",
                    "separator": "\t",
                    "chromosomeField": "chrom",
                    "genomicFields": ["start", "end"],
                },
                "mark": "rect",
                "x": {"field": "start", "type": "genomic"},
                "xe": {"field": "end", "type": "genomic"},
                "width": 600,
                "height": 40,
            }
        ],
    }


@pytest.fixture
def sample_spec_json(sample_spec: Dict[str, Any]) -> str:
    """Sample spec serialized; contains a literal backslash sequence."""
    text = json.dumps(sample_spec, indent=2)
    assert "\\t" in text
    return text


@pytest.fixture
def spec_dir(tmp_path: Path, sample_spec: Dict[str, Any]) -> Path:
    """Directory holding two specs plus entries that must be skipped."""
    directory = tmp_path / "specs"
    directory.mkdir()
    write_spec(directory, "alpha.json", sample_spec)
    write_spec(directory, "Beta.JSON", sample_spec)
    (directory / "notes.txt").write_text("not a spec", encoding="utf-8")
    (directory / "image.png").write_bytes(b"\x89PNG")
    (directory / "nested.json").mkdir()
    return directory
