"""
Pytest configuration and shared fixtures for Vigil tests.
"""

import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from vigil.heartbeat.workspace import HeartbeatWorkspace


def create_test_config_content(temp_dir: Path, **overrides) -> str:
    """
    Generate test configuration YAML content.

    Args:
        temp_dir: Temporary directory for the workspace and log file.
        **overrides: Heartbeat settings to override (interval_seconds, ...).

    Returns:
        YAML configuration content as string.
    """
    interval = overrides.get("interval_seconds", 300)
    grace = overrides.get("startup_grace_seconds", 0.5)

    return f"""
workspace:
  path: {temp_dir}/workspace

heartbeat:
  interval_seconds: {interval}
  startup_grace_seconds: {grace}
  log_level: INFO

merkle:
  parallel: false
  max_workers: 2

logging:
  level: ERROR
  file: {temp_dir}/vigil.log
  format: json
"""


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test files.

    Yields:
        Path to temporary directory that is cleaned up after test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def workspace(temp_dir: Path) -> HeartbeatWorkspace:
    """Heartbeat workspace rooted in a fresh directory."""
    ws = HeartbeatWorkspace(temp_dir / "workspace")
    ws.ensure_dirs()
    return ws


@pytest.fixture
def sample_config_path(temp_dir: Path) -> Path:
    """
    Create a sample configuration file for testing.

    Args:
        temp_dir: Temporary directory fixture.

    Returns:
        Path to sample config file.
    """
    config_path = temp_dir / "config.yaml"
    config_path.write_text(create_test_config_content(temp_dir))
    return config_path


# Hypothesis settings for property-based tests
from hypothesis import HealthCheck, Verbosity, settings  # noqa: E402

# Each tree build costs 255 Poseidon calls, so example counts stay small
settings.register_profile(
    "vigil",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
    verbosity=Verbosity.normal,
)
settings.register_profile("vigil-ci", max_examples=50, deadline=None, verbosity=Verbosity.verbose)
settings.register_profile("vigil-dev", max_examples=3, deadline=None, verbosity=Verbosity.verbose)

# Load profile from environment or use default
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "vigil"))
