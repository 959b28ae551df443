"""
Repository-level pytest configuration.

Keeps the configuration singleton and the logger independent between
test modules so that environment overrides set by one test never leak
into another.
"""

from __future__ import annotations

from pathlib import Path
from typing import Generator

import pytest

from wikisuites.common.config_loader import ConfigLoader


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session")
def config_file(project_root: Path) -> Path:
    """Default configuration file shipped with the suites."""
    return project_root / "config" / "config.yaml"


@pytest.fixture(scope="module", autouse=True)
def _fresh_config() -> Generator[None, None, None]:
    """Drop the cached configuration between modules."""
    ConfigLoader.reset()
    yield
    ConfigLoader.reset()
