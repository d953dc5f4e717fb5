"""Pytest configuration for the i18nvault test suite.

Single Source of Truth for Hypothesis max_examples:
- dev: Local development with 500 examples (thorough property testing)
- ci: GitHub Actions with 50 examples (fast CI feedback)
- verbose: Debug mode with progress output (100 examples)

Profile auto-detection:
- CI=true environment variable -> "ci" profile (GitHub Actions sets this)
- HYPOTHESIS_PROFILE env var -> explicit override
- Otherwise -> "dev" profile (local development)

Override manually: HYPOTHESIS_PROFILE=verbose pytest tests/

Workspace fixtures build a throwaway catalog workspace under tmp_path with
three locales (en baseline, es mostly translated, fr partially translated).
"""

from __future__ import annotations

import copy
import os
from pathlib import Path

import pytest
from hypothesis import HealthCheck, Phase, Verbosity, settings

from i18nvault.config import CatalogConfig
from i18nvault.service import CatalogService
from tests.helpers.catalogs import (
    ADMIN_TOKEN,
    EN_CATALOG,
    ES_CATALOG,
    FR_CATALOG,
    write_catalog,
)

# =============================================================================
# HYPOTHESIS PROFILES - SINGLE SOURCE OF TRUTH
# =============================================================================

# Development profile: thorough local testing (500 examples, silent)
settings.register_profile(
    "dev",
    max_examples=500,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    derandomize=False,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)

# CI profile: fast feedback for GitHub Actions (50 examples)
settings.register_profile(
    "ci",
    max_examples=50,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    derandomize=True,
    print_blob=True,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)

# Verbose profile: debug mode with progress visibility (100 examples)
settings.register_profile(
    "verbose",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    derandomize=False,
    verbosity=Verbosity.verbose,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)


# =============================================================================
# AUTO-DETECT EXECUTION CONTEXT
# =============================================================================


def _detect_profile() -> str:
    """Detect appropriate Hypothesis profile based on execution context.

    Priority:
    1. HYPOTHESIS_PROFILE env var (explicit override)
    2. CI=true env var (GitHub Actions auto-detection)
    3. Default to "dev" (local development)
    """
    explicit = os.environ.get("HYPOTHESIS_PROFILE")
    if explicit in ("dev", "ci", "verbose"):
        return explicit

    if os.environ.get("CI") == "true":
        return "ci"

    return "dev"


settings.load_profile(_detect_profile())


# =============================================================================
# WORKSPACE FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep I18NVAULT_* and API key variables from leaking into tests."""
    for name in list(os.environ):
        if name.startswith("I18NVAULT_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Workspace root holding en/es/fr catalogs."""
    write_catalog(tmp_path, "en", copy.deepcopy(EN_CATALOG))
    write_catalog(tmp_path, "es", copy.deepcopy(ES_CATALOG))
    write_catalog(tmp_path, "fr", copy.deepcopy(FR_CATALOG))
    return tmp_path


@pytest.fixture
def config(workspace: Path) -> CatalogConfig:
    """Configuration with an admin token and a small snapshot cap."""
    return CatalogConfig(root=workspace, admin_token=ADMIN_TOKEN, snapshot_limit=3)


@pytest.fixture
def service(config: CatalogConfig) -> CatalogService:
    """Service without a translation client."""
    return CatalogService(config)
