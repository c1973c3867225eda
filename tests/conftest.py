"""Shared fixtures for unit tests."""

from __future__ import annotations

import pytest

_HERALD_ENV_VARS = (
    "HERALD_GITHUB_API",
    "BUILD_ID",
    "BUILD_NAME",
    "BUILD_JOB_NAME",
    "BUILD_PIPELINE_NAME",
    "BUILD_PIPELINE_INSTANCE_VARS",
    "BUILD_TEAM_NAME",
    "ATC_EXTERNAL_URL",
)


@pytest.fixture(autouse=True)
def clean_build_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test outside any Concourse build or GitHub override."""
    for name in _HERALD_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
