"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from deploypush.adapters.mock import MockRunner
from deploypush.core.models.profile import DeploymentSettings, ProfileTarget


def make_profile_dir(path: Path, deploy_rs_activate: bool = True, activate_rs: bool = True) -> Path:
    """Create a directory that looks like a built profile."""
    path.mkdir(parents=True, exist_ok=True)
    if deploy_rs_activate:
        (path / "deploy-rs-activate").write_text("#!/bin/sh\n")
    if activate_rs:
        (path / "activate-rs").write_text("#!/bin/sh\n")
    return path


@pytest.fixture
def runner() -> MockRunner:
    """A mock runner where every command succeeds with empty output."""
    return MockRunner()


@pytest.fixture
def store_dir(tmp_path: Path) -> str:
    """A fake store prefix inside the test's temp directory."""
    store = tmp_path / "nix" / "store"
    store.mkdir(parents=True)
    return str(store)


@pytest.fixture
def store_profile(store_dir: str) -> Path:
    """A built profile living under the fake store."""
    return make_profile_dir(Path(store_dir) / "abc123-activatable-system")


@pytest.fixture
def settings() -> DeploymentSettings:
    return DeploymentSettings(
        supports_flakes=True,
        ssh_user="deploy",
        hostname="web1.example.com",
    )


@pytest.fixture
def ca_target() -> ProfileTarget:
    return ProfileTarget(
        node_name="web1",
        profile_name="system",
        path="/0aqdmr5jl2jz4g7q3cg6zdbv2f0ibjnqwrl4x1imdafw1j8sbsm2",
        repo=".",
    )


@pytest.fixture
def make_profile():
    """Factory creating built-profile directories."""
    return make_profile_dir
