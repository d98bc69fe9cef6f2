"""
Build use case — realize a content-addressed profile without pushing it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from deploypush.adapters.base import CommandRunner
from deploypush.core.config.loader import (
    ConfigError,
    TargetSelector,
    find_deploy_file,
    load_deploy_config,
)
from deploypush.core.engine.resolver import resolve_ca_profile
from deploypush.core.errors import DeployError
from deploypush.core.models.profile import ProfileTarget


@dataclass
class BuildResult:
    """Result of a build-only run."""

    target: ProfileTarget | None = None
    realized_path: str | None = None
    error: str | None = None
    deploy_error: DeployError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.realized_path is not None

    def to_dict(self) -> dict:
        if self.error:
            result: dict = {"error": self.error}
            if self.deploy_error is not None:
                result["detail"] = self.deploy_error.to_dict()
            return result
        assert self.target is not None
        return {
            "node": self.target.node_name,
            "profile": self.target.profile_name,
            "realized_path": self.realized_path,
        }


def build_profile(
    selector: TargetSelector,
    supports_flakes: bool,
    runner: CommandRunner,
    config_path: Path | None = None,
    extra_build_args: list[str] | None = None,
) -> BuildResult:
    """Build one content-addressed profile and report its output path.

    The profile's declared path is not consulted; the profile is built
    through its flake attribute.
    """
    result = BuildResult()

    if not selector.node or not selector.profile:
        result.error = "Building requires a node and a profile (<repo>#<node>.<profile>)."
        return result

    try:
        if config_path is None:
            config_path = find_deploy_file()
        if config_path is None:
            result.error = "No deploy.yml found."
            return result
        config = load_deploy_config(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    node = config.get_node(selector.node)
    if node is None or selector.profile not in node.profiles:
        result.error = f"No profile '{selector.profile}' on node '{selector.node}'."
        return result

    result.target = ProfileTarget(
        node_name=selector.node,
        profile_name=selector.profile,
        path=node.profiles[selector.profile].path,
        repo=selector.repo,
    )

    try:
        result.realized_path = resolve_ca_profile(
            result.target,
            supports_flakes,
            runner,
            extra_build_args=extra_build_args,
        )
    except DeployError as e:
        result.error = e.message
        result.deploy_error = e

    return result
