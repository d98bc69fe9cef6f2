"""
Configuration loader — reads deploy.yml into push targets.

This is the bridge between the deploy file and the pipeline. It reads
YAML, validates it against Pydantic schemas, merges settings across the
three levels of the file plus command-line overrides, and returns fully
resolved (ProfileTarget, DeploymentSettings) pairs.

JSON is valid YAML, so the output of ``nix eval --json <flake>#deploy``
can be saved as the deploy file unchanged.
"""

from __future__ import annotations

import getpass
import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from pydantic import ValidationError

from deploypush.core.models.deploy import DeployConfig, GenericSettings
from deploypush.core.models.profile import DeploymentSettings, ProfileTarget

logger = logging.getLogger(__name__)

# Default config filename
DEPLOY_CONFIG_FILE = "deploy.yml"


class ConfigError(Exception):
    """Raised when deploy configuration is invalid, missing, or selects nothing."""


@dataclass
class CommandOverrides:
    """Settings given on the command line; None means "not given"."""

    hostname: str | None = None
    ssh_user: str | None = None
    ssh_opts: list[str] | None = None
    fast_connection: bool | None = None
    check_sigs: bool = False
    keep_result: bool = False
    result_path: str | None = None
    extra_build_args: list[str] = field(default_factory=list)


@dataclass
class TargetSelector:
    """Which profiles to push: a repository and an optional node/profile."""

    repo: str = "."
    node: str | None = None
    profile: str | None = None


def parse_target(text: str) -> TargetSelector:
    """Parse ``<repo>[#<node>[.<profile>]]`` into a selector.

    Examples:
        ``.``                → repo '.', all nodes
        ``.#web1``           → node 'web1', all its profiles
        ``github:o/r#web1.system`` → node 'web1', profile 'system'
    """
    repo, sep, fragment = text.partition("#")
    selector = TargetSelector(repo=repo or ".")
    if not sep or not fragment:
        return selector

    node, dot, profile = fragment.partition(".")
    selector.node = node or None
    if dot and profile:
        selector.profile = profile
    return selector


def find_deploy_file(start_dir: Path | None = None) -> Path | None:
    """Search for deploy.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to deploy.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / DEPLOY_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_deploy_config(path: Path | None = None) -> DeployConfig:
    """Load and validate the deploy file.

    Args:
        path: Explicit path to deploy.yml. If None, searches upward.

    Returns:
        Validated DeployConfig model.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_deploy_file()

    if path is None:
        raise ConfigError(
            f"No {DEPLOY_CONFIG_FILE} found. Create one next to your flake, "
            "or specify --config."
        )

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading deploy config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # Output of `nix eval .#deploy` may arrive wrapped in a "deploy" key
    if "deploy" in data and "nodes" not in data:
        data = data["deploy"]

    try:
        config = DeployConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid deploy configuration in {path}: {e}") from e

    logger.info("Loaded deploy config with %d nodes", len(config.nodes))
    return config


def merge_settings(
    config: DeployConfig,
    node_name: str,
    profile_name: str,
    overrides: CommandOverrides,
    supports_flakes: bool,
) -> DeploymentSettings:
    """Merge profile > node > top-level settings, then apply overrides.

    Raises:
        ConfigError: If the node or profile does not exist.
    """
    node = config.get_node(node_name)
    if node is None:
        raise ConfigError(f"No node named '{node_name}' in deploy configuration")
    profile = node.profiles.get(profile_name)
    if profile is None:
        raise ConfigError(f"No profile named '{profile_name}' on node '{node_name}'")

    base = GenericSettings(**config.generic_fields())
    merged = profile.merged_over(node.merged_over(base))

    ssh_user = overrides.ssh_user or merged.ssh_user or getpass.getuser()
    ssh_opts = overrides.ssh_opts if overrides.ssh_opts is not None else merged.ssh_opts
    fast_connection = (
        overrides.fast_connection
        if overrides.fast_connection is not None
        else merged.fast_connection
    )

    return DeploymentSettings(
        supports_flakes=supports_flakes,
        check_sigs=overrides.check_sigs,
        fast_connection=fast_connection,
        ssh_opts=list(ssh_opts or []),
        ssh_user=ssh_user,
        hostname=node.hostname,
        hostname_override=overrides.hostname,
        extra_build_args=list(overrides.extra_build_args),
        keep_result=overrides.keep_result,
        result_path=overrides.result_path,
    )


def select_profiles(
    config: DeployConfig,
    selector: TargetSelector,
) -> list[tuple[str, str]]:
    """Return (node, profile) pairs named by the selector, in deploy order.

    Raises:
        ConfigError: If a named node or profile does not exist, or the
            selection is empty.
    """
    if selector.profile and not selector.node:
        raise ConfigError("A profile can only be selected together with its node")

    if selector.node:
        node = config.get_node(selector.node)
        if node is None:
            raise ConfigError(f"No node named '{selector.node}' in deploy configuration")
        node_names = [selector.node]
    else:
        node_names = list(config.nodes)

    pairs: list[tuple[str, str]] = []
    for node_name in node_names:
        node = config.nodes[node_name]
        if selector.profile:
            if selector.profile not in node.profiles:
                raise ConfigError(
                    f"No profile named '{selector.profile}' on node '{node_name}'"
                )
            pairs.append((node_name, selector.profile))
        else:
            pairs.extend((node_name, name) for name in node.ordered_profiles())

    if not pairs:
        raise ConfigError("No profiles selected for deployment")
    return pairs


def resolve_targets(
    config: DeployConfig,
    selector: TargetSelector,
    overrides: CommandOverrides,
    supports_flakes: bool,
) -> list[tuple[ProfileTarget, DeploymentSettings]]:
    """Resolve a selection into fully merged push inputs."""
    resolved = []
    for node_name, profile_name in select_profiles(config, selector):
        profile = config.nodes[node_name].profiles[profile_name]
        target = ProfileTarget(
            node_name=node_name,
            profile_name=profile_name,
            path=profile.path,
            repo=selector.repo,
        )
        settings = merge_settings(
            config, node_name, profile_name, overrides, supports_flakes
        )
        resolved.append((target, settings))
    return resolved


def project_root(config_path: Path) -> Path:
    """Get the project root directory from a config file path."""
    return config_path.parent.resolve()
