"""
Config check use case — validate deploy.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from deploypush.core.config.loader import ConfigError, find_deploy_file, load_deploy_config
from deploypush.core.models.deploy import DeployConfig
from deploypush.core.models.profile import NIX_STORE_DIR


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: DeployConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def profile_count(self) -> int:
        if self.config is None:
            return 0
        return sum(len(n.profiles) for n in self.config.nodes.values())

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "node_count": len(self.config.nodes) if self.config else 0,
            "profile_count": self.profile_count,
        }


def check_config(
    config_path: Path | None = None,
    store_dir: str = NIX_STORE_DIR,
) -> ConfigCheckResult:
    """Validate the deploy file and report issues.

    Args:
        config_path: Optional explicit path to deploy.yml.
        store_dir: Store prefix used to flag content-addressed profiles.

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_deploy_file()
    if config_path is None:
        result.errors.append("No deploy.yml found.")
        return result
    result.config_path = config_path

    try:
        config = load_deploy_config(config_path)
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    result.config = config

    if not config.nodes:
        result.warnings.append("No nodes defined")

    for node_name, node in config.nodes.items():
        if not node.profiles:
            result.warnings.append(f"Node '{node_name}' has no profiles")

        for name in node.profiles_order:
            if name not in node.profiles:
                result.errors.append(
                    f"Node '{node_name}' lists unknown profile '{name}' in profiles_order"
                )

        for profile_name, profile in node.profiles.items():
            if not profile.path.startswith(store_dir):
                result.warnings.append(
                    f"Profile '{node_name}.{profile_name}' is outside {store_dir}; "
                    "it will be built as a content-addressed derivation (flakes required)"
                )

    result.valid = len(result.errors) == 0
    return result
