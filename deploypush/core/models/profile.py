"""
Profile models — what is being pushed, and how.

A push takes exactly two inputs from the configuration layer: the
ProfileTarget (which unit, from which repository) and the merged
DeploymentSettings (how to build and where to send it). Both are
immutable for the duration of one push.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Prefix of every realized store path
NIX_STORE_DIR = "/nix/store"

# Where retained build results go when no result path is configured
DEFAULT_RESULT_DIR = "./.deploy-gc"


class ProfileTarget(BaseModel):
    """Identifies one deployment unit: a profile on a node.

    ``path`` is either a concrete store path or, for content-addressed
    profiles, a reference whose output location is not known until it
    has been built.
    """

    model_config = ConfigDict(frozen=True)

    node_name: str
    profile_name: str
    path: str
    repo: str = "."

    @property
    def label(self) -> str:
        """Short human-readable identifier, e.g. ``web1.system``."""
        return f"{self.node_name}.{self.profile_name}"

    @property
    def flake_attribute(self) -> str:
        """Installable that evaluates to this profile's path in the flake."""
        return (
            f"{self.repo}#deploy.nodes.{self.node_name}"
            f".profiles.{self.profile_name}.path"
        )

    def is_content_addressed(self, store_dir: str = NIX_STORE_DIR) -> bool:
        """Whether the path is not (yet) a concrete store path."""
        return not self.path.startswith(store_dir)


class DeploymentSettings(BaseModel):
    """Per-profile settings, already merged across config layers and overrides."""

    model_config = ConfigDict(frozen=True)

    supports_flakes: bool = True
    check_sigs: bool = False
    fast_connection: bool | None = None
    ssh_opts: list[str] = Field(default_factory=list)
    ssh_user: str
    hostname: str
    hostname_override: str | None = None   # command line wins over node default
    extra_build_args: list[str] = Field(default_factory=list)
    keep_result: bool = False
    result_path: str | None = None

    @property
    def target_host(self) -> str:
        """Host to copy to: the override when given, else the node default."""
        return self.hostname_override or self.hostname

    @property
    def remote_store_uri(self) -> str:
        return f"ssh://{self.ssh_user}@{self.target_host}"

    @property
    def result_dir(self) -> str:
        return self.result_path or DEFAULT_RESULT_DIR
