"""
Deploy file models — nodes, profiles and layered settings.

Loaded from deploy.yml. Settings can be declared at three levels (top
level, node, profile); the most specific non-empty value wins. A value
of None means "not set here", never "disable".
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class GenericSettings(BaseModel):
    """Settings that may appear at any level of the deploy file.

    ``user`` is the account a profile is activated as. Pushing never
    reads it; it is accepted so deploy files written for activation
    validate unchanged.
    """

    ssh_user: str | None = None
    user: str | None = None
    ssh_opts: list[str] | None = None
    fast_connection: bool | None = None

    def merged_over(self, base: GenericSettings) -> GenericSettings:
        """Return these settings with unset fields filled from ``base``."""
        own = self.generic_fields()
        inherited = base.generic_fields()
        return GenericSettings(
            **{k: own[k] if own[k] is not None else inherited[k] for k in own}
        )

    def generic_fields(self) -> dict:
        return {name: getattr(self, name) for name in GenericSettings.model_fields}


class ProfileConfig(GenericSettings):
    """A profile declaration: the path to push plus optional settings."""

    path: str


class NodeConfig(GenericSettings):
    """A node declaration: where it lives and which profiles it carries."""

    hostname: str
    profiles: dict[str, ProfileConfig] = Field(default_factory=dict)
    profiles_order: list[str] = Field(default_factory=list)

    def ordered_profiles(self) -> list[str]:
        """Profile names in deploy order: profiles_order first, then the rest."""
        ordered = [name for name in self.profiles_order if name in self.profiles]
        ordered.extend(name for name in self.profiles if name not in ordered)
        return ordered


class DeployConfig(GenericSettings):
    """Root of the deploy file."""

    nodes: dict[str, NodeConfig] = Field(default_factory=dict)

    def get_node(self, name: str) -> NodeConfig | None:
        return self.nodes.get(name)
