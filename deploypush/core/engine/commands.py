"""
Command construction — every external invocation the pipeline makes.

These functions are pure: they turn targets and settings into
CommandSpecs and never run anything. Keeping construction separate
from execution is what lets the command lines be tested exactly.
"""

from __future__ import annotations

from deploypush.adapters.base import CommandSpec
from deploypush.core.models.profile import DeploymentSettings, ProfileTarget

# Environment variable the copy tool reads its ssh options from
SSH_OPTS_ENV = "NIX_SSHOPTS"


def link_args(target: ProfileTarget, settings: DeploymentSettings) -> list[str]:
    """Result-link policy flags, in the dialect matching flake support.

    Retained results are namespaced by node and profile so parallel
    pushes of different profiles never share a link.
    """
    if settings.keep_result:
        return [
            "--out-link",
            f"{settings.result_dir}/{target.node_name}/{target.profile_name}",
        ]
    if settings.supports_flakes:
        return ["--no-link"]
    return ["--no-out-link"]


def show_derivation_command(path: str) -> CommandSpec:
    return CommandSpec(
        program="nix",
        args=["show-derivation", path],
        stdout="capture",
    )


def ca_resolve_command(
    target: ProfileTarget,
    extra_build_args: list[str],
) -> CommandSpec:
    """Standalone build of a content-addressed profile, printing its output path."""
    return CommandSpec(
        program="nix",
        args=[
            "build",
            target.flake_attribute,
            "--no-link",
            *extra_build_args,
            "--print-out-paths",
        ],
        stdout="capture",
    )


def ca_build_command(
    target: ProfileTarget,
    settings: DeploymentSettings,
) -> CommandSpec:
    """Build a content-addressed profile; stdout carries the realized path."""
    return CommandSpec(
        program="nix",
        args=[
            "build",
            target.flake_attribute,
            *link_args(target, settings),
            *settings.extra_build_args,
            "--print-out-paths",
        ],
        stdout="capture",
    )


def derivation_build_command(
    derivation: str,
    target: ProfileTarget,
    settings: DeploymentSettings,
) -> CommandSpec:
    """Build a known derivation; the store path is already authoritative."""
    if settings.supports_flakes:
        program, head = "nix", ["build", derivation]
    else:
        program, head = "nix-build", [derivation]

    return CommandSpec(
        program=program,
        args=[*head, *link_args(target, settings), *settings.extra_build_args],
        # Progress goes to stderr; the printed store path is just noise
        stdout="discard",
    )


def sign_command(signing_key: str, path: str) -> CommandSpec:
    return CommandSpec(
        program="nix",
        args=["sign-paths", "-r", "-k", signing_key, path],
    )


def ssh_opts_string(ssh_opts: list[str]) -> str:
    """Join ssh options for the transport variable.

    Options are not quoted individually, so an option containing a
    space will be split by the copy tool.
    """
    return " ".join(ssh_opts)


def copy_command(path: str, settings: DeploymentSettings) -> CommandSpec:
    args = ["copy"]

    if settings.fast_connection is not True:
        args.append("--substitute-on-destination")

    if not settings.check_sigs:
        args.append("--no-check-sigs")

    args.extend(["--to", settings.remote_store_uri, path])

    return CommandSpec(
        program="nix",
        args=args,
        env={SSH_OPTS_ENV: ssh_opts_string(settings.ssh_opts)},
    )


def flake_probe_command() -> CommandSpec:
    """Evaluates ``builtins.getFlake``, which only exists with flakes enabled."""
    return CommandSpec(
        program="nix",
        args=["eval", "--expr", "builtins.getFlake"],
        stdout="discard",
    )
