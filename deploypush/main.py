"""
Deploy Push — CLI entrypoint.

Usage:
    deploypush --help
    deploypush push .#web1.system
    deploypush build .#web1.system
    deploypush config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from deploypush import __version__
from deploypush.core.observability.logging_config import (
    ENV_LOG_FILE,
    ENV_LOG_FILE_LEVEL,
    resolve_level,
    setup_logging,
)

_STAGE_MARKERS = {
    "signed": "🔏",
    "skipped_sign": "⊘",
    "copied": "📦",
    "done": "✓",
    "failed": "✗",
}


@click.group()
@click.version_option(version=__version__, prog_name="deploypush")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to deploy.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Deploy Push — build profiles and push them to your nodes."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(ENV_LOG_FILE),
        log_file_level=os.environ.get(ENV_LOG_FILE_LEVEL),
    )


def _flake_option(func):
    return click.option(
        "--flakes/--no-flakes",
        "supports_flakes",
        default=None,
        help="Force the flake / legacy build dialect (default: detect).",
    )(func)


# ── push ────────────────────────────────────────────────────────


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("target", default=".")
@click.argument("extra_build_args", nargs=-1, type=click.UNPROCESSED)
@click.option("--node", default=None, help="Node to push (overrides TARGET's node).")
@click.option("--profile", default=None, help="Profile to push (requires a node).")
@click.option("--hostname", default=None, help="Override the node's hostname.")
@click.option("--ssh-user", default=None, help="Override the ssh user.")
@click.option("--ssh-opts", default=None, help="Override ssh options (space separated).")
@click.option(
    "--fast-connection/--slow-connection",
    "fast_connection",
    default=None,
    help="Whether the node can fetch from substituters itself.",
)
@click.option("--check-sigs", is_flag=True, help="Require valid signatures on copy.")
@click.option("--keep-result", is_flag=True, help="Keep a GC root for each build result.")
@click.option("--result-path", default=None, help="Where to keep build results.")
@_flake_option
@click.option("--jobs", "-j", default=1, type=click.IntRange(min=1), help="Profiles pushed at once.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def push(
    ctx: click.Context,
    target: str,
    extra_build_args: tuple[str, ...],
    node: str | None,
    profile: str | None,
    hostname: str | None,
    ssh_user: str | None,
    ssh_opts: str | None,
    fast_connection: bool | None,
    check_sigs: bool,
    keep_result: bool,
    result_path: str | None,
    supports_flakes: bool | None,
    jobs: int,
    as_json: bool,
) -> None:
    """Build, verify, sign and copy profiles to their nodes.

    TARGET is <repo>[#<node>[.<profile>]] and defaults to ".". Arguments
    after TARGET (or after ``--`` when TARGET is omitted) are passed to
    the build command verbatim.
    """
    from deploypush.core.config.loader import CommandOverrides, parse_target
    from deploypush.core.use_cases.push import push_profiles

    # ``push -- --show-trace`` lands the first build argument in TARGET
    if target.startswith("-"):
        extra_build_args = (target, *extra_build_args)
        target = "."

    selector = parse_target(target)
    if node:
        selector.node = node
    if profile:
        selector.profile = profile

    overrides = CommandOverrides(
        hostname=hostname,
        ssh_user=ssh_user,
        ssh_opts=ssh_opts.split() if ssh_opts is not None else None,
        fast_connection=fast_connection,
        check_sigs=check_sigs,
        keep_result=keep_result,
        result_path=result_path,
        extra_build_args=list(extra_build_args),
    )

    result = push_profiles(
        selector,
        config_path=ctx.obj.get("config_path"),
        overrides=overrides,
        supports_flakes=supports_flakes,
        jobs=jobs,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.all_ok else 1)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    for p in result.pushes:
        outcome = p.outcome
        label = outcome.target.label
        if p.ok:
            click.secho(f"✅ {label}", fg="green", bold=True, nl=False)
            click.echo(f"  → {p.settings.target_host} ({p.duration_ms} ms)")
            if outcome.realized_path:
                click.echo(f"   Realized: {outcome.realized_path}")
        else:
            assert outcome.error is not None
            click.secho(f"❌ {label}", fg="red", bold=True, nl=False)
            click.echo(f"  [{outcome.error.phase}] {outcome.error.kind}")
            for line in outcome.error.message.splitlines():
                click.echo(f"   {line}")

        if not ctx.obj.get("quiet"):
            trail = " ".join(
                _STAGE_MARKERS.get(s.value, "·") + s.value for s in outcome.stages
            )
            click.echo(f"   {trail}")

    click.echo()
    summary_color = "green" if result.all_ok else "red"
    click.secho(
        f"{result.succeeded} pushed, {result.failed} failed", fg=summary_color
    )
    if not result.all_ok:
        sys.exit(1)


# ── build ───────────────────────────────────────────────────────


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("target")
@click.argument("extra_build_args", nargs=-1, type=click.UNPROCESSED)
@_flake_option
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def build(
    ctx: click.Context,
    target: str,
    extra_build_args: tuple[str, ...],
    supports_flakes: bool | None,
    as_json: bool,
) -> None:
    """Build a content-addressed profile and print its output path.

    TARGET is <repo>#<node>.<profile>.
    """
    from deploypush.adapters.shell.command import SubprocessRunner
    from deploypush.core.config.loader import parse_target
    from deploypush.core.engine.probe import detect_flake_support
    from deploypush.core.use_cases.build import build_profile

    runner = SubprocessRunner()
    if supports_flakes is None:
        supports_flakes = detect_flake_support(runner)

    result = build_profile(
        parse_target(target),
        supports_flakes=supports_flakes,
        runner=runner,
        config_path=ctx.obj.get("config_path"),
        extra_build_args=list(extra_build_args),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if not result.ok:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    click.echo(result.realized_path)


# ── config ──────────────────────────────────────────────────────


@cli.group()
def config() -> None:
    """Deploy configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate deploy.yml configuration."""
    from deploypush.core.use_cases.config_check import check_config
    from deploypush.core.use_cases.push import PushEnvironment

    result = check_config(
        config_path=ctx.obj.get("config_path"),
        store_dir=PushEnvironment.from_environ().store_dir,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.config is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Nodes: {len(result.config.nodes)}")
        click.echo(f"   Profiles: {result.profile_count}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
