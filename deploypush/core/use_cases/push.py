"""
Push use case — push one or many profiles to their nodes.

This is the top-level orchestrator: it loads the deploy file, resolves
the environment once, works out flake support, runs one pipeline per
selected profile and records every outcome in the push ledger.

Pipelines of different profiles share nothing, so they can run side
by side (``jobs > 1``); each pipeline on its own stays sequential.
"""

from __future__ import annotations

import logging
import os
import time
import uuid
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from deploypush.adapters.base import CommandRunner
from deploypush.core.config.loader import (
    CommandOverrides,
    ConfigError,
    TargetSelector,
    find_deploy_file,
    load_deploy_config,
    project_root,
    resolve_targets,
)
from deploypush.core.engine.pipeline import PushOutcome, push_profile
from deploypush.core.engine.probe import detect_flake_support
from deploypush.core.models.profile import NIX_STORE_DIR, DeploymentSettings, ProfileTarget
from deploypush.core.persistence.audit import AuditWriter, PushAuditEntry

logger = logging.getLogger(__name__)

# Signing key for `nix sign-paths`; unset means "don't sign"
ENV_SIGNING_KEY = "LOCAL_KEY"
ENV_STORE_DIR = "NIX_STORE_DIR"


@dataclass(frozen=True)
class PushEnvironment:
    """Process environment, read once before any pipeline starts."""

    signing_key: str | None = None
    store_dir: str = NIX_STORE_DIR

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> PushEnvironment:
        env = os.environ if environ is None else environ
        return cls(
            signing_key=env.get(ENV_SIGNING_KEY) or None,
            store_dir=env.get(ENV_STORE_DIR) or NIX_STORE_DIR,
        )


@dataclass
class ProfilePush:
    """One profile's outcome plus the settings it ran with."""

    outcome: PushOutcome
    settings: DeploymentSettings
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.outcome.ok

    def to_dict(self) -> dict:
        return {
            **self.outcome.to_dict(),
            "hostname": self.settings.target_host,
            "duration_ms": self.duration_ms,
        }


@dataclass
class PushResult:
    """Result of a push run across all selected profiles."""

    operation_id: str = ""
    config_path: Path | None = None
    supports_flakes: bool | None = None
    pushes: list[ProfilePush] = field(default_factory=list)
    error: str | None = None

    @property
    def succeeded(self) -> int:
        return sum(1 for p in self.pushes if p.ok)

    @property
    def failed(self) -> int:
        return sum(1 for p in self.pushes if not p.ok)

    @property
    def all_ok(self) -> bool:
        return self.error is None and self.failed == 0

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "operation_id": self.operation_id,
            "config_path": str(self.config_path) if self.config_path else None,
            "supports_flakes": self.supports_flakes,
            "status": "ok" if self.all_ok else "failed",
            "succeeded": self.succeeded,
            "failed": self.failed,
            "profiles": [p.to_dict() for p in self.pushes],
        }


def generate_operation_id() -> str:
    """Generate a unique push operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"push-{now}-{short}"


def _run_one(
    target: ProfileTarget,
    settings: DeploymentSettings,
    runner: CommandRunner,
    env: PushEnvironment,
) -> ProfilePush:
    start = time.monotonic()
    outcome = push_profile(
        target,
        settings,
        runner,
        signing_key=env.signing_key,
        store_dir=env.store_dir,
    )
    elapsed_ms = int((time.monotonic() - start) * 1000)
    return ProfilePush(outcome=outcome, settings=settings, duration_ms=elapsed_ms)


def _audit_entry(operation_id: str, push: ProfilePush) -> PushAuditEntry:
    outcome = push.outcome
    error = outcome.error
    return PushAuditEntry(
        operation_id=operation_id,
        node=outcome.target.node_name,
        profile=outcome.target.profile_name,
        hostname=push.settings.target_host,
        path=outcome.target.path,
        realized_path=outcome.realized_path,
        status="ok" if push.ok else "failed",
        stages=[s.value for s in outcome.stages],
        duration_ms=push.duration_ms,
        error_kind=error.kind if error else None,
        error_phase=error.phase if error else None,
        error_message=error.message if error else None,
    )


def push_profiles(
    selector: TargetSelector,
    config_path: Path | None = None,
    overrides: CommandOverrides | None = None,
    supports_flakes: bool | None = None,
    runner: CommandRunner | None = None,
    jobs: int = 1,
    environ: Mapping[str, str] | None = None,
    audit: bool = True,
) -> PushResult:
    """Build, verify, sign and copy every selected profile.

    Args:
        selector: Repository plus optional node/profile selection.
        config_path: Optional explicit path to deploy.yml.
        overrides: Command-line setting overrides.
        supports_flakes: Force the build dialect. None = probe ``nix``.
        runner: Command runner (default: real subprocesses).
        jobs: Maximum number of profiles pushed at the same time.
        environ: Environment to read LOCAL_KEY / NIX_STORE_DIR from.
        audit: Whether to append outcomes to the push ledger.

    Returns:
        PushResult with one entry per selected profile, or ``error`` set
        if the configuration could not be loaded.
    """
    result = PushResult(operation_id=generate_operation_id())
    overrides = overrides or CommandOverrides()

    if runner is None:
        from deploypush.adapters.shell.command import SubprocessRunner

        runner = SubprocessRunner()

    env = PushEnvironment.from_environ(environ)

    # ── Load deploy config ───────────────────────────────────────
    try:
        if config_path is None:
            config_path = find_deploy_file()
        if config_path is None:
            result.error = "No deploy.yml found."
            return result
        result.config_path = config_path
        config = load_deploy_config(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    # ── Flake support ────────────────────────────────────────────
    if supports_flakes is None:
        supports_flakes = detect_flake_support(runner)
        logger.info("Flake support detected: %s", supports_flakes)
    result.supports_flakes = supports_flakes

    try:
        targets = resolve_targets(config, selector, overrides, supports_flakes)
    except ConfigError as e:
        result.error = str(e)
        return result

    # ── Push ─────────────────────────────────────────────────────
    if jobs > 1 and len(targets) > 1:
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            futures = [
                pool.submit(_run_one, target, settings, runner, env)
                for target, settings in targets
            ]
            result.pushes = [f.result() for f in futures]
    else:
        result.pushes = [
            _run_one(target, settings, runner, env) for target, settings in targets
        ]

    # ── Ledger ───────────────────────────────────────────────────
    if audit:
        writer = AuditWriter(project_root=project_root(config_path))
        for push in result.pushes:
            writer.write(_audit_entry(result.operation_id, push))

    logger.info(
        "Push %s finished: %d ok, %d failed",
        result.operation_id,
        result.succeeded,
        result.failed,
    )
    return result
