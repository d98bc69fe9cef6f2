"""
Push pipeline — build, verify, sign and copy one profile.

Flow (strictly sequential, one external process at a time):

    START → BUILD_STORE_LOOKUP | BUILD_CONTENT_ADDRESSED
          → BUILT → VERIFIED → SIGNED | SKIPPED_SIGN → COPIED → DONE

Any failure moves the pipeline to FAILED and stops it. Nothing is
retried and nothing is rolled back here; rolling back a node is the
remote activation's job.

The pipeline holds no state shared with other pipelines, so pushes of
different profiles may run concurrently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from deploypush.adapters.base import CommandRunner
from deploypush.core.engine.builder import build_content_addressed, build_store_path
from deploypush.core.engine.transfer import copy_artifact, sign_artifact
from deploypush.core.engine.verify import verify_activation
from deploypush.core.errors import DeployError
from deploypush.core.models.artifact import RealizedArtifact
from deploypush.core.models.profile import NIX_STORE_DIR, DeploymentSettings, ProfileTarget

logger = logging.getLogger(__name__)


class PushStage(str, Enum):
    START = "start"
    BUILD_STORE_LOOKUP = "build_store_lookup"
    BUILD_CONTENT_ADDRESSED = "build_content_addressed"
    BUILT = "built"
    VERIFIED = "verified"
    SIGNED = "signed"
    SKIPPED_SIGN = "skipped_sign"
    COPIED = "copied"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PushOutcome:
    """Result of one pipeline run: success, or exactly one tagged error."""

    target: ProfileTarget
    stages: list[PushStage] = field(default_factory=list)
    artifact: RealizedArtifact | None = None
    error: DeployError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.final_stage == PushStage.DONE

    @property
    def final_stage(self) -> PushStage | None:
        return self.stages[-1] if self.stages else None

    @property
    def realized_path(self) -> str | None:
        """Path produced by building a content-addressed profile.

        None for store-path profiles, where the known path was pushed.
        """
        if self.artifact is not None and self.artifact.content_addressed:
            return self.artifact.path
        return None

    def to_dict(self) -> dict:
        return {
            "node": self.target.node_name,
            "profile": self.target.profile_name,
            "status": "ok" if self.ok else "failed",
            "stages": [s.value for s in self.stages],
            "realized_path": self.realized_path,
            "error": self.error.to_dict() if self.error else None,
        }


class PushPipeline:
    """Runs the push stages for a single profile.

    The signing key and store prefix are fixed when the pipeline is
    created; nothing is read from the environment while it runs.
    """

    def __init__(
        self,
        target: ProfileTarget,
        settings: DeploymentSettings,
        runner: CommandRunner,
        signing_key: str | None = None,
        store_dir: str = NIX_STORE_DIR,
    ):
        self.target = target
        self.settings = settings
        self.runner = runner
        self.signing_key = signing_key
        self.store_dir = store_dir
        self.outcome = PushOutcome(target=target)

    @property
    def stage(self) -> PushStage | None:
        return self.outcome.final_stage

    def _enter(self, stage: PushStage) -> None:
        logger.debug("[%s] → %s", self.target.label, stage.value)
        self.outcome.stages.append(stage)

    def run(self) -> PushOutcome:
        """Run every stage, stopping at the first failure.

        Never raises DeployError: the failure is recorded on the outcome.
        """
        self._enter(PushStage.START)
        try:
            self._run_stages()
        except DeployError as e:
            logger.error("[%s] %s failed: %s", self.target.label, e.phase, e.message)
            self.outcome.error = e
            self._enter(PushStage.FAILED)
        return self.outcome

    def _run_stages(self) -> None:
        if self.target.is_content_addressed(self.store_dir):
            self._enter(PushStage.BUILD_CONTENT_ADDRESSED)
            artifact = build_content_addressed(self.target, self.settings, self.runner)
        else:
            self._enter(PushStage.BUILD_STORE_LOOKUP)
            artifact = build_store_path(self.target, self.settings, self.runner)
        self.outcome.artifact = artifact
        self._enter(PushStage.BUILT)

        verified = verify_activation(artifact)
        self._enter(PushStage.VERIFIED)

        signed = sign_artifact(verified, self.target, self.signing_key, self.runner)
        self._enter(PushStage.SIGNED if signed else PushStage.SKIPPED_SIGN)

        copy_artifact(verified, self.target, self.settings, self.runner)
        self._enter(PushStage.COPIED)

        self._enter(PushStage.DONE)


def push_profile(
    target: ProfileTarget,
    settings: DeploymentSettings,
    runner: CommandRunner,
    signing_key: str | None = None,
    store_dir: str = NIX_STORE_DIR,
) -> PushOutcome:
    """Convenience wrapper: build a pipeline for one profile and run it."""
    pipeline = PushPipeline(
        target,
        settings,
        runner,
        signing_key=signing_key,
        store_dir=store_dir,
    )
    return pipeline.run()
