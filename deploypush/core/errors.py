"""
Push errors — one hierarchy, tagged by pipeline phase.

Every failure the pipeline can produce is a subclass of DeployError,
grouped under a phase base class:

    ResolutionError    finding the derivation behind a store path
    PreconditionError  inputs that can never be built
    BuildError         realizing the artifact
    VerificationError  activation entry points missing
    SignError          signing the realized path
    CopyError          transferring to the remote store

Start/run failures keep the underlying OSError on ``.cause``; exit
failures keep the process exit code on ``.code`` (None when the process
was killed by a signal). The build-only entry point and the full push
pipeline raise the same classes.
"""

from __future__ import annotations


class DeployError(Exception):
    """Base class for all push pipeline failures."""

    phase: str = ""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        """Stable identifier of the error kind (the class name)."""
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"phase": self.phase, "kind": self.kind, "message": self.message}


# ── Shapes ──────────────────────────────────────────────────────


class _CauseError(DeployError):
    """A failure wrapping an underlying exception."""

    template = "{cause}"

    def __init__(self, cause: Exception):
        super().__init__(self.template.format(cause=cause))
        self.cause = cause


class _ExitCodeError(DeployError):
    """A process that ran to completion but did not exit with 0."""

    template = "{code}"

    def __init__(self, code: int | None):
        super().__init__(self.template.format(code=code))
        self.code = code

    def to_dict(self) -> dict:
        return {**super().to_dict(), "code": self.code}


# ── Phases ──────────────────────────────────────────────────────


class ResolutionError(DeployError):
    phase = "resolve"


class PreconditionError(DeployError):
    phase = "precondition"


class BuildError(DeployError):
    phase = "build"


class VerificationError(DeployError):
    phase = "verify"


class SignError(DeployError):
    phase = "sign"


class CopyError(DeployError):
    phase = "copy"


# ── Resolution ──────────────────────────────────────────────────


class ShowDerivationStartError(_CauseError, ResolutionError):
    template = "Failed to run Nix show-derivation command: {cause}"


class ShowDerivationExitError(_ExitCodeError, ResolutionError):
    template = "Nix show-derivation command resulted in a bad exit code: {code}"


class ShowDerivationUtf8Error(_CauseError, ResolutionError):
    template = "Nix show-derivation command output contained an invalid UTF-8 sequence: {cause}"


class ShowDerivationParseError(_CauseError, ResolutionError):
    template = "Failed to parse the output of nix show-derivation: {cause}"


class ShowDerivationEmptyError(ResolutionError):
    def __init__(self) -> None:
        super().__init__("Nix show-derivation output is empty")


# ── Precondition ────────────────────────────────────────────────


class CADerivationNonFlakeError(PreconditionError):
    def __init__(self) -> None:
        super().__init__("Cannot build a content-addressed derivation without a flake.")


# ── Build ───────────────────────────────────────────────────────


class BuildStartError(_CauseError, BuildError):
    template = "Failed to start Nix build command: {cause}"


class BuildRunError(_CauseError, BuildError):
    template = "Nix build command finished with error: {cause}"


class BuildExitError(_ExitCodeError, BuildError):
    template = "Nix build command resulted in a bad exit code: {code}"


class BuildOutputError(BuildError):
    """A content-addressed build succeeded but printed no usable output path."""

    def __init__(self, detail: str):
        super().__init__(f"Nix build command did not report a usable output path: {detail}")
        self.detail = detail


# ── Verification ────────────────────────────────────────────────


class DeployRsActivateMissingError(VerificationError):
    def __init__(self, path: str):
        super().__init__(
            "Activation script deploy-rs-activate does not exist in profile.\n"
            "Did you forget to use deploy-rs#lib.<...>.activate.<...> on your profile path?"
        )
        self.path = path


class ActivateRsMissingError(VerificationError):
    def __init__(self, path: str):
        super().__init__(
            "Activation script activate-rs does not exist in profile.\n"
            "Is there a mismatch in deploy-rs used in the flake you're deploying "
            "and deploy-rs command you're running?"
        )
        self.path = path


# ── Sign ────────────────────────────────────────────────────────


class SignStartError(_CauseError, SignError):
    template = "Failed to run Nix sign command: {cause}"


class SignExitError(_ExitCodeError, SignError):
    template = "Nix sign command resulted in a bad exit code: {code}"


# ── Copy ────────────────────────────────────────────────────────


class CopyStartError(_CauseError, CopyError):
    template = "Failed to run Nix copy command: {cause}"


class CopyExitError(_ExitCodeError, CopyError):
    template = "Nix copy command resulted in a bad exit code: {code}"
