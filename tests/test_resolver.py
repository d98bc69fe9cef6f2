"""
Tests for resolution — standalone CA builds and derivation lookup.
"""

import json

import pytest

from deploypush.core.engine.resolver import locate_derivation, resolve_ca_profile
from deploypush.core.errors import (
    BuildExitError,
    BuildOutputError,
    BuildRunError,
    BuildStartError,
    CADerivationNonFlakeError,
    ResolutionError,
    ShowDerivationEmptyError,
    ShowDerivationExitError,
    ShowDerivationParseError,
    ShowDerivationStartError,
    ShowDerivationUtf8Error,
)

STORE_PATH = "/nix/store/abc123-activatable-system"
DRV = "/nix/store/zzz999-activatable-system.drv"


class TestResolveCaProfile:
    def test_requires_flakes_and_never_builds(self, ca_target, runner):
        with pytest.raises(CADerivationNonFlakeError):
            resolve_ca_profile(ca_target, supports_flakes=False, runner=runner)
        assert runner.call_count == 0

    def test_returns_trimmed_stdout(self, ca_target, runner):
        runner.set_response("nix build", stdout="  /nix/store/out-system\n")
        path = resolve_ca_profile(ca_target, supports_flakes=True, runner=runner)
        assert path == "/nix/store/out-system"

    def test_command_line(self, ca_target, runner):
        runner.set_response("nix build", stdout="/nix/store/out\n")
        resolve_ca_profile(ca_target, True, runner, extra_build_args=["-L"])
        assert runner.commands == [[
            "nix", "build", ".#deploy.nodes.web1.profiles.system.path",
            "--no-link", "-L", "--print-out-paths",
        ]]

    def test_bad_exit_keeps_code(self, ca_target, runner):
        runner.set_exit_code("nix build", 100)
        with pytest.raises(BuildExitError) as excinfo:
            resolve_ca_profile(ca_target, True, runner)
        assert excinfo.value.code == 100

    def test_killed_by_signal(self, ca_target, runner):
        runner.set_exit_code("nix build", None)
        with pytest.raises(BuildExitError) as excinfo:
            resolve_ca_profile(ca_target, True, runner)
        assert excinfo.value.code is None

    def test_start_failure(self, ca_target, runner):
        runner.set_start_failure("nix build")
        with pytest.raises(BuildStartError) as excinfo:
            resolve_ca_profile(ca_target, True, runner)
        assert isinstance(excinfo.value.cause, FileNotFoundError)

    def test_run_failure(self, ca_target, runner):
        runner.set_run_failure("nix build")
        with pytest.raises(BuildRunError):
            resolve_ca_profile(ca_target, True, runner)

    def test_empty_output(self, ca_target, runner):
        runner.set_response("nix build", stdout="\n")
        with pytest.raises(BuildOutputError):
            resolve_ca_profile(ca_target, True, runner)

    def test_undecodable_output(self, ca_target, runner):
        runner.set_response("nix build", stdout=b"\xff\xfe")
        with pytest.raises(BuildOutputError):
            resolve_ca_profile(ca_target, True, runner)


class TestLocateDerivation:
    def test_first_key(self, runner):
        runner.set_response("nix show-derivation", stdout=json.dumps({DRV: {"outputs": {}}}))
        assert locate_derivation(STORE_PATH, runner) == DRV
        assert runner.commands == [["nix", "show-derivation", STORE_PATH]]

    def test_first_of_several_keys(self, runner):
        info = {DRV: {}, "/nix/store/other.drv": {}}
        runner.set_response("nix show-derivation", stdout=json.dumps(info))
        assert locate_derivation(STORE_PATH, runner) == DRV

    def test_empty_object(self, runner):
        runner.set_response("nix show-derivation", stdout="{}")
        with pytest.raises(ShowDerivationEmptyError):
            locate_derivation(STORE_PATH, runner)

    def test_bad_exit(self, runner):
        runner.set_exit_code("nix show-derivation", 1)
        with pytest.raises(ShowDerivationExitError) as excinfo:
            locate_derivation(STORE_PATH, runner)
        assert excinfo.value.code == 1

    def test_start_failure(self, runner):
        runner.set_start_failure("nix show-derivation")
        with pytest.raises(ShowDerivationStartError):
            locate_derivation(STORE_PATH, runner)

    def test_invalid_utf8(self, runner):
        runner.set_response("nix show-derivation", stdout=b'{"\xff": 1}')
        with pytest.raises(ShowDerivationUtf8Error):
            locate_derivation(STORE_PATH, runner)

    def test_invalid_json(self, runner):
        runner.set_response("nix show-derivation", stdout="not json")
        with pytest.raises(ShowDerivationParseError) as excinfo:
            locate_derivation(STORE_PATH, runner)
        assert isinstance(excinfo.value.cause, json.JSONDecodeError)

    def test_non_object_json(self, runner):
        runner.set_response("nix show-derivation", stdout="[1, 2]")
        with pytest.raises(ShowDerivationParseError):
            locate_derivation(STORE_PATH, runner)

    def test_errors_are_resolution_phase(self, runner):
        runner.set_response("nix show-derivation", stdout="{}")
        with pytest.raises(ResolutionError) as excinfo:
            locate_derivation(STORE_PATH, runner)
        assert excinfo.value.phase == "resolve"
