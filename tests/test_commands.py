"""
Tests for command construction — exact argv for every external tool.
"""

import pytest

from deploypush.core.engine.commands import (
    SSH_OPTS_ENV,
    ca_build_command,
    ca_resolve_command,
    copy_command,
    derivation_build_command,
    flake_probe_command,
    link_args,
    show_derivation_command,
    sign_command,
    ssh_opts_string,
)
from deploypush.core.models.profile import DeploymentSettings, ProfileTarget

TARGET = ProfileTarget(node_name="web1", profile_name="system", path="/0abc", repo=".")


def _settings(**kwargs) -> DeploymentSettings:
    kwargs.setdefault("ssh_user", "deploy")
    kwargs.setdefault("hostname", "web1.example.com")
    return DeploymentSettings(**kwargs)


class TestLinkArgs:
    @pytest.mark.parametrize("flakes", [True, False])
    def test_keep_result_uses_out_link(self, flakes):
        s = _settings(keep_result=True, supports_flakes=flakes)
        assert link_args(TARGET, s) == ["--out-link", "./.deploy-gc/web1/system"]

    def test_keep_result_custom_dir(self):
        s = _settings(keep_result=True, result_path="/var/gc")
        assert link_args(TARGET, s) == ["--out-link", "/var/gc/web1/system"]

    def test_no_link_with_flakes(self):
        assert link_args(TARGET, _settings(supports_flakes=True)) == ["--no-link"]

    def test_no_out_link_without_flakes(self):
        assert link_args(TARGET, _settings(supports_flakes=False)) == ["--no-out-link"]


class TestBuildCommands:
    def test_ca_resolve(self):
        spec = ca_resolve_command(TARGET, ["--show-trace"])
        assert spec.argv == [
            "nix", "build", ".#deploy.nodes.web1.profiles.system.path",
            "--no-link", "--show-trace", "--print-out-paths",
        ]
        assert spec.stdout == "capture"

    def test_ca_build_keep_result(self):
        spec = ca_build_command(TARGET, _settings(keep_result=True, result_path="/gc"))
        assert spec.argv == [
            "nix", "build", ".#deploy.nodes.web1.profiles.system.path",
            "--out-link", "/gc/web1/system", "--print-out-paths",
        ]
        assert spec.stdout == "capture"

    def test_ca_build_extra_args_after_policy(self):
        spec = ca_build_command(TARGET, _settings(extra_build_args=["--option", "a", "b"]))
        assert spec.args[2:] == ["--no-link", "--option", "a", "b", "--print-out-paths"]

    def test_derivation_build_flakes(self):
        spec = derivation_build_command("/nix/store/x.drv", TARGET, _settings())
        assert spec.argv == ["nix", "build", "/nix/store/x.drv", "--no-link"]
        assert spec.stdout == "discard"

    def test_derivation_build_legacy(self):
        spec = derivation_build_command(
            "/nix/store/x.drv", TARGET, _settings(supports_flakes=False, extra_build_args=["-j4"])
        )
        assert spec.argv == ["nix-build", "/nix/store/x.drv", "--no-out-link", "-j4"]


class TestOtherCommands:
    def test_show_derivation(self):
        spec = show_derivation_command("/nix/store/abc")
        assert spec.argv == ["nix", "show-derivation", "/nix/store/abc"]
        assert spec.stdout == "capture"

    def test_sign(self):
        spec = sign_command("/keys/k.sec", "/nix/store/abc")
        assert spec.argv == ["nix", "sign-paths", "-r", "-k", "/keys/k.sec", "/nix/store/abc"]

    def test_flake_probe(self):
        assert flake_probe_command().argv[:2] == ["nix", "eval"]


class TestCopyCommand:
    def test_slow_connection_unchecked(self):
        spec = copy_command("/nix/store/abc", _settings())
        assert spec.argv == [
            "nix", "copy", "--substitute-on-destination", "--no-check-sigs",
            "--to", "ssh://deploy@web1.example.com", "/nix/store/abc",
        ]

    def test_fast_connection_checked(self):
        spec = copy_command("/nix/store/abc", _settings(fast_connection=True, check_sigs=True))
        assert spec.argv == [
            "nix", "copy", "--to", "ssh://deploy@web1.example.com", "/nix/store/abc",
        ]

    def test_explicit_slow_connection_substitutes(self):
        spec = copy_command("/p", _settings(fast_connection=False))
        assert "--substitute-on-destination" in spec.args

    def test_hostname_override(self):
        spec = copy_command("/p", _settings(hostname_override="10.0.0.5"))
        assert "ssh://deploy@10.0.0.5" in spec.args

    def test_ssh_opts_env(self):
        spec = copy_command("/p", _settings(ssh_opts=["-p", "2222", "-o", "StrictHostKeyChecking=no"]))
        assert spec.env == {SSH_OPTS_ENV: "-p 2222 -o StrictHostKeyChecking=no"}

    def test_ssh_opts_are_not_quoted(self):
        assert ssh_opts_string(["-o", "ProxyCommand=ssh jump"]) == "-o ProxyCommand=ssh jump"
