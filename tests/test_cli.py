"""
Tests for CLI commands — push, build, config check, and global options.
"""

import json
import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner

from deploypush.adapters.mock import MockRunner
from deploypush.main import cli

DRV = "/nix/store/zzz-profile.drv"


@pytest.fixture
def mock_runner(monkeypatch) -> MockRunner:
    """Replace the real subprocess runner everywhere the CLI creates one."""
    runner = MockRunner()
    runner.set_response("nix show-derivation", stdout=json.dumps({DRV: {}}))
    monkeypatch.setattr(
        "deploypush.adapters.shell.command.SubprocessRunner", lambda: runner
    )
    return runner


@pytest.fixture
def project(tmp_path: Path, store_dir: str, make_profile, monkeypatch) -> Path:
    make_profile(Path(store_dir) / "web1-system")
    monkeypatch.setenv("NIX_STORE_DIR", store_dir)
    monkeypatch.delenv("LOCAL_KEY", raising=False)
    config = tmp_path / "deploy.yml"
    config.write_text(textwrap.dedent(f"""\
        ssh_user: deploy
        nodes:
          web1:
            hostname: web1.example.com
            profiles:
              system:
                path: {store_dir}/web1-system
              app:
                path: /0ca-app
    """))
    return config


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Deploy Push" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestPushCommand:
    def test_push_profile(self, project, mock_runner):
        result = CliRunner().invoke(
            cli, ["--config", str(project), "push", ".#web1.system", "--flakes"]
        )
        assert result.exit_code == 0, result.output
        assert "web1.system" in result.output
        assert "1 pushed, 0 failed" in result.output

    def test_extra_build_args_and_overrides(self, project, mock_runner):
        result = CliRunner().invoke(
            cli,
            [
                "--config", str(project), "push", ".#web1.system",
                "--flakes", "--hostname", "10.0.0.7", "--fast-connection",
                "--ssh-opts", "-p 2222", "--", "--show-trace",
            ],
        )
        assert result.exit_code == 0, result.output
        build = next(argv for argv in mock_runner.commands if argv[1] == "build")
        assert build[-1] == "--show-trace"
        copy_spec = mock_runner.call_log[-1]
        assert "ssh://deploy@10.0.0.7" in copy_spec.args
        assert "--substitute-on-destination" not in copy_spec.args
        assert copy_spec.env["NIX_SSHOPTS"] == "-p 2222"

    def test_extra_build_args_without_target(self, project, mock_runner):
        result = CliRunner().invoke(
            cli,
            [
                "--config", str(project), "push", "--node", "web1",
                "--profile", "system", "--flakes", "--", "--show-trace",
            ],
        )
        assert result.exit_code == 0, result.output
        build = next(argv for argv in mock_runner.commands if argv[1] == "build")
        assert build[-1] == "--show-trace"
        assert not any(arg.startswith("--show-trace#") for arg in build)

    def test_ca_extra_build_args_without_target(self, project, mock_runner):
        CliRunner().invoke(
            cli,
            [
                "--config", str(project), "push", "--node", "web1",
                "--profile", "app", "--flakes", "--", "--show-trace",
            ],
        )
        build = next(argv for argv in mock_runner.commands if argv[1] == "build")
        assert build[2] == ".#deploy.nodes.web1.profiles.app.path"
        assert "--show-trace" in build

    def test_failure_exits_1(self, project, mock_runner):
        mock_runner.set_exit_code("nix build", 1)
        result = CliRunner().invoke(
            cli, ["--config", str(project), "push", ".#web1.system", "--flakes"]
        )
        assert result.exit_code == 1
        assert "BuildExitError" in result.output
        assert "bad exit code: 1" in result.output

    def test_ca_without_flakes(self, project, mock_runner):
        result = CliRunner().invoke(
            cli, ["--config", str(project), "push", "--node", "web1", "--profile", "app", "--no-flakes"]
        )
        assert result.exit_code == 1
        assert "content-addressed" in result.output

    def test_json(self, project, mock_runner):
        result = CliRunner().invoke(
            cli, ["--config", str(project), "push", ".#web1.system", "--flakes", "--json"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["status"] == "ok"
        assert data["profiles"][0]["stages"][-1] == "done"

    def test_missing_config(self, tmp_path, monkeypatch, mock_runner):
        monkeypatch.chdir(tmp_path)
        result = CliRunner().invoke(cli, ["push", "--flakes"])
        assert result.exit_code == 1
        assert "No deploy.yml" in result.output


class TestBuildCommand:
    def test_prints_realized_path(self, project, mock_runner):
        mock_runner.set_response("nix build", stdout="/nix/store/realized-app\n")
        result = CliRunner().invoke(
            cli, ["--config", str(project), "build", ".#web1.app", "--flakes"]
        )
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "/nix/store/realized-app"

    def test_build_failure(self, project, mock_runner):
        mock_runner.set_exit_code("nix build", 1)
        result = CliRunner().invoke(
            cli, ["--config", str(project), "build", ".#web1.app", "--flakes", "--json"]
        )
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["detail"]["code"] == 1


class TestConfigCheckCommand:
    def test_valid(self, project):
        result = CliRunner().invoke(cli, ["--config", str(project), "config", "check"])
        assert result.exit_code == 0
        assert "valid" in result.output.lower()
        assert "web1.app" in result.output

    def test_invalid_json(self, tmp_path):
        config = tmp_path / "deploy.yml"
        config.write_text("nodes:\n  web1: {}\n")
        result = CliRunner().invoke(cli, ["--config", str(config), "config", "check", "--json"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["valid"] is False
