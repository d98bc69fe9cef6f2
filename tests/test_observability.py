"""
Tests for logging configuration and error taxonomy rendering.
"""

import logging

import pytest

from deploypush.core.errors import (
    ActivateRsMissingError,
    BuildError,
    BuildExitError,
    BuildStartError,
    CopyExitError,
    DeployError,
    DeployRsActivateMissingError,
    ShowDerivationEmptyError,
    SignStartError,
)
from deploypush.core.observability.logging_config import resolve_level, setup_logging


class TestResolveLevel:
    def test_flags_win(self):
        env = {"DEPLOYPUSH_LOG_LEVEL": "ERROR"}
        assert resolve_level(debug=True, environ=env) == "DEBUG"
        assert resolve_level(verbose=True, environ=env) == "INFO"
        assert resolve_level(quiet=True, environ={}) == "ERROR"

    def test_env_fallback(self):
        assert resolve_level(environ={"DEPLOYPUSH_LOG_LEVEL": "INFO"}) == "INFO"

    def test_default(self):
        assert resolve_level(environ={}) == "WARNING"


class TestSetupLogging:
    def test_console_level(self):
        setup_logging(level="INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_unknown_level_falls_back(self):
        setup_logging(level="LOUD")
        assert logging.getLogger().level == logging.WARNING

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "push.log"
        setup_logging(level="WARNING", log_file=str(log_file), log_file_level="DEBUG")
        logging.getLogger("deploypush.test").debug("hello file")
        root = logging.getLogger()
        for handler in root.handlers:
            handler.close()
        root.handlers.clear()
        assert "hello file" in log_file.read_text()


class TestErrorTaxonomy:
    def test_exit_code_preserved(self):
        e = BuildExitError(1)
        assert e.code == 1
        assert e.phase == "build"
        assert isinstance(e, BuildError)
        assert "1" in str(e)

    def test_signal_exit(self):
        assert BuildExitError(None).code is None

    def test_cause_preserved(self):
        cause = FileNotFoundError(2, "No such file or directory", "nix")
        e = BuildStartError(cause)
        assert e.cause is cause
        assert "Failed to start" in e.message

    @pytest.mark.parametrize(
        "error, phase",
        [
            (ShowDerivationEmptyError(), "resolve"),
            (DeployRsActivateMissingError("/p"), "verify"),
            (ActivateRsMissingError("/p"), "verify"),
            (SignStartError(OSError("x")), "sign"),
            (CopyExitError(3), "copy"),
        ],
    )
    def test_phases(self, error, phase):
        assert isinstance(error, DeployError)
        assert error.phase == phase

    def test_distinct_activation_messages(self):
        assert DeployRsActivateMissingError("/p").message != ActivateRsMissingError("/p").message

    def test_to_dict(self):
        d = CopyExitError(None).to_dict()
        assert d == {
            "phase": "copy",
            "kind": "CopyExitError",
            "message": "Nix copy command resulted in a bad exit code: None",
            "code": None,
        }
