import json
import logging
import sys

import pytest

from zkwasm_client.commands import Register
from zkwasm_client.credential import Credential
from zkwasm_client.logging_config import JsonLinesFormatter, level_from_env, setup_logging
from zkwasm_client.submitter import TransactionSubmitter
from tests.conftest import ADMIN_KEY


@pytest.fixture
def pkg_logger_cleanup():
    yield
    pkg_logger = logging.getLogger("zkwasm_client")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
        handler.close()
    pkg_logger.propagate = True
    pkg_logger.setLevel(logging.NOTSET)


def _entries(log_file):
    return [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]


class TestSetupLogging:
    def test_installs_terminal_and_file_handlers(self, tmp_path, pkg_logger_cleanup):
        log_file = tmp_path / "logs" / "client.log"
        pkg_logger = setup_logging(level=logging.DEBUG, log_file_path=str(log_file))
        assert len(pkg_logger.handlers) == 2
        assert pkg_logger.propagate is False

        logging.getLogger("zkwasm_client.player").info("state fetched for %s", "ab")
        for handler in pkg_logger.handlers:
            handler.flush()

        entry = _entries(log_file)[-1]
        assert entry["message"] == "state fetched for ab"
        assert entry["logger"] == "zkwasm_client.player"
        assert entry["level"] == "INFO"
        assert "nonce" not in entry

    def test_accepted_submission_is_logged_with_signer_and_nonce(
            self, tmp_path, service, pkg_logger_cleanup):
        log_file = tmp_path / "client.log"
        pkg_logger = setup_logging(log_file_path=str(log_file))
        cred = Credential(ADMIN_KEY)

        TransactionSubmitter(service).submit(cred, Register())
        for handler in pkg_logger.handlers:
            handler.flush()

        accepted = [e for e in _entries(log_file) if "accepted" in e["message"]]
        assert accepted[-1]["signer"] == cred.public_id
        assert accepted[-1]["nonce"] == 0
        assert accepted[-1]["command"] == "Register"
        assert ADMIN_KEY not in log_file.read_text(encoding="utf-8")

    def test_repeated_setup_replaces_handlers(self, pkg_logger_cleanup):
        setup_logging()
        pkg_logger = setup_logging()
        assert len(pkg_logger.handlers) == 1

    def test_level_comes_from_env(self, monkeypatch, pkg_logger_cleanup):
        monkeypatch.setenv("ZKWASM_LOG_LEVEL", "warning")
        assert setup_logging().level == logging.WARNING


def test_level_from_env_rejects_unknown_names(monkeypatch):
    monkeypatch.setenv("ZKWASM_LOG_LEVEL", "chatty")
    with pytest.raises(EnvironmentError):
        level_from_env()


def test_json_lines_formatter_includes_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.LogRecord("zkwasm_client", logging.ERROR, __file__, 1, "failed", None, None)
        record.exc_info = sys.exc_info()
    entry = json.loads(JsonLinesFormatter().format(record))
    assert "ValueError: boom" in entry["exception"]
