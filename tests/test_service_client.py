"""Tests for the HTTP adapter, with urllib mocked out."""

import json
import socket
from http import client as http_client
from unittest.mock import MagicMock, patch
from urllib import error

import pytest

from zkwasm_client.errors import EncodingError, NotFoundError, SubmissionOutcomeUnknown, TransportError
from zkwasm_client.service_client import (
    SCHEMA_VERSION,
    ServiceClient,
    ServiceConfig,
    SignedTransaction,
)

URLOPEN = "zkwasm_client.service_client.request.urlopen"

TX = SignedTransaction(public_key="ab" * 32, nonce=3, command=b"\x01\x01" + b"\x00" * 6, signature=b"\x07" * 64)


def _reply(payload):
    resp = MagicMock()
    resp.read.return_value = json.dumps(payload).encode("utf-8")
    cm = MagicMock()
    cm.__enter__.return_value = resp
    return cm


@pytest.fixture
def client():
    return ServiceClient(ServiceConfig(base_url="http://localhost:3000/", timeout_seconds=2))


class TestPostTransaction:
    def test_posts_json_payload(self, client):
        with patch(URLOPEN, return_value=_reply({"status": "Accepted"})) as urlopen:
            assert client.post_transaction(TX) == {"status": "Accepted"}

        req = urlopen.call_args[0][0]
        assert req.full_url == "http://localhost:3000/transaction"
        assert req.get_method() == "POST"
        assert urlopen.call_args[1]["timeout"] == 2
        body = json.loads(req.data.decode("utf-8"))
        assert body == {
            "schema_version": SCHEMA_VERSION,
            "public_key": "ab" * 32,
            "nonce": 3,
            "command": "0101000000000000",
            "signature": "07" * 64,
        }

    def test_connection_refused_is_transport_error(self, client):
        with patch(URLOPEN, side_effect=error.URLError(ConnectionRefusedError())):
            with pytest.raises(TransportError) as exc_info:
                client.post_transaction(TX)
        assert not isinstance(exc_info.value, SubmissionOutcomeUnknown)

    @pytest.mark.parametrize("exc", [
        error.URLError(socket.timeout("timed out")),
        TimeoutError("read timed out"),
        error.HTTPError("http://localhost:3000/transaction", 502, "Bad Gateway", None, None),
    ])
    def test_ambiguous_failures_are_unknown_outcome(self, client, exc):
        with patch(URLOPEN, side_effect=exc):
            with pytest.raises(SubmissionOutcomeUnknown) as exc_info:
                client.post_transaction(TX)
        assert exc_info.value.nonce == 3

    def test_unreadable_reply_is_unknown_outcome(self, client):
        cm = _reply({})
        cm.__enter__.return_value.read.return_value = b"<html>"
        with patch(URLOPEN, return_value=cm):
            with pytest.raises(SubmissionOutcomeUnknown):
                client.post_transaction(TX)

    def test_non_utf8_reply_is_unknown_outcome(self, client):
        cm = _reply({})
        cm.__enter__.return_value.read.return_value = b"\xff\xfe"
        with patch(URLOPEN, return_value=cm):
            with pytest.raises(SubmissionOutcomeUnknown) as exc_info:
                client.post_transaction(TX)
        assert exc_info.value.nonce == 3

    def test_truncated_reply_is_unknown_outcome(self, client):
        cm = _reply({})
        cm.__enter__.return_value.read.side_effect = http_client.IncompleteRead(b"{\"sta")
        with patch(URLOPEN, return_value=cm):
            with pytest.raises(SubmissionOutcomeUnknown):
                client.post_transaction(TX)


class TestGetState:
    def test_queries_account(self, client):
        snapshot = {"schema_version": 1, "accounts": {}, "tokens": {}, "markets": []}
        with patch(URLOPEN, return_value=_reply(snapshot)) as urlopen:
            assert client.get_state("ab" * 32) == snapshot
        req = urlopen.call_args[0][0]
        assert req.full_url == f"http://localhost:3000/state?account={'ab' * 32}"
        assert req.get_method() == "GET"

    def test_404_is_not_found(self, client):
        exc = error.HTTPError("http://localhost:3000/state", 404, "Not Found", None, None)
        with patch(URLOPEN, side_effect=exc):
            with pytest.raises(NotFoundError) as exc_info:
                client.get_state("ab" * 32)
        assert exc_info.value.account_id == "ab" * 32

    def test_server_error_is_transport_error(self, client):
        exc = error.HTTPError("http://localhost:3000/state", 500, "Oops", None, None)
        with patch(URLOPEN, side_effect=exc):
            with pytest.raises(TransportError):
                client.get_state("ab" * 32)

    def test_unreachable_is_transport_error(self, client):
        with patch(URLOPEN, side_effect=error.URLError("Name or service not known")):
            with pytest.raises(TransportError):
                client.get_state("ab" * 32)

    @pytest.mark.parametrize("body", [b"\xff\xfe", b"not json"])
    def test_unreadable_snapshot_is_transport_error(self, client, body):
        cm = _reply({})
        cm.__enter__.return_value.read.return_value = body
        with patch(URLOPEN, return_value=cm):
            with pytest.raises(TransportError):
                client.get_state("ab" * 32)

    def test_dropped_connection_is_transport_error(self, client):
        with patch(URLOPEN, side_effect=http_client.RemoteDisconnected("closed")):
            with pytest.raises(TransportError):
                client.get_state("ab" * 32)


class TestSignedTransaction:
    def test_payload_round_trip(self):
        assert SignedTransaction.from_payload(TX.to_payload()) == TX

    def test_malformed_payload_raises(self):
        with pytest.raises(EncodingError):
            SignedTransaction.from_payload({"public_key": "ab", "nonce": 1, "command": "zz"})


class TestConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("ZKWASM_SERVICE_URL", raising=False)
        monkeypatch.delenv("ZKWASM_HTTP_TIMEOUT", raising=False)
        config = ServiceConfig.from_env()
        assert config.base_url == "http://localhost:3000"
        assert config.timeout_seconds == 10.0

    def test_bad_timeout_raises(self, monkeypatch):
        monkeypatch.setenv("ZKWASM_HTTP_TIMEOUT", "soon")
        with pytest.raises(EnvironmentError):
            ServiceConfig.from_env()
