"""Tests for the node RPC status client"""

import requests

from pio_localnet.rpc_client import NodeRpcClient


class FakeResponse:

    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body
        self.text = str(body)

    def json(self):
        return self._body


def _client(monkeypatch, response=None, error=None):
    client = NodeRpcClient("http://localhost:26657/")
    seen = []

    def fake_get(url, timeout=None):
        seen.append(url)
        if error is not None:
            raise error
        return response

    monkeypatch.setattr(client.session, "get", fake_get)
    return client, seen


def test_latest_block_height_from_jsonrpc_envelope(monkeypatch):
    body = {"jsonrpc": "2.0", "result": {"sync_info": {"latest_block_height": "42"},
                                         "node_info": {"network": "chain-local"}}}
    client, seen = _client(monkeypatch, FakeResponse(200, body))
    assert client.latest_block_height() == 42
    assert client.network() == "chain-local"
    assert seen[0] == "http://localhost:26657/status"


def test_latest_block_height_without_envelope(monkeypatch):
    client, _ = _client(monkeypatch, FakeResponse(200, {"sync_info": {"latest_block_height": "7"}}))
    assert client.latest_block_height() == 7


def test_http_error_yields_none(monkeypatch):
    client, _ = _client(monkeypatch, FakeResponse(500, {}))
    assert client.latest_block_height() is None


def test_connection_error_yields_none(monkeypatch):
    client, _ = _client(monkeypatch, error=requests.exceptions.ConnectionError("refused"))
    assert client.latest_block_height() is None
    assert client.network() is None


def test_missing_height(monkeypatch):
    client, _ = _client(monkeypatch, FakeResponse(200, {"result": {"sync_info": {}}}))
    assert client.latest_block_height() is None
