import asyncio
import base64
import json
import logging

import aiohttp
import pytest

import hotclaim.near_rpc as near_rpc
from hotclaim.errors import RPCDecodeError, RPCStatusError, RPCTransportError

USER = {
    "refferals": 2,
    "inviter": "carol.tg",
    "village": None,
    "last_claim": 1717000000000000000,
    "firespace": 1,
    "boost": 10,
    "storage": 20,
    "balance": 1500000,
}


def _envelope(result):
    return {
        "jsonrpc": "2.0",
        "id": "dontcare",
        "result": {"result": result, "logs": [], "block_height": 1, "block_hash": "abc"},
    }


class DummyResp:
    def __init__(self, status=200, text="", reason="OK"):
        self.status = status
        self.reason = reason
        self._text = text

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        pass


class DummySession:
    closed = False

    def __init__(self, resp):
        self.resp = resp
        self.posted = []

    def post(self, url, json=None):
        self.posted.append((url, json))
        if isinstance(self.resp, Exception):
            raise self.resp
        return self.resp


def test_build_query_envelope():
    q = near_rpc.build_query("alice.tg")
    assert q["method"] == "query"
    params = q["params"]
    assert params["request_type"] == "call_function"
    assert params["finality"] == "optimistic"
    assert params["account_id"] == "game.hot.tg"
    assert params["method_name"] == "get_user"
    assert json.loads(base64.b64decode(params["args_base64"])) == {"account_id": "alice.tg"}


def test_parse_game_state_from_byte_array():
    raw = list(json.dumps(USER).encode())
    state = near_rpc.parse_game_state(_envelope(raw))
    assert state.referral_count == 2
    assert state.inviter_id == "carol.tg"
    assert state.village is None
    assert state.balance == 1500000
    assert state.to_payload() == USER


def test_parse_game_state_from_base64_string():
    raw = base64.b64encode(json.dumps(dict(USER, village="v1.tg")).encode()).decode()
    state = near_rpc.parse_game_state(_envelope(raw))
    assert state.village == "v1.tg"


@pytest.mark.parametrize(
    "envelope",
    [
        [],
        {"jsonrpc": "2.0", "error": {"code": -32000, "message": "Server error"}},
        {"jsonrpc": "2.0", "result": {"error": "wasm execution failed", "logs": []}},
        {"jsonrpc": "2.0", "result": {"logs": []}},
        _envelope("%%% not base64"),
        _envelope(list(b"not json")),
        _envelope(list(b"[1, 2]")),
        _envelope([300, 1]),
        _envelope(list(json.dumps(dict(USER, balance="lots")).encode())),
    ],
)
def test_parse_game_state_rejects_bad_payloads(envelope):
    with pytest.raises(RPCDecodeError):
        near_rpc.parse_game_state(envelope)


def test_fetch_game_state_posts_query_and_logs_balance(caplog):
    session = DummySession(DummyResp(text=json.dumps(_envelope(list(json.dumps(USER).encode())))))
    with caplog.at_level(logging.INFO):
        state = asyncio.run(near_rpc.fetch_game_state("alice.tg", session=session))
    assert state.storage == 20
    url, body = session.posted[0]
    assert url == near_rpc.RPC_URL
    assert body == near_rpc.build_query("alice.tg")
    assert "alice.tg | hot balance: 1500000" in caplog.text


def test_fetch_game_state_status_error():
    session = DummySession(DummyResp(status=503, reason="Service Unavailable"))
    with pytest.raises(RPCStatusError, match="503"):
        asyncio.run(near_rpc.fetch_game_state("alice.tg", session=session))


def test_fetch_game_state_transport_error():
    session = DummySession(aiohttp.ClientConnectionError("connection reset"))
    with pytest.raises(RPCTransportError, match="connection reset"):
        asyncio.run(near_rpc.fetch_game_state("alice.tg", session=session))


def test_fetch_game_state_bad_envelope():
    session = DummySession(DummyResp(text="<html>bad gateway</html>"))
    with pytest.raises(RPCDecodeError):
        asyncio.run(near_rpc.fetch_game_state("alice.tg", session=session))
