from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional

import aiohttp
from yarl import URL

from .errors import RPCDecodeError, RPCStatusError, RPCTransportError
from .types import GameState

logger = logging.getLogger(__name__)

RPC_URL = URL("https://rpc.mainnet.near.org")
GAME_CONTRACT = "game.hot.tg"
GAME_METHOD = "get_user"


def build_query(account_id: str) -> Dict[str, Any]:
    """JSON-RPC envelope for a read-only ``call_function`` on the game contract."""
    args = json.dumps({"account_id": account_id}).encode("utf-8")
    return {
        "jsonrpc": "2.0",
        "id": "dontcare",
        "method": "query",
        "params": {
            "request_type": "call_function",
            "finality": "optimistic",
            "account_id": GAME_CONTRACT,
            "method_name": GAME_METHOD,
            "args_base64": base64.b64encode(args).decode("ascii"),
        },
    }


def _result_bytes(raw: Any) -> bytes:
    # NEAR отдаёт result как массив байтов; base64-строку тоже принимаем
    if isinstance(raw, list):
        try:
            return bytes(raw)
        except (TypeError, ValueError) as exc:
            raise RPCDecodeError(f"bad result bytes: {exc}") from exc
    if isinstance(raw, str):
        try:
            return base64.b64decode(raw, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise RPCDecodeError(f"bad base64 result: {exc}") from exc
    raise RPCDecodeError(f"unexpected result type {type(raw).__name__}")


def parse_game_state(envelope: Any) -> GameState:
    """Second decode pass: envelope -> ``result.result`` bytes -> GameState."""
    if not isinstance(envelope, dict):
        raise RPCDecodeError("RPC response is not an object")
    if envelope.get("error"):
        raise RPCDecodeError(f"RPC error: {envelope['error']}")
    result = envelope.get("result")
    if not isinstance(result, dict):
        raise RPCDecodeError("RPC response has no result")
    if result.get("error"):
        raise RPCDecodeError(f"query error: {result['error']}")
    if "result" not in result:
        raise RPCDecodeError("RPC result has no payload")

    payload = _result_bytes(result["result"])
    try:
        data = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise RPCDecodeError(f"bad game state payload: {exc}") from exc
    if not isinstance(data, dict):
        raise RPCDecodeError("game state payload is not an object")
    try:
        return GameState.from_payload(data)
    except (TypeError, ValueError) as exc:
        raise RPCDecodeError(f"bad game state field: {exc}") from exc


async def _query(session: aiohttp.ClientSession, account_id: str) -> Any:
    try:
        async with session.post(RPC_URL, json=build_query(account_id)) as r:
            if not 200 <= r.status < 300:
                raise RPCStatusError(f"RPC returned {r.status} {r.reason or ''}".rstrip())
            text = await r.text()
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        raise RPCTransportError(f"RPC request failed: {exc!r}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise RPCDecodeError(f"bad RPC envelope: {exc}") from exc


async def fetch_game_state(
    account_id: str, session: Optional[aiohttp.ClientSession] = None
) -> GameState:
    if session is not None:
        envelope = await _query(session, account_id)
    else:
        async with aiohttp.ClientSession() as own:
            envelope = await _query(own, account_id)
    state = parse_game_state(envelope)
    logger.info("%s | hot balance: %s", account_id, state.balance)
    return state
