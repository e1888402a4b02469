# hotclaim/claimer.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp
from yarl import URL

from .decoding import decode_body
from .errors import ClaimStatusError, ClaimTransportError
from .near_rpc import fetch_game_state
from .proxy import ProxyHandle
from .types import AccountCredential, GameState

logger = logging.getLogger(__name__)

CLAIM_URL = URL("https://api0.herewallet.app/api/v1/user/hot/claim")


def claim_headers(account: AccountCredential) -> Dict[str, str]:
    """Заголовки Telegram-клиента HOT; набор и порядок сверены с приложением."""
    return {
        "Accept": "*/*",
        "Accept-Encoding": "gzip, deflate, br, zstd",
        "Accept-Language": "en-GB,en-US;q=0.9,en;q=0.8",
        "Authorization": account.authorization,
        "Connection": "keep-alive",
        "Content-Type": "application/json",
        "DeviceId": account.device_id,
        "Host": "api0.herewallet.app",
        "Network": "mainnet",
        "Origin": "https://tgapp.herewallet.app",
        "Platform": "telegram",
        "Referer": "https://tgapp.herewallet.app/",
        "Sec-Fetch-Dest": "empty",
        "Sec-Fetch-Mode": "cors",
        "Sec-Fetch-Site": "same-site",
        "Telegram-Data": account.telegram_data,
        "User-Agent": account.user_agent,
        "is-sbt": "false",
        "sec-ch-ua": '"Google Chrome";v="125", "Chromium";v="125", "Not.A/Brand";v="24"',
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"macOS"',
    }


async def resolve_game_state(
    account: AccountCredential,
    state_mode: str = "live",
    static_state: Optional[GameState] = None,
    rpc_session: Optional[aiohttp.ClientSession] = None,
) -> Optional[GameState]:
    if state_mode == "static":
        return static_state
    return await fetch_game_state(account.username, session=rpc_session)


def claim_payload(state: Optional[GameState]) -> Dict[str, Any]:
    return {"game_state": state.to_payload() if state is not None else None}


async def claim(
    account: AccountCredential,
    handle: ProxyHandle,
    *,
    state_mode: str = "live",
    static_state: Optional[GameState] = None,
    rpc_session: Optional[aiohttp.ClientSession] = None,
) -> bytes:
    """Отправляет claim через транспорт аккаунта и возвращает распакованное тело."""
    state = await resolve_game_state(account, state_mode, static_state, rpc_session)
    payload = claim_payload(state)

    await handle.start()
    try:
        async with handle.request(
            "POST", CLAIM_URL, json=payload, headers=claim_headers(account)
        ) as r:
            if not 200 <= r.status < 300:
                raise ClaimStatusError(r.status, r.reason or "")
            body = await r.read()
            encoding = r.headers.get("Content-Encoding")
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        raise ClaimTransportError(f"claim request failed: {exc!r}") from exc

    return decode_body(encoding, body)
