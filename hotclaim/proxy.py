from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import aiohttp
from yarl import URL

from .errors import InvalidProxyURL, ProxyRotationError
from .types import MobileProxyCredential

logger = logging.getLogger(__name__)

CHANGE_IP_URL = URL("https://changeip.mobileproxy.space/")
PROXY_API_URL = URL("https://mobileproxy.space/api.html")
PROXY_SCHEMES = ("http", "https")


class ProxyHandle:
    """Одноразовый HTTP-транспорт одного аккаунта.

    aiohttp не умеет proxy на уровне ClientSession, поэтому прокси
    передаётся в каждый запрос (см. request()).
    """

    def __init__(self, proxy: Optional[URL] = None):
        self.proxy = proxy
        self.session: Optional[aiohttp.ClientSession] = None

    @property
    def is_direct(self) -> bool:
        return self.proxy is None

    async def start(self) -> None:
        if not self.session or self.session.closed:
            # Content-Encoding разбираем сами (decoding.decode_body)
            self.session = aiohttp.ClientSession(auto_decompress=False)

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    async def __aenter__(self) -> "ProxyHandle":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def request(self, method: str, url: URL, **kwargs: Any):
        if not self.session or self.session.closed:
            raise RuntimeError("Session not started; call start() first")
        return self.session.request(method, url, proxy=self.proxy, **kwargs)

    def __repr__(self) -> str:
        return f"ProxyHandle({mask_proxy(self.proxy) if self.proxy else 'direct'})"


def mask_proxy(proxy: Any) -> str:
    """host:port без логина и пароля, для логов."""
    try:
        u = URL(str(proxy))
        return f"{u.scheme}://{u.host}:{u.port}"
    except ValueError:
        return "<invalid proxy>"


def parse_proxy(spec: str) -> URL:
    try:
        u = URL(spec.strip())
        port = u.port
    except (TypeError, ValueError) as exc:
        raise InvalidProxyURL(f"cannot parse proxy URL: {exc}") from exc
    if u.scheme not in PROXY_SCHEMES:
        raise InvalidProxyURL(f"unsupported proxy scheme {u.scheme!r}")
    if not u.host or not port:
        raise InvalidProxyURL("proxy URL needs host and port")
    return u


async def _get_json(session: aiohttp.ClientSession, url: URL, headers=None) -> Any:
    try:
        async with session.get(url, headers=headers) as r:
            text = await r.text()
            if not 200 <= r.status < 300:
                raise ProxyRotationError(f"{url.host} returned {r.status} {r.reason or ''}".rstrip())
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        raise ProxyRotationError(f"request to {url.host} failed: {exc!r}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ProxyRotationError(f"bad JSON from {url.host}: {exc}") from exc


async def rotate_mobile_proxy(
    session: aiohttp.ClientSession, cred: MobileProxyCredential
) -> URL:
    """Меняет IP мобильного прокси и возвращает URL с логином/паролем."""
    change = await _get_json(
        session, CHANGE_IP_URL.with_query(proxy_key=cred.proxy_key, format="json")
    )
    try:
        proxy_id = int(change["proxy_id"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ProxyRotationError(f"no proxy_id in rotation response: {change!r}") from exc

    details = await _get_json(
        session,
        PROXY_API_URL.with_query(command="get_my_proxy", proxy_id=str(proxy_id)),
        headers={"Authorization": f"Bearer {cred.authorization}"},
    )
    if not isinstance(details, list) or not details:
        raise ProxyRotationError(f"empty proxy details for proxy_id {proxy_id}")
    data = details[0]
    try:
        return URL.build(
            scheme="http",
            user=str(data["proxy_login"]),
            password=str(data["proxy_pass"]),
            host=str(data["proxy_host_ip"]),
            port=int(data["proxy_http_port"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ProxyRotationError(f"incomplete proxy details: {exc}") from exc


async def acquire(
    spec: str,
    mobile: Optional[MobileProxyCredential] = None,
    session: Optional[aiohttp.ClientSession] = None,
) -> ProxyHandle:
    """Готовит транспорт: явный прокси, ротация мобильного или без прокси."""
    if spec and spec.strip():
        return ProxyHandle(parse_proxy(spec))

    if mobile is None:
        logger.warning("No proxy and no mobile_proxy configured; going direct")
        return ProxyHandle()

    if session is not None:
        url = await rotate_mobile_proxy(session, mobile)
    else:
        async with aiohttp.ClientSession() as own:
            url = await rotate_mobile_proxy(own, mobile)
    logger.info("Rotated mobile proxy -> %s", mask_proxy(url))
    return ProxyHandle(url)
