# hotclaim/scheduler.py
from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Awaitable, Callable, Optional

from .claimer import claim
from .errors import HotClaimError
from .proxy import acquire
from .types import AccountCredential, Config

logger = logging.getLogger(__name__)

LOG_BODY_LIMIT = 300


class BatchScheduler:
    """
    Проходит по аккаунтам по очереди и повторяет проход по таймеру:
      1) сразу после старта — один проход
      2) затем ждёт ближайшего тика (каждые interval секунд от старта) или stop_evt
      3) stop_evt не прерывает текущий проход, новый просто не начинается
    """

    def __init__(
        self,
        config: Config,
        stop_evt: asyncio.Event,
        *,
        interval: Optional[float] = None,
        max_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rand: Callable[[], float] = random.random,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.config = config
        self.stop_evt = stop_evt
        self.interval = config.interval_minutes * 60 if interval is None else interval
        self.max_delay = config.max_account_delay if max_delay is None else max_delay
        self.sleep = sleep
        self.rand = rand
        self.clock = clock or time.monotonic
        self.passes = 0

    async def claim_account(self, account: AccountCredential) -> None:
        cfg = self.config
        handle = await acquire(account.proxy, cfg.mobile_proxy)
        logger.info("%s | claiming via %r", account.label, handle)
        try:
            body = await claim(
                account,
                handle,
                state_mode=cfg.state_mode,
                static_state=cfg.static_game_state,
            )
        finally:
            await handle.close()
        text = body.decode("utf-8", "replace")
        if len(text) > LOG_BODY_LIMIT:
            text = f"{text[:LOG_BODY_LIMIT]}... ({len(body)} bytes)"
        logger.info("%s | claim ok: %s", account.label, text)

    def _delay(self) -> float:
        # [0, max_delay)
        return self.rand() * self.max_delay

    async def run_pass(self) -> int:
        accounts = self.config.accounts
        logger.info("Claiming on %d accounts", len(accounts))
        ok = 0
        for acc in accounts:
            try:
                await self.claim_account(acc)
                ok += 1
            except HotClaimError as e:
                logger.error("%s | %s error: %s", acc.label, e.stage, e)
            except Exception:
                logger.exception("%s | unexpected error", acc.label)
            await self.sleep(self._delay())
        self.passes += 1
        logger.info("Pass %d done: %d/%d claimed", self.passes, ok, len(accounts))
        return ok

    def _until_next_tick(self, started: float) -> float:
        # тики от момента старта, как у ticker; пропущенные тики не копятся
        elapsed = self.clock() - started
        return self.interval - elapsed % self.interval

    async def run(self) -> None:
        started = self.clock()
        await self.run_pass()
        while not self.stop_evt.is_set():
            try:
                await asyncio.wait_for(
                    self.stop_evt.wait(), timeout=self._until_next_tick(started)
                )
            except asyncio.TimeoutError:
                await self.run_pass()
        logger.info("Scheduler stopped after %d passes", self.passes)
