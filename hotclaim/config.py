from __future__ import annotations
from pathlib import Path
from typing import Any, Optional
import json
import logging

from .errors import ConfigLoadError
from .types import AccountCredential, Config, GameState, MobileProxyCredential

logger = logging.getLogger(__name__)

CONFIG_PATH = Path("config.json")
STATE_MODES = ("live", "static")


def _str(row: dict, key: str) -> str:
    return str(row.get(key) or "").strip()


def _parse_accounts(raw: Any) -> list[AccountCredential]:
    if not isinstance(raw, list):
        raise ConfigLoadError("'accounts' must be a list")
    res: list[AccountCredential] = []
    for n, row in enumerate(raw, start=1):
        if not isinstance(row, dict):
            raise ConfigLoadError(f"account #{n} must be an object")
        username = _str(row, "username")
        res.append(
            AccountCredential(
                device_id=_str(row, "device_id"),
                authorization=_str(row, "authorization"),
                telegram_data=_str(row, "telegram_data"),
                user_agent=_str(row, "user_agent"),
                proxy=_str(row, "proxy"),
                username=username,
                label=username or f"account-{n}",
            )
        )
    return res


def _parse_mobile_proxy(raw: Any) -> Optional[MobileProxyCredential]:
    if not raw:
        return None
    if not isinstance(raw, dict):
        raise ConfigLoadError("'mobile_proxy' must be an object")
    auth = _str(raw, "authorization")
    key = _str(raw, "proxy_key")
    # без обоих полей ротация невозможна
    if not auth or not key:
        return None
    return MobileProxyCredential(authorization=auth, proxy_key=key)


def _number(data: dict, key: str, default: float, allow_zero: bool = True) -> float:
    value = data.get(key, default)
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ConfigLoadError(f"'{key}' must be a number, got {value!r}") from None
    if value < 0 or (value == 0 and not allow_zero):
        raise ConfigLoadError(
            f"'{key}' must be {'non-negative' if allow_zero else 'positive'}, got {value}"
        )
    return value


def parse_config(data: Any) -> Config:
    if not isinstance(data, dict):
        raise ConfigLoadError("config root must be an object")
    if "accounts" not in data:
        raise ConfigLoadError("'accounts' is required")

    accounts = _parse_accounts(data["accounts"])
    state_mode = str(data.get("state_mode") or "live").lower()
    if state_mode not in STATE_MODES:
        raise ConfigLoadError(f"unknown state_mode {state_mode!r}")
    if state_mode == "live":
        missing = [a.label for a in accounts if not a.username]
        if missing:
            raise ConfigLoadError(
                f"state_mode 'live' needs a username for: {', '.join(missing)}"
            )

    static_state = None
    raw_state = data.get("static_game_state")
    if raw_state is not None:
        if not isinstance(raw_state, dict):
            raise ConfigLoadError("'static_game_state' must be an object")
        try:
            static_state = GameState.from_payload(raw_state)
        except (TypeError, ValueError) as exc:
            raise ConfigLoadError(f"bad static_game_state: {exc}") from exc

    return Config(
        accounts=accounts,
        mobile_proxy=_parse_mobile_proxy(data.get("mobile_proxy")),
        state_mode=state_mode,
        static_game_state=static_state,
        interval_minutes=_number(data, "interval_minutes", 125.0, allow_zero=False),
        max_account_delay=_number(data, "max_account_delay", 20.0),
        log_level=str(data.get("log_level") or "INFO").upper(),
    )


def load_config(path: Path = CONFIG_PATH) -> Config:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        logger.error("Config file not found at %s", path)
        raise ConfigLoadError(f"config file not found: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Failed to read config file %s: %s", path, exc)
        raise ConfigLoadError(f"cannot read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        logger.error("Failed to decode config file %s: %s", path, exc)
        raise ConfigLoadError(f"malformed JSON in {path}: {exc}") from exc
    return parse_config(data)
