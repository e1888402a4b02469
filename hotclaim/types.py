from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class AccountCredential:
    device_id: str
    authorization: str
    telegram_data: str
    user_agent: str
    proxy: str = ""
    username: str = ""
    # Имя для логов: username или account-<n>
    label: str = ""


@dataclass(frozen=True)
class MobileProxyCredential:
    authorization: str
    proxy_key: str


@dataclass
class GameState:
    referral_count: int = 0
    inviter_id: str = ""
    village: Optional[str] = None
    last_claim_timestamp: int = 0
    firespace: int = 0
    boost: int = 0
    storage: int = 0
    balance: int = 0

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "GameState":
        """Собирает состояние из JSON игры (refferals/inviter/last_claim...)."""
        village = data.get("village")
        return cls(
            referral_count=int(data.get("refferals") or 0),
            inviter_id=str(data.get("inviter") or ""),
            village=None if village is None else str(village),
            last_claim_timestamp=int(data.get("last_claim") or 0),
            firespace=int(data.get("firespace") or 0),
            boost=int(data.get("boost") or 0),
            storage=int(data.get("storage") or 0),
            balance=int(data.get("balance") or 0),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "refferals": self.referral_count,
            "inviter": self.inviter_id,
            "village": self.village,
            "last_claim": self.last_claim_timestamp,
            "firespace": self.firespace,
            "boost": self.boost,
            "storage": self.storage,
            "balance": self.balance,
        }


@dataclass
class Config:
    accounts: List[AccountCredential] = field(default_factory=list)
    mobile_proxy: Optional[MobileProxyCredential] = None
    state_mode: str = "live"
    static_game_state: Optional[GameState] = None
    interval_minutes: float = 125.0
    max_account_delay: float = 20.0
    log_level: str = "INFO"
