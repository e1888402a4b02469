from __future__ import annotations


class HotClaimError(RuntimeError):
    """Base error; ``stage`` names the pipeline step for log lines."""

    stage = "claim"


class ConfigLoadError(HotClaimError):
    stage = "config"


class InvalidProxyURL(HotClaimError):
    stage = "proxy"


class ProxyRotationError(HotClaimError):
    stage = "proxy"


class RPCTransportError(HotClaimError):
    stage = "state"


class RPCStatusError(HotClaimError):
    stage = "state"


class RPCDecodeError(HotClaimError):
    stage = "state"


class ClaimTransportError(HotClaimError):
    stage = "claim"


class ClaimStatusError(HotClaimError):
    stage = "claim"

    def __init__(self, status: int, reason: str = ""):
        self.status = status
        super().__init__(f"claim endpoint returned {status} {reason}".rstrip())


class DecodeError(HotClaimError):
    stage = "decode"
