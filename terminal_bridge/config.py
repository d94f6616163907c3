from __future__ import annotations

import os
from dataclasses import dataclass

from .normalize import DEFAULT_TAX_PERCENT

SQUARE_SANDBOX_BASE = "https://connect.squareupsandbox.com"
SQUARE_API_VERSION = "2025-07-16"
SANDBOX_DEVICE_ID = "9fa747a2-25ff-48ee-b078-04381f7c828f"
DEFAULT_REFERENCE_PREFIX = "HB"
DEFAULT_HTTP_TIMEOUT = 10.0


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except Exception:
        return default


@dataclass(frozen=True)
class BridgeConfig:
    """Settings for one bridge process.

    Built once at startup (``from_env``) or directly in tests, then passed
    to the app factory and the checkout flow.
    """

    access_token: str | None = None
    location_id: str | None = None
    shared_key: str | None = None
    base_url: str = SQUARE_SANDBOX_BASE
    api_version: str = SQUARE_API_VERSION
    device_id: str = SANDBOX_DEVICE_ID
    reference_prefix: str = DEFAULT_REFERENCE_PREFIX
    default_tax_percent: str = DEFAULT_TAX_PERCENT
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    @classmethod
    def from_env(cls) -> "BridgeConfig":
        return cls(
            access_token=os.getenv("SQUARE_TOKEN_SANDBOX") or os.getenv("SQUARE_ACCESS_TOKEN"),
            location_id=os.getenv("SQUARE_LOCATION_ID"),
            shared_key=os.getenv("VAPI_SHARED_KEY"),
            base_url=os.getenv("SQUARE_BASE_URL", SQUARE_SANDBOX_BASE).rstrip("/"),
            api_version=os.getenv("SQUARE_VERSION", SQUARE_API_VERSION),
            device_id=os.getenv("SQUARE_DEVICE_ID", SANDBOX_DEVICE_ID),
            reference_prefix=os.getenv("BRIDGE_REFERENCE_PREFIX", DEFAULT_REFERENCE_PREFIX),
            default_tax_percent=os.getenv("BRIDGE_DEFAULT_TAX_PERCENT", DEFAULT_TAX_PERCENT),
            http_timeout=_env_float("BRIDGE_HTTP_TIMEOUT_SECONDS", DEFAULT_HTTP_TIMEOUT),
        )

    def missing(self) -> list[str]:
        """Names of required settings that are not configured."""
        out = []
        if not self.access_token:
            out.append("SQUARE_TOKEN_SANDBOX")
        if not self.location_id:
            out.append("SQUARE_LOCATION_ID")
        return out

    @property
    def auth_enabled(self) -> bool:
        return bool(self.shared_key)
