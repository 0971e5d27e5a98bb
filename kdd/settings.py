from __future__ import annotations

import os
from dataclasses import dataclass, field

# Kong accepts target weights between 0 and 1000.
MAX_TARGET_WEIGHT = 1000


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Kong
    kong_admin_url: str = field(default_factory=lambda: _env_str("KONG_ADMIN_URL", "http://localhost:8001"))
    gateway_timeout_s: int = field(default_factory=lambda: _env_int("KDD_GATEWAY_TIMEOUT_S", 10))
    target_weight: int = field(default_factory=lambda: _env_int("KDD_TARGET_WEIGHT", 100))

    # Docker
    upstream_label: str = field(default_factory=lambda: _env_str("KDD_UPSTREAM_LABEL", "kong.upstream"))

    # Logging
    log_level: str = field(default_factory=lambda: _env_str("APP_LOG_LEVEL", "warn"))
    log_json: bool = field(default_factory=lambda: _env_bool("KDD_LOG_JSON", False))

    def validate(self) -> None:
        if not 0 <= self.target_weight <= MAX_TARGET_WEIGHT:
            raise ValueError(f"target weight must be between 0 and {MAX_TARGET_WEIGHT}, got {self.target_weight}")
        if self.gateway_timeout_s <= 0:
            raise ValueError(f"gateway timeout must be positive, got {self.gateway_timeout_s}")


settings = Settings()
