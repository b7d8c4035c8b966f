"""
Clash Configuration

Settings for the operator tooling, read from environment variables (and a
local ``.env`` file when present).

Environment variables:
- CLASH_NETWORK: testnet or mainnet (default testnet)
- CLASH_TOKEN_ADDRESS: deployed CLASH token (falls back to BASE_CLASH_TOKEN_ADDRESS)
- CLASH_STATE_PATH: registry state file
- CLASH_SCHEDULES_PATH: vesting schedule definitions
- CLASH_CONFIGURATION_PATH: vesting configuration (TGE timestamp)
- CLASH_LOG_DIR / CLASH_LOG_LEVEL: structured log output
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv

from clash.core.vesting_exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class NetworkType(Enum):
    TESTNET = "testnet"
    MAINNET = "mainnet"


DEFAULT_DATA_DIR = Path("data")
DEFAULT_STATE_PATH = DEFAULT_DATA_DIR / "state" / "registry.json"
DEFAULT_SCHEDULES_DIR = DEFAULT_DATA_DIR / "vesting-schedules"

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class Settings:
    network: NetworkType
    token_address: str | None
    state_path: Path
    schedules_path: Path
    configuration_path: Path
    log_dir: str | None
    log_level: str

    @property
    def is_mainnet(self) -> bool:
        return self.network is NetworkType.MAINNET


def _parse_network(value: str) -> NetworkType:
    try:
        return NetworkType(value.strip().lower())
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid CLASH_NETWORK '{value}'", details={"allowed": [n.value for n in NetworkType]}
        ) from exc


def _default_schedules_path(network: NetworkType) -> Path:
    if network is NetworkType.MAINNET:
        return DEFAULT_SCHEDULES_DIR / "vesting-schedules.json"
    return DEFAULT_SCHEDULES_DIR / "vesting-schedules-test.json"


def get_settings(load_env: bool = True) -> Settings:
    """
    Build settings from the environment.

    Read on every call so changes to the environment are picked up.

    Raises:
        ConfigurationError: If a value is invalid
    """
    if load_env:
        load_dotenv()

    network = _parse_network(os.getenv("CLASH_NETWORK", "testnet"))

    token_address = (
        os.getenv("CLASH_TOKEN_ADDRESS", "").strip()
        or os.getenv("BASE_CLASH_TOKEN_ADDRESS", "").strip()
        or None
    )

    log_level = os.getenv("CLASH_LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _VALID_LOG_LEVELS:
        raise ConfigurationError(
            f"Invalid CLASH_LOG_LEVEL '{log_level}'", details={"allowed": sorted(_VALID_LOG_LEVELS)}
        )

    settings = Settings(
        network=network,
        token_address=token_address.lower() if token_address else None,
        state_path=Path(os.getenv("CLASH_STATE_PATH", str(DEFAULT_STATE_PATH))),
        schedules_path=Path(
            os.getenv("CLASH_SCHEDULES_PATH", str(_default_schedules_path(network)))
        ),
        configuration_path=Path(
            os.getenv(
                "CLASH_CONFIGURATION_PATH",
                str(DEFAULT_SCHEDULES_DIR / "vesting-schedules-configuration.json"),
            )
        ),
        log_dir=os.getenv("CLASH_LOG_DIR", "").strip() or None,
        log_level=log_level,
    )
    logger.debug(
        "Settings loaded",
        extra={"event": "config.loaded", "network": network.value, "state_path": str(settings.state_path)},
    )
    return settings
