"""
Contract registry for Clash.

Deploys tokens and vesting schedules, hands out deterministic contract
addresses, resolves contracts by address, and persists the whole set of
deployed contracts to a JSON state file.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Callable

from clash.core.constants import CLASH_TOKEN_NAME, CLASH_TOKEN_SYMBOL, CLASH_TOTAL_SUPPLY
from clash.core.contracts.erc20 import ERC20Token
from clash.core.contracts.vesting import VestingSchedule
from clash.core.vesting_exceptions import ContractExecutionError

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class ContractRegistry:
    """
    Registry of deployed contracts.

    Addresses are derived from sha3_256(creator:nonce), the same shape as a
    CREATE address, so redeploying a fresh registry with the same calls in
    the same order yields the same addresses.
    """

    def __init__(self, time_provider: Callable[[], int] | None = None) -> None:
        """
        Initialize the registry.

        Args:
            time_provider: Clock shared with every deployed schedule
        """
        self.time_provider = time_provider or (lambda: int(time.time()))
        self.tokens: dict[str, ERC20Token] = {}
        self.schedules: dict[str, VestingSchedule] = {}
        self.nonces: dict[str, int] = {}
        self._lock = threading.RLock()

    # ==================== Deployment ====================

    def _next_address(self, creator: str) -> str:
        creator_norm = creator.lower()
        nonce = self.nonces.get(creator_norm, 0)
        self.nonces[creator_norm] = nonce + 1
        digest = hashlib.sha3_256(f"{creator_norm}:{nonce}".encode()).digest()
        return f"0x{digest[-20:].hex()}"

    def deploy_token(
        self,
        creator: str,
        name: str,
        symbol: str,
        initial_supply: int,
        decimals: int = 18,
    ) -> ERC20Token:
        """
        Deploy a fixed-supply token, crediting the supply to the creator.

        Raises:
            TokenTransferError: If token parameters are invalid
        """
        with self._lock:
            token = ERC20Token.create(
                name=name,
                symbol=symbol,
                owner=creator,
                initial_supply=initial_supply,
                decimals=decimals,
                address=self._next_address(creator),
            )
            self.tokens[token.address] = token
        return token

    def deploy_vesting_schedule(
        self, creator: str, token_address: str, start: int, name: str
    ) -> VestingSchedule:
        """
        Deploy a vesting schedule over an already deployed token.

        Raises:
            ContractExecutionError: If the token is unknown
        """
        with self._lock:
            token = self.get_token(token_address)
            if token is None:
                raise ContractExecutionError(
                    f"Unknown token address {token_address}", details={"token": token_address}
                )
            schedule = VestingSchedule(
                token=token,
                start=start,
                name=name,
                owner=creator,
                address=self._next_address(creator),
                time_provider=self.time_provider,
                token_resolver=self.get_token,
            )
            self.schedules[schedule.address] = schedule

        logger.info(
            "Vesting schedule deployed",
            extra={
                "event": "registry.vesting_deployed",
                "schedule": name,
                "address": schedule.address,
                "token": token.address,
                "start": start,
            },
        )
        return schedule

    # ==================== Lookup ====================

    def get_token(self, address: str) -> ERC20Token | None:
        return self.tokens.get((address or "").lower())

    def get_schedule(self, address: str) -> VestingSchedule | None:
        return self.schedules.get((address or "").lower())

    def list_tokens(self) -> list[dict[str, Any]]:
        return [
            {
                "address": address,
                "name": token.name,
                "symbol": token.symbol,
                "decimals": token.decimals,
                "total_supply": token.total_supply,
                "owner": token.owner,
            }
            for address, token in self.tokens.items()
        ]

    def list_schedules(self) -> list[dict[str, Any]]:
        return [schedule.summary() for schedule in self.schedules.values()]

    # ==================== Persistence ====================

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": STATE_VERSION,
            "nonces": dict(self.nonces),
            "tokens": [token.to_dict() for token in self.tokens.values()],
            "schedules": [schedule.to_dict() for schedule in self.schedules.values()],
        }

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], time_provider: Callable[[], int] | None = None
    ) -> "ContractRegistry":
        registry = cls(time_provider=time_provider)
        registry.nonces = {k: int(v) for k, v in data.get("nonces", {}).items()}
        for token_data in data.get("tokens", []):
            token = ERC20Token.from_dict(token_data)
            registry.tokens[token.address] = token
        for schedule_data in data.get("schedules", []):
            token = registry.get_token(schedule_data["token"])
            if token is None:
                raise ContractExecutionError(
                    f"Schedule {schedule_data.get('name')} references unknown token",
                    details={"token": schedule_data["token"]},
                )
            schedule = VestingSchedule.from_dict(
                schedule_data,
                token,
                time_provider=registry.time_provider,
                token_resolver=registry.get_token,
            )
            registry.schedules[schedule.address] = schedule
        return registry

    def save(self, path: str | os.PathLike[str]) -> Path:
        """Write registry state atomically to a JSON file."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = target.with_suffix(target.suffix + ".tmp")
        with self._lock:
            payload = self.to_dict()
        tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        os.replace(tmp_path, target)
        logger.debug("Registry state saved", extra={"event": "registry.saved", "path": str(target)})
        return target

    @classmethod
    def load(
        cls, path: str | os.PathLike[str], time_provider: Callable[[], int] | None = None
    ) -> "ContractRegistry":
        """Load registry state from a JSON file; a missing file yields an empty registry."""
        source = Path(path)
        if not source.exists():
            return cls(time_provider=time_provider)
        data = json.loads(source.read_text(encoding="utf-8"))
        return cls.from_dict(data, time_provider=time_provider)


def deploy_clash_token(registry: ContractRegistry, publisher: str) -> ERC20Token:
    """Deploy the CLASH token with its full supply minted to the publisher."""
    token = registry.deploy_token(
        creator=publisher,
        name=CLASH_TOKEN_NAME,
        symbol=CLASH_TOKEN_SYMBOL,
        initial_supply=CLASH_TOTAL_SUPPLY,
    )
    logger.info(
        "ClashToken deployed",
        extra={"event": "registry.clash_token_deployed", "address": token.address},
    )
    return token
