"""
Fixed-supply ERC20 token ledger.

This module provides the fungible ledger the vesting schedules release from,
compatible with the Ethereum ERC20 standard (EIP-20) surface:
- Basic token operations (transfer, approve, transferFrom)
- Metadata (name, symbol, decimals)
- Events (Transfer, Approval)

The whole supply is created once, at construction, and credited to the
creator. There is no minting, burning or pausing afterwards.

Security features:
- 256-bit bounds on amounts
- Zero address checks
- Balance underflow prevention
- Allowance validation
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any

from clash.core.constants import UINT256_MAX, ZERO_ADDRESS
from clash.core.vesting_exceptions import TokenTransferError

logger = logging.getLogger(__name__)


@dataclass
class TokenEvent:
    """Represents an ERC20 event."""

    event_type: str  # "Transfer" or "Approval"
    from_address: str
    to_address: str
    value: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class ERC20Token:
    """
    Fixed-supply ERC20 token.

    All balances and allowances are stored in-memory and can be persisted
    through the contract registry via to_dict/from_dict.
    """

    # Token metadata
    name: str
    symbol: str
    decimals: int = 18
    total_supply: int = 0

    # Contract address (assigned by the registry)
    address: str = ""

    # Creator, credited with the initial supply
    owner: str = ""

    # State
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)

    # Event log
    events: list[TokenEvent] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.address = self._normalize(self.address)
        self.owner = self._normalize(self.owner)
        self._lock = threading.RLock()

    @classmethod
    def create(
        cls,
        name: str,
        symbol: str,
        owner: str,
        initial_supply: int,
        decimals: int = 18,
        address: str = "",
    ) -> "ERC20Token":
        """
        Create a token and credit its entire supply to the owner.

        Args:
            name: Token name
            symbol: Token symbol (ticker)
            owner: Creator address receiving the supply
            initial_supply: Fixed total supply in base units
            decimals: Decimal places
            address: Contract address

        Returns:
            New ERC20Token instance

        Raises:
            TokenTransferError: If parameters are invalid
        """
        if not name:
            raise TokenTransferError("ERC20: name cannot be empty")
        if not symbol:
            raise TokenTransferError("ERC20: symbol cannot be empty")
        if decimals < 0 or decimals > 18:
            raise TokenTransferError("ERC20: invalid decimals")

        token = cls(name=name, symbol=symbol, decimals=decimals, owner=owner, address=address)
        token._validate_address(token.owner, "owner")
        token._validate_amount(initial_supply)

        token.total_supply = initial_supply
        token.balances[token.owner] = initial_supply
        token._emit_transfer(ZERO_ADDRESS, token.owner, initial_supply)

        logger.info(
            "ERC20 token created",
            extra={
                "event": "erc20.created",
                "token": symbol,
                "address": token.address,
                "owner": token.owner[:10],
                "supply": initial_supply,
            },
        )
        return token

    # ==================== View Functions ====================

    def balance_of(self, account: str) -> int:
        """
        Get the token balance of an account.

        Args:
            account: Address to check

        Returns:
            Token balance
        """
        return self.balances.get(self._normalize(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        """
        Get the allowance granted by owner to spender.

        Args:
            owner: Token owner address
            spender: Spender address

        Returns:
            Approved amount
        """
        owner_norm = self._normalize(owner)
        spender_norm = self._normalize(spender)
        return self.allowances.get(owner_norm, {}).get(spender_norm, 0)

    # ==================== State-Changing Functions ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Transfer tokens from sender to recipient.

        Args:
            sender: Address sending tokens (msg.sender)
            recipient: Address receiving tokens
            amount: Amount to transfer

        Returns:
            True if successful

        Raises:
            TokenTransferError: If transfer fails
        """
        sender_norm = self._normalize(sender)
        recipient_norm = self._normalize(recipient)

        self._validate_address(recipient_norm, "recipient")
        self._validate_amount(amount)

        with self._lock:
            sender_balance = self.balances.get(sender_norm, 0)
            if sender_balance < amount:
                raise TokenTransferError(
                    f"ERC20: transfer amount exceeds balance ({amount} > {sender_balance})",
                    details={"sender": sender_norm, "balance": sender_balance, "amount": amount},
                )

            self.balances[sender_norm] = sender_balance - amount
            self.balances[recipient_norm] = self.balances.get(recipient_norm, 0) + amount

            self._emit_transfer(sender_norm, recipient_norm, amount)

        logger.debug(
            "ERC20 transfer",
            extra={
                "event": "erc20.transfer",
                "token": self.symbol,
                "from": sender_norm[:10],
                "to": recipient_norm[:10],
                "amount": amount,
            },
        )

        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """
        Approve spender to spend tokens on behalf of owner.

        Raises:
            TokenTransferError: If approval fails
        """
        owner_norm = self._normalize(owner)
        spender_norm = self._normalize(spender)

        self._validate_address(spender_norm, "spender")
        self._validate_amount(amount)

        with self._lock:
            self.allowances.setdefault(owner_norm, {})[spender_norm] = amount
            self._emit_approval(owner_norm, spender_norm, amount)

        return True

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        """
        Transfer tokens using an allowance.

        Args:
            spender: Address executing transfer (msg.sender)
            from_addr: Token owner
            to_addr: Recipient
            amount: Amount to transfer

        Returns:
            True if successful

        Raises:
            TokenTransferError: If transfer fails
        """
        spender_norm = self._normalize(spender)
        from_norm = self._normalize(from_addr)
        to_norm = self._normalize(to_addr)

        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)

        with self._lock:
            current_allowance = self.allowance(from_norm, spender_norm)
            if current_allowance < amount:
                raise TokenTransferError(
                    f"ERC20: insufficient allowance ({current_allowance} < {amount})"
                )

            from_balance = self.balances.get(from_norm, 0)
            if from_balance < amount:
                raise TokenTransferError(
                    f"ERC20: transfer amount exceeds balance ({amount} > {from_balance})"
                )

            # Unlimited allowances are never decremented
            if current_allowance != UINT256_MAX:
                self.allowances[from_norm][spender_norm] = current_allowance - amount

            self.balances[from_norm] = from_balance - amount
            self.balances[to_norm] = self.balances.get(to_norm, 0) + amount

            self._emit_transfer(from_norm, to_norm, amount)

        return True

    def increase_allowance(self, owner: str, spender: str, added_value: int) -> bool:
        """Increase spender's allowance (safer than approve for increments)."""
        with self._lock:
            new_allowance = min(self.allowance(owner, spender) + added_value, UINT256_MAX)
            return self.approve(owner, spender, new_allowance)

    def decrease_allowance(self, owner: str, spender: str, subtracted_value: int) -> bool:
        """
        Decrease spender's allowance (safer than approve for decrements).

        Raises:
            TokenTransferError: If decrease exceeds current allowance
        """
        with self._lock:
            current = self.allowance(owner, spender)
            if subtracted_value > current:
                raise TokenTransferError("ERC20: decreased allowance below zero")
            return self.approve(owner, spender, current - subtracted_value)

    # ==================== Helpers ====================

    @staticmethod
    def _normalize(address: str) -> str:
        """Normalize address to lowercase."""
        return (address or "").lower()

    def _validate_address(self, address: str, field: str) -> None:
        """Validate address is not zero."""
        if not address or address == ZERO_ADDRESS:
            raise TokenTransferError(f"ERC20: {field} is zero address")

    def _validate_amount(self, amount: int) -> None:
        """Validate amount is a uint256."""
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise TokenTransferError("ERC20: amount must be an integer")
        if amount < 0:
            raise TokenTransferError("ERC20: amount cannot be negative")
        if amount > UINT256_MAX:
            raise TokenTransferError("ERC20: amount exceeds uint256")

    def _emit_transfer(self, from_addr: str, to_addr: str, amount: int) -> None:
        """Emit Transfer event."""
        self.events.append(
            TokenEvent(
                event_type="Transfer",
                from_address=from_addr,
                to_address=to_addr,
                value=amount,
            )
        )

    def _emit_approval(self, owner: str, spender: str, amount: int) -> None:
        """Emit Approval event."""
        self.events.append(
            TokenEvent(
                event_type="Approval",
                from_address=owner,
                to_address=spender,
                value=amount,
            )
        )

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        """Serialize token state to dictionary."""
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            # Amounts are written as decimal strings
            "total_supply": str(self.total_supply),
            "address": self.address,
            "owner": self.owner,
            "balances": {k: str(v) for k, v in self.balances.items()},
            "allowances": {k: {s: str(a) for s, a in v.items()} for k, v in self.allowances.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ERC20Token":
        """Deserialize token state from dictionary."""
        token = cls(
            name=data["name"],
            symbol=data["symbol"],
            decimals=data.get("decimals", 18),
            total_supply=int(data.get("total_supply", 0)),
            address=data.get("address", ""),
            owner=data.get("owner", ""),
        )
        token.balances = {k: int(v) for k, v in data.get("balances", {}).items()}
        token.allowances = {
            k: {s: int(a) for s, a in v.items()} for k, v in data.get("allowances", {}).items()
        }
        return token
