"""
Single-owner access control for Clash contracts.

Every privileged contract function calls ``_require_owner`` with the
caller address before touching state.
"""

from __future__ import annotations

import logging

from clash.core.constants import ZERO_ADDRESS
from clash.core.vesting_exceptions import UnauthorizedError, ZeroAddressError

logger = logging.getLogger(__name__)


class Ownable:
    """Mixin holding a single administrator address."""

    owner: str

    def _init_owner(self, owner: str) -> None:
        owner_norm = (owner or "").lower()
        if not owner_norm or owner_norm == ZERO_ADDRESS:
            raise ZeroAddressError("Ownable: owner cannot be the zero address")
        self.owner = owner_norm

    def is_owner(self, caller: str) -> bool:
        return (caller or "").lower() == self.owner

    def _require_owner(self, caller: str) -> None:
        """Require caller is owner."""
        if not self.is_owner(caller):
            raise UnauthorizedError("OwnableUnauthorizedAccount", account=(caller or "").lower())

    def transfer_ownership(self, caller: str, new_owner: str) -> bool:
        """Transfer ownership (owner only)."""
        self._require_owner(caller)
        previous = self.owner
        self._init_owner(new_owner)
        logger.info(
            "Ownership transferred",
            extra={
                "event": "ownable.ownership_transferred",
                "previous_owner": previous[:10],
                "new_owner": self.owner[:10],
            },
        )
        return True
