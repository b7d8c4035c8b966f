"""
Clash Constants

Magic numbers shared by the token ledger, the vesting contracts and the
deployment tooling, grouped by category.
"""

from typing import Final

# =============================================================================
# TIME CONSTANTS (in seconds)
# =============================================================================

SECONDS_PER_MINUTE: Final[int] = 60
SECONDS_PER_HOUR: Final[int] = 3600  # 60 * 60
SECONDS_PER_DAY: Final[int] = 86400  # 24 * 60 * 60
SECONDS_PER_MONTH: Final[int] = 2_592_000  # 30 days

# =============================================================================
# TOKEN CONSTANTS
# =============================================================================

TOKEN_DECIMALS: Final[int] = 18  # Standard ERC20 decimals
WEI_PER_TOKEN: Final[int] = 10**18  # 1 token = 10^18 base units
UINT256_MAX: Final[int] = 2**256 - 1

ZERO_ADDRESS: Final[str] = "0x" + "0" * 40

CLASH_TOKEN_NAME: Final[str] = "Chibi Clash Token"
CLASH_TOKEN_SYMBOL: Final[str] = "CLASH"
CLASH_TOTAL_SUPPLY_TOKENS: Final[int] = 5_000_000_000
CLASH_TOTAL_SUPPLY: Final[int] = CLASH_TOTAL_SUPPLY_TOKENS * WEI_PER_TOKEN

# =============================================================================
# VESTING CONSTANTS
# =============================================================================

# Unlock percentages are scaled by 100 (two decimal places): 10000 == 100%
PERCENT_X100_SCALE: Final[int] = 10_000
MAX_TOTAL_PERCENT_X100: Final[int] = PERCENT_X100_SCALE

__all__ = [
    "SECONDS_PER_MINUTE", "SECONDS_PER_HOUR", "SECONDS_PER_DAY", "SECONDS_PER_MONTH",
    "TOKEN_DECIMALS", "WEI_PER_TOKEN", "UINT256_MAX", "ZERO_ADDRESS",
    "CLASH_TOKEN_NAME", "CLASH_TOKEN_SYMBOL", "CLASH_TOTAL_SUPPLY_TOKENS", "CLASH_TOTAL_SUPPLY",
    "PERCENT_X100_SCALE", "MAX_TOTAL_PERCENT_X100",
]
