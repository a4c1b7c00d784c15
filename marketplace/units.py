"""
Units and Numeric Helpers
=========================

Constants and integer helpers shared by the token registry and the
rental marketplace. All money values are integers in the smallest unit
and all timestamps are integer seconds supplied by the caller.
"""

from typing import Optional, Tuple

from .exceptions import InvalidAmountError

ZERO_ADDRESS = "0x" + "0" * 40

SECONDS_PER_HOUR = 3600
HOURS_PER_DAY = 24
BPS_DENOMINATOR = 10000

DEFAULT_PLATFORM_FEE_BPS = 250  # 2.5%
MAX_PLATFORM_FEE_BPS = 1000  # 10%


def is_absent(identity: Optional[str]) -> bool:
    """True for a missing identity: None, empty string or the zero address."""
    return not identity or identity.lower() == ZERO_ADDRESS


def normalize_identity(identity: Optional[str]) -> Optional[str]:
    """Collapse every absent form to None."""
    return None if is_absent(identity) else identity


def require_amount(value, name: str = "amount") -> int:
    """
    Validate a non-negative integer amount.

    Raises:
        InvalidAmountError: If value is not an int (bools excluded) or is negative
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmountError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise InvalidAmountError(f"{name} cannot be negative: {value}")
    return value


def hours_to_seconds(hours: int) -> int:
    return require_amount(hours, "hours") * SECONDS_PER_HOUR


def fee_split(total: int, fee_bps: int) -> Tuple[int, int]:
    """
    Split a payment into the owner's share and the platform fee.

    The fee rounds down, so the owner keeps any remainder and
    owner_share + fee == total always holds.

    Returns:
        (owner_share, fee)
    """
    require_amount(total, "total")
    require_amount(fee_bps, "fee_bps")
    fee = total * fee_bps // BPS_DENOMINATOR
    return total - fee, fee
