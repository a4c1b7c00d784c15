"""
Marketplace Data Models
=======================

Core data models for the MetaLease rental ledger:
- NFT references and rentable tokens with a time-bounded delegated user
- Rental listings (an owner's standing offer)
- Rental agreements (a paid, time-bounded grant of usage rights)

Timestamps are integer seconds supplied by the caller; amounts are
integers in the smallest currency unit.

Author: jetgause
Created: 2025-12-14
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .units import SECONDS_PER_HOUR


class RentalState(Enum):
    """Lifecycle position of a token on the marketplace."""
    UNLISTED = "unlisted"
    LISTED = "listed"
    RENTED = "rented"


@dataclass(frozen=True)
class NFTRef:
    """
    Identifies a token inside a collection.

    Attributes:
        collection: Address of the token registry
        token_id: Token ID inside that registry
    """
    collection: str
    token_id: int


@dataclass
class Token:
    """
    A minted, rentable token.

    Attributes:
        token_id: Sequential identifier assigned at mint, never reused
        owner: Current owner address
        uri: Metadata pointer set at mint
        user: Delegated user, or None when nothing was delegated
        user_expires: Timestamp at which the delegation lapses (0 = none)
    """
    token_id: int
    owner: str
    uri: str
    user: Optional[str] = None
    user_expires: int = 0

    def current_user(self, now: int) -> Optional[str]:
        """The delegated user, or None once ``now`` reaches the expiry."""
        if self.user is None or now >= self.user_expires:
            return None
        return self.user

    def clear_user(self) -> None:
        self.user = None
        self.user_expires = 0


@dataclass
class RentalListing:
    """
    An owner's offer to rent out one token.

    Attributes:
        listing_id: Sequential listing identifier
        nft: The token being offered
        owner: Address that created the listing
        hourly_rate: Price per hour
        daily_rate: Price per 24 hours
        min_rental_hours: Shortest allowed rental (inclusive)
        max_rental_hours: Longest allowed rental (inclusive)
        is_active: False while rented or after cancellation
        created_at: Timestamp of creation
    """
    listing_id: int
    nft: NFTRef
    owner: str
    hourly_rate: int
    daily_rate: int
    min_rental_hours: int
    max_rental_hours: int
    is_active: bool = True
    created_at: int = 0

    def allows(self, rental_hours: int) -> bool:
        return self.min_rental_hours <= rental_hours <= self.max_rental_hours

    def to_dict(self) -> Dict[str, Any]:
        """Convert listing to dictionary format."""
        return {
            "listing_id": self.listing_id,
            "nft_contract": self.nft.collection,
            "token_id": self.nft.token_id,
            "owner": self.owner,
            "hourly_rate": self.hourly_rate,
            "daily_rate": self.daily_rate,
            "min_rental_hours": self.min_rental_hours,
            "max_rental_hours": self.max_rental_hours,
            "is_active": self.is_active,
            "created_at": self.created_at,
        }


@dataclass
class RentalAgreement:
    """
    A paid rental created from a listing.

    The agreement stays active until someone calls return, even after
    ``end_time`` has passed; the token's usability is computed from time
    independently.

    Attributes:
        rental_id: Identifier (equal to the spawning listing's ID)
        listing_id: Listing the rental was created from
        nft: The rented token
        renter: Address that paid and uses the token
        start_time: Rental start timestamp
        end_time: start_time + rental hours
        total_cost: Amount charged
        owner_payment: Share sent to the listing owner
        platform_fee: Share accrued to the platform
        use_hourly_rate: Pricing mode chosen by the renter
        is_active: True until returned
        returned_at: Timestamp of the return, if any
    """
    rental_id: int
    listing_id: int
    nft: NFTRef
    renter: str
    start_time: int
    end_time: int
    total_cost: int
    owner_payment: int = 0
    platform_fee: int = 0
    use_hourly_rate: bool = True
    is_active: bool = True
    returned_at: Optional[int] = None

    @property
    def rental_hours(self) -> int:
        return (self.end_time - self.start_time) // SECONDS_PER_HOUR

    def is_expired(self, now: int) -> bool:
        """Check if the rental period is over."""
        return now >= self.end_time

    def seconds_remaining(self, now: int) -> int:
        return max(0, self.end_time - now)

    def to_dict(self, now: Optional[int] = None) -> Dict[str, Any]:
        """Convert agreement to dictionary format."""
        data = {
            "rental_id": self.rental_id,
            "listing_id": self.listing_id,
            "nft_contract": self.nft.collection,
            "token_id": self.nft.token_id,
            "renter": self.renter,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "rental_hours": self.rental_hours,
            "total_cost": self.total_cost,
            "owner_payment": self.owner_payment,
            "platform_fee": self.platform_fee,
            "use_hourly_rate": self.use_hourly_rate,
            "is_active": self.is_active,
            "returned_at": self.returned_at,
        }
        if now is not None:
            data["is_expired"] = self.is_expired(now)
            data["seconds_remaining"] = self.seconds_remaining(now)
        return data
