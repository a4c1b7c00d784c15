"""
Rental Marketplace
==================

Lists rentable tokens and turns paid rentals into time-bounded
delegated-user grants on the token registry.

Features:
- Listing lifecycle (list, cancel, consume on rent, reactivate on return)
- Hourly or whole-day pricing with inclusive duration bounds
- Atomic payment splitting: owner paid immediately, platform fee accrued
- Return after expiry by anyone, clearing the delegated user
- Fee administration and withdrawal

Author: jetgause
Created: 2025-12-14
"""

import logging
import secrets
import threading
from dataclasses import replace
from typing import Any, Dict, List, Optional

from .events import EventLog
from .exceptions import (
    AlreadyListedError,
    AlreadyRentedError,
    CannotCancelWhileRentedError,
    CollectionNotFoundError,
    DurationOutOfBoundsError,
    FeeTooHighError,
    InsufficientPaymentError,
    InvalidIdentityError,
    InvalidRateOrDurationError,
    ListingNotActiveError,
    ListingNotFoundError,
    NotDailyAlignedError,
    NothingToWithdrawError,
    NotOwnerError,
    RentalNotActiveError,
    RentalNotExpiredError,
    RentalNotFoundError,
)
from .ledger import Ledger
from .models import NFTRef, RentalAgreement, RentalListing, RentalState
from .rentable_token import RentableToken
from .units import (
    BPS_DENOMINATOR,
    DEFAULT_PLATFORM_FEE_BPS,
    HOURS_PER_DAY,
    MAX_PLATFORM_FEE_BPS,
    fee_split,
    hours_to_seconds,
    is_absent,
    require_amount,
)

logger = logging.getLogger(__name__)


class RentalMarketplace:
    """
    Manages rental listings and agreements for one or more token registries.

    A rental agreement is keyed by the ID of the listing it came from, so a
    listing has at most one agreement at a time; renting the same listing
    again after a return replaces the stored agreement.
    """

    def __init__(
        self,
        admin: str,
        ledger: Optional[Ledger] = None,
        address: Optional[str] = None,
        platform_fee_bps: int = DEFAULT_PLATFORM_FEE_BPS,
        max_platform_fee_bps: int = MAX_PLATFORM_FEE_BPS,
    ):
        """
        Initialize the marketplace.

        Args:
            admin: Administrator allowed to change the fee and withdraw fees
            ledger: Payment ledger; a fresh one when omitted
            address: Marketplace identity (its ledger account and the
                caller it presents to token registries)
            platform_fee_bps: Initial platform fee in basis points
            max_platform_fee_bps: Cap for setPlatformFee

        Raises:
            InvalidIdentityError: If admin is missing
            FeeTooHighError: If the fee settings are inconsistent
        """
        if is_absent(admin):
            raise InvalidIdentityError("Error: admin cannot be the zero address")
        require_amount(platform_fee_bps, "platform_fee_bps")
        require_amount(max_platform_fee_bps, "max_platform_fee_bps")
        if max_platform_fee_bps > BPS_DENOMINATOR:
            raise FeeTooHighError(f"Error: fee cap {max_platform_fee_bps} exceeds {BPS_DENOMINATOR} bps")
        if platform_fee_bps > max_platform_fee_bps:
            raise FeeTooHighError()

        self.admin = admin
        self.address = address or "0x" + secrets.token_hex(20)
        self.ledger = ledger or Ledger()
        self.max_platform_fee_bps = max_platform_fee_bps
        self.events = EventLog(f"marketplace@{self.address}")

        self._platform_fee_bps = platform_fee_bps
        self._collections: Dict[str, RentableToken] = {}
        self._listings: Dict[int, RentalListing] = {}
        self._rentals: Dict[int, RentalAgreement] = {}  # listing_id -> agreement
        self._owner_listings: Dict[str, List[int]] = {}  # owner -> [listing_ids]
        self._renter_rentals: Dict[str, List[int]] = {}  # renter -> [rental_ids]
        self._token_listing: Dict[NFTRef, int] = {}  # nft -> latest listing_id
        self._next_listing_id = 1
        self._accrued_fees = 0
        self._total_fees_collected = 0
        self._total_volume = 0
        self._payment_history: List[Dict[str, Any]] = []
        self._lock = threading.RLock()

    # ==================== Collections ====================

    def register_collection(self, token: RentableToken) -> None:
        """Serve listings for tokens of this registry."""
        with self._lock:
            self._collections[token.address] = token
        logger.info(f"Marketplace serving collection {token.symbol} at {token.address}")

    def _collection(self, nft: NFTRef) -> RentableToken:
        registry = self._collections.get(nft.collection)
        if registry is None:
            raise CollectionNotFoundError(f"Error: collection {nft.collection} is not registered")
        return registry

    # ==================== Listings ====================

    def list_for_rent(
        self,
        caller: str,
        nft: NFTRef,
        hourly_rate: int,
        daily_rate: int,
        min_rental_hours: int,
        max_rental_hours: int,
        now: int = 0,
    ) -> int:
        """
        Offer a token for rent.

        Args:
            caller: Must be the token's current owner
            nft: Token to list
            hourly_rate: Price per hour (> 0)
            daily_rate: Price per day (> 0)
            min_rental_hours: Shortest rental (>= 1)
            max_rental_hours: Longest rental (>= min_rental_hours)
            now: Current timestamp, recorded as the creation time

        Returns:
            The new listing ID

        Raises:
            CollectionNotFoundError, TokenNotFoundError, NotOwnerError,
            InvalidRateOrDurationError, AlreadyListedError
        """
        for value, name in (
            (hourly_rate, "hourly_rate"),
            (daily_rate, "daily_rate"),
            (min_rental_hours, "min_rental_hours"),
            (max_rental_hours, "max_rental_hours"),
            (now, "now"),
        ):
            require_amount(value, name)

        with self._lock:
            registry = self._collection(nft)
            if registry.owner_of(nft.token_id) != caller:
                raise NotOwnerError(f"Error: {caller} is not the owner of token #{nft.token_id}")
            if hourly_rate == 0 or daily_rate == 0:
                raise InvalidRateOrDurationError("Error: rate must be greater than 0")
            if min_rental_hours == 0 or min_rental_hours > max_rental_hours:
                raise InvalidRateOrDurationError("Error: invalid rental duration")

            existing_id = self._token_listing.get(nft)
            if existing_id is not None:
                existing = self._listings[existing_id]
                if self._active_rental(existing_id):
                    raise AlreadyListedError(f"Error: token #{nft.token_id} is rented under #{existing_id}")
                if existing.is_active:
                    if existing.owner == caller:
                        raise AlreadyListedError(f"Error: token #{nft.token_id} already listed as #{existing_id}")
                    # Left behind by a previous owner
                    existing.is_active = False
                    self.events.emit("ListingCancelled", listing_id=existing_id)
                    logger.info(f"Listing #{existing_id} by former owner {existing.owner} superseded")

            listing_id = self._next_listing_id
            self._next_listing_id += 1
            self._listings[listing_id] = RentalListing(
                listing_id=listing_id,
                nft=nft,
                owner=caller,
                hourly_rate=hourly_rate,
                daily_rate=daily_rate,
                min_rental_hours=min_rental_hours,
                max_rental_hours=max_rental_hours,
                is_active=True,
                created_at=now,
            )
            self._owner_listings.setdefault(caller, []).append(listing_id)
            self._token_listing[nft] = listing_id
            self.events.emit(
                "NFTListedForRent",
                listing_id=listing_id,
                collection=nft.collection,
                token_id=nft.token_id,
                owner=caller,
                hourly_rate=hourly_rate,
                daily_rate=daily_rate,
            )

        logger.info(f"Listing #{listing_id}: token #{nft.token_id} listed by {caller}")
        return listing_id

    def cancel_listing(self, caller: str, listing_id: int) -> None:
        """
        Withdraw a listing.

        Raises:
            ListingNotFoundError, NotOwnerError, CannotCancelWhileRentedError,
            ListingNotActiveError
        """
        with self._lock:
            listing = self._get_listing(listing_id)
            if listing.owner != caller:
                raise NotOwnerError(f"Error: {caller} is not the owner of listing #{listing_id}")
            if self._active_rental(listing_id):
                raise CannotCancelWhileRentedError()
            if not listing.is_active:
                raise ListingNotActiveError()
            listing.is_active = False
            self.events.emit("ListingCancelled", listing_id=listing_id)

        logger.info(f"Listing #{listing_id} cancelled by {caller}")

    def _get_listing(self, listing_id: int) -> RentalListing:
        listing = self._listings.get(listing_id)
        if listing is None:
            raise ListingNotFoundError(f"Error: listing #{listing_id} not found")
        return listing

    def _active_rental(self, listing_id: int) -> Optional[RentalAgreement]:
        agreement = self._rentals.get(listing_id)
        if agreement is not None and agreement.is_active:
            return agreement
        return None

    # ==================== Pricing ====================

    @staticmethod
    def _price(listing: RentalListing, rental_hours: int, use_hourly_rate: bool) -> int:
        require_amount(rental_hours, "rental_hours")
        if use_hourly_rate:
            return listing.hourly_rate * rental_hours
        if rental_hours % HOURS_PER_DAY != 0:
            raise NotDailyAlignedError()
        return listing.daily_rate * (rental_hours // HOURS_PER_DAY)

    def calculate_rental_cost(self, listing_id: int, rental_hours: int, use_hourly_rate: bool) -> int:
        """
        Exact payment needed to rent a listing.

        Duration bounds are not checked here; rent_nft checks them.

        Raises:
            ListingNotFoundError, NotDailyAlignedError
        """
        with self._lock:
            return self._price(self._get_listing(listing_id), rental_hours, use_hourly_rate)

    # ==================== Rentals ====================

    def rent_nft(
        self,
        caller: str,
        listing_id: int,
        rental_hours: int,
        use_hourly_rate: bool,
        payment: int,
        now: int,
    ) -> int:
        """
        Pay for a listing and become the token's delegated user.

        ``payment`` is debited from the caller's ledger account; anything
        above the cost is refunded in the same settlement. The owner's
        share is paid out immediately and the platform fee stays in the
        marketplace account until withdrawn.

        Args:
            caller: Renter
            listing_id: Listing to rent
            rental_hours: Rental length
            use_hourly_rate: False to price in whole days
            payment: Amount attached by the renter
            now: Current timestamp (rental start)

        Returns:
            The rental ID

        Raises:
            ListingNotFoundError, AlreadyRentedError, ListingNotActiveError,
            NotOwnerError (listing owner no longer owns the token),
            NotDailyAlignedError, DurationOutOfBoundsError,
            InsufficientPaymentError, PausedError, NotAuthorizedError,
            InsufficientFundsError
        """
        require_amount(rental_hours, "rental_hours")
        require_amount(payment, "payment")
        require_amount(now, "now")
        if is_absent(caller):
            raise InvalidIdentityError("Error: renter cannot be the zero address")

        with self._lock:
            listing = self._get_listing(listing_id)
            if self._active_rental(listing_id):
                raise AlreadyRentedError()
            if not listing.is_active:
                raise ListingNotActiveError()

            registry = self._collection(listing.nft)
            token_id = listing.nft.token_id
            with registry.lock:
                if registry.owner_of(token_id) != listing.owner:
                    raise NotOwnerError(
                        f"Error: {listing.owner} no longer owns token #{token_id} of listing #{listing_id}"
                    )
                if registry.is_currently_delegated(token_id, now):
                    raise AlreadyRentedError()
                if not use_hourly_rate and rental_hours % HOURS_PER_DAY != 0:
                    raise NotDailyAlignedError()
                if not listing.allows(rental_hours):
                    raise DurationOutOfBoundsError(
                        f"Error: {rental_hours}h outside "
                        f"[{listing.min_rental_hours}, {listing.max_rental_hours}]"
                    )
                cost = self._price(listing, rental_hours, use_hourly_rate)
                if payment < cost:
                    raise InsufficientPaymentError(f"Error: insufficient payment ({payment} < {cost})")
                registry.check_can_set_user(self.address, token_id)

                owner_share, fee = fee_split(cost, self._platform_fee_bps)
                transfers = [(caller, self.address, payment)]
                if payment > cost:
                    transfers.append((self.address, caller, payment - cost))
                if owner_share:
                    transfers.append((self.address, listing.owner, owner_share))
                self.ledger.settle(transfers)

                end_time = now + hours_to_seconds(rental_hours)
                registry.set_delegated_user(self.address, token_id, caller, end_time)

            listing.is_active = False
            agreement = RentalAgreement(
                rental_id=listing_id,
                listing_id=listing_id,
                nft=listing.nft,
                renter=caller,
                start_time=now,
                end_time=end_time,
                total_cost=cost,
                owner_payment=owner_share,
                platform_fee=fee,
                use_hourly_rate=use_hourly_rate,
            )
            self._rentals[listing_id] = agreement
            rentals = self._renter_rentals.setdefault(caller, [])
            if listing_id not in rentals:
                rentals.append(listing_id)
            self._accrued_fees += fee
            self._total_fees_collected += fee
            self._total_volume += cost
            self._payment_history.append({
                "rental_id": listing_id,
                "renter": caller,
                "owner": listing.owner,
                "total_cost": cost,
                "owner_payment": owner_share,
                "platform_fee": fee,
                "refund": payment - cost,
                "time": now,
            })
            self.events.emit(
                "NFTRented",
                rental_id=listing_id,
                listing_id=listing_id,
                renter=caller,
                start_time=now,
                end_time=end_time,
                total_cost=cost,
            )

        logger.info(
            f"Rental #{listing_id}: {caller} rented token #{token_id} for {rental_hours}h "
            f"(cost={cost}, fee={fee})"
        )
        return listing_id

    def return_nft(self, rental_id: int, now: int, caller: Optional[str] = None) -> None:
        """
        Close an expired rental.

        Anyone may call this once the rental period is over. The token's
        delegated user is cleared and the listing becomes rentable again,
        unless the token changed hands during the rental.

        Raises:
            RentalNotFoundError, RentalNotActiveError, RentalNotExpiredError,
            PausedError
        """
        require_amount(now, "now")
        with self._lock:
            agreement = self._rentals.get(rental_id)
            if agreement is None:
                raise RentalNotFoundError(f"Error: rental #{rental_id} not found")
            if not agreement.is_active:
                raise RentalNotActiveError()
            if now < agreement.end_time:
                raise RentalNotExpiredError(
                    f"Error: rental #{rental_id} runs until {agreement.end_time}"
                )

            registry = self._collection(agreement.nft)
            listing = self._listings[agreement.listing_id]
            with registry.lock:
                registry.set_delegated_user(self.address, agreement.nft.token_id, None, 0)
                still_owned = registry.owner_of(agreement.nft.token_id) == listing.owner
            agreement.is_active = False
            agreement.returned_at = now
            listing.is_active = still_owned
            self.events.emit(
                "NFTReturned",
                rental_id=rental_id,
                collection=agreement.nft.collection,
                token_id=agreement.nft.token_id,
            )

        logger.info(f"Rental #{rental_id} returned by {caller or 'anonymous'}")

    # ==================== Queries ====================

    def get_listing(self, listing_id: int) -> RentalListing:
        with self._lock:
            return replace(self._get_listing(listing_id))

    def get_rental(self, rental_id: int) -> RentalAgreement:
        with self._lock:
            agreement = self._rentals.get(rental_id)
            if agreement is None:
                raise RentalNotFoundError(f"Error: rental #{rental_id} not found")
            return replace(agreement)

    def get_active_listings(self) -> List[int]:
        with self._lock:
            return [lid for lid, listing in self._listings.items() if listing.is_active]

    def get_listings_by_owner(self, owner: str) -> List[int]:
        """IDs of every listing the owner created, active or not."""
        with self._lock:
            return list(self._owner_listings.get(owner, []))

    def get_rentals_by_renter(self, renter: str) -> List[int]:
        """IDs of the renter's rentals that have not been returned."""
        with self._lock:
            return [
                rid for rid in self._renter_rentals.get(renter, [])
                if self._rentals[rid].is_active and self._rentals[rid].renter == renter
            ]

    def is_available_for_rent(self, nft: NFTRef, now: int) -> bool:
        with self._lock:
            listing_id = self._token_listing.get(nft)
            if listing_id is None or not self._listings[listing_id].is_active:
                return False
            registry = self._collections.get(nft.collection)
            if registry is None or not registry.exists(nft.token_id):
                return False
            if registry.owner_of(nft.token_id) != self._listings[listing_id].owner:
                return False
            return not registry.is_currently_delegated(nft.token_id, now)

    def get_rental_state(self, nft: NFTRef) -> RentalState:
        """Where the token sits in the UNLISTED -> LISTED -> RENTED cycle."""
        with self._lock:
            listing_id = self._token_listing.get(nft)
            if listing_id is None:
                return RentalState.UNLISTED
            if self._active_rental(listing_id):
                return RentalState.RENTED
            listing = self._listings[listing_id]
            if listing.is_active and self._collection(nft).owner_of(nft.token_id) == listing.owner:
                return RentalState.LISTED
            return RentalState.UNLISTED

    # ==================== Platform Fees ====================

    @property
    def platform_fee_bps(self) -> int:
        return self._platform_fee_bps

    @property
    def accrued_fees(self) -> int:
        with self._lock:
            return self._accrued_fees

    def _require_admin(self, caller: str) -> None:
        if caller != self.admin:
            raise NotOwnerError(f"Error: {caller} is not the marketplace administrator")

    def set_platform_fee(self, caller: str, fee_bps: int) -> None:
        """
        Change the platform fee for future rentals.

        Raises:
            NotOwnerError, FeeTooHighError
        """
        self._require_admin(caller)
        require_amount(fee_bps, "fee_bps")
        if fee_bps > self.max_platform_fee_bps:
            raise FeeTooHighError(f"Error: fee too high ({fee_bps} > {self.max_platform_fee_bps} bps)")
        with self._lock:
            self._platform_fee_bps = fee_bps
            self.events.emit("PlatformFeeUpdated", fee_bps=fee_bps)
        logger.info(f"Platform fee set to {fee_bps} bps")

    def withdraw_fees(self, caller: str) -> int:
        """
        Send every accrued fee to the administrator.

        Returns:
            The amount withdrawn

        Raises:
            NotOwnerError, NothingToWithdrawError
        """
        self._require_admin(caller)
        with self._lock:
            amount = self._accrued_fees
            if amount == 0:
                raise NothingToWithdrawError()
            self.ledger.transfer(self.address, self.admin, amount)
            self._accrued_fees = 0
            self.events.emit("FeesWithdrawn", recipient=caller, amount=amount)
        logger.info(f"Withdrew {amount} in platform fees to {caller}")
        return amount

    def get_payment_history(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(entry) for entry in self._payment_history]

    def get_platform_stats(self) -> Dict[str, Any]:
        """
        Get marketplace statistics.

        Returns:
            Listing and rental counts, volume and fee totals
        """
        with self._lock:
            return {
                "total_listings": len(self._listings),
                "active_listings": sum(1 for l in self._listings.values() if l.is_active),
                "active_rentals": sum(1 for r in self._rentals.values() if r.is_active),
                "total_rentals": len(self._payment_history),
                "total_volume": self._total_volume,
                "total_fees_collected": self._total_fees_collected,
                "accrued_fees": self._accrued_fees,
                "platform_fee_bps": self._platform_fee_bps,
                "max_platform_fee_bps": self.max_platform_fee_bps,
            }
