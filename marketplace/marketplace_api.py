"""
Marketplace API
===============

Service facade that wires one token registry, one payment ledger and one
rental marketplace together at startup, and exposes the operations the
HTTP layer needs as plain dictionaries.

Failures propagate as MarketplaceError subclasses; the HTTP layer turns
them into status codes.

Author: jetgause
Created: 2025-12-14
"""

import logging
from typing import Any, Dict, List, Optional

from .ledger import Ledger
from .models import NFTRef
from .rentable_token import RentableToken
from .rental_manager import RentalMarketplace
from .units import DEFAULT_PLATFORM_FEE_BPS, MAX_PLATFORM_FEE_BPS

logger = logging.getLogger(__name__)


class MarketplaceAPI:
    """
    API handler for the rental marketplace.

    Provides a unified interface over the token registry, the ledger and
    the marketplace. Each instance owns its own state; nothing is shared
    between instances.
    """

    def __init__(
        self,
        admin: str,
        collection_address: Optional[str] = None,
        marketplace_address: Optional[str] = None,
        token_name: str = RentableToken.DEFAULT_NAME,
        token_symbol: str = RentableToken.DEFAULT_SYMBOL,
        platform_fee_bps: int = DEFAULT_PLATFORM_FEE_BPS,
        max_platform_fee_bps: int = MAX_PLATFORM_FEE_BPS,
    ):
        """Initialize the Marketplace API."""
        self.admin = admin
        self.ledger = Ledger()
        self.token = RentableToken(
            admin=admin,
            address=collection_address,
            name=token_name,
            symbol=token_symbol,
        )
        self.marketplace = RentalMarketplace(
            admin=admin,
            ledger=self.ledger,
            address=marketplace_address,
            platform_fee_bps=platform_fee_bps,
            max_platform_fee_bps=max_platform_fee_bps,
        )
        self.marketplace.register_collection(self.token)
        self.token.set_marketplace_collaborator(admin, self.marketplace.address)
        logger.info(
            f"MarketplaceAPI ready: collection={self.token.address} "
            f"marketplace={self.marketplace.address}"
        )

    def nft_ref(self, token_id: int) -> NFTRef:
        return NFTRef(collection=self.token.address, token_id=token_id)

    # ==================== Tokens ====================

    def mint(self, to: str, uri: str) -> Dict[str, Any]:
        token_id = self.token.mint(to, uri)
        return {"token_id": token_id, "owner": to, "token_uri": uri}

    def transfer(self, from_addr: str, to: str, token_id: int) -> Dict[str, Any]:
        self.token.transfer(from_addr, to, token_id)
        return {"token_id": token_id, "owner": to}

    def get_nft_info(self, token_id: int, now: int) -> Dict[str, Any]:
        """Token data as shown on the token detail page."""
        token = self.token.get_token(token_id)
        return {
            "token_id": token.token_id,
            "token_uri": token.uri,
            "owner": token.owner,
            "current_user": token.current_user(now),
            "user_expires": token.user_expires,
            "rental_state": self.marketplace.get_rental_state(self.nft_ref(token_id)).value,
            "available_for_rent": self.marketplace.is_available_for_rent(self.nft_ref(token_id), now),
        }

    def tokens_of_owner(self, owner: str) -> List[int]:
        return self.token.tokens_of_owner(owner)

    def pause(self, caller: str) -> Dict[str, Any]:
        self.token.pause(caller)
        return {"paused": True}

    def unpause(self, caller: str) -> Dict[str, Any]:
        self.token.unpause(caller)
        return {"paused": False}

    # ==================== Listings ====================

    def list_for_rent(
        self,
        caller: str,
        token_id: int,
        hourly_rate: int,
        daily_rate: int,
        min_rental_hours: int,
        max_rental_hours: int,
        now: int,
    ) -> Dict[str, Any]:
        listing_id = self.marketplace.list_for_rent(
            caller,
            self.nft_ref(token_id),
            hourly_rate,
            daily_rate,
            min_rental_hours,
            max_rental_hours,
            now=now,
        )
        return self.get_listing_info(listing_id)

    def cancel_listing(self, caller: str, listing_id: int) -> Dict[str, Any]:
        self.marketplace.cancel_listing(caller, listing_id)
        return self.get_listing_info(listing_id)

    def get_listing_info(self, listing_id: int) -> Dict[str, Any]:
        return self.marketplace.get_listing(listing_id).to_dict()

    def list_active_listings(self) -> List[Dict[str, Any]]:
        return [self.get_listing_info(lid) for lid in self.marketplace.get_active_listings()]

    def listings_by_owner(self, owner: str) -> List[Dict[str, Any]]:
        return [self.get_listing_info(lid) for lid in self.marketplace.get_listings_by_owner(owner)]

    def quote(self, listing_id: int, rental_hours: int, use_hourly_rate: bool) -> Dict[str, Any]:
        cost = self.marketplace.calculate_rental_cost(listing_id, rental_hours, use_hourly_rate)
        return {
            "listing_id": listing_id,
            "rental_hours": rental_hours,
            "use_hourly_rate": use_hourly_rate,
            "cost": cost,
        }

    # ==================== Rentals ====================

    def rent(
        self,
        caller: str,
        listing_id: int,
        rental_hours: int,
        use_hourly_rate: bool,
        payment: int,
        now: int,
    ) -> Dict[str, Any]:
        rental_id = self.marketplace.rent_nft(
            caller, listing_id, rental_hours, use_hourly_rate, payment, now
        )
        return self.get_rental_info(rental_id, now)

    def return_rental(self, rental_id: int, now: int, caller: Optional[str] = None) -> Dict[str, Any]:
        self.marketplace.return_nft(rental_id, now, caller=caller)
        return self.get_rental_info(rental_id, now)

    def get_rental_info(self, rental_id: int, now: int) -> Dict[str, Any]:
        return self.marketplace.get_rental(rental_id).to_dict(now)

    def rentals_by_renter(self, renter: str, now: int) -> List[Dict[str, Any]]:
        return [self.get_rental_info(rid, now) for rid in self.marketplace.get_rentals_by_renter(renter)]

    # ==================== Ledger & Fees ====================

    def deposit(self, account: str, amount: int) -> Dict[str, Any]:
        balance = self.ledger.deposit(account, amount)
        return {"account": account, "balance": balance}

    def balance_of(self, account: str) -> Dict[str, Any]:
        return {"account": account, "balance": self.ledger.balance_of(account)}

    def set_platform_fee(self, caller: str, fee_bps: int) -> Dict[str, Any]:
        self.marketplace.set_platform_fee(caller, fee_bps)
        return {"platform_fee_bps": self.marketplace.platform_fee_bps}

    def withdraw_fees(self, caller: str) -> Dict[str, Any]:
        amount = self.marketplace.withdraw_fees(caller)
        return {"recipient": caller, "amount": amount}

    def get_events(self, source: str, name: Optional[str] = None) -> List[Dict[str, Any]]:
        """Event history of the token registry ("token") or the marketplace."""
        log = self.token.events if source == "token" else self.marketplace.events
        return [event.to_dict() for event in log.events(name)]

    def get_stats(self) -> Dict[str, Any]:
        stats = self.marketplace.get_platform_stats()
        stats["total_supply"] = self.token.total_supply()
        stats["paused"] = self.token.paused
        return stats
