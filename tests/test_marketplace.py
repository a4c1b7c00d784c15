"""
Rental Marketplace Test Suite
=============================

Tests for the rental marketplace including:
- Units and fee math
- Payment ledger settlement
- Listing creation and cancellation
- Renting, pricing and payment splitting
- Returning expired rentals
- Platform fee administration and view functions

Author: jetgause
Created: 2025-12-14
"""

import unittest

from marketplace.exceptions import (
    AlreadyListedError,
    AlreadyRentedError,
    CannotCancelWhileRentedError,
    CollectionNotFoundError,
    DurationOutOfBoundsError,
    FeeTooHighError,
    InsufficientFundsError,
    InsufficientPaymentError,
    InvalidAmountError,
    InvalidIdentityError,
    InvalidRateOrDurationError,
    ListingNotActiveError,
    ListingNotFoundError,
    NotAuthorizedError,
    NotDailyAlignedError,
    NothingToWithdrawError,
    NotOwnerError,
    PausedError,
    RentalNotActiveError,
    RentalNotExpiredError,
    RentalNotFoundError,
    TokenNotFoundError,
)
from marketplace.ledger import Ledger
from marketplace.models import NFTRef, RentalState
from marketplace.rentable_token import RentableToken
from marketplace.rental_manager import RentalMarketplace
from marketplace.units import fee_split, hours_to_seconds, is_absent, require_amount, ZERO_ADDRESS

ADMIN = "0xadmin"
NFT_OWNER = "0xowner"
RENTER = "0xrenter"
OTHER = "0xother"

HOURLY_RATE = 10 ** 16  # 0.01 ETH per hour
DAILY_RATE = 2 * 10 ** 17  # 0.2 ETH per day
MIN_RENTAL_HOURS = 1
MAX_RENTAL_HOURS = 24 * 7

NOW = 1_700_000_000
HOUR = 3600
FUNDS = 10 ** 20


class TestUnits(unittest.TestCase):
    """Numeric helpers."""

    def test_fee_split_rounds_fee_down(self):
        self.assertEqual(fee_split(50, 250), (49, 1))
        self.assertEqual(fee_split(10 ** 16, 250), (975 * 10 ** 13, 25 * 10 ** 13))
        self.assertEqual(fee_split(0, 250), (0, 0))

    def test_fee_split_conserves_total(self):
        for total in (1, 7, 399, 10 ** 18 + 3):
            for bps in (0, 1, 250, 999, 1000):
                owner, fee = fee_split(total, bps)
                self.assertEqual(owner + fee, total)
                self.assertEqual(fee, total * bps // 10000)

    def test_require_amount(self):
        self.assertEqual(require_amount(5), 5)
        self.assertEqual(require_amount(10 ** 40), 10 ** 40)
        with self.assertRaises(InvalidAmountError):
            require_amount(-1)
        with self.assertRaises(InvalidAmountError):
            require_amount(1.5)
        with self.assertRaises(InvalidAmountError):
            require_amount(True)
        # Also a ValueError for generic callers
        with self.assertRaises(ValueError):
            require_amount("10")

    def test_hours_to_seconds(self):
        self.assertEqual(hours_to_seconds(2), 7200)

    def test_is_absent(self):
        self.assertTrue(is_absent(None))
        self.assertTrue(is_absent(""))
        self.assertTrue(is_absent(ZERO_ADDRESS))
        self.assertFalse(is_absent("0xabc"))


class TestErrors(unittest.TestCase):
    """Error messages and codes."""

    def test_message_defaults_and_overrides(self):
        self.assertEqual(str(NotOwnerError()), "Error: not the owner")
        self.assertEqual(str(NotOwnerError("Error: custom")), "Error: custom")

    def test_to_dict(self):
        error = FeeTooHighError("Error: fee too high")
        self.assertEqual(error.to_dict(), {"error": "FeeTooHigh", "detail": "Error: fee too high"})


class TestLedger(unittest.TestCase):
    """Payment ledger."""

    def setUp(self):
        self.ledger = Ledger()
        self.ledger.deposit("a", 100)

    def test_deposit_and_balance(self):
        self.assertEqual(self.ledger.balance_of("a"), 100)
        self.assertEqual(self.ledger.balance_of("nobody"), 0)
        self.assertEqual(self.ledger.deposit("a", 5), 105)

    def test_transfer(self):
        self.ledger.transfer("a", "b", 40)
        self.assertEqual(self.ledger.balance_of("a"), 60)
        self.assertEqual(self.ledger.balance_of("b"), 40)

    def test_settle_uses_running_balances(self):
        self.ledger.settle([("a", "m", 100), ("m", "a", 30), ("m", "b", 70)])
        self.assertEqual(self.ledger.balance_of("a"), 30)
        self.assertEqual(self.ledger.balance_of("b"), 70)
        self.assertEqual(self.ledger.balance_of("m"), 0)

    def test_settle_is_all_or_nothing(self):
        with self.assertRaises(InsufficientFundsError):
            self.ledger.settle([("a", "b", 60), ("a", "c", 60)])
        self.assertEqual(self.ledger.balance_of("a"), 100)
        self.assertEqual(self.ledger.balance_of("b"), 0)

    def test_rejects_zero_address(self):
        with self.assertRaises(InvalidIdentityError):
            self.ledger.deposit(ZERO_ADDRESS, 1)
        with self.assertRaises(InvalidIdentityError):
            self.ledger.transfer("a", ZERO_ADDRESS, 1)

    def test_rejects_negative_amount(self):
        with self.assertRaises(InvalidAmountError):
            self.ledger.transfer("a", "b", -5)


class MarketplaceTestCase(unittest.TestCase):
    """Shared fixture: one collection, one marketplace, one minted token."""

    def setUp(self):
        """Set up test fixtures."""
        self.ledger = Ledger()
        self.token = RentableToken(admin=ADMIN, address="0xcollection")
        self.marketplace = RentalMarketplace(admin=ADMIN, ledger=self.ledger, address="0xmarket")
        self.marketplace.register_collection(self.token)
        self.token.set_marketplace_collaborator(ADMIN, self.marketplace.address)

        self.token.mint(NFT_OWNER, "https://example.com/token/1")
        self.nft = NFTRef(self.token.address, 1)
        self.ledger.deposit(RENTER, FUNDS)
        self.ledger.deposit(OTHER, FUNDS)

    def list_token(self, nft=None, caller=NFT_OWNER, **overrides):
        params = dict(
            hourly_rate=HOURLY_RATE,
            daily_rate=DAILY_RATE,
            min_rental_hours=MIN_RENTAL_HOURS,
            max_rental_hours=MAX_RENTAL_HOURS,
        )
        params.update(overrides)
        return self.marketplace.list_for_rent(caller, nft or self.nft, now=NOW, **params)

    def rent(self, listing_id=1, hours=2, hourly=True, renter=RENTER, payment=None, now=NOW):
        if payment is None:
            payment = self.marketplace.calculate_rental_cost(listing_id, hours, hourly)
        return self.marketplace.rent_nft(renter, listing_id, hours, hourly, payment, now)


class TestDeployment(MarketplaceTestCase):
    """Marketplace construction."""

    def test_defaults(self):
        self.assertEqual(self.marketplace.admin, ADMIN)
        self.assertEqual(self.marketplace.platform_fee_bps, 250)
        self.assertEqual(self.marketplace.max_platform_fee_bps, 1000)
        self.assertEqual(self.marketplace.get_active_listings(), [])

    def test_rejects_inconsistent_fee_settings(self):
        with self.assertRaises(FeeTooHighError):
            RentalMarketplace(admin=ADMIN, platform_fee_bps=1001)
        with self.assertRaises(FeeTooHighError):
            RentalMarketplace(admin=ADMIN, max_platform_fee_bps=10001)

    def test_rejects_zero_admin(self):
        with self.assertRaises(InvalidIdentityError):
            RentalMarketplace(admin=ZERO_ADDRESS)

    def test_creates_own_ledger(self):
        marketplace = RentalMarketplace(admin=ADMIN)
        self.assertIsInstance(marketplace.ledger, Ledger)


class TestListing(MarketplaceTestCase):
    """Listing tokens for rent."""

    def test_list_successfully(self):
        listing_id = self.list_token()

        self.assertEqual(listing_id, 1)
        listing = self.marketplace.get_listing(1)
        self.assertEqual(listing.nft, self.nft)
        self.assertEqual(listing.owner, NFT_OWNER)
        self.assertEqual(listing.hourly_rate, HOURLY_RATE)
        self.assertEqual(listing.daily_rate, DAILY_RATE)
        self.assertEqual(listing.created_at, NOW)
        self.assertTrue(listing.is_active)

        event = self.marketplace.events.last("NFTListedForRent")
        self.assertEqual(event.args["listing_id"], 1)
        self.assertEqual(event.args["owner"], NFT_OWNER)

    def test_rejects_non_owner(self):
        with self.assertRaises(NotOwnerError):
            self.list_token(caller=RENTER)
        self.assertEqual(self.marketplace.get_active_listings(), [])

    def test_rejects_zero_rates(self):
        with self.assertRaises(InvalidRateOrDurationError):
            self.list_token(hourly_rate=0, daily_rate=0)
        with self.assertRaises(InvalidRateOrDurationError):
            self.list_token(hourly_rate=0)
        with self.assertRaises(InvalidRateOrDurationError):
            self.list_token(daily_rate=0)

    def test_rejects_invalid_duration(self):
        with self.assertRaises(InvalidRateOrDurationError):
            self.list_token(min_rental_hours=0)
        with self.assertRaises(InvalidRateOrDurationError):
            self.list_token(min_rental_hours=MAX_RENTAL_HOURS + 1)
        self.assertEqual(self.marketplace.get_listings_by_owner(NFT_OWNER), [])

    def test_rejects_negative_rate(self):
        with self.assertRaises(InvalidAmountError):
            self.list_token(hourly_rate=-5)

    def test_rejects_double_listing(self):
        self.list_token()
        with self.assertRaises(AlreadyListedError):
            self.list_token()

    def test_rejects_listing_rented_token(self):
        self.list_token()
        self.rent()
        with self.assertRaises(AlreadyListedError):
            self.list_token()

    def test_relist_after_cancel(self):
        self.list_token()
        self.marketplace.cancel_listing(NFT_OWNER, 1)
        listing_id = self.list_token(hourly_rate=HOURLY_RATE * 2)

        self.assertEqual(listing_id, 2)
        self.assertEqual(self.marketplace.get_active_listings(), [2])

    def test_unknown_token(self):
        with self.assertRaises(TokenNotFoundError):
            self.list_token(nft=NFTRef(self.token.address, 99))

    def test_unregistered_collection(self):
        with self.assertRaises(CollectionNotFoundError):
            self.list_token(nft=NFTRef("0xelsewhere", 1))


class TestCancelListing(MarketplaceTestCase):
    """Cancelling listings."""

    def setUp(self):
        super().setUp()
        self.list_token()

    def test_cancel_by_owner(self):
        self.marketplace.cancel_listing(NFT_OWNER, 1)

        self.assertFalse(self.marketplace.get_listing(1).is_active)
        self.assertEqual(self.marketplace.events.last("ListingCancelled").args, {"listing_id": 1})
        self.assertEqual(self.marketplace.get_rental_state(self.nft), RentalState.UNLISTED)

    def test_rejects_non_owner(self):
        with self.assertRaises(NotOwnerError):
            self.marketplace.cancel_listing(RENTER, 1)

    def test_cancel_twice(self):
        self.marketplace.cancel_listing(NFT_OWNER, 1)
        with self.assertRaises(RentalNotActiveError):
            self.marketplace.cancel_listing(NFT_OWNER, 1)

    def test_rejects_cancel_while_rented(self):
        self.rent(hours=1)
        with self.assertRaises(CannotCancelWhileRentedError):
            self.marketplace.cancel_listing(NFT_OWNER, 1)

    def test_unknown_listing(self):
        with self.assertRaises(ListingNotFoundError):
            self.marketplace.cancel_listing(NFT_OWNER, 7)


class TestRenting(MarketplaceTestCase):
    """Renting listed tokens."""

    def setUp(self):
        super().setUp()
        self.list_token()

    def test_rent_hourly(self):
        expected_cost = HOURLY_RATE * 5
        rental_id = self.rent(hours=5, payment=expected_cost)

        rental = self.marketplace.get_rental(rental_id)
        self.assertEqual(rental.renter, RENTER)
        self.assertEqual(rental.total_cost, expected_cost)
        self.assertEqual(rental.start_time, NOW)
        self.assertEqual(rental.end_time, NOW + 5 * HOUR)
        self.assertTrue(rental.is_active)

        self.assertEqual(self.token.current_user(1, NOW), RENTER)
        self.assertEqual(self.token.user_expires(1), NOW + 5 * HOUR)
        self.assertFalse(self.marketplace.get_listing(1).is_active)

        event = self.marketplace.events.last("NFTRented")
        self.assertEqual(event.args["end_time"], NOW + 5 * HOUR)
        self.assertEqual(event.args["total_cost"], expected_cost)

    def test_rent_daily(self):
        rental_id = self.rent(hours=48, hourly=False, payment=DAILY_RATE * 2)
        self.assertEqual(self.marketplace.get_rental(rental_id).total_cost, DAILY_RATE * 2)

    def test_daily_must_be_24_hour_increments(self):
        with self.assertRaises(NotDailyAlignedError):
            self.rent(hours=25, hourly=False, payment=DAILY_RATE * 2)
        self.assertTrue(self.marketplace.get_listing(1).is_active)

    def test_insufficient_payment(self):
        required = HOURLY_RATE * 2
        with self.assertRaises(InsufficientPaymentError):
            self.rent(hours=2, payment=required - 1)

        self.assertEqual(self.ledger.balance_of(RENTER), FUNDS)
        self.assertIsNone(self.token.current_user(1, NOW))
        self.assertTrue(self.marketplace.get_listing(1).is_active)

    def test_zero_payment(self):
        with self.assertRaises(InsufficientPaymentError):
            self.rent(hours=1, payment=0)

    def test_excess_payment_refunded(self):
        required = HOURLY_RATE
        self.rent(hours=1, payment=required + 10 ** 17)

        self.assertEqual(self.ledger.balance_of(RENTER), FUNDS - required)

    def test_platform_fee_split(self):
        total = HOURLY_RATE
        fee = total * 250 // 10000
        self.rent(hours=1, payment=total)

        self.assertEqual(self.ledger.balance_of(NFT_OWNER), total - fee)
        self.assertEqual(self.ledger.balance_of(self.marketplace.address), fee)
        self.assertEqual(self.marketplace.accrued_fees, fee)

        rental = self.marketplace.get_rental(1)
        self.assertEqual(rental.owner_payment + rental.platform_fee, rental.total_cost)

    def test_duration_bounds(self):
        with self.assertRaises(DurationOutOfBoundsError):
            self.rent(hours=0, payment=HOURLY_RATE)
        with self.assertRaises(DurationOutOfBoundsError):
            self.rent(hours=MAX_RENTAL_HOURS + 1, payment=HOURLY_RATE * (MAX_RENTAL_HOURS + 1))

    def test_rent_already_rented(self):
        self.rent(hours=1)
        with self.assertRaises(AlreadyRentedError):
            self.rent(hours=1, renter=OTHER, payment=HOURLY_RATE)
        self.assertEqual(self.ledger.balance_of(OTHER), FUNDS)

    def test_rent_cancelled_listing(self):
        self.marketplace.cancel_listing(NFT_OWNER, 1)
        with self.assertRaises(ListingNotActiveError):
            self.rent(hours=1, payment=HOURLY_RATE)

    def test_rent_unknown_listing(self):
        with self.assertRaises(ListingNotFoundError):
            self.marketplace.rent_nft(RENTER, 99, 1, True, HOURLY_RATE, NOW)

    def test_rent_token_delegated_by_owner(self):
        self.token.set_delegated_user(NFT_OWNER, 1, OTHER, NOW + HOUR)
        with self.assertRaises(AlreadyRentedError):
            self.rent(hours=1)
        # Once the owner's delegation lapses the listing is rentable
        self.rent(hours=1, now=NOW + HOUR)
        self.assertEqual(self.token.current_user(1, NOW + HOUR), RENTER)

    def test_rent_after_owner_transferred_token(self):
        self.token.transfer(NFT_OWNER, OTHER, 1)

        self.assertFalse(self.marketplace.is_available_for_rent(self.nft, NOW))
        with self.assertRaises(NotOwnerError):
            self.rent(hours=1)
        self.assertEqual(self.ledger.balance_of(RENTER), FUNDS)
        self.assertEqual(self.ledger.balance_of(NFT_OWNER), 0)

    def test_renter_without_funds(self):
        with self.assertRaises(InsufficientFundsError):
            self.rent(hours=1, renter="0xbroke", payment=HOURLY_RATE)

        self.assertTrue(self.marketplace.get_listing(1).is_active)
        self.assertIsNone(self.token.current_user(1, NOW))
        self.assertEqual(self.marketplace.accrued_fees, 0)
        self.assertEqual(self.ledger.balance_of(NFT_OWNER), 0)

    def test_rent_while_registry_paused(self):
        self.token.pause(ADMIN)
        with self.assertRaises(PausedError):
            self.rent(hours=1)

        self.assertEqual(self.ledger.balance_of(RENTER), FUNDS)
        self.assertTrue(self.marketplace.get_listing(1).is_active)

    def test_rent_when_marketplace_not_trusted(self):
        self.token.set_marketplace_collaborator(ADMIN, "0xsomeoneelse")
        with self.assertRaises(NotAuthorizedError):
            self.rent(hours=1)

        self.assertEqual(self.ledger.balance_of(RENTER), FUNDS)
        self.assertTrue(self.marketplace.get_listing(1).is_active)

    def test_rent_rejects_zero_address_renter(self):
        with self.assertRaises(InvalidIdentityError):
            self.rent(hours=1, renter=ZERO_ADDRESS, payment=HOURLY_RATE)


class TestReturning(MarketplaceTestCase):
    """Returning expired rentals."""

    def setUp(self):
        super().setUp()
        self.list_token()
        self.rental_id = self.rent(hours=2)
        self.end = NOW + 2 * HOUR

    def test_no_return_before_expiry(self):
        with self.assertRaises(RentalNotExpiredError):
            self.marketplace.return_nft(self.rental_id, self.end - 1, caller=RENTER)
        self.assertTrue(self.marketplace.get_rental(self.rental_id).is_active)

    def test_return_after_expiry(self):
        self.marketplace.return_nft(self.rental_id, self.end + 1)

        self.assertFalse(self.marketplace.get_rental(self.rental_id).is_active)
        self.assertEqual(self.marketplace.get_rental(self.rental_id).returned_at, self.end + 1)
        self.assertIsNone(self.token.current_user(1, self.end + 1))
        self.assertEqual(self.token.user_expires(1), 0)
        self.assertTrue(self.marketplace.get_listing(1).is_active)

        event = self.marketplace.events.last("NFTReturned")
        self.assertEqual(event.args, {"rental_id": 1, "collection": self.token.address, "token_id": 1})

    def test_return_exactly_at_end_time(self):
        self.marketplace.return_nft(self.rental_id, self.end)
        self.assertFalse(self.marketplace.get_rental(self.rental_id).is_active)

    def test_anyone_can_return(self):
        self.marketplace.return_nft(self.rental_id, self.end, caller=OTHER)
        self.assertFalse(self.marketplace.get_rental(self.rental_id).is_active)

    def test_return_twice(self):
        self.marketplace.return_nft(self.rental_id, self.end)
        with self.assertRaises(RentalNotActiveError):
            self.marketplace.return_nft(self.rental_id, self.end)

    def test_unknown_rental(self):
        with self.assertRaises(RentalNotFoundError):
            self.marketplace.return_nft(99, self.end)

    def test_agreement_stays_active_until_returned(self):
        self.assertIsNone(self.token.current_user(1, self.end))
        self.assertTrue(self.marketplace.get_rental(self.rental_id).is_active)
        self.assertEqual(self.marketplace.get_rental_state(self.nft), RentalState.RENTED)

    def test_return_while_registry_paused(self):
        self.token.pause(ADMIN)
        with self.assertRaises(PausedError):
            self.marketplace.return_nft(self.rental_id, self.end)
        self.assertTrue(self.marketplace.get_rental(self.rental_id).is_active)
        self.assertFalse(self.marketplace.get_listing(1).is_active)

    def test_rent_again_after_return(self):
        self.marketplace.return_nft(self.rental_id, self.end)
        rental_id = self.rent(hours=1, renter=OTHER, now=self.end)

        self.assertEqual(rental_id, 1)
        self.assertEqual(self.marketplace.get_rental(1).renter, OTHER)
        self.assertEqual(self.token.current_user(1, self.end), OTHER)


class TestPlatformFees(MarketplaceTestCase):
    """Fee administration."""

    def test_set_platform_fee(self):
        self.marketplace.set_platform_fee(ADMIN, 500)
        self.assertEqual(self.marketplace.platform_fee_bps, 500)
        self.assertEqual(self.marketplace.events.last("PlatformFeeUpdated").args, {"fee_bps": 500})

    def test_fee_cap(self):
        with self.assertRaises(FeeTooHighError):
            self.marketplace.set_platform_fee(ADMIN, 1001)
        self.marketplace.set_platform_fee(ADMIN, 1000)
        self.assertEqual(self.marketplace.platform_fee_bps, 1000)

    def test_fee_by_non_admin(self):
        with self.assertRaises(NotOwnerError):
            self.marketplace.set_platform_fee(RENTER, 300)
        self.assertEqual(self.marketplace.platform_fee_bps, 250)

    def test_withdraw_fees(self):
        self.list_token()
        cost = self.marketplace.calculate_rental_cost(1, 1, True)
        self.rent(hours=1, payment=cost)
        expected_fee = cost * 250 // 10000

        withdrawn = self.marketplace.withdraw_fees(ADMIN)

        self.assertEqual(withdrawn, expected_fee)
        self.assertEqual(self.ledger.balance_of(ADMIN), expected_fee)
        self.assertEqual(self.ledger.balance_of(self.marketplace.address), 0)
        self.assertEqual(self.marketplace.accrued_fees, 0)

    def test_withdraw_nothing(self):
        with self.assertRaises(NothingToWithdrawError):
            self.marketplace.withdraw_fees(ADMIN)

    def test_withdraw_by_non_admin(self):
        self.list_token()
        self.rent(hours=1)
        with self.assertRaises(NotOwnerError):
            self.marketplace.withdraw_fees(RENTER)
        self.assertGreater(self.marketplace.accrued_fees, 0)


class TestViewFunctions(MarketplaceTestCase):
    """Read-only queries."""

    def setUp(self):
        super().setUp()
        self.token.mint(NFT_OWNER, "https://example.com/2")
        self.token.mint(OTHER, "https://example.com/3")
        self.list_token()
        self.list_token(nft=NFTRef(self.token.address, 2))
        self.list_token(nft=NFTRef(self.token.address, 3), caller=OTHER)

    def test_active_listings(self):
        self.assertEqual(self.marketplace.get_active_listings(), [1, 2, 3])

    def test_listings_by_owner(self):
        self.assertEqual(self.marketplace.get_listings_by_owner(NFT_OWNER), [1, 2])
        self.assertEqual(self.marketplace.get_listings_by_owner(OTHER), [3])
        self.assertEqual(self.marketplace.get_listings_by_owner(RENTER), [])

    def test_rentals_by_renter(self):
        self.rent(listing_id=1, hours=1)
        self.assertEqual(self.marketplace.get_rentals_by_renter(RENTER), [1])
        self.assertEqual(self.marketplace.get_rentals_by_renter(OTHER), [])

    def test_rentals_by_renter_only_active(self):
        self.rent(listing_id=1, hours=1)
        self.marketplace.return_nft(1, NOW + HOUR)
        self.assertEqual(self.marketplace.get_rentals_by_renter(RENTER), [])

    def test_available_for_rent(self):
        self.assertTrue(self.marketplace.is_available_for_rent(self.nft, NOW))
        self.rent(listing_id=1, hours=1)
        self.assertFalse(self.marketplace.is_available_for_rent(self.nft, NOW))
        self.assertFalse(self.marketplace.is_available_for_rent(NFTRef(self.token.address, 42), NOW))
        self.assertFalse(self.marketplace.is_available_for_rent(NFTRef("0xelsewhere", 1), NOW))

    def test_calculate_rental_cost(self):
        self.assertEqual(self.marketplace.calculate_rental_cost(1, 5, True), HOURLY_RATE * 5)
        self.assertEqual(self.marketplace.calculate_rental_cost(1, 48, False), DAILY_RATE * 2)
        with self.assertRaises(NotDailyAlignedError):
            self.marketplace.calculate_rental_cost(1, 30, False)

    def test_cost_for_unknown_listing(self):
        with self.assertRaises(ListingNotFoundError):
            self.marketplace.calculate_rental_cost(999, 1, True)

    def test_get_unknown_rental(self):
        with self.assertRaises(RentalNotFoundError):
            self.marketplace.get_rental(1)

    def test_rental_state(self):
        self.assertEqual(self.marketplace.get_rental_state(self.nft), RentalState.LISTED)
        self.rent(listing_id=1, hours=1)
        self.assertEqual(self.marketplace.get_rental_state(self.nft), RentalState.RENTED)
        self.marketplace.return_nft(1, NOW + HOUR)
        self.assertEqual(self.marketplace.get_rental_state(self.nft), RentalState.LISTED)

    def test_listing_snapshot_is_detached(self):
        listing = self.marketplace.get_listing(1)
        listing.is_active = False
        self.assertTrue(self.marketplace.get_listing(1).is_active)

    def test_platform_stats(self):
        self.rent(listing_id=1, hours=1)
        self.rent(listing_id=3, hours=2, renter=OTHER)

        stats = self.marketplace.get_platform_stats()
        self.assertEqual(stats["total_listings"], 3)
        self.assertEqual(stats["active_listings"], 1)
        self.assertEqual(stats["active_rentals"], 2)
        self.assertEqual(stats["total_volume"], HOURLY_RATE * 3)
        self.assertEqual(stats["accrued_fees"], stats["total_fees_collected"])

    def test_payment_history(self):
        self.rent(listing_id=2, hours=3, payment=HOURLY_RATE * 3 + 7)
        history = self.marketplace.get_payment_history()

        self.assertEqual(len(history), 1)
        self.assertEqual(history[0]["refund"], 7)
        self.assertEqual(history[0]["owner"], NFT_OWNER)
        self.assertEqual(history[0]["owner_payment"] + history[0]["platform_fee"], HOURLY_RATE * 3)


if __name__ == "__main__":
    unittest.main()
