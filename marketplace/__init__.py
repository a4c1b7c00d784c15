"""
MetaLease Rental Marketplace
============================

An in-process ledger for renting out NFTs:
- Rentable tokens with a time-bounded delegated user (ERC-4907 style)
- Rental listings with hourly and daily pricing
- Paid rentals with platform fee splitting and expiry-based returns

Author: jetgause
Created: 2025-12-14
"""

from .exceptions import MarketplaceError
from .ledger import Ledger
from .models import (
    NFTRef,
    RentalAgreement,
    RentalListing,
    RentalState,
    Token,
)
from .rentable_token import RentableToken
from .rental_manager import RentalMarketplace
from .marketplace_api import MarketplaceAPI
from .units import ZERO_ADDRESS

__all__ = [
    # Models
    "NFTRef",
    "Token",
    "RentalListing",
    "RentalAgreement",
    "RentalState",
    # Components
    "Ledger",
    "RentableToken",
    "RentalMarketplace",
    "MarketplaceAPI",
    # Errors & constants
    "MarketplaceError",
    "ZERO_ADDRESS",
]

__version__ = "1.0.0"
