"""
Marketplace Exceptions
======================

Every rejected command raises one of these. Each class carries a stable
``code`` so callers (and the HTTP layer) can tell "insufficient payment"
apart from "already rented" without parsing messages.

A failed command never leaves partial state behind: all checks run
before the first mutation.
"""


class MarketplaceError(Exception):
    """Base class for all token registry and marketplace failures."""

    code = "MarketplaceError"
    default_message = "Error: marketplace operation failed"

    def __init__(self, message: str = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {"error": self.code, "detail": self.message}


class NotOwnerError(MarketplaceError):
    """Raised when the caller does not own the token, listing or contract."""

    code = "NotOwner"
    default_message = "Error: not the owner"


class NotAuthorizedError(MarketplaceError):
    """Raised when a delegated-user change comes from neither owner nor trusted marketplace."""

    code = "NotAuthorized"
    default_message = "Error: not authorized"


class InvalidIdentityError(MarketplaceError):
    """Raised when a required party is missing or the zero address."""

    code = "InvalidIdentity"
    default_message = "Error: identity cannot be the zero address"


class EmptyMetadataError(MarketplaceError):
    """Raised when minting with an empty URI."""

    code = "EmptyMetadata"
    default_message = "Error: URI cannot be empty"


class TokenNotFoundError(MarketplaceError):
    """Raised when a token ID does not exist."""

    code = "TokenNotFound"
    default_message = "Error: token not found"


class CollectionNotFoundError(TokenNotFoundError):
    """Raised when an NFT reference names a collection the marketplace does not serve."""

    code = "CollectionNotFound"
    default_message = "Error: collection not registered"


class ListingNotFoundError(MarketplaceError):
    """Raised when a listing ID does not exist."""

    code = "ListingNotFound"
    default_message = "Error: listing not found"


class RentalNotFoundError(MarketplaceError):
    """Raised when a rental ID does not exist."""

    code = "RentalNotFound"
    default_message = "Error: rental not found"


class AlreadyListedError(MarketplaceError):
    """Raised when listing a token that is already listed or still rented."""

    code = "AlreadyListed"
    default_message = "Error: NFT already listed"


class InvalidRateOrDurationError(MarketplaceError):
    """Raised for a zero rate or an empty/inverted rental-hours window."""

    code = "InvalidRateOrDuration"
    default_message = "Error: invalid rate or rental duration"


class DurationOutOfBoundsError(MarketplaceError):
    """Raised when requested hours fall outside the listing's bounds."""

    code = "DurationOutOfBounds"
    default_message = "Error: invalid rental duration"


class NotDailyAlignedError(MarketplaceError):
    """Raised when a daily-rate rental is not a whole number of days."""

    code = "NotDailyAligned"
    default_message = "Error: daily rental must be in 24-hour increments"


class InsufficientPaymentError(MarketplaceError):
    """Raised when the attached payment is below the rental cost."""

    code = "InsufficientPayment"
    default_message = "Error: insufficient payment"


class InsufficientFundsError(MarketplaceError):
    """Raised when the ledger cannot debit an account."""

    code = "InsufficientFunds"
    default_message = "Error: insufficient funds"


class AlreadyRentedError(MarketplaceError):
    """Raised when the token is currently rented."""

    code = "AlreadyRented"
    default_message = "Error: NFT is currently rented"


class RentalNotExpiredError(MarketplaceError):
    """Raised when returning before the rental end time."""

    code = "RentalNotExpired"
    default_message = "Error: rental period not expired"


class RentalNotActiveError(MarketplaceError):
    """Raised when returning or cancelling something already inactive."""

    code = "RentalNotActive"
    default_message = "Error: rental not active"


class ListingNotActiveError(RentalNotActiveError):
    """Raised when renting or cancelling an inactive listing."""

    code = "ListingNotActive"
    default_message = "Error: listing not active"


class CannotCancelWhileRentedError(MarketplaceError):
    """Raised when cancelling a listing whose token is rented."""

    code = "CannotCancelWhileRented"
    default_message = "Error: cannot cancel while rented"


class FeeTooHighError(MarketplaceError):
    """Raised when the platform fee exceeds the configured cap."""

    code = "FeeTooHigh"
    default_message = "Error: fee too high"


class NothingToWithdrawError(MarketplaceError):
    """Raised when withdrawing with no accrued fees."""

    code = "NothingToWithdraw"
    default_message = "Error: no fees to withdraw"


class PausedError(MarketplaceError):
    """Raised when minting or delegating while the registry is paused."""

    code = "Paused"
    default_message = "Error: token registry is paused"


class InvalidAmountError(MarketplaceError, ValueError):
    """Raised for negative or non-integer amounts, hours and timestamps."""

    code = "InvalidAmount"
    default_message = "Error: invalid amount"
