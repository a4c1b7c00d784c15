"""
MetaLease Rental Marketplace - FastAPI Server
HTTP surface over the in-process token registry, ledger and rental marketplace
"""

from fastapi import FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional, Any
from datetime import datetime
import time
import uvicorn
import logging

# Import internal modules
from config import *
from marketplace import MarketplaceAPI, MarketplaceError
from marketplace.exceptions import (
    AlreadyListedError,
    AlreadyRentedError,
    CannotCancelWhileRentedError,
    InsufficientFundsError,
    InsufficientPaymentError,
    ListingNotFoundError,
    NotAuthorizedError,
    NothingToWithdrawError,
    NotOwnerError,
    PausedError,
    RentalNotActiveError,
    RentalNotExpiredError,
    RentalNotFoundError,
    TokenNotFoundError,
)

# Setup logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="MetaLease Rental API",
    description="NFT rental marketplace with time-bounded delegated users",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global state
marketplace_api = MarketplaceAPI(
    admin=ADMIN_ADDRESS,
    collection_address=COLLECTION_ADDRESS,
    marketplace_address=MARKETPLACE_ADDRESS,
    token_name=TOKEN_NAME,
    token_symbol=TOKEN_SYMBOL,
    platform_fee_bps=PLATFORM_FEE_BPS,
    max_platform_fee_bps=MAX_PLATFORM_FEE_BPS,
)

ERROR_STATUS = {
    TokenNotFoundError: 404,
    ListingNotFoundError: 404,
    RentalNotFoundError: 404,
    NotOwnerError: 403,
    NotAuthorizedError: 403,
    InsufficientPaymentError: 402,
    InsufficientFundsError: 402,
    AlreadyListedError: 409,
    AlreadyRentedError: 409,
    RentalNotExpiredError: 409,
    RentalNotActiveError: 409,
    CannotCancelWhileRentedError: 409,
    NothingToWithdrawError: 409,
    PausedError: 409,
}


def current_time() -> int:
    """Seconds since the epoch; the only clock the server reads."""
    return int(time.time())


def status_for(exc: MarketplaceError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 400


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    status_code = status_for(exc)
    logger.warning(f"{request.method} {request.url.path} rejected: {exc.code} ({exc.message})")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# REQUEST MODELS
class MintRequest(BaseModel):
    to: str = Field(..., description="Owner of the new token")
    uri: str = Field(..., description="Metadata URI")


class TransferRequest(BaseModel):
    to: str = Field(..., description="New owner")


class ListingRequest(BaseModel):
    token_id: int = Field(..., description="Token to list")
    hourly_rate: int = Field(..., description="Price per hour in the smallest unit")
    daily_rate: int = Field(..., description="Price per day in the smallest unit")
    min_rental_hours: int = Field(default=1, description="Shortest rental")
    max_rental_hours: int = Field(default=168, description="Longest rental")


class RentRequest(BaseModel):
    rental_hours: int = Field(..., description="Rental length in hours")
    use_hourly_rate: bool = Field(default=True, description="False to price in whole days")
    payment: int = Field(..., description="Amount attached; excess is refunded")


class DepositRequest(BaseModel):
    account: str
    amount: int


class FeeRequest(BaseModel):
    fee_bps: int = Field(..., description="Platform fee in basis points")


# TOKENS
@app.get("/api/nft/{token_id}")
async def get_nft(token_id: int):
    """Token URI, owner and current user"""
    return marketplace_api.get_nft_info(token_id, current_time())


@app.post("/api/nft/mint")
async def mint_nft(request: MintRequest):
    result = marketplace_api.mint(request.to, request.uri)
    logger.info(f"Minted token {result['token_id']} to {request.to}")
    return result


@app.post("/api/nft/{token_id}/transfer")
async def transfer_nft(token_id: int, request: TransferRequest, x_caller_address: str = Header(...)):
    return marketplace_api.transfer(x_caller_address, request.to, token_id)


# LISTINGS
@app.get("/api/listings")
async def get_active_listings() -> List[Dict[str, Any]]:
    return marketplace_api.list_active_listings()


@app.post("/api/listings")
async def create_listing(request: ListingRequest, x_caller_address: str = Header(...)):
    return marketplace_api.list_for_rent(
        x_caller_address,
        request.token_id,
        request.hourly_rate,
        request.daily_rate,
        request.min_rental_hours,
        request.max_rental_hours,
        current_time(),
    )


@app.get("/api/listing/{listing_id}")
async def get_listing(listing_id: int):
    return marketplace_api.get_listing_info(listing_id)


@app.get("/api/listing/{listing_id}/cost")
async def get_rental_cost(listing_id: int, hours: int, hourly: bool = True):
    return marketplace_api.quote(listing_id, hours, hourly)


@app.post("/api/listing/{listing_id}/cancel")
async def cancel_listing(listing_id: int, x_caller_address: str = Header(...)):
    return marketplace_api.cancel_listing(x_caller_address, listing_id)


# RENTALS
@app.post("/api/listing/{listing_id}/rent")
async def rent_listing(listing_id: int, request: RentRequest, x_caller_address: str = Header(...)):
    return marketplace_api.rent(
        x_caller_address,
        listing_id,
        request.rental_hours,
        request.use_hourly_rate,
        request.payment,
        current_time(),
    )


@app.get("/api/rentals/{rental_id}")
async def get_rental(rental_id: int):
    return marketplace_api.get_rental_info(rental_id, current_time())


@app.post("/api/rentals/{rental_id}/return")
async def return_rental(rental_id: int, x_caller_address: Optional[str] = Header(default=None)):
    return marketplace_api.return_rental(rental_id, current_time(), caller=x_caller_address)


# ACCOUNTS
@app.get("/api/accounts/{address}/tokens")
async def get_account_tokens(address: str):
    return {"owner": address, "token_ids": marketplace_api.tokens_of_owner(address)}


@app.get("/api/accounts/{address}/listings")
async def get_account_listings(address: str):
    return marketplace_api.listings_by_owner(address)


@app.get("/api/accounts/{address}/rentals")
async def get_account_rentals(address: str):
    return marketplace_api.rentals_by_renter(address, current_time())


@app.post("/api/ledger/deposit")
async def deposit(request: DepositRequest):
    return marketplace_api.deposit(request.account, request.amount)


@app.get("/api/ledger/{account}")
async def get_balance(account: str):
    return marketplace_api.balance_of(account)


# ADMIN
@app.post("/api/admin/fee")
async def set_platform_fee(request: FeeRequest, x_caller_address: str = Header(...)):
    return marketplace_api.set_platform_fee(x_caller_address, request.fee_bps)


@app.post("/api/admin/withdraw")
async def withdraw_fees(x_caller_address: str = Header(...)):
    return marketplace_api.withdraw_fees(x_caller_address)


@app.post("/api/admin/pause")
async def pause(x_caller_address: str = Header(...)):
    return marketplace_api.pause(x_caller_address)


@app.post("/api/admin/unpause")
async def unpause(x_caller_address: str = Header(...)):
    return marketplace_api.unpause(x_caller_address)


@app.get("/api/stats")
async def get_stats():
    return marketplace_api.get_stats()


@app.get("/api/events/{source}")
async def get_events(source: Literal["token", "marketplace"], name: Optional[str] = None):
    """Recorded events, optionally filtered by event name"""
    return marketplace_api.get_events(source, name)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": "1.0.0",
        "environment": ENVIRONMENT,
        "paused": marketplace_api.token.paused,
    }


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "name": "MetaLease Rental API",
        "version": "1.0.0",
        "status": "operational",
        "docs": "/docs"
    }


if __name__ == "__main__":
    uvicorn.run(
        "api_server:app",
        host=API_HOST,
        port=API_PORT,
        workers=API_WORKERS,
        reload=False,
        log_level=LOG_LEVEL.lower()
    )
