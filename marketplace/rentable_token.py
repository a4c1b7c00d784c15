"""
Rentable Token Registry
=======================

An ownable, transferable NFT collection where every token can carry a
second party, the *user*, who may use the token without owning it until
an expiry timestamp (the ERC-4907 "user" role).

Features:
- Permissionless minting with sequential token IDs starting at 1
- Ownership transfer that always clears any delegation
- Delegated-user changes by the owner or the trusted marketplace
- Expiry computed on read, never swept eagerly
- Administrative pause covering mint and delegation only

Author: jetgause
Created: 2025-12-14
"""

import logging
import secrets
import threading
from dataclasses import replace
from typing import Dict, List, Optional

from .events import EventLog
from .exceptions import (
    EmptyMetadataError,
    InvalidIdentityError,
    NotAuthorizedError,
    NotOwnerError,
    PausedError,
    TokenNotFoundError,
)
from .models import Token
from .units import ZERO_ADDRESS, is_absent, normalize_identity, require_amount

logger = logging.getLogger(__name__)


class RentableToken:
    """
    Token registry with time-bounded delegated users.

    All mutations run under one re-entrant lock. The marketplace takes
    this lock (after its own) when it needs a rent or return to be one
    indivisible step across both components.
    """

    DEFAULT_NAME = "MetaLease NFT"
    DEFAULT_SYMBOL = "MLNFT"

    def __init__(
        self,
        admin: str,
        address: Optional[str] = None,
        name: str = DEFAULT_NAME,
        symbol: str = DEFAULT_SYMBOL,
    ):
        """
        Initialize the registry.

        Args:
            admin: Administrator allowed to pause and rotate the marketplace
            address: Collection identity; random when omitted
            name: Collection name
            symbol: Collection symbol

        Raises:
            InvalidIdentityError: If admin is missing
        """
        if is_absent(admin):
            raise InvalidIdentityError("Error: admin cannot be the zero address")
        self.admin = admin
        self.address = address or "0x" + secrets.token_hex(20)
        self.name = name
        self.symbol = symbol
        self.events = EventLog(f"{self.symbol}@{self.address}")

        self._tokens: Dict[int, Token] = {}
        self._owned: Dict[str, List[int]] = {}  # owner -> [token_ids]
        self._next_token_id = 1
        self._marketplace: Optional[str] = None
        self._paused = False
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def marketplace(self) -> Optional[str]:
        return self._marketplace

    @property
    def paused(self) -> bool:
        return self._paused

    # ==================== Administration ====================

    def _require_admin(self, caller: str) -> None:
        if caller != self.admin:
            raise NotOwnerError(f"Error: {caller} is not the registry administrator")

    def set_marketplace_collaborator(self, caller: str, marketplace: str) -> None:
        """Replace the trusted marketplace identity."""
        self._require_admin(caller)
        if is_absent(marketplace):
            raise InvalidIdentityError("Error: marketplace cannot be the zero address")
        with self._lock:
            self._marketplace = marketplace
            self.events.emit("MarketplaceUpdated", marketplace=marketplace)
        logger.info(f"{self.symbol}: marketplace collaborator set to {marketplace}")

    def pause(self, caller: str) -> None:
        self._require_admin(caller)
        with self._lock:
            self._paused = True
            self.events.emit("Paused", account=caller)
        logger.warning(f"{self.symbol}: registry paused by {caller}")

    def unpause(self, caller: str) -> None:
        self._require_admin(caller)
        with self._lock:
            self._paused = False
            self.events.emit("Unpaused", account=caller)
        logger.info(f"{self.symbol}: registry unpaused by {caller}")

    # ==================== Minting & Transfer ====================

    def mint(self, to: str, uri: str) -> int:
        """
        Mint a new token.

        Anyone may mint, to any address.

        Args:
            to: Owner of the new token
            uri: Metadata pointer

        Returns:
            The new token ID

        Raises:
            PausedError: If the registry is paused
            InvalidIdentityError: If ``to`` is missing
            EmptyMetadataError: If ``uri`` is empty
        """
        with self._lock:
            if self._paused:
                raise PausedError()
            if is_absent(to):
                raise InvalidIdentityError("Error: cannot mint to zero address")
            if not uri:
                raise EmptyMetadataError()

            token_id = self._next_token_id
            self._next_token_id += 1
            self._tokens[token_id] = Token(token_id=token_id, owner=to, uri=uri)
            self._owned.setdefault(to, []).append(token_id)
            self.events.emit("Transfer", sender=ZERO_ADDRESS, recipient=to, token_id=token_id)
        logger.info(f"{self.symbol}: minted #{token_id} to {to}")
        return token_id

    def transfer(self, from_addr: str, to: str, token_id: int) -> None:
        """
        Transfer ownership of a token.

        Any delegated user is cleared, even mid-rental; the renter is not
        refunded.

        Raises:
            TokenNotFoundError: If the token does not exist
            NotOwnerError: If ``from_addr`` does not own the token
            InvalidIdentityError: If ``to`` is missing
        """
        with self._lock:
            token = self._get(token_id)
            if token.owner != from_addr:
                raise NotOwnerError(f"Error: {from_addr} does not own token #{token_id}")
            if is_absent(to):
                raise InvalidIdentityError("Error: cannot transfer to zero address")

            had_user = token.user is not None or token.user_expires != 0
            token.clear_user()
            self._owned[from_addr].remove(token_id)
            token.owner = to
            owned = self._owned.setdefault(to, [])
            owned.append(token_id)
            owned.sort()
            if had_user:
                self.events.emit("UpdateUser", token_id=token_id, user=ZERO_ADDRESS, expires=0)
            self.events.emit("Transfer", sender=from_addr, recipient=to, token_id=token_id)
        logger.info(f"{self.symbol}: #{token_id} transferred {from_addr} -> {to}")

    # ==================== Delegated User ====================

    def is_owner_or_trusted(self, caller: str, token_id: int) -> bool:
        with self._lock:
            token = self._get(token_id)
            return caller == token.owner or (
                self._marketplace is not None and caller == self._marketplace
            )

    def check_can_set_user(self, caller: str, token_id: int) -> None:
        """
        Raise the error a set_delegated_user call from ``caller`` would raise.

        Raises:
            PausedError, TokenNotFoundError, NotAuthorizedError
        """
        with self._lock:
            if self._paused:
                raise PausedError()
            if not self.is_owner_or_trusted(caller, token_id):
                raise NotAuthorizedError(
                    f"Error: {caller} may not set the user of token #{token_id}"
                )

    def set_delegated_user(self, caller: str, token_id: int, user: Optional[str], expires_at: int) -> None:
        """
        Grant (or clear) usage rights on a token.

        Overwrites any existing delegation. A missing user or an expiry of
        0 clears it.

        Args:
            caller: Token owner or the trusted marketplace
            token_id: Token to delegate
            user: Delegated user, or None / zero address to clear
            expires_at: Timestamp at which the delegation lapses
        """
        require_amount(expires_at, "expires_at")
        user = normalize_identity(user)
        with self._lock:
            self.check_can_set_user(caller, token_id)
            token = self._tokens[token_id]
            if user is None or expires_at == 0:
                token.clear_user()
            else:
                token.user = user
                token.user_expires = expires_at
            self.events.emit(
                "UpdateUser",
                token_id=token_id,
                user=token.user or ZERO_ADDRESS,
                expires=token.user_expires,
            )

    def current_user(self, token_id: int, now: int) -> Optional[str]:
        """The delegated user at ``now``, or None once the delegation expired."""
        require_amount(now, "now")
        with self._lock:
            return self._get(token_id).current_user(now)

    # ERC-4907 name
    user_of = current_user

    def is_currently_delegated(self, token_id: int, now: int) -> bool:
        return self.current_user(token_id, now) is not None

    def user_expires(self, token_id: int) -> int:
        with self._lock:
            return self._get(token_id).user_expires

    # ==================== Queries ====================

    def _get(self, token_id: int) -> Token:
        token = self._tokens.get(token_id)
        if token is None:
            raise TokenNotFoundError(f"Error: token #{token_id} does not exist")
        return token

    def exists(self, token_id: int) -> bool:
        with self._lock:
            return token_id in self._tokens

    def get_token(self, token_id: int) -> Token:
        """Snapshot of a token's stored state."""
        with self._lock:
            return replace(self._get(token_id))

    def owner_of(self, token_id: int) -> str:
        with self._lock:
            return self._get(token_id).owner

    def token_uri(self, token_id: int) -> str:
        with self._lock:
            return self._get(token_id).uri

    def tokens_of_owner(self, owner: str) -> List[int]:
        with self._lock:
            return sorted(self._owned.get(owner, []))

    def total_supply(self) -> int:
        with self._lock:
            return len(self._tokens)
