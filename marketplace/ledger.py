"""
Payment Ledger
==============

In-memory balances standing in for the chain's native currency. The
marketplace moves a renter's payment through here, pays owners out and
keeps platform fees in its own account until withdrawn.

A settlement is a batch of transfers that applies all or nothing.
"""

import logging
import threading
from typing import Dict, Iterable, List, Tuple

from .exceptions import InsufficientFundsError, InvalidIdentityError
from .units import is_absent, require_amount

logger = logging.getLogger(__name__)

Transfer = Tuple[str, str, int]


class Ledger:
    """Account balances with atomic batch transfers."""

    def __init__(self):
        self._balances: Dict[str, int] = {}
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def balance_of(self, account: str) -> int:
        with self._lock:
            return self._balances.get(account, 0)

    def deposit(self, account: str, amount: int) -> int:
        """
        Credit an account from outside the ledger.

        Returns:
            The new balance
        """
        if is_absent(account):
            raise InvalidIdentityError("Error: cannot deposit to the zero address")
        require_amount(amount)
        with self._lock:
            self._balances[account] = self._balances.get(account, 0) + amount
            return self._balances[account]

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        self.settle([(sender, recipient, amount)])

    def settle(self, transfers: Iterable[Transfer]) -> None:
        """
        Apply a batch of (sender, recipient, amount) transfers atomically.

        Debits are checked in order against the running balances, so a
        later transfer may spend what an earlier one credited.

        Raises:
            InsufficientFundsError: If any sender would go negative; no
                balance is changed in that case
        """
        batch: List[Transfer] = list(transfers)
        for sender, recipient, amount in batch:
            require_amount(amount)
            if is_absent(sender) or is_absent(recipient):
                raise InvalidIdentityError("Error: transfer party cannot be the zero address")

        with self._lock:
            pending = dict(self._balances)
            for sender, recipient, amount in batch:
                available = pending.get(sender, 0)
                if available < amount:
                    raise InsufficientFundsError(
                        f"Error: {sender} has {available}, needs {amount}"
                    )
                pending[sender] = available - amount
                pending[recipient] = pending.get(recipient, 0) + amount
            self._balances = pending

        for sender, recipient, amount in batch:
            logger.debug("ledger: %s -> %s %d", sender, recipient, amount)
