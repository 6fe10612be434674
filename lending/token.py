"""
token.py - In-process fungible token

An in-memory stand-in for the external asset the ledger moves, used by the
tests and the demo. It keeps integer balances and allowances the way an
ERC-20 style token does and reports failure by returning False rather than
raising, which is one of the two failure modes the ledger must tolerate.

Classes:
- InMemoryToken: balances, allowances, minting
- TokenAccount: a TokenGateway bound to one holder (typically the ledger)

Example:
    usd = InMemoryToken("USD")
    usd.mint("alice", 1_000 * WAD)
    usd.approve("alice", "market", 1_000 * WAD)

    gateway = usd.account("market")
    gateway.transfer_from("alice", "market", 100 * WAD)   # True
"""

from __future__ import annotations
from collections import defaultdict
from typing import Dict, Tuple

from .core import _is_amount, _validate_account


class InMemoryToken:
    """
    Integer-balance token with allowances.

    Thread Safety:
        Not thread-safe on its own. The LendingLedger only calls it while
        holding its operation lock.
    """

    def __init__(self, symbol: str, decimals: int = 18):
        if not symbol or not symbol.strip():
            raise ValueError("symbol cannot be empty")
        self.symbol = symbol
        self.decimals = decimals
        self.balances: Dict[str, int] = defaultdict(int)
        self.allowances: Dict[Tuple[str, str], int] = defaultdict(int)

    @staticmethod
    def _check_amount(amount: int) -> None:
        if not _is_amount(amount):
            raise ValueError(f"amount must be int, got {type(amount).__name__}")
        if amount < 0:
            raise ValueError(f"amount cannot be negative, got {amount}")

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def total_supply(self) -> int:
        return sum(self.balances.values())

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((owner, spender), 0)

    def mint(self, account: str, amount: int) -> None:
        """Create amount out of thin air in account."""
        _validate_account(account)
        self._check_amount(amount)
        self.balances[account] += amount

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Allow spender to pull up to amount from owner (overwrites any previous allowance)."""
        _validate_account(owner, "owner")
        _validate_account(spender, "spender")
        self._check_amount(amount)
        self.allowances[(owner, spender)] = amount
        return True

    def move(self, source: str, dest: str, amount: int) -> bool:
        """
        Move amount between two accounts.

        Returns:
            False (and changes nothing) if source holds less than amount.
        """
        _validate_account(source, "source")
        _validate_account(dest, "dest")
        self._check_amount(amount)
        if self.balances.get(source, 0) < amount:
            return False
        self.balances[source] -= amount
        self.balances[dest] += amount
        return True

    def account(self, holder: str) -> TokenAccount:
        """Return a TokenGateway acting on behalf of holder."""
        return TokenAccount(self, holder)

    def __repr__(self):
        return f"InMemoryToken({self.symbol}, {len(self.balances)} holders)"


class TokenAccount:
    """
    TokenGateway implementation bound to one holder.

    transfer() spends the holder's own balance; transfer_from() spends the
    source's balance against the allowance the source granted the holder.
    """

    def __init__(self, token: InMemoryToken, holder: str):
        _validate_account(holder, "holder")
        self.token = token
        self.holder = holder

    def transfer(self, to: str, amount: int) -> bool:
        return self.token.move(self.holder, to, amount)

    def transfer_from(self, source: str, to: str, amount: int) -> bool:
        allowed = self.token.allowance(source, self.holder)
        if allowed < amount:
            return False
        if not self.token.move(source, to, amount):
            return False
        self.token.allowances[(source, self.holder)] = allowed - amount
        return True

    def balance_of(self, account: str) -> int:
        return self.token.balance_of(account)

    def __repr__(self):
        return f"TokenAccount({self.token.symbol}, holder={self.holder})"
