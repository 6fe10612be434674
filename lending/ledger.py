"""
ledger.py - Stateful Collateralized Lending Ledger

The LendingLedger class is the central state manager of the lending market.
It is the only module that mutates positions, ensuring controlled and auditable changes.

Key responsibilities:
    - Owns the account -> AccountPosition mapping and the price scalar
    - Executes deposit/withdraw/borrow/repay/liquidate atomically
      (every check and every token transfer succeeds, or nothing changes)
    - Validates solvency through the pure functions in health.py
    - Records every successful mutation in an append-only event log
"""

from __future__ import annotations
from collections import deque
from contextlib import contextmanager
from dataclasses import replace
from typing import Callable, Deque, Dict, Iterator, List, Optional
import threading

from .core import (
    # Types
    AccountPosition, PositionSummary, LiquidationQuote, LedgerEvent, EventType,
    MarketTerms, TokenGateway,
    # Exceptions
    LendingError, InvalidInput, UndercollateralizedAction, NotLiquidatable,
    InvalidLiquidationAmount, ExternalTransferFailure,
    # Helper functions
    _is_amount, _validate_account,
)
from .health import (
    calculate_health_factor,
    calculate_seize_amount,
    calculate_max_borrow,
    calculate_max_withdraw,
)
from .price_feed import SettablePriceFeed


EventCallback = Callable[[LedgerEvent], None]


class LendingLedger:
    """
    Single-market lending ledger with all-or-nothing operations and an event log.

    Design Principles:
        - Stage, then commit: each operation computes a new AccountPosition from
          the current one, runs every check and every gateway call, and only then
          stores the staged position. A failure anywhere leaves the mapping untouched.
        - Always logs: every successful mutation appends a LedgerEvent.

    Thread Safety:
        Every public method runs under one per-instance re-entrant lock, so at
        most one operation touches the positions and the price at a time.
        Gateway calls and subscriber callbacks are made while the lock is held.

    Example:
        usd, eth = InMemoryToken("USD"), InMemoryToken("ETH")
        ledger = LendingLedger(
            "market",
            quote_token=usd.account("market"),
            base_asset=eth.account("market"),
            initial_price=2000 * WAD,
        )
        ledger.deposit("alice", 10 * WAD)
        ledger.borrow("alice", 10_000 * WAD)
        ledger.get_health_factor("alice")   # 133
    """

    def __init__(
        self,
        name: str,
        quote_token: TokenGateway,
        base_asset: TokenGateway,
        initial_price: int,
        terms: Optional[MarketTerms] = None,
        verbose: bool = True,
    ):
        """
        Create a ledger.

        Args:
            name: Ledger identifier; also the account the gateways hold funds under
            quote_token: Gateway for the borrowed (quote) asset
            base_asset: Gateway for the collateral (base) asset
            initial_price: Quote per base unit, 18-decimal fixed point
            terms: Market parameters (default: 150% threshold, 110% bonus, precision 100)
            verbose: Print one line per applied or rejected operation (default: True)
        """
        _validate_account(name, "name")
        for label, gateway in (("quote_token", quote_token), ("base_asset", base_asset)):
            if not isinstance(gateway, TokenGateway):
                raise TypeError(f"{label} must implement TokenGateway, got {type(gateway).__name__}")
        self.name = name
        self.quote_token = quote_token
        self.base_asset = base_asset
        self.terms = terms or MarketTerms()
        self.verbose = verbose
        self.positions: Dict[str, AccountPosition] = {}
        self.event_log: List[LedgerEvent] = []
        self._price_feed = SettablePriceFeed(initial_price)
        self._next_sequence: int = 0
        self._subscribers: List[EventCallback] = []
        # Committed events not yet handed to subscribers
        self._pending: Deque[LedgerEvent] = deque()
        self._delivering = False
        self._lock = threading.RLock()

    # ========================================================================
    # READ-ONLY QUERIES
    # ========================================================================

    def get_price(self) -> int:
        """Current price, 18-decimal fixed point."""
        with self._lock:
            return self._price_feed.get_price()

    def get_account_position(self, account: str) -> AccountPosition:
        """
        Return the stored position of an account.

        Unknown accounts read as an empty position; nothing is inserted until a
        mutation commits.
        """
        with self._lock:
            return self.positions.get(account, AccountPosition())

    def get_health_factor(self, account: str) -> int:
        """Health factor of account at the current price (MAX_HEALTH_FACTOR without debt)."""
        with self._lock:
            return self._health_factor(self.get_account_position(account))

    def is_liquidatable(self, account: str) -> bool:
        """True iff the account has debt and a health factor below precision."""
        with self._lock:
            return self._is_liquidatable(self.get_account_position(account))

    def get_position(self, account: str) -> PositionSummary:
        """Return (collateral, debt, health_factor) for account."""
        with self._lock:
            position = self.get_account_position(account)
            return PositionSummary(
                collateral=position.collateral,
                debt=position.debt,
                health_factor=self._health_factor(position),
            )

    def list_accounts(self) -> List[str]:
        """List every account that has ever had a committed mutation."""
        with self._lock:
            return sorted(self.positions.keys())

    def total_collateral(self) -> int:
        with self._lock:
            return sum(p.collateral for p in self.positions.values())

    def total_debt(self) -> int:
        with self._lock:
            return sum(p.debt for p in self.positions.values())

    def events(self, event_type: Optional[EventType] = None) -> List[LedgerEvent]:
        """Return the event log, optionally filtered by type."""
        with self._lock:
            if event_type is None:
                return list(self.event_log)
            return [e for e in self.event_log if e.event_type is event_type]

    def liquidatable_accounts(self) -> List[str]:
        """
        Scan every known account and return those currently eligible for liquidation.

        This is the bulk check a monitoring tool runs after a price move.
        """
        with self._lock:
            return [
                account for account in sorted(self.positions)
                if self._is_liquidatable(self.positions[account])
            ]

    def max_borrow(self, account: str) -> int:
        """Largest amount account can still borrow at the current price."""
        with self._lock:
            position = self.get_account_position(account)
            if position.collateral == 0:
                return 0
            return calculate_max_borrow(
                position.collateral, position.debt, self.get_price(),
                self.terms.threshold_percent, self.terms.precision,
            )

    def max_withdraw(self, account: str) -> int:
        """Largest collateral amount account can withdraw at the current price."""
        with self._lock:
            position = self.get_account_position(account)
            return calculate_max_withdraw(
                position.collateral, position.debt, self.get_price(),
                self.terms.threshold_percent, self.terms.precision,
            )

    def preview_liquidation(
        self,
        target: str,
        debt_to_cover: Optional[int] = None,
    ) -> LiquidationQuote:
        """
        Quote a liquidation without executing it.

        Args:
            target: Account to liquidate
            debt_to_cover: Debt the liquidator would repay (default: the target's full debt)

        Returns:
            LiquidationQuote. `executable` is True only if liquidate() with the
            same arguments would pass every precondition at the current price.
        """
        with self._lock:
            position = self.get_account_position(target)
            if debt_to_cover is None:
                debt_to_cover = position.debt
            health_factor = self._health_factor(position)
            liquidatable = self._is_liquidatable(position)
            seize = 0
            if _is_amount(debt_to_cover) and debt_to_cover > 0:
                seize = calculate_seize_amount(
                    debt_to_cover, self.get_price(),
                    self.terms.liquidation_bonus_percent, self.terms.precision,
                )
            executable = (
                liquidatable
                and _is_amount(debt_to_cover)
                and 0 < debt_to_cover <= position.debt
                and seize <= position.collateral
            )
            return LiquidationQuote(
                target=target,
                debt_to_cover=debt_to_cover,
                collateral_to_seize=seize,
                health_factor=health_factor,
                liquidatable=liquidatable,
                executable=executable,
            )

    # ========================================================================
    # SUBSCRIPTIONS
    # ========================================================================

    def subscribe(self, callback: EventCallback) -> Callable[[], None]:
        """
        Register a callback invoked with every event after it commits.

        Callbacks run synchronously while the ledger lock is held, so every
        subscriber sees events in sequence order even under concurrent callers.
        A callback may read the ledger or start another operation; that
        operation's event is delivered after the current one. An exception
        raised by a callback propagates to the caller of the operation, but
        the operation itself has already committed.

        Returns:
            A function that removes the subscription.
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    # ========================================================================
    # MUTATING OPERATIONS
    # ========================================================================

    def set_price(self, new_price: int) -> LedgerEvent:
        """
        Overwrite the market price.

        Unauthenticated: any caller may move the price. This is a known
        hardening gap kept for behavioral compatibility.

        Raises:
            InvalidInput: If new_price is not a positive int
        """
        with self._atomic("set_price"):
            self._price_feed.set_price(new_price)
            event = self._record(EventType.PRICE_UPDATE, None, new_price)
        self._deliver()
        return event

    def deposit(self, account: str, amount: int) -> LedgerEvent:
        """
        Add collateral.

        Pulls amount of the base asset from account into the ledger. No health
        check: depositing can only improve a position.

        Raises:
            InvalidInput: If amount is not positive
            ExternalTransferFailure: If the base asset could not be pulled
        """
        with self._atomic("deposit"):
            self._require_positive(account, amount, "deposit")
            current = self.get_account_position(account)
            staged = replace(current, collateral=current.collateral + amount)
            self._pull(self.base_asset, account, amount)
            self._commit(account, staged)
            event = self._record(EventType.DEPOSIT, account, amount)
        self._deliver()
        return event

    def withdraw(self, account: str, amount: int) -> LedgerEvent:
        """
        Remove collateral and pay it out to account.

        Raises:
            InvalidInput: If amount is not positive or exceeds the collateral
            UndercollateralizedAction: If remaining debt would breach the threshold
            ExternalTransferFailure: If the payout failed
        """
        with self._atomic("withdraw"):
            self._require_positive(account, amount, "withdraw")
            current = self.get_account_position(account)
            if current.collateral < amount:
                raise InvalidInput(
                    f"{account}: withdraw {amount} exceeds collateral {current.collateral}"
                )
            staged = replace(current, collateral=current.collateral - amount)
            self._require_solvent(account, staged, "withdraw")
            self._pay(self.base_asset, account, amount)
            self._commit(account, staged)
            event = self._record(EventType.WITHDRAW, account, amount)
        self._deliver()
        return event

    def borrow(self, account: str, amount: int) -> LedgerEvent:
        """
        Take on debt and receive the quote asset.

        Raises:
            InvalidInput: If amount is not positive
            UndercollateralizedAction: If account has no collateral or the new
                debt would breach the threshold
            ExternalTransferFailure: If the payout failed
        """
        with self._atomic("borrow"):
            self._require_positive(account, amount, "borrow")
            current = self.get_account_position(account)
            if current.collateral == 0:
                raise UndercollateralizedAction(f"{account}: no collateral")
            staged = replace(current, debt=current.debt + amount)
            self._require_solvent(account, staged, "borrow")
            self._pay(self.quote_token, account, amount)
            self._commit(account, staged)
            event = self._record(EventType.BORROW, account, amount)
        self._deliver()
        return event

    def repay(self, account: str, amount: int) -> LedgerEvent:
        """
        Reduce debt by pulling the quote asset from account.

        Raises:
            InvalidInput: If amount is not positive or exceeds the debt
            ExternalTransferFailure: If the quote asset could not be pulled
        """
        with self._atomic("repay"):
            self._require_positive(account, amount, "repay")
            current = self.get_account_position(account)
            if current.debt < amount:
                raise InvalidInput(f"{account}: repay {amount} exceeds debt {current.debt}")
            staged = replace(current, debt=current.debt - amount)
            self._pull(self.quote_token, account, amount)
            self._commit(account, staged)
            event = self._record(EventType.REPAY, account, amount)
        self._deliver()
        return event

    def liquidate(self, liquidator: str, target: str, debt_to_cover: int) -> LedgerEvent:
        """
        Repay part or all of an unhealthy position's debt in exchange for its
        collateral plus the liquidation bonus.

        Preconditions, checked in order (the first failure aborts):
        1. target has debt
        2. target's health factor is below precision
        3. 0 < debt_to_cover <= target's debt
        4. the collateral to seize does not exceed target's collateral;
           there is no partial seizure, an oversized liquidation fails outright

        Settlement pulls debt_to_cover of the quote asset from the liquidator
        and pays the seized collateral to the liquidator. If the payout fails
        after the pull succeeded, the pulled amount is sent back before the
        error is raised.

        Returns:
            LIQUIDATE event with account=target, counterparty=liquidator,
            amount=debt_to_cover and collateral_seized=seize.

        Raises:
            NotLiquidatable: If target has no debt or is healthy
            InvalidLiquidationAmount: If debt_to_cover is out of range or the
                seizure exceeds target's collateral
            ExternalTransferFailure: If either transfer failed
        """
        with self._atomic("liquidate"):
            _validate_account(liquidator, "liquidator")
            _validate_account(target, "target")
            current = self.get_account_position(target)
            if current.debt == 0:
                raise NotLiquidatable(f"{target}: no debt")
            health_factor = self._health_factor(current)
            if health_factor >= self.terms.precision:
                raise NotLiquidatable(
                    f"{target}: health factor {health_factor} >= {self.terms.precision}"
                )
            if not _is_amount(debt_to_cover) or debt_to_cover <= 0:
                raise InvalidLiquidationAmount(f"debt_to_cover must be positive, got {debt_to_cover!r}")
            if debt_to_cover > current.debt:
                raise InvalidLiquidationAmount(
                    f"debt_to_cover {debt_to_cover} exceeds {target} debt {current.debt}"
                )

            seize = calculate_seize_amount(
                debt_to_cover, self.get_price(),
                self.terms.liquidation_bonus_percent, self.terms.precision,
            )
            if seize > current.collateral:
                raise InvalidLiquidationAmount(
                    f"seize {seize} exceeds {target} collateral {current.collateral}"
                )

            staged = replace(
                current,
                debt=current.debt - debt_to_cover,
                collateral=current.collateral - seize,
            )
            self._pull(self.quote_token, liquidator, debt_to_cover)
            try:
                self._pay(self.base_asset, liquidator, seize)
            except ExternalTransferFailure:
                self._refund(self.quote_token, liquidator, debt_to_cover)
                raise
            self._commit(target, staged)
            event = self._record(
                EventType.LIQUIDATE, target, debt_to_cover,
                counterparty=liquidator, collateral_seized=seize,
            )
        self._deliver()
        return event

    # ========================================================================
    # INTERNALS
    # ========================================================================

    @contextmanager
    def _atomic(self, operation: str) -> Iterator[None]:
        """Serialize an operation and report rejections."""
        with self._lock:
            try:
                yield
            except (LendingError, ValueError) as e:
                if self.verbose:
                    print(f"✗ REJECTED {operation}: {type(e).__name__}: {e}")
                raise

    def _health_factor(self, position: AccountPosition) -> int:
        return calculate_health_factor(
            position.collateral, position.debt, self._price_feed.get_price(),
            self.terms.threshold_percent, self.terms.precision,
        )

    def _is_liquidatable(self, position: AccountPosition) -> bool:
        return position.debt > 0 and self._health_factor(position) < self.terms.precision

    @staticmethod
    def _require_positive(account: str, amount: int, operation: str) -> None:
        _validate_account(account)
        if not _is_amount(amount):
            raise InvalidInput(f"{operation} amount must be int, got {type(amount).__name__}")
        if amount <= 0:
            raise InvalidInput(f"{operation} amount must be positive, got {amount}")

    def _require_solvent(self, account: str, staged: AccountPosition, operation: str) -> None:
        if staged.debt == 0:
            return
        health_factor = self._health_factor(staged)
        if health_factor < self.terms.precision:
            raise UndercollateralizedAction(
                f"{account}: {operation} would leave health factor {health_factor} "
                f"< {self.terms.precision}"
            )

    @staticmethod
    def _call_gateway(gateway: TokenGateway, method: str, *args) -> None:
        """Invoke a gateway method; a False return or any exception is a failed transfer."""
        try:
            ok = getattr(gateway, method)(*args)
        except Exception as exc:
            raise ExternalTransferFailure(f"{method}{args} raised {type(exc).__name__}: {exc}") from exc
        if not ok:
            raise ExternalTransferFailure(f"{method}{args} returned {ok!r}")

    def _pull(self, gateway: TokenGateway, source: str, amount: int) -> None:
        self._call_gateway(gateway, "transfer_from", source, self.name, amount)

    def _pay(self, gateway: TokenGateway, to: str, amount: int) -> None:
        self._call_gateway(gateway, "transfer", to, amount)

    def _refund(self, gateway: TokenGateway, to: str, amount: int) -> None:
        try:
            self._pay(gateway, to, amount)
        except ExternalTransferFailure as exc:
            raise ExternalTransferFailure(
                f"refund of {amount} to {to} failed after aborted settlement: {exc}"
            ) from exc

    def _commit(self, account: str, staged: AccountPosition) -> None:
        self.positions[account] = staged

    def _record(
        self,
        event_type: EventType,
        account: Optional[str],
        amount: int,
        counterparty: Optional[str] = None,
        collateral_seized: int = 0,
    ) -> LedgerEvent:
        event = LedgerEvent(
            event_type=event_type,
            account=account,
            amount=amount,
            sequence_number=self._next_sequence,
            counterparty=counterparty,
            collateral_seized=collateral_seized,
        )
        self._next_sequence += 1
        self.event_log.append(event)
        self._pending.append(event)
        if self.verbose:
            print(f"✓ APPLIED {event!r}")
        return event

    def _deliver(self) -> None:
        """
        Hand queued events to subscribers in sequence order.

        Delivery holds the ledger lock, so a concurrent operation waits until
        every subscriber has seen the earlier events. An operation started
        from inside a callback only queues its event; the outer loop delivers
        it once the current event has reached every subscriber.

        Every subscriber receives every event even if one of them raises;
        the first error is re-raised once the queue is empty.
        """
        with self._lock:
            if self._delivering:
                return
            self._delivering = True
            first_error: Optional[Exception] = None
            try:
                while self._pending:
                    event = self._pending.popleft()
                    for callback in list(self._subscribers):
                        try:
                            callback(event)
                        except Exception as exc:
                            if first_error is None:
                                first_error = exc
            finally:
                self._delivering = False
            if first_error is not None:
                raise first_error

    def __repr__(self) -> str:
        return (
            f"LendingLedger({self.name}, {len(self.positions)} accounts, "
            f"{len(self.event_log)} events)"
        )
