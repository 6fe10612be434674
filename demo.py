#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Lending Ledger Step by Step

This is a pedagogical walk-through of a collateralized lending market.
Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Foundation   - The empty market, collateral, borrowing
  4-5:  Safety       - Health factor, rejected actions, atomicity
  6-8:  Liquidation  - Price drop, preview, liquidation and its bonus
  9:    Audit        - The event log and its replay

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from lending import (
    # Core classes
    LendingLedger, InMemoryToken, EventType,
    # Constants
    WAD, MAX_HEALTH_FACTOR,
    # Errors
    LendingError,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    market_name: str = "market"
    market_liquidity: int = 1_000_000 * WAD

    # Alice's position
    alice_collateral: int = 10 * WAD
    alice_debt: int = 10_000 * WAD

    # Prices (quote per base unit)
    opening_price: int = 2000 * WAD
    crash_price: int = 1300 * WAD

    # Liquidator funding
    bob_initial_usd: int = 50_000 * WAD


CONFIG = DemoConfig()

# Global state for interactive mode
QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def fmt(amount: int) -> str:
    """Render an 18-decimal amount with two decimals."""
    return f"{amount / WAD:,.2f}"


def fmt_hf(health_factor: int) -> str:
    return "inf" if health_factor == MAX_HEALTH_FACTOR else str(health_factor)


def show_position(ledger: LendingLedger, account: str):
    summary = ledger.get_position(account)
    print(f"{account:8s} collateral={fmt(summary.collateral)} ETH  "
          f"debt={fmt(summary.debt)} USD  health={fmt_hf(summary.health_factor)}")


# ============================================================================
# PHASE 1: FOUNDATION (Steps 1-3)
# ============================================================================

def step_01_empty_market():
    """Create the tokens and an empty market."""
    step_header(1, "The Empty Market",
        "Understand what a lending market holds before anyone uses it.")

    print("""
    A lending market tracks one number pair per account:

    1. COLLATERAL - base asset (ETH) the account has locked in the market
    2. DEBT       - quote asset (USD) the account has borrowed

    Plus one shared PRICE: how much USD one ETH is worth.
    All amounts are integers with 18 implied decimals (1 ETH = 10**18).
    """)

    usd = InMemoryToken("USD")
    eth = InMemoryToken("ETH")
    usd.mint(CONFIG.market_name, CONFIG.market_liquidity)

    print(">>> ledger = LendingLedger('market', usd.account('market'), eth.account('market'), 2000 * WAD)")
    ledger = LendingLedger(
        CONFIG.market_name,
        quote_token=usd.account(CONFIG.market_name),
        base_asset=eth.account(CONFIG.market_name),
        initial_price=CONFIG.opening_price,
        verbose=True,
    )

    section_header("Initial State")
    print(f"Ledger:            {ledger!r}")
    print(f"Price:             {fmt(ledger.get_price())} USD/ETH")
    print(f"Terms:             {ledger.terms}")
    print(f"USD liquidity:     {fmt(usd.balance_of(CONFIG.market_name))}")

    return ledger, usd, eth


def step_02_deposit(ledger: LendingLedger, usd: InMemoryToken, eth: InMemoryToken):
    """Alice locks 10 ETH as collateral."""
    step_header(2, "Depositing Collateral",
        "See a deposit pull tokens into the market and update the position.")

    eth.mint("alice", CONFIG.alice_collateral)
    eth.approve("alice", CONFIG.market_name, CONFIG.alice_collateral)

    print(">>> ledger.deposit('alice', 10 * WAD)")
    ledger.deposit("alice", CONFIG.alice_collateral)

    section_header("After Deposit")
    show_position(ledger, "alice")
    print(f"ETH held by market: {fmt(eth.balance_of(CONFIG.market_name))}")
    print("""
    With no debt the health factor is infinite: there is nothing to repay.
    """)
    return ledger


def step_03_borrow(ledger: LendingLedger, usd: InMemoryToken):
    """Alice borrows 10 000 USD against her ETH."""
    step_header(3, "Borrowing",
        "Borrow against collateral and read the resulting health factor.")

    print(f"Max borrow before: {fmt(ledger.max_borrow('alice'))} USD")
    print(">>> ledger.borrow('alice', 10_000 * WAD)")
    ledger.borrow("alice", CONFIG.alice_debt)

    section_header("After Borrow")
    show_position(ledger, "alice")
    print(f"Alice's USD wallet: {fmt(usd.balance_of('alice'))}")
    print("""
    Health factor arithmetic (all floors, in this order):
        collateral value = 10 * 2000          = 20 000
        max safe debt    = 20 000 * 100 / 150 = 13 333
        health factor    = 13 333 * 100 / 10 000 = 133
    Anything at or above 100 is healthy.
    """)
    return ledger


# ============================================================================
# PHASE 2: SAFETY (Steps 4-5)
# ============================================================================

def step_04_rejected_actions(ledger: LendingLedger):
    """Actions that would leave the position unsafe are rejected."""
    step_header(4, "Rejected Actions",
        "See the market refuse a withdraw and a borrow that breach the threshold.")

    for label, action in (
        ("ledger.withdraw('alice', 5 * WAD)", lambda: ledger.withdraw("alice", 5 * WAD)),
        ("ledger.borrow('alice', 5_000 * WAD)", lambda: ledger.borrow("alice", 5_000 * WAD)),
    ):
        print(f">>> {label}")
        try:
            action()
        except LendingError:
            pass

    section_header("Position Unchanged")
    show_position(ledger, "alice")
    print(f"Max withdraw now: {fmt(ledger.max_withdraw('alice'))} ETH")
    print(f"Max borrow now:   {fmt(ledger.max_borrow('alice'))} USD")
    return ledger


def step_05_atomicity(ledger: LendingLedger, usd: InMemoryToken):
    """A repay whose token pull fails changes nothing."""
    step_header(5, "Atomicity",
        "Every check and every transfer succeeds, or nothing changes.")

    print("Alice has not approved the market to pull her USD yet.")
    print(">>> ledger.repay('alice', 1_000 * WAD)")
    try:
        ledger.repay("alice", 1_000 * WAD)
    except LendingError:
        pass
    show_position(ledger, "alice")

    section_header("After Approving")
    usd.approve("alice", CONFIG.market_name, CONFIG.alice_debt)
    print("Approval granted, but Alice keeps her debt for the next phase.")
    return ledger


# ============================================================================
# PHASE 3: LIQUIDATION (Steps 6-8)
# ============================================================================

def step_06_price_drop(ledger: LendingLedger):
    """ETH falls from 2000 to 1300."""
    step_header(6, "Price Drop",
        "Watch the health factor fall below 100 when the price moves.")

    print(">>> ledger.set_price(1300 * WAD)")
    ledger.set_price(CONFIG.crash_price)

    section_header("After Price Drop")
    show_position(ledger, "alice")
    print(f"Liquidatable accounts: {ledger.liquidatable_accounts()}")
    print("""
        collateral value = 10 * 1300          = 13 000
        max safe debt    = 13 000 * 100 / 150 = 8 666
        health factor    = 8 666 * 100 / 10 000 = 86   (< 100)
    """)
    return ledger


def step_07_preview(ledger: LendingLedger):
    """Quote the liquidation before executing it."""
    step_header(7, "Previewing a Liquidation",
        "Compute what a liquidator would pay and receive without changing state.")

    quote = ledger.preview_liquidation("alice")
    print(f"Debt to cover:       {fmt(quote.debt_to_cover)} USD")
    print(f"Collateral to seize: {fmt(quote.collateral_to_seize)} ETH")
    print(f"Executable:          {quote.executable}")
    print("""
    Seize = debt / price * 110%:
        10 000 / 1300 = 7.6923 ETH, plus a 10% bonus = 8.4615 ETH
    """)
    return ledger


def step_08_liquidate(ledger: LendingLedger, usd: InMemoryToken, eth: InMemoryToken):
    """Bob repays Alice's debt and takes her collateral plus the bonus."""
    step_header(8, "Liquidation",
        "Settle an unhealthy position: the liquidator pays debt and seizes collateral.")

    usd.mint("bob", CONFIG.bob_initial_usd)
    usd.approve("bob", CONFIG.market_name, CONFIG.bob_initial_usd)

    print(">>> ledger.liquidate('bob', 'alice', 10_000 * WAD)")
    ledger.liquidate("bob", "alice", CONFIG.alice_debt)

    section_header("After Liquidation")
    show_position(ledger, "alice")
    print(f"Bob USD: {fmt(usd.balance_of('bob'))}   Bob ETH: {fmt(eth.balance_of('bob'))}")
    print(f"Bob's ETH is worth {fmt(eth.balance_of('bob') * 1300)} USD at 1300")
    return ledger


# ============================================================================
# PHASE 4: AUDIT (Step 9)
# ============================================================================

def step_09_event_log(ledger: LendingLedger):
    """Every committed mutation is in the log, in order."""
    step_header(9, "The Event Log",
        "Reconstruct every position from the log alone.")

    for event in ledger.events():
        print(f"  {event!r}")

    section_header("Replay")
    replayed = {}
    for event in ledger.events():
        if event.event_type is EventType.PRICE_UPDATE:
            continue
        collateral, debt = replayed.get(event.account, (0, 0))
        if event.event_type is EventType.DEPOSIT:
            collateral += event.amount
        elif event.event_type is EventType.WITHDRAW:
            collateral -= event.amount
        elif event.event_type is EventType.BORROW:
            debt += event.amount
        elif event.event_type is EventType.REPAY:
            debt -= event.amount
        elif event.event_type is EventType.LIQUIDATE:
            debt -= event.amount
            collateral -= event.collateral_seized
        replayed[event.account] = (collateral, debt)

    for account, (collateral, debt) in sorted(replayed.items()):
        stored = ledger.get_account_position(account)
        match = (stored.collateral, stored.debt) == (collateral, debt)
        print(f"{account:8s} replayed=({fmt(collateral)}, {fmt(debt)})  matches stored: {match}")


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       LENDING LEDGER - INTERACTIVE TUTORIAL")
    print("=" * 70)
    print("""
    Welcome! This tutorial walks one position from deposit to liquidation.

    PHASES:
      1-3:  Foundation   - Empty market, deposit, borrow
      4-5:  Safety       - Rejections and atomicity
      6-8:  Liquidation  - Price drop, preview, settlement
      9:    Audit        - Event log and replay
    """)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")

    wait_for_enter()

    ledger, usd, eth = step_01_empty_market()
    wait_for_enter()

    ledger = step_02_deposit(ledger, usd, eth)
    wait_for_enter()

    ledger = step_03_borrow(ledger, usd)
    wait_for_enter()

    ledger = step_04_rejected_actions(ledger)
    wait_for_enter()

    ledger = step_05_atomicity(ledger, usd)
    wait_for_enter()

    ledger = step_06_price_drop(ledger)
    wait_for_enter()

    ledger = step_07_preview(ledger)
    wait_for_enter()

    ledger = step_08_liquidate(ledger, usd, eth)
    wait_for_enter()

    step_09_event_log(ledger)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    You've learned:

      - Positions are (collateral, debt) pairs valued at one shared price
      - The health factor uses integer math with floors in a fixed order
      - Unsafe withdraws and borrows are rejected before any token moves
      - Operations are all-or-nothing, including their token transfers
      - Liquidators repay debt and seize collateral plus a 10% bonus
      - The event log is enough to rebuild every position

    Next steps:
      - Try MarketTerms(threshold_percent=200) in step 1
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
