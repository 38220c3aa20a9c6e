#!/usr/bin/env python3
"""
demo.py - Run the conformance suite against the in-memory ledger

Funds a caller account, runs every scenario concurrently and prints the TAP
report. The exit status is 0 when every scenario passed or was skipped.

Run:
    python demo.py             # TAP report only
    python demo.py --verbose   # also trace every ledger transfer on stderr
"""

import sys

from ledger_suite import Account, InMemoryEnv, InMemoryLedger, run_suite


# ============================================================================
# CONFIGURATION
# ============================================================================

CALLER = "alice"
INITIAL_BALANCE = 100_000
FEE = 10
LATENCY = 0.01  # seconds per ledger call


def main() -> int:
    verbose = "--verbose" in sys.argv
    ledger = InMemoryLedger("demo", fee=FEE, verbose=verbose)
    ledger.mint(Account(CALLER), INITIAL_BALANCE)
    env = InMemoryEnv(ledger, CALLER, latency=LATENCY)
    return 0 if run_suite(env) else 1


if __name__ == "__main__":
    sys.exit(main())
