"""
Conformance Test Suite

Property-based checks of the invariants the scenarios rely on, run against
the in-memory reference ledger and the runner itself.

The tests are organized by invariant:
1. balances.py - Transfer arithmetic, supply accounting, default subaccount
2. metadata.py - Duplicate-key detection
3. ordering.py - Reporting order equals submission order

These tests use hypothesis for property-based testing.
"""
