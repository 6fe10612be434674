"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the lending ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. invariants.py  - Token backing, solvency and event-log consistency
2. atomicity.py   - All-or-nothing operations under gateway failures
3. determinism.py - Reproducible behavior and side-effect-free reads
4. concurrency.py - Serialized operations under concurrent callers

These tests use hypothesis for property-based testing.
"""
