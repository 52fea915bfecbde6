"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the fund ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - No value created or destroyed; share units fixed
2. atomicity.py - All-or-nothing operations, including failed payouts
3. idempotency.py - Repeated claims, settlements and reconciliations

These tests use hypothesis for property-based testing.
"""
