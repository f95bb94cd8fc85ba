"""
Tests for payments app.

This package contains test modules for:
- test_models.py: PaymentRecord FSM transitions and ledger constraints
- test_locks.py: Fulfillment lock compare-and-set
- test_signatures.py: MercadoPago webhook signature verification
- test_status_oracle.py: Approval status refresh
- test_orchestrator.py: Fulfillment pipeline
- test_checkout.py: PIX checkout service
- test_views.py: Client portal endpoints
- test_tasks.py: Side effect tasks and the recovery sweep

Usage:
    pytest payments/tests/
    pytest payments/tests/test_orchestrator.py
"""
