"""
State machine enums and helpers for payment models.

This module defines the state enums used by payment models with django-fsm.
"""

from payments.state_machines.states import (
    MERCADOPAGO_STATUS_MAP,
    PERIOD_MONTHS,
    ApprovalStatus,
    FulfillmentPhase,
    FulfillmentStatus,
    RenewalPeriod,
    period_to_months,
)

__all__ = [
    "MERCADOPAGO_STATUS_MAP",
    "PERIOD_MONTHS",
    "ApprovalStatus",
    "FulfillmentPhase",
    "FulfillmentStatus",
    "RenewalPeriod",
    "period_to_months",
]
