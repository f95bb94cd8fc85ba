"""
Payment domain models.

This module contains all payment-related models:
- PaymentRecord: Ledger row for one renewal payment (approval + fulfillment)
- PaymentGateway: A tenant's payment provider credentials
"""

from payments.models.payment_gateway import GatewayType, PaymentGateway
from payments.models.payment_record import PaymentRecord

__all__ = [
    "GatewayType",
    "PaymentGateway",
    "PaymentRecord",
]
