"""
Payment adapters for external services.

All payment provider API calls go through these adapters to ensure
consistent error handling, timeouts and observability.

Usage:
    from payments.adapters import MercadoPagoAdapter

    adapter = MercadoPagoAdapter(http=requests.Session())
    status = adapter.get_payment_status(access_token, payment_id)
"""

from payments.adapters.mercadopago_adapter import (
    CreatePixPaymentParams,
    MercadoPagoAdapter,
    MercadoPagoPayment,
    PixPaymentResult,
)

__all__ = [
    "CreatePixPaymentParams",
    "MercadoPagoAdapter",
    "MercadoPagoPayment",
    "PixPaymentResult",
]
