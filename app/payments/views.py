"""
DRF views for the client portal payment endpoints.

The portal authenticates with a ClientPortalSession token in the request
body, not with Django users, so these views disable DRF authentication
and resolve the session themselves.

Related files:
    - services/: FulfillmentOrchestrator, CheckoutService
    - serializers.py: Request/response serializers
    - webhooks/views.py: MercadoPago notification endpoint

Endpoints:
    POST /api/v1/payments/portal/payment-status/ - Poll a payment, fulfilling it if due
    POST /api/v1/payments/portal/payments/ - Create a PIX charge

Security:
    - Invalid sessions get 401 and unknown or foreign payments get 404,
      both with fixed messages
    - Responses never carry upstream provider text
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from clients.services import PortalSessionService
from payments.serializers import (
    CreatePaymentRequestSerializer,
    PaymentStatusRequestSerializer,
    PaymentStatusResponseSerializer,
    PixPaymentSerializer,
)
from payments.services import (
    CheckoutRequest,
    CheckoutService,
    FulfillmentOrchestrator,
)

logger = logging.getLogger(__name__)

INVALID_SESSION_MESSAGE = "Invalid session"

CHECKOUT_ERROR_STATUS = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "CLIENT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "GATEWAY_NOT_CONFIGURED": status.HTTP_503_SERVICE_UNAVAILABLE,
    "PAYMENT_PROVIDER_ERROR": status.HTTP_502_BAD_GATEWAY,
    "PAYMENT_CONFLICT": status.HTTP_409_CONFLICT,
}


def get_orchestrator() -> FulfillmentOrchestrator:
    """Orchestrator for one poll request."""
    return FulfillmentOrchestrator.build_default()


def get_checkout_service() -> CheckoutService:
    """Checkout service for one request."""
    return CheckoutService.build_default()


def _invalid_request(errors) -> Response:
    return Response(
        {"ok": False, "error": "Invalid request", "errors": errors},
        status=status.HTTP_400_BAD_REQUEST,
    )


def _invalid_session() -> Response:
    return Response(
        {"ok": False, "error": INVALID_SESSION_MESSAGE},
        status=status.HTTP_401_UNAUTHORIZED,
    )


class PaymentStatusView(APIView):
    """
    Poll a portal payment.

    POST /api/v1/payments/portal/payment-status/

    Besides reporting, a poll drives fulfillment: if the payment is
    approved and nobody has renewed yet, this request performs the
    renewal before answering.

    Request:
        - session_token (required): Portal session token
        - payment_id (required): MercadoPago payment id

    Response:
        200 OK: {ok, status, phase, new_due_date?, error?}
            phase: awaiting_payment, renewing, done, error or payment_failed
        400 Bad Request: Malformed body
        401 Unauthorized: Invalid or expired session
        404 Not Found: Unknown payment or payment of another client
    """

    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "portal_poll"

    @extend_schema(
        operation_id="portal_payment_status",
        summary="Poll payment status",
        description=(
            "Refreshes the payment status from MercadoPago and, once the payment "
            "is approved, renews the subscription at the reseller panel exactly once.\n\n"
            "phase is one of awaiting_payment, renewing, done, error or "
            "payment_failed. payment_failed means MercadoPago reported the payment "
            "as rejected, cancelled, refunded or charged back; status carries "
            "that exact value and no renewal will happen."
        ),
        request=PaymentStatusRequestSerializer,
        responses={
            200: PaymentStatusResponseSerializer,
            400: OpenApiResponse(description="Malformed request body"),
            401: OpenApiResponse(description="Invalid or expired session"),
            404: OpenApiResponse(description="Payment not found"),
        },
        tags=["Portal - Payments"],
    )
    def post(self, request):
        serializer = PaymentStatusRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return _invalid_request(serializer.errors)

        identity = PortalSessionService.resolve(serializer.validated_data["session_token"])
        if identity is None:
            return _invalid_session()

        result = get_orchestrator().handle_poll(identity, serializer.validated_data["payment_id"])
        if not result.success:
            return Response(
                {"ok": False, "error": result.error},
                status=status.HTTP_404_NOT_FOUND,
            )

        return Response(result.data.to_response(), status=status.HTTP_200_OK)


class CreatePaymentView(APIView):
    """
    Create a PIX charge for a renewal.

    POST /api/v1/payments/portal/payments/

    Request:
        - session_token (required): Portal session token
        - client_id (required): Account being renewed (must belong to the session)
        - period (required): MONTHLY, BIMONTHLY, QUARTERLY, SEMIANNUAL or ANNUAL
        - price_amount (required): Amount to charge

    The plan label stored on the payment comes from the period.

    Response:
        201 Created: PIX charge data
        400 Bad Request: Validation error
        401 Unauthorized: Invalid or expired session
        404 Not Found: Unknown client
        502/503: No gateway could create the charge
    """

    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "portal_checkout"

    @extend_schema(
        operation_id="portal_create_payment",
        summary="Create PIX payment",
        request=CreatePaymentRequestSerializer,
        responses={
            201: PixPaymentSerializer,
            400: OpenApiResponse(description="Validation error"),
            401: OpenApiResponse(description="Invalid or expired session"),
            404: OpenApiResponse(description="Client not found"),
            502: OpenApiResponse(description="Payment provider refused the charge"),
            503: OpenApiResponse(description="No payment method configured"),
        },
        tags=["Portal - Payments"],
    )
    def post(self, request):
        serializer = CreatePaymentRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return _invalid_request(serializer.errors)

        data = serializer.validated_data
        identity = PortalSessionService.resolve(data["session_token"])
        if identity is None:
            return _invalid_session()

        result = get_checkout_service().create_pix_payment(
            identity,
            CheckoutRequest(
                client_id=data["client_id"],
                period=data["period"],
                price_amount=data["price_amount"],
            ),
        )
        if not result.success:
            body = {"ok": False, "error": result.error}
            if result.errors:
                body["errors"] = result.errors
            return Response(
                body,
                status=CHECKOUT_ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST),
            )

        return Response(
            {"ok": True, **PixPaymentSerializer(result.data).data},
            status=status.HTTP_201_CREATED,
        )
