"""
Tests for the PaymentRecord admin recovery actions.
"""

from unittest.mock import MagicMock

import pytest
from django.contrib.admin.sites import AdminSite

from payments.admin import PaymentRecordAdmin
from payments.locks import FulfillmentLock
from payments.models import PaymentRecord
from payments.state_machines import ApprovalStatus, FulfillmentStatus
from payments.tests.factories import PaymentRecordFactory


@pytest.fixture
def model_admin():
    admin = PaymentRecordAdmin(PaymentRecord, AdminSite())
    admin.message_user = MagicMock()
    return admin


@pytest.mark.django_db
class TestRequeueFailed:
    """Tests for the "Requeue failed fulfillment" action."""

    def test_requeues_only_failed_records(self, model_admin):
        failed = PaymentRecordFactory(
            approval_status=ApprovalStatus.APPROVED,
            fulfillment_status=FulfillmentStatus.ERROR,
            fulfillment_error="Panel refused",
        )
        untouched = PaymentRecordFactory(approval_status=ApprovalStatus.APPROVED)

        model_admin.requeue_failed(MagicMock(), PaymentRecord.objects.all())

        failed.refresh_from_db()
        untouched.refresh_from_db()
        assert failed.fulfillment_status == FulfillmentStatus.PENDING
        assert failed.fulfillment_error is None
        assert untouched.fulfillment_status == FulfillmentStatus.NONE
        assert "Requeued 1" in model_admin.message_user.call_args.args[1]


@pytest.mark.django_db
class TestReleaseStuck:
    """Tests for the "Release stuck fulfillment" action."""

    def test_releases_processing_records(self, model_admin):
        stuck = PaymentRecordFactory(approval_status=ApprovalStatus.APPROVED)
        FulfillmentLock().try_acquire(stuck)
        idle = PaymentRecordFactory(approval_status=ApprovalStatus.APPROVED)

        model_admin.release_stuck(MagicMock(), PaymentRecord.objects.all())

        stuck.refresh_from_db()
        idle.refresh_from_db()
        assert stuck.fulfillment_status == FulfillmentStatus.PENDING
        assert idle.fulfillment_status == FulfillmentStatus.NONE
        assert "Released 1" in model_admin.message_user.call_args.args[1]
