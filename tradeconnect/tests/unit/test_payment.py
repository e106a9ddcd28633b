# TradeConnect
# Copyright (C) 2025 TradeConnect Team
#
# This file is part of TradeConnect and is dual-licensed:
#
# 1. Under the terms of the GNU Affero General Public License (AGPL) version 3,
#    as published by the Free Software Foundation. You may use, modify, and
#    distribute this file under those terms.
#
# 2. Under a commercial license, allowing use in closed-source or proprietary
#    environments without the obligations of the AGPL.
#
# If you have obtained this file under the AGPL, and you make it available over
# a network, you must also make the complete source code available under the same license.
#
# For more information or to purchase a commercial license, contact
# the TradeConnect Team.
#
# SPDX-License-Identifier: AGPL-3.0-or-later OR Proprietary

from decimal import Decimal

import pytest

from tradeconnect.accounting.payment import complete_payment, create_payment, fail_payment, refund_payment
from tradeconnect.cache.config import save_single_config
from tradeconnect.models.accounting import Invoice, InvoiceStatus, PaymentMethod, PaymentStatus
from tradeconnect.models.registration import RegistrationStatus
from tradeconnect.tests.unit.base import BaseTestCase
from tradeconnect.utils.checkin import get_active_qr
from tradeconnect.utils.core.exceptions import BusinessRuleError


class TestPayments(BaseTestCase):
    def pending_registration(self):
        return self.create_registration(status=RegistrationStatus.PENDING)

    def test_create_for_balance(self):
        payment = create_payment(self.pending_registration(), method=PaymentMethod.CARD)

        assert payment.amount == Decimal("100.00")
        assert payment.status == PaymentStatus.PENDING
        assert payment.organization == self.organization()

    def test_create_invalid_amount(self):
        with pytest.raises(BusinessRuleError) as exc:
            create_payment(self.pending_registration(), Decimal("0"))
        assert exc.value.code == "invalid_amount"

    def test_create_on_cancelled(self):
        registration = self.create_registration(status=RegistrationStatus.CANCELLED)

        with pytest.raises(BusinessRuleError) as exc:
            create_payment(registration, Decimal("10"))
        assert exc.value.code == "invalid_status"

    def test_partial_payment_keeps_pending(self):
        registration = self.pending_registration()

        complete_payment(create_payment(registration, Decimal("40")))

        registration.refresh_from_db()
        assert registration.paid == Decimal("40.00")
        assert registration.status == RegistrationStatus.PENDING

    def test_full_payment_confirms(self):
        registration = self.pending_registration()

        payment = complete_payment(create_payment(registration), "TX-1")

        registration.refresh_from_db()
        assert payment.status == PaymentStatus.COMPLETED
        assert payment.transaction_id == "TX-1"
        assert registration.status == RegistrationStatus.CONFIRMED
        assert get_active_qr(registration) is not None
        assert not Invoice.objects.exists()

    def test_full_payment_issues_invoice(self):
        save_single_config(self.organization(), "fel_enabled", True)
        registration = self.pending_registration()

        payment = complete_payment(create_payment(registration))

        invoice = Invoice.objects.get()
        assert invoice.payment == payment
        assert invoice.status == InvoiceStatus.ISSUED

    def test_complete_twice(self):
        payment = complete_payment(create_payment(self.pending_registration()))

        with pytest.raises(BusinessRuleError):
            complete_payment(payment)

    def test_fail(self):
        payment = fail_payment(create_payment(self.pending_registration()), "card declined")

        assert payment.status == PaymentStatus.FAILED
        assert payment.failure_reason == "card declined"

    def test_refund(self):
        save_single_config(self.organization(), "fel_enabled", True)
        registration = self.pending_registration()
        payment = complete_payment(create_payment(registration))

        refund_payment(payment, "customer request")

        registration.refresh_from_db()
        assert payment.status == PaymentStatus.REFUNDED
        assert registration.paid == Decimal("0")
        assert Invoice.objects.get().status == InvoiceStatus.CANCELLED

    def test_refund_pending(self):
        with pytest.raises(BusinessRuleError):
            refund_payment(create_payment(self.pending_registration()))
