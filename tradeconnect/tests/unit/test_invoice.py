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
from unittest.mock import patch

import pytest
import requests
from django.core import mail

from tradeconnect.accounting.invoice import cancel_invoice, compute_tax, generate_invoice, retry_failed_documents
from tradeconnect.cache.config import save_single_config
from tradeconnect.models.accounting import FelDocument, FelKind, FelStatus, InvoiceStatus
from tradeconnect.tests.unit.base import BaseTestCase
from tradeconnect.utils.core.exceptions import FelError


class TestComputeTax:
    def test_split(self):
        assert compute_tax(Decimal("100")) == (Decimal("89.29"), Decimal("10.71"))
        assert compute_tax(Decimal("112")) == (Decimal("100.00"), Decimal("12.00"))


class TestGenerateInvoice(BaseTestCase):
    def test_issued_with_local_certifier(self):
        registration = self.create_registration(discount_amount=Decimal("20.00"), total=Decimal("80.00"))

        invoice = generate_invoice(registration)

        assert invoice.status == InvoiceStatus.ISSUED
        assert invoice.number == 1
        assert invoice.receiver_nit == "CF"
        assert invoice.receiver_name == "Consumidor Final"
        assert invoice.subtotal == Decimal("100.00")
        assert invoice.discount == Decimal("20.00")
        assert invoice.total == Decimal("80.00")
        assert invoice.taxable + invoice.tax == invoice.total
        assert invoice.lines.get().description == "Trade Expo"
        document = invoice.certified_document()
        assert document.authorization_number
        assert "<" in document.xml
        assert len(mail.outbox) == 1

    def test_receiver_nit(self):
        invoice = generate_invoice(self.create_registration(), receiver_nit="12345679", receiver_name="Acme SA")

        assert invoice.receiver_nit == "1234567-9"
        assert invoice.receiver_name == "Acme SA"

    def test_invalid_receiver_nit(self):
        with pytest.raises(FelError) as exc:
            generate_invoice(self.create_registration(), receiver_nit="12345678")
        assert exc.value.code == "invalid_nit"

    def test_issuer_not_configured(self):
        organization = self.organization()
        organization.fiscal_nit = ""
        organization.save()

        with pytest.raises(FelError) as exc:
            generate_invoice(self.create_registration())
        assert exc.value.code == "issuer_not_configured"

    def test_already_invoiced(self):
        registration = self.create_registration()
        generate_invoice(registration)

        with pytest.raises(FelError) as exc:
            generate_invoice(registration)
        assert exc.value.code == "already_invoiced"

    def test_nothing_to_invoice(self):
        registration = self.create_registration(base_amount=Decimal("0"), total=Decimal("0"))

        with pytest.raises(FelError) as exc:
            generate_invoice(registration)
        assert exc.value.code == "nothing_to_invoice"

    def test_sequential_numbers(self):
        first = generate_invoice(self.create_registration())
        second = generate_invoice(self.create_registration(member=self.create_member("other")))

        assert (first.number, second.number) == (1, 2)


class TestCertifierFailure(BaseTestCase):
    def test_failure_and_retry(self):
        save_single_config(self.organization(), "fel_certifier_backend", "http")
        registration = self.create_registration()

        with patch("tradeconnect.accounting.fel.requests.post", side_effect=requests.ConnectionError("down")):
            invoice = generate_invoice(registration)

        assert invoice.status == InvoiceStatus.FAILED
        document = FelDocument.objects.get()
        assert document.status == FelStatus.FAILED
        assert document.retry_count == 1
        assert "down" in document.last_error
        assert mail.outbox[-1].to == ["test@test.it"]

        save_single_config(self.organization(), "fel_certifier_backend", "local")
        assert retry_failed_documents() == 1

        invoice.refresh_from_db()
        assert invoice.status == InvoiceStatus.ISSUED

    def test_rejected(self):
        save_single_config(self.organization(), "fel_certifier_backend", "http")

        with patch("tradeconnect.accounting.fel.requests.post") as mock_post:
            mock_post.return_value.json.return_value = {"success": False, "errors": ["bad NIT"]}
            invoice = generate_invoice(self.create_registration())

        assert invoice.status == InvoiceStatus.FAILED
        assert FelDocument.objects.get().last_error == "bad NIT"

    def test_reply_without_authorization(self):
        save_single_config(self.organization(), "fel_certifier_backend", "http")

        with patch("tradeconnect.accounting.fel.requests.post") as mock_post:
            mock_post.return_value.json.return_value = {"success": True}
            invoice = generate_invoice(self.create_registration())

        assert invoice.status == InvoiceStatus.FAILED
        document = FelDocument.objects.get()
        assert document.status == FelStatus.FAILED
        assert document.retry_count == 1

        save_single_config(self.organization(), "fel_certifier_backend", "local")
        assert retry_failed_documents() == 1
        invoice.refresh_from_db()
        assert invoice.status == InvoiceStatus.ISSUED

    def test_certified_by_http(self):
        save_single_config(self.organization(), "fel_certifier_backend", "http")

        with patch("tradeconnect.accounting.fel.requests.post") as mock_post:
            mock_post.return_value.json.return_value = {
                "success": True,
                "uuid": "AUTH-0001",
                "date": "2025-01-15T10:00:00",
                "series": "ABC",
                "number": 77,
            }
            invoice = generate_invoice(self.create_registration())

        assert invoice.status == InvoiceStatus.ISSUED
        document = invoice.certified_document()
        assert document.authorization_number == "AUTH-0001"
        assert document.certifier_number == "77"


class TestCancelInvoice(BaseTestCase):
    def test_cancel(self):
        invoice = generate_invoice(self.create_registration())

        cancel_invoice(invoice, "wrong receiver")

        assert invoice.status == InvoiceStatus.CANCELLED
        assert invoice.cancellation_reason == "wrong receiver"
        assert invoice.fel_documents.get(kind=FelKind.INVOICE).status == FelStatus.CANCELLED
        assert invoice.fel_documents.get(kind=FelKind.CANCELLATION).status == FelStatus.CERTIFIED

    def test_reason_required(self):
        invoice = generate_invoice(self.create_registration())

        with pytest.raises(FelError) as exc:
            cancel_invoice(invoice, "")
        assert exc.value.code == "reason_required"

    def test_not_certified(self):
        invoice = generate_invoice(self.create_registration())
        cancel_invoice(invoice, "first")

        with pytest.raises(FelError) as exc:
            cancel_invoice(invoice, "second")
        assert exc.value.code == "not_certified"
