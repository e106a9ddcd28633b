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
from typing import Any, ClassVar

from django.db import models
from django.db.models import Q, UniqueConstraint
from django.utils.translation import gettext_lazy as _

from tradeconnect.models.base import BaseModel, UuidMixin
from tradeconnect.models.member import Member
from tradeconnect.models.organization import Currency, Organization
from tradeconnect.models.registration import Registration


class PaymentMethod(models.TextChoices):
    CASH = "c", _("Cash")
    TRANSFER = "t", _("Bank transfer")
    CARD = "k", _("Card")
    OTHER = "o", _("Other")


class PaymentStatus(models.TextChoices):
    PENDING = "p", _("Pending")
    COMPLETED = "c", _("Completed")
    FAILED = "f", _("Failed")
    REFUNDED = "r", _("Refunded")


class Payment(UuidMixin, BaseModel):
    """Money received (or expected) for a registration."""

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="payments")

    registration = models.ForeignKey(Registration, on_delete=models.CASCADE, related_name="payments")

    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="payments")

    amount = models.DecimalField(max_digits=10, decimal_places=2)

    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.GTQ)

    method = models.CharField(max_length=1, choices=PaymentMethod.choices, default=PaymentMethod.CASH)

    status = models.CharField(max_length=1, choices=PaymentStatus.choices, default=PaymentStatus.PENDING, db_index=True)

    transaction_id = models.CharField(max_length=100, blank=True)

    completed_at = models.DateTimeField(null=True, blank=True)

    failure_reason = models.CharField(max_length=500, blank=True)

    def __str__(self) -> str:
        return f"{self.registration} {self.amount} {self.currency}"

    def as_dict(self) -> dict:
        return {
            "uuid": self.uuid,
            "registration": self.registration.uuid,
            "amount": self.amount,
            "currency": self.currency,
            "method": self.method,
            "status": self.status,
            "transaction_id": self.transaction_id,
            "completed_at": self.completed_at,
        }


class InvoiceStatus(models.TextChoices):
    DRAFT = "d", _("Draft")
    ISSUED = "i", _("Issued")
    FAILED = "f", _("Certification failed")
    CANCELLED = "x", _("Cancelled")


class Invoice(BaseModel):
    """Fiscal invoice (DTE) issued for a payment."""

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="invoices")

    registration = models.ForeignKey(
        Registration,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="invoices",
    )

    payment = models.ForeignKey("Payment", on_delete=models.SET_NULL, null=True, blank=True, related_name="invoices")

    member = models.ForeignKey(Member, on_delete=models.SET_NULL, null=True, blank=True, related_name="invoices")

    series = models.CharField(max_length=10, default="A")

    number = models.IntegerField(blank=True)

    receiver_nit = models.CharField(max_length=20)

    receiver_name = models.CharField(max_length=150)

    receiver_address = models.CharField(max_length=250, blank=True, default="Ciudad")

    receiver_email = models.EmailField(blank=True)

    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.GTQ)

    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))

    discount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))

    taxable = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))

    tax = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))

    total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))

    status = models.CharField(max_length=1, choices=InvoiceStatus.choices, default=InvoiceStatus.DRAFT, db_index=True)

    issued_at = models.DateTimeField(null=True, blank=True)

    cancelled_at = models.DateTimeField(null=True, blank=True)

    cancellation_reason = models.CharField(max_length=500, blank=True)

    class Meta:
        ordering: ClassVar[list] = ["-number"]
        constraints: ClassVar[list] = [
            UniqueConstraint(
                fields=["organization", "series", "number", "deleted"],
                name="unique_invoice_number_with_optional",
            ),
            UniqueConstraint(
                fields=["organization", "series", "number"],
                condition=Q(deleted=None),
                name="unique_invoice_number_without_optional",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.series}-{self.number}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.number:
            que = Invoice.all_objects.filter(organization_id=self.organization_id, series=self.series)
            highest_number = que.aggregate(models.Max("number"))["number__max"]
            self.number = highest_number + 1 if highest_number else 1

        super().save(*args, **kwargs)

    def certified_document(self) -> "FelDocument | None":
        return self.fel_documents.filter(kind=FelKind.INVOICE, status=FelStatus.CERTIFIED).first()

    def as_dict(self) -> dict:
        document = self.certified_document()
        return {
            "id": self.id,
            "series": self.series,
            "number": self.number,
            "receiver_nit": self.receiver_nit,
            "receiver_name": self.receiver_name,
            "currency": self.currency,
            "subtotal": self.subtotal,
            "discount": self.discount,
            "taxable": self.taxable,
            "tax": self.tax,
            "total": self.total,
            "status": self.status,
            "issued_at": self.issued_at,
            "authorization_number": document.authorization_number if document else None,
            "lines": [line.as_dict() for line in self.lines.all()],
        }


class InvoiceLine(BaseModel):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="lines")

    number = models.PositiveIntegerField()

    description = models.CharField(max_length=500)

    quantity = models.PositiveIntegerField(default=1)

    unit_price = models.DecimalField(max_digits=10, decimal_places=2)

    discount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))

    total = models.DecimalField(max_digits=10, decimal_places=2)

    taxable = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))

    tax = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))

    class Meta:
        ordering: ClassVar[list] = ["number"]

    def __str__(self) -> str:
        return f"{self.invoice} #{self.number}"

    def as_dict(self) -> dict:
        return {
            "number": self.number,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "discount": self.discount,
            "total": self.total,
        }


class FelKind(models.TextChoices):
    INVOICE = "f", _("Invoice")
    CANCELLATION = "a", _("Cancellation")


class FelStatus(models.TextChoices):
    GENERATED = "g", _("Generated")
    CERTIFIED = "c", _("Certified")
    FAILED = "f", _("Failed")
    CANCELLED = "x", _("Cancelled")


class FelDocument(BaseModel):
    """XML document submitted to the FEL certifier."""

    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="fel_documents")

    kind = models.CharField(max_length=1, choices=FelKind.choices, default=FelKind.INVOICE)

    document_uuid = models.CharField(max_length=36, db_index=True)

    status = models.CharField(max_length=1, choices=FelStatus.choices, default=FelStatus.GENERATED, db_index=True)

    xml = models.TextField()

    certified_xml = models.TextField(blank=True)

    authorization_number = models.CharField(max_length=64, blank=True)

    authorization_date = models.DateTimeField(null=True, blank=True)

    certifier_series = models.CharField(max_length=20, blank=True)

    certifier_number = models.CharField(max_length=20, blank=True)

    retry_count = models.PositiveIntegerField(default=0)

    last_error = models.TextField(blank=True)

    def __str__(self) -> str:
        return f"{self.invoice} {self.get_kind_display()} {self.get_status_display()}"

    def as_dict(self) -> dict:
        return {
            "document_uuid": self.document_uuid,
            "kind": self.kind,
            "status": self.status,
            "authorization_number": self.authorization_number,
            "authorization_date": self.authorization_date,
            "retry_count": self.retry_count,
            "last_error": self.last_error,
        }


class NitStatus(models.TextChoices):
    VALID = "v", _("Valid")
    INACTIVE = "i", _("Inactive")
    NOT_FOUND = "n", _("Not found")


class NitValidation(BaseModel):
    """Cached outcome of a NIT lookup against the tax authority."""

    nit = models.CharField(max_length=20, db_index=True)

    status = models.CharField(max_length=1, choices=NitStatus.choices)

    name = models.CharField(max_length=250, blank=True)

    address = models.CharField(max_length=250, blank=True)

    source = models.CharField(max_length=20, default="SAT")

    expires_at = models.DateTimeField()

    def __str__(self) -> str:
        return f"{self.nit} {self.get_status_display()}"

    def as_dict(self) -> dict:
        return {
            "nit": self.nit,
            "status": self.status,
            "name": self.name,
            "address": self.address,
            "source": self.source,
            "expires_at": self.expires_at,
        }


class CuiStatus(models.TextChoices):
    VALID = "v", _("Valid")
    INVALID = "i", _("Invalid")
    NOT_FOUND = "n", _("Not found")
    DECEASED = "d", _("Deceased")


class CuiValidation(BaseModel):
    """Cached outcome of a CUI lookup against the civil registry."""

    cui = models.CharField(max_length=13, db_index=True)

    status = models.CharField(max_length=1, choices=CuiStatus.choices)

    first_name = models.CharField(max_length=250, blank=True)

    last_name = models.CharField(max_length=250, blank=True)

    birth_date = models.DateField(null=True, blank=True)

    gender = models.CharField(max_length=1, blank=True)

    source = models.CharField(max_length=20, default="RENAP")

    expires_at = models.DateTimeField()

    def __str__(self) -> str:
        return f"{self.cui} {self.get_status_display()}"
