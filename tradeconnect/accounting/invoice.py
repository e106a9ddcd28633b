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

import logging
from decimal import Decimal
from uuid import uuid4

from django.conf import settings as conf_settings
from django.db import transaction
from django.utils import timezone

from tradeconnect.accounting.fel import build_cancellation_xml, build_invoice_xml, get_certifier
from tradeconnect.accounting.nit import FINAL_CONSUMER, lookup_nit
from tradeconnect.mail.accounting import send_invoice_cancelled_email, send_invoice_email
from tradeconnect.models.accounting import (
    FelDocument,
    FelKind,
    FelStatus,
    Invoice,
    InvoiceLine,
    InvoiceStatus,
    Payment,
)
from tradeconnect.models.registration import Registration
from tradeconnect.models.utils import round_money
from tradeconnect.utils.core.exceptions import FelError
from tradeconnect.utils.tasks import background_auto, notify_admins

logger = logging.getLogger(__name__)


def compute_tax(total: Decimal) -> tuple[Decimal, Decimal]:
    """Split a VAT inclusive amount into taxable base and tax.

    Returns:
        tuple: (taxable amount, tax amount), summing to total
    """
    rate = Decimal(conf_settings.FEL_TAX_RATE)
    taxable = round_money(Decimal(total) / (1 + rate))
    return taxable, round_money(total) - taxable


def _resolve_receiver(registration: Registration, receiver_nit: str | None, receiver_name: str | None) -> dict:
    member = registration.member
    nit = receiver_nit or member.nit or FINAL_CONSUMER
    lookup = lookup_nit(nit)
    if not lookup["valid"]:
        raise FelError("invalid_nit", "The receiver NIT is not valid", nit=lookup["nit"])
    return {
        "nit": lookup["nit"],
        "name": receiver_name or lookup["name"] or member.display_member(),
        "address": lookup["address"] or "Ciudad",
    }


def generate_invoice(
    registration: Registration,
    payment: Payment | None = None,
    receiver_nit: str | None = None,
    receiver_name: str | None = None,
) -> Invoice:
    """Issue the electronic invoice of a registration.

    The receiver fiscal data is validated, the invoice and its line are
    created with VAT included in the prices, and the DTE XML is sent to the
    certifier in background.

    Args:
        registration: Registration being invoiced
        payment: Payment the invoice refers to
        receiver_nit: Receiver NIT, defaults to the member NIT or CF
        receiver_name: Receiver name, defaults to the taxpayer name or the member name

    Returns:
        The invoice, issued once certification completes

    Raises:
        FelError: If the issuer fiscal data is missing, the receiver NIT is
            invalid, or the registration has nothing to invoice
    """
    event = registration.event
    organization = event.organization
    if not organization.fiscal_nit:
        raise FelError("issuer_not_configured", "The organization fiscal data is not configured")

    if Invoice.objects.filter(
        registration=registration, status__in=[InvoiceStatus.DRAFT, InvoiceStatus.ISSUED, InvoiceStatus.FAILED]
    ).exists():
        raise FelError("already_invoiced", "The registration has already been invoiced")

    subtotal = round_money(registration.base_amount)
    discount = round_money(registration.discount_amount)
    total = subtotal - discount
    if total <= 0:
        raise FelError("nothing_to_invoice", "The registration has no amount to invoice")

    receiver = _resolve_receiver(registration, receiver_nit, receiver_name)
    taxable, tax = compute_tax(total)

    with transaction.atomic():
        invoice = Invoice.objects.create(
            organization=organization,
            registration=registration,
            payment=payment,
            member=registration.member,
            receiver_nit=receiver["nit"],
            receiver_name=receiver["name"],
            receiver_address=receiver["address"],
            receiver_email=registration.member.email,
            currency=event.currency,
            subtotal=subtotal,
            discount=discount,
            taxable=taxable,
            tax=tax,
            total=total,
        )

        description = event.name
        if registration.access_type:
            description += f" - {registration.access_type.name}"
        InvoiceLine.objects.create(
            invoice=invoice,
            number=1,
            description=description,
            quantity=registration.quantity,
            unit_price=round_money(subtotal / registration.quantity),
            discount=discount,
            total=total,
            taxable=taxable,
            tax=tax,
        )

        document = FelDocument.objects.create(
            invoice=invoice,
            kind=FelKind.INVOICE,
            document_uuid=str(uuid4()),
            xml=build_invoice_xml(invoice),
        )

    logger.info(f"Invoice {invoice} generated for registration {registration.uuid}")
    certify_document(document.id)
    invoice.refresh_from_db()
    return invoice


@background_auto(queue="fel")
def certify_document(document_id: int) -> None:
    """Send a FEL document to the certifier and record the outcome.

    Failures are stored on the document (retry count and last error) and
    reported to the admins; the maintenance command retries them.
    """
    document = FelDocument.objects.select_related("invoice__organization").get(pk=document_id)
    if document.status == FelStatus.CERTIFIED:
        return

    invoice = document.invoice
    organization = invoice.organization

    try:
        result = get_certifier(organization)(document.xml, organization)
    except FelError as err:
        document.retry_count += 1
        document.last_error = err.message
        document.status = FelStatus.FAILED
        document.save()
        if document.kind == FelKind.INVOICE:
            invoice.status = InvoiceStatus.FAILED
            invoice.save()
        logger.error(f"FEL certification failed for {invoice}: {err.message}")
        notify_admins(f"FEL certification failed [{organization.slug}] {invoice}", err.message, err)
        return

    with transaction.atomic():
        document.status = FelStatus.CERTIFIED
        document.authorization_number = result["authorization_number"]
        document.authorization_date = result["authorization_date"]
        document.certifier_series = result["series"]
        document.certifier_number = result["number"]
        document.certified_xml = result["certified_xml"]
        document.last_error = ""
        document.save()

        if document.kind == FelKind.INVOICE:
            invoice.status = InvoiceStatus.ISSUED
            invoice.issued_at = result["authorization_date"]
        else:
            invoice.status = InvoiceStatus.CANCELLED
            invoice.cancelled_at = timezone.now()
            invoice.fel_documents.filter(kind=FelKind.INVOICE, status=FelStatus.CERTIFIED).update(
                status=FelStatus.CANCELLED
            )
        invoice.save()

    if document.kind == FelKind.INVOICE:
        send_invoice_email(invoice)
    else:
        send_invoice_cancelled_email(invoice)


def cancel_invoice(invoice: Invoice, reason: str) -> Invoice:
    """Void a certified invoice.

    Raises:
        FelError: If the invoice is not certified or no reason is given
    """
    if not reason:
        raise FelError("reason_required", "A cancellation reason is required")

    certified = invoice.certified_document()
    if invoice.status != InvoiceStatus.ISSUED or not certified:
        raise FelError("not_certified", "Only certified invoices can be cancelled")

    with transaction.atomic():
        invoice.cancellation_reason = reason
        invoice.save()
        document = FelDocument.objects.create(
            invoice=invoice,
            kind=FelKind.CANCELLATION,
            document_uuid=str(uuid4()),
            xml=build_cancellation_xml(invoice, certified, reason),
        )

    certify_document(document.id)
    invoice.refresh_from_db()
    return invoice


def retry_failed_documents() -> int:
    """Send again the documents whose certification failed, up to FEL_MAX_RETRIES times."""
    failed = FelDocument.objects.filter(status=FelStatus.FAILED, retry_count__lt=conf_settings.FEL_MAX_RETRIES)
    retried = 0
    for document_id in failed.values_list("id", flat=True):
        certify_document(document_id)
        retried += 1
    return retried
