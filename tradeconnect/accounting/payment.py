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

from django.db import transaction
from django.utils import timezone

from tradeconnect.accounting.invoice import cancel_invoice, generate_invoice
from tradeconnect.cache.config import get_organization_config
from tradeconnect.mail.accounting import send_payment_received_email
from tradeconnect.models.accounting import InvoiceStatus, Payment, PaymentMethod, PaymentStatus
from tradeconnect.models.registration import Registration, RegistrationStatus
from tradeconnect.models.utils import round_money
from tradeconnect.utils.core.exceptions import BusinessRuleError, FelError
from tradeconnect.utils.registration import confirm_registration

logger = logging.getLogger(__name__)


def create_payment(
    registration: Registration,
    amount: Decimal | None = None,
    method: str = PaymentMethod.CASH,
    transaction_id: str = "",
) -> Payment:
    """Record a payment expected for a registration, by default of its whole balance.

    Raises:
        BusinessRuleError: If the registration is not payable or the amount is not positive
    """
    if registration.status not in [RegistrationStatus.PENDING, RegistrationStatus.CONFIRMED]:
        raise BusinessRuleError("invalid_status", "The registration cannot receive payments")

    amount = round_money(registration.balance() if amount is None else amount)
    if amount <= 0:
        raise BusinessRuleError("invalid_amount", "The payment amount must be positive")

    return Payment.objects.create(
        organization_id=registration.event.organization_id,
        registration=registration,
        member=registration.member,
        amount=amount,
        currency=registration.event.currency,
        method=method,
        transaction_id=transaction_id,
    )


def complete_payment(payment: Payment, transaction_id: str = "") -> Payment:
    """Mark a payment as received.

    When the registration is fully paid it is confirmed, and if the
    organization has electronic invoicing enabled (config fel_enabled) the
    invoice is issued.

    Raises:
        BusinessRuleError: If the payment is not pending
    """
    with transaction.atomic():
        payment = Payment.objects.select_for_update().get(pk=payment.pk)
        if payment.status != PaymentStatus.PENDING:
            raise BusinessRuleError("invalid_status", "Only pending payments can be completed")

        payment.status = PaymentStatus.COMPLETED
        payment.completed_at = timezone.now()
        if transaction_id:
            payment.transaction_id = transaction_id
        payment.save()

        registration = Registration.objects.select_for_update().get(pk=payment.registration_id)
        registration.paid += payment.amount
        registration.save()

    logger.info(f"Payment {payment.uuid} completed for registration {registration.uuid}")
    send_payment_received_email(payment)

    if registration.status == RegistrationStatus.PENDING and registration.balance() <= 0:
        confirm_registration(registration)

        if get_organization_config(registration.event.organization_id, "fel_enabled", False):
            try:
                generate_invoice(registration, payment)
            except FelError as err:
                # the payment stays valid, the invoice can be issued manually
                logger.warning(f"Invoice not generated for registration {registration.uuid}: {err.code}")

    return payment


def fail_payment(payment: Payment, reason: str = "") -> Payment:
    if payment.status != PaymentStatus.PENDING:
        raise BusinessRuleError("invalid_status", "Only pending payments can fail")
    payment.status = PaymentStatus.FAILED
    payment.failure_reason = reason
    payment.save()
    return payment


def refund_payment(payment: Payment, reason: str = "") -> Payment:
    """Refund a completed payment, voiding its certified invoice.

    Raises:
        BusinessRuleError: If the payment is not completed
    """
    if payment.status != PaymentStatus.COMPLETED:
        raise BusinessRuleError("invalid_status", "Only completed payments can be refunded")

    with transaction.atomic():
        payment.status = PaymentStatus.REFUNDED
        payment.failure_reason = reason
        payment.save()

        registration = Registration.objects.select_for_update().get(pk=payment.registration_id)
        registration.paid = max(Decimal("0"), registration.paid - payment.amount)
        registration.save()

    for invoice in payment.invoices.filter(status=InvoiceStatus.ISSUED):
        cancel_invoice(invoice, reason or "refund")

    return payment
