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

from django.utils.translation import activate
from django.utils.translation import gettext as _

from tradeconnect.mail.base import format_amount, hdr
from tradeconnect.models.accounting import Invoice, Payment
from tradeconnect.utils.tasks import my_send_mail


def send_invoice_email(invoice: Invoice) -> None:
    """Send the receiver the data of the certified invoice."""
    recipient = invoice.receiver_email or (invoice.member.email if invoice.member else "")
    if not recipient:
        return

    language = invoice.member.language if invoice.member else invoice.organization.language
    activate(language)
    document = invoice.certified_document()
    context = {"series": invoice.series, "number": invoice.number}

    subject = hdr(invoice.organization) + _("Invoice %(series)s-%(number)s") % context
    body = _("Your electronic invoice %(series)s-%(number)s has been issued") % context + "."
    body += "<br /><br />" + _("Total") + f": {format_amount(invoice.total, invoice.currency, language)}"
    body += "<br />" + _("VAT") + f": {format_amount(invoice.tax, invoice.currency, language)}"
    if document:
        body += "<br />" + _("Authorization number") + f": <tt>{document.authorization_number}</tt>"
    my_send_mail(subject, body, recipient, invoice.organization)


def send_invoice_cancelled_email(invoice: Invoice) -> None:
    recipient = invoice.receiver_email or (invoice.member.email if invoice.member else "")
    if not recipient:
        return

    activate(invoice.member.language if invoice.member else invoice.organization.language)
    context = {"series": invoice.series, "number": invoice.number}
    subject = hdr(invoice.organization) + _("Invoice %(series)s-%(number)s cancelled") % context
    body = _("The electronic invoice %(series)s-%(number)s has been cancelled") % context + "."
    if invoice.cancellation_reason:
        body += "<br /><br />" + _("Reason") + f": {invoice.cancellation_reason}"
    my_send_mail(subject, body, recipient, invoice.organization)


def send_payment_received_email(payment: Payment) -> None:
    language = payment.member.language
    activate(language)
    event = payment.registration.event
    context = {"event": event.name, "amount": format_amount(payment.amount, payment.currency, language)}
    subject = hdr(event) + _("Payment received for %(event)s") % context
    body = _("We received your payment of %(amount)s for <b>%(event)s</b>") % context + "."
    balance = payment.registration.balance()
    if balance > 0:
        body += "<br /><br />" + _("Amount still due") + f": {format_amount(balance, payment.currency, language)}"
    my_send_mail(subject, body, payment.member, event)
