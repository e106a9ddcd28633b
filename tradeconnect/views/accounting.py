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

from decimal import Decimal, InvalidOperation

from django.core.exceptions import ObjectDoesNotExist
from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET, require_POST

from tradeconnect.accounting.cui import lookup_cui
from tradeconnect.accounting.invoice import cancel_invoice, generate_invoice
from tradeconnect.accounting.nit import lookup_nit
from tradeconnect.accounting.payment import complete_payment, create_payment, fail_payment, refund_payment
from tradeconnect.cache.role import check_organization_permission, has_organization_permission
from tradeconnect.models.accounting import Invoice, Payment, PaymentMethod
from tradeconnect.utils.common import get_json_body, get_object, get_request_member, save_log
from tradeconnect.utils.core.exceptions import NotFoundError, ReturnNowError, UserPermissionError
from tradeconnect.views.registration import get_organization_registration


@require_POST
def payment_create(request: HttpRequest, registration_uuid: str) -> JsonResponse:
    """Record a payment for a registration, by default of its whole balance."""
    check_organization_permission(request, "manage_payments")
    registration = get_organization_registration(request, registration_uuid)
    data = get_json_body(request)

    errors = {}
    method = data.get("method", PaymentMethod.CASH)
    if method not in PaymentMethod.values:
        errors["method"] = "Unknown method"

    amount = data.get("amount")
    if amount is not None:
        try:
            amount = Decimal(str(amount))
        except InvalidOperation:
            amount = None
        if amount is None or not amount.is_finite():
            errors["amount"] = "Not a number"

    if errors:
        raise ReturnNowError(
            JsonResponse({"error": "validation_error", "message": "Invalid data", "details": errors}, status=400)
        )

    payment = create_payment(
        registration,
        amount=amount,
        method=method,
        transaction_id=str(data.get("transaction_id", ""))[:100],
    )
    return JsonResponse(payment.as_dict(), status=201)


@require_POST
def payment_complete(request: HttpRequest, payment_uuid: str) -> JsonResponse:
    check_organization_permission(request, "manage_payments")
    payment = get_payment(request, payment_uuid)
    payment = complete_payment(payment, str(get_json_body(request).get("transaction_id", ""))[:100])
    save_log(get_request_member(request), Payment, payment)
    return JsonResponse(payment.as_dict())


@require_POST
def payment_fail(request: HttpRequest, payment_uuid: str) -> JsonResponse:
    check_organization_permission(request, "manage_payments")
    payment = fail_payment(get_payment(request, payment_uuid), get_json_body(request).get("reason", ""))
    return JsonResponse(payment.as_dict())


@require_POST
def payment_refund(request: HttpRequest, payment_uuid: str) -> JsonResponse:
    check_organization_permission(request, "manage_payments")
    payment = refund_payment(get_payment(request, payment_uuid), get_json_body(request).get("reason", ""))
    save_log(get_request_member(request), Payment, payment)
    return JsonResponse(payment.as_dict())


def get_payment(request: HttpRequest, payment_uuid: str) -> Payment:
    try:
        return Payment.objects.select_related("registration__event", "member").get(
            uuid=payment_uuid, organization_id=request.organization["id"]
        )
    except ObjectDoesNotExist as err:
        msg = "Payment does not exist"
        raise NotFoundError(msg) from err


@require_GET
def invoice_list(request: HttpRequest) -> JsonResponse:
    """Invoices of the organization for its accountants, else the member's own."""
    invoices = Invoice.objects.filter(organization_id=request.organization["id"]).prefetch_related("lines")
    if not has_organization_permission(request, "generate_invoice"):
        invoices = invoices.filter(member=get_request_member(request))

    status = request.GET.get("status")
    if status:
        invoices = invoices.filter(status=status)
    return JsonResponse({"invoices": [invoice.as_dict() for invoice in invoices.order_by("-number")]})


@require_GET
def invoice_detail(request: HttpRequest, invoice_id: int) -> JsonResponse:
    invoice = get_object(Invoice, request, invoice_id)
    if not has_organization_permission(request, "generate_invoice"):
        if invoice.member_id != get_request_member(request).id:
            raise UserPermissionError("generate_invoice")

    data = invoice.as_dict()
    data["documents"] = [document.as_dict() for document in invoice.fel_documents.order_by("created")]
    return JsonResponse(data)


@require_POST
def invoice_generate(request: HttpRequest, registration_uuid: str) -> JsonResponse:
    check_organization_permission(request, "generate_invoice")
    registration = get_organization_registration(request, registration_uuid)
    data = get_json_body(request)
    invoice = generate_invoice(
        registration,
        receiver_nit=data.get("nit") or None,
        receiver_name=data.get("name") or None,
    )
    save_log(get_request_member(request), Invoice, invoice)
    return JsonResponse(invoice.as_dict(), status=201)


@require_POST
def invoice_cancel(request: HttpRequest, invoice_id: int) -> JsonResponse:
    check_organization_permission(request, "generate_invoice")
    invoice = cancel_invoice(get_object(Invoice, request, invoice_id), get_json_body(request).get("reason", ""))
    save_log(get_request_member(request), Invoice, invoice)
    return JsonResponse(invoice.as_dict())


@require_GET
def nit_validate(request: HttpRequest) -> JsonResponse:
    nit = request.GET.get("nit", "")
    if not nit:
        return JsonResponse(
            {"error": "validation_error", "message": "Invalid data", "details": {"nit": "Required"}}, status=400
        )
    return JsonResponse(lookup_nit(nit))


@require_GET
def cui_validate(request: HttpRequest) -> JsonResponse:
    get_request_member(request)
    cui = request.GET.get("cui", "")
    if not cui:
        return JsonResponse(
            {"error": "validation_error", "message": "Invalid data", "details": {"cui": "Required"}}, status=400
        )
    return JsonResponse(lookup_cui(cui))
