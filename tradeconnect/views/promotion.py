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

from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET, require_POST

from tradeconnect.cache.role import check_organization_permission
from tradeconnect.forms.promotion import PromoCodeForm, PromotionForm
from tradeconnect.models.promotion import PromoCode, Promotion
from tradeconnect.utils.common import (
    check_form,
    get_access_type,
    get_event,
    get_json_body,
    get_object,
    get_quantity,
    get_request_member,
    save_log,
)
from tradeconnect.utils.core.exceptions import ReturnNowError
from tradeconnect.utils.promotion import promo_code_stats, validate_promo_code
from tradeconnect.utils.registration import get_default_access_type, get_unit_price


@require_GET
def promotion_list(request: HttpRequest) -> JsonResponse:
    check_organization_permission(request, "create_promotion")
    promotions = Promotion.objects.filter(organization_id=request.organization["id"]).order_by("-created")
    return JsonResponse(
        {
            "promotions": [
                {
                    "id": promotion.id,
                    "name": promotion.name,
                    "event": promotion.event.slug if promotion.event else None,
                    "active": promotion.active,
                    "running": promotion.is_running(),
                    "codes": promotion.promo_codes.count(),
                }
                for promotion in promotions
            ]
        }
    )


@require_POST
def promotion_create(request: HttpRequest) -> JsonResponse:
    check_organization_permission(request, "create_promotion")
    form = PromotionForm(data=get_json_body(request), context={"organization_id": request.organization["id"]})
    check_form(form)
    promotion = form.save()
    return JsonResponse({"id": promotion.id, "name": promotion.name}, status=201)


@require_GET
def promo_code_list(request: HttpRequest) -> JsonResponse:
    check_organization_permission(request, "create_promotion")
    promo_codes = PromoCode.objects.filter(organization_id=request.organization["id"]).prefetch_related("events")
    if request.GET.get("active"):
        promo_codes = promo_codes.filter(active=True)
    return JsonResponse({"promo_codes": [promo_code.as_dict() for promo_code in promo_codes.order_by("code")]})


@require_POST
def promo_code_create(request: HttpRequest) -> JsonResponse:
    check_organization_permission(request, "create_promotion")
    member = get_request_member(request)
    form = PromoCodeForm(
        data=get_json_body(request),
        context={"organization_id": request.organization["id"], "member": member},
    )
    check_form(form)
    promo_code = form.save()
    save_log(member, PromoCode, promo_code)
    return JsonResponse(promo_code.as_dict(), status=201)


@require_POST
def promo_code_update(request: HttpRequest, promo_code_id: int) -> JsonResponse:
    check_organization_permission(request, "create_promotion")
    member = get_request_member(request)
    form = PromoCodeForm(
        data=get_json_body(request),
        instance=get_object(PromoCode, request, promo_code_id),
        context={"organization_id": request.organization["id"], "member": member},
    )
    check_form(form)
    promo_code = form.save()
    save_log(member, PromoCode, promo_code)
    return JsonResponse(promo_code.as_dict())


@require_POST
def promo_code_validate(request: HttpRequest) -> JsonResponse:
    """Preview the discount of a code on a purchase, without redeeming it.

    The purchase is given either as an event slug (with optional access type
    and quantity) or as a plain amount.
    """
    member = get_request_member(request)
    data = get_json_body(request)
    quantity = get_quantity(data)

    event = None
    if data.get("event"):
        event = get_event(request, data["event"])
        access_type = get_access_type(event, data.get("access_type")) or get_default_access_type(event)
        amount = get_unit_price(event, access_type) * quantity
    else:
        try:
            amount = Decimal(str(data.get("amount", "")))
        except InvalidOperation:
            amount = None
        if amount is None or not amount.is_finite() or amount < 0:
            raise ReturnNowError(
                JsonResponse({"error": "invalid_amount", "message": "Provide an event or an amount"}, status=400)
            )

    result = validate_promo_code(
        str(data.get("code", "")), request.organization["id"], member, amount, event=event, quantity=quantity
    )
    return JsonResponse(
        {
            "valid": True,
            "code": result["promo_code"].code,
            "discount_type": result["promo_code"].discount_type,
            "amount": amount,
            "discount": result["discount"],
            "final_amount": result["final_amount"],
        }
    )


@require_GET
def promo_code_stats_view(request: HttpRequest, promo_code_id: int) -> JsonResponse:
    check_organization_permission(request, "create_promotion")
    return JsonResponse(promo_code_stats(get_object(PromoCode, request, promo_code_id)))
