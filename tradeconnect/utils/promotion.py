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
from django.db.models import F, Sum
from django.utils import timezone

from tradeconnect.models.event import Event
from tradeconnect.models.member import Member
from tradeconnect.models.promotion import PromoCode, PromoCodeUsage, UsageStatus
from tradeconnect.models.registration import Registration
from tradeconnect.models.utils import round_money
from tradeconnect.utils.core.exceptions import PromoCodeError

logger = logging.getLogger(__name__)


def get_promo_code(code: str, organization_id: int) -> PromoCode | None:
    """Find a promo code of the organization, ignoring case and surrounding spaces."""
    if not code:
        return None
    return PromoCode.objects.filter(organization_id=organization_id, code=code.strip().upper()).first()


def check_promo_code(
    promo_code: PromoCode, member: Member, amount: Decimal, event: Event | None = None
) -> None:
    """Run every usage rule of a promo code.

    Raises:
        PromoCodeError: With the code of the first rule that fails
    """
    now = timezone.now()

    if not promo_code.active or (promo_code.promotion and not promo_code.promotion.is_running()):
        raise PromoCodeError("inactive", "The promo code is not active")

    if promo_code.start_date and now < promo_code.start_date:
        raise PromoCodeError("not_started", "The promo code is not valid yet")

    if promo_code.end_date and now > promo_code.end_date:
        raise PromoCodeError("expired", "The promo code has expired")

    if promo_code.max_uses_total is not None and promo_code.current_uses >= promo_code.max_uses_total:
        raise PromoCodeError("usage_limit_reached", "The promo code has been used up")

    if promo_code.max_uses_per_member is not None:
        member_uses = promo_code.usages.filter(member=member, status=UsageStatus.APPLIED).count()
        if member_uses >= promo_code.max_uses_per_member:
            raise PromoCodeError("member_limit_reached", "You already used this promo code")

    if promo_code.min_purchase_amount is not None and amount < promo_code.min_purchase_amount:
        raise PromoCodeError(
            "minimum_not_reached",
            "The purchase does not reach the minimum amount of the promo code",
            min_purchase_amount=promo_code.min_purchase_amount,
        )

    if event:
        if promo_code.promotion and promo_code.promotion.event_id and promo_code.promotion.event_id != event.id:
            raise PromoCodeError("not_valid_for_event", "The promo code is not valid for this event")
        if promo_code.events.exists() and not promo_code.events.filter(pk=event.pk).exists():
            raise PromoCodeError("not_valid_for_event", "The promo code is not valid for this event")


def validate_promo_code(
    code: str,
    organization_id: int,
    member: Member,
    amount: Decimal,
    event: Event | None = None,
    quantity: int = 1,
) -> dict:
    """Check a promo code against a purchase and compute its discount.

    Args:
        code: Code typed by the member
        organization_id: Organization the code must belong to
        member: Member redeeming the code
        amount: Purchase amount before discount
        event: Event being purchased, for event scoped codes
        quantity: Number of units, for buy X get Y codes

    Returns:
        dict with the promo code, the discount and the final amount

    Raises:
        PromoCodeError: If the code does not exist or cannot be used
    """
    promo_code = get_promo_code(code, organization_id)
    if not promo_code:
        raise PromoCodeError("not_found", "The promo code does not exist")

    amount = round_money(amount)
    check_promo_code(promo_code, member, amount, event)

    discount = promo_code.calculate_discount(amount, quantity)
    return {
        "promo_code": promo_code,
        "discount": discount,
        "final_amount": round_money(amount - discount),
    }


def apply_promo_code(
    promo_code: PromoCode,
    member: Member,
    amount: Decimal,
    registration: Registration | None = None,
    quantity: int = 1,
) -> PromoCodeUsage:
    """Redeem a promo code, recording the usage and incrementing its counter.

    The promo code row is locked while the limits are checked again, so two
    concurrent redemptions cannot both take the last use.
    """
    with transaction.atomic():
        promo_code = PromoCode.objects.select_for_update().get(pk=promo_code.pk)
        event = registration.event if registration else None
        check_promo_code(promo_code, member, amount, event)

        discount = promo_code.calculate_discount(amount, quantity)
        usage = PromoCodeUsage.objects.create(
            promo_code=promo_code,
            member=member,
            registration=registration,
            original_amount=amount,
            discount_amount=discount,
            final_amount=round_money(amount - discount),
            currency=event.currency if event else promo_code.organization.currency,
        )
        PromoCode.objects.filter(pk=promo_code.pk).update(current_uses=F("current_uses") + 1)

    logger.info(f"Promo code {promo_code.code} applied by member {member.id}: discount {discount}")
    return usage


def cancel_promo_usage(registration: Registration) -> int:
    """Revert the promo code usages of a registration, returns how many were reverted."""
    cancelled = 0
    with transaction.atomic():
        for usage in PromoCodeUsage.objects.select_for_update().filter(
            registration=registration, status=UsageStatus.APPLIED
        ):
            usage.status = UsageStatus.CANCELLED
            usage.save()
            PromoCode.objects.filter(pk=usage.promo_code_id, current_uses__gt=0).update(
                current_uses=F("current_uses") - 1
            )
            cancelled += 1
    return cancelled


def promo_code_stats(promo_code: PromoCode) -> dict:
    applied = promo_code.usages.filter(status=UsageStatus.APPLIED)
    totals = applied.aggregate(discount=Sum("discount_amount"), revenue=Sum("final_amount"))
    return {
        "code": promo_code.code,
        "current_uses": promo_code.current_uses,
        "max_uses_total": promo_code.max_uses_total,
        "remaining_uses": (
            max(0, promo_code.max_uses_total - promo_code.current_uses)
            if promo_code.max_uses_total is not None
            else None
        ),
        "unique_members": applied.values("member").distinct().count(),
        "cancelled_uses": promo_code.usages.filter(status=UsageStatus.CANCELLED).count(),
        "total_discount": totals["discount"] or Decimal("0"),
        "total_revenue": totals["revenue"] or Decimal("0"),
    }
