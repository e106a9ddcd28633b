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

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q, UniqueConstraint
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from tradeconnect.models.base import BaseModel
from tradeconnect.models.event import Event
from tradeconnect.models.member import Member
from tradeconnect.models.organization import Currency, Organization
from tradeconnect.models.utils import round_money


class Promotion(BaseModel):
    """Marketing campaign grouping a set of promo codes."""

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="promotions")

    event = models.ForeignKey(Event, on_delete=models.CASCADE, null=True, blank=True, related_name="promotions")

    name = models.CharField(max_length=100)

    description = models.TextField(blank=True)

    start_date = models.DateTimeField(null=True, blank=True)

    end_date = models.DateTimeField(null=True, blank=True)

    active = models.BooleanField(default=True)

    def is_running(self) -> bool:
        now = timezone.now()
        if not self.active:
            return False
        if self.start_date and now < self.start_date:
            return False
        return not (self.end_date and now > self.end_date)


class DiscountType(models.TextChoices):
    PERCENTAGE = "p", _("Percentage")
    FIXED_AMOUNT = "f", _("Fixed amount")
    SPECIAL_PRICE = "s", _("Special price")
    BUY_X_GET_Y = "b", _("Buy X get Y")


class PromoCode(BaseModel):
    """Discount code redeemable at registration."""

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="promo_codes")

    promotion = models.ForeignKey(
        Promotion,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="promo_codes",
    )

    code = models.CharField(max_length=50, help_text=_("Case insensitive, stored uppercase"))

    description = models.CharField(max_length=500, blank=True)

    discount_type = models.CharField(max_length=1, choices=DiscountType.choices, default=DiscountType.PERCENTAGE)

    value = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0"))])

    start_date = models.DateTimeField(null=True, blank=True)

    end_date = models.DateTimeField(null=True, blank=True)

    max_uses_total = models.PositiveIntegerField(null=True, blank=True, help_text=_("Empty for unlimited"))

    max_uses_per_member = models.PositiveIntegerField(default=1, null=True, blank=True)

    current_uses = models.PositiveIntegerField(default=0)

    active = models.BooleanField(default=True)

    min_purchase_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    max_discount_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    stackable = models.BooleanField(default=False)

    buy_quantity = models.PositiveIntegerField(default=0)

    get_quantity = models.PositiveIntegerField(default=0)

    events = models.ManyToManyField(
        Event,
        related_name="promo_codes",
        blank=True,
        help_text=_("Restrict the code to these events; empty for every event of the organization"),
    )

    created_by = models.ForeignKey(Member, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")

    class Meta:
        constraints: ClassVar[list] = [
            UniqueConstraint(
                fields=["organization", "code", "deleted"],
                name="unique_promo_code_with_optional",
            ),
            UniqueConstraint(
                fields=["organization", "code"],
                condition=Q(deleted=None),
                name="unique_promo_code_without_optional",
            ),
        ]

    def __str__(self) -> str:
        return self.code

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def calculate_discount(self, amount: Decimal, quantity: int = 1) -> Decimal:
        """Compute the discount granted on a purchase.

        Args:
            amount: Purchase amount before discount
            quantity: Number of units purchased, used by buy X get Y codes

        Returns:
            Discount amount, never above the purchase amount
        """
        amount = Decimal(amount)
        discount = Decimal("0")

        if self.discount_type == DiscountType.PERCENTAGE:
            discount = amount * self.value / 100
            if self.max_discount_amount is not None:
                discount = min(discount, self.max_discount_amount)

        elif self.discount_type == DiscountType.FIXED_AMOUNT:
            discount = min(self.value, amount)

        elif self.discount_type == DiscountType.SPECIAL_PRICE:
            # the code sets the final price
            discount = max(Decimal("0"), amount - self.value)

        elif self.discount_type == DiscountType.BUY_X_GET_Y:
            bundle = self.buy_quantity + self.get_quantity
            if self.get_quantity and bundle and quantity >= bundle:
                free_units = (quantity // bundle) * self.get_quantity
                discount = amount / quantity * free_units

        return round_money(min(discount, amount))

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description,
            "discount_type": self.discount_type,
            "value": self.value,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "max_uses_total": self.max_uses_total,
            "max_uses_per_member": self.max_uses_per_member,
            "current_uses": self.current_uses,
            "active": self.active,
            "min_purchase_amount": self.min_purchase_amount,
            "max_discount_amount": self.max_discount_amount,
            "events": [event.slug for event in self.events.all()],
        }


class UsageStatus(models.TextChoices):
    APPLIED = "a", _("Applied")
    CANCELLED = "x", _("Cancelled")


class PromoCodeUsage(BaseModel):
    """Redemption of a promo code on a registration."""

    promo_code = models.ForeignKey(PromoCode, on_delete=models.CASCADE, related_name="usages")

    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="promo_usages")

    registration = models.ForeignKey(
        "tradeconnect.Registration",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="promo_usages",
    )

    status = models.CharField(max_length=1, choices=UsageStatus.choices, default=UsageStatus.APPLIED)

    original_amount = models.DecimalField(max_digits=10, decimal_places=2)

    discount_amount = models.DecimalField(max_digits=10, decimal_places=2)

    final_amount = models.DecimalField(max_digits=10, decimal_places=2)

    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.GTQ)

    def __str__(self) -> str:
        return f"{self.promo_code} - {self.member}"
