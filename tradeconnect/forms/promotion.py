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

from typing import ClassVar

from django.core.exceptions import ValidationError

from tradeconnect.forms.base import MyForm
from tradeconnect.models.event import Event
from tradeconnect.models.promotion import DiscountType, PromoCode, Promotion


class PromotionForm(MyForm):
    class Meta:
        model = Promotion
        fields: ClassVar[list] = ["name", "description", "event", "start_date", "end_date", "active"]

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.fields["event"].queryset = Event.objects.filter(organization_id=self.params["organization_id"])

    def clean(self) -> dict:
        cleaned_data = super().clean()
        self.check_dates(cleaned_data, "start_date", "end_date")
        return cleaned_data

    def save(self, commit: bool = True) -> Promotion:  # noqa: FBT001, FBT002
        instance = super().save(commit=False)
        if not instance.organization_id:
            instance.organization_id = self.params["organization_id"]
        if commit:
            instance.save()
        return instance


class PromoCodeForm(MyForm):
    """Promo code of the organization.

    Codes are compared case-insensitively and must be unique per organization.
    """

    class Meta:
        model = PromoCode
        fields: ClassVar[list] = [
            "code",
            "description",
            "promotion",
            "discount_type",
            "value",
            "start_date",
            "end_date",
            "max_uses_total",
            "max_uses_per_member",
            "active",
            "min_purchase_amount",
            "max_discount_amount",
            "stackable",
            "buy_quantity",
            "get_quantity",
            "events",
        ]

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        organization_id = self.params["organization_id"]
        self.fields["promotion"].queryset = Promotion.objects.filter(organization_id=organization_id)
        self.fields["events"].queryset = Event.objects.filter(organization_id=organization_id)

    def clean_code(self) -> str:
        code = self.cleaned_data["code"].strip().upper()
        if not code:
            raise ValidationError("Required")
        duplicates = PromoCode.objects.filter(organization_id=self.params["organization_id"], code__iexact=code)
        if self.instance.pk:
            duplicates = duplicates.exclude(pk=self.instance.pk)
        if duplicates.exists():
            raise ValidationError("Code already in use")
        return code

    def clean(self) -> dict:
        cleaned_data = super().clean()
        self.check_dates(cleaned_data, "start_date", "end_date")

        discount_type = cleaned_data.get("discount_type")
        value = cleaned_data.get("value")
        if discount_type == DiscountType.PERCENTAGE and value is not None and value > 100:
            self.add_error("value", "A percentage cannot exceed 100")

        if discount_type == DiscountType.BUY_X_GET_Y:
            if not cleaned_data.get("buy_quantity"):
                self.add_error("buy_quantity", "Required for buy X get Y codes")
            if not cleaned_data.get("get_quantity"):
                self.add_error("get_quantity", "Required for buy X get Y codes")

        return cleaned_data

    def save(self, commit: bool = True) -> PromoCode:  # noqa: FBT001, FBT002
        instance = super().save(commit=False)
        if not instance.organization_id:
            instance.organization_id = self.params["organization_id"]
        if not instance.created_by_id and self.params.get("member"):
            instance.created_by = self.params["member"]
        if commit:
            instance.save()
            self.save_m2m()
        return instance
