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

from django.contrib import admin
from import_export import resources

from tradeconnect.admin.base import DefModelAdmin, MemberFilter, OrganizationFilter
from tradeconnect.models.promotion import PromoCode, PromoCodeUsage, Promotion


class PromoCodeFilter(admin.SimpleListFilter):
    title = "Discount type"
    parameter_name = "discount_type"

    def lookups(self, request, model_admin):
        return PromoCode._meta.get_field("discount_type").choices  # noqa: SLF001

    def queryset(self, request, queryset):
        if self.value():
            return queryset.filter(promo_code__discount_type=self.value())
        return queryset


@admin.register(Promotion)
class PromotionAdmin(DefModelAdmin):
    list_display = ("name", "organization", "event", "start_date", "end_date", "active")
    search_fields: ClassVar[tuple] = ("id", "name")
    list_filter = (OrganizationFilter, "active")
    autocomplete_fields: ClassVar[list] = ["organization", "event"]


class PromoCodeResource(resources.ModelResource):
    class Meta:
        model = PromoCode
        fields = (
            "id",
            "code",
            "discount_type",
            "value",
            "start_date",
            "end_date",
            "max_uses_total",
            "max_uses_per_member",
            "current_uses",
            "active",
        )


@admin.register(PromoCode)
class PromoCodeAdmin(DefModelAdmin):
    list_display = ("code", "organization", "discount_type", "value", "current_uses", "max_uses_total", "active")
    search_fields: ClassVar[tuple] = ("id", "code")
    list_filter = (OrganizationFilter, "discount_type", "active")
    autocomplete_fields: ClassVar[list] = ["organization", "promotion", "events", "created_by"]
    resource_classes: ClassVar[list] = [PromoCodeResource]


@admin.register(PromoCodeUsage)
class PromoCodeUsageAdmin(DefModelAdmin):
    list_display = ("promo_code", "member", "registration", "status", "discount_amount", "final_amount")
    list_filter = (MemberFilter, PromoCodeFilter, "status")
    autocomplete_fields: ClassVar[list] = ["promo_code", "member", "registration"]
