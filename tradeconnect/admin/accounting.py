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

from tradeconnect.admin.base import DefModelAdmin, MemberFilter, OrganizationFilter, RegistrationFilter
from tradeconnect.models.accounting import (
    CuiValidation,
    FelDocument,
    Invoice,
    InvoiceLine,
    NitValidation,
    Payment,
)


@admin.register(Payment)
class PaymentAdmin(DefModelAdmin):
    list_display = ("uuid", "registration", "member", "amount", "currency", "method", "status")
    search_fields: ClassVar[tuple] = ("id", "uuid", "transaction_id")
    list_filter = (OrganizationFilter, MemberFilter, "method", "status")
    autocomplete_fields: ClassVar[list] = ["organization", "registration", "member"]


class InvoiceLineInline(admin.TabularInline):
    model = InvoiceLine
    extra = 0


class InvoiceFilter(admin.SimpleListFilter):
    title = "Invoice status"
    parameter_name = "invoice_status"

    def lookups(self, request, model_admin):
        return Invoice._meta.get_field("status").choices  # noqa: SLF001

    def queryset(self, request, queryset):
        if self.value():
            return queryset.filter(invoice__status=self.value())
        return queryset


@admin.register(Invoice)
class InvoiceAdmin(DefModelAdmin):
    list_display = ("__str__", "organization", "receiver_nit", "receiver_name", "total", "tax", "status")
    search_fields: ClassVar[tuple] = ("id", "receiver_nit", "receiver_name")
    list_filter = (OrganizationFilter, RegistrationFilter, "status")
    autocomplete_fields: ClassVar[list] = ["organization", "registration", "payment", "member"]
    inlines: ClassVar[list] = [InvoiceLineInline]


@admin.register(FelDocument)
class FelDocumentAdmin(DefModelAdmin):
    list_display = ("document_uuid", "invoice", "kind", "status", "authorization_number", "retry_count")
    search_fields: ClassVar[tuple] = ("id", "document_uuid", "authorization_number")
    list_filter = (InvoiceFilter, "kind", "status")
    autocomplete_fields: ClassVar[list] = ["invoice"]


@admin.register(NitValidation)
class NitValidationAdmin(DefModelAdmin):
    list_display = ("nit", "status", "name", "source", "expires_at")
    search_fields: ClassVar[tuple] = ("nit", "name")
    list_filter = ("status",)


@admin.register(CuiValidation)
class CuiValidationAdmin(DefModelAdmin):
    list_display = ("cui", "status", "first_name", "last_name", "source", "expires_at")
    search_fields: ClassVar[tuple] = ("cui", "first_name", "last_name")
    list_filter = ("status",)
