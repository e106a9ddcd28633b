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

from tradeconnect.admin.base import DefModelAdmin, EventFilter, OrganizationFilter, reduced
from tradeconnect.models.campaign import CampaignRecipient, Email, EmailCampaign, EmailTemplate


@admin.register(EmailTemplate)
class EmailTemplateAdmin(DefModelAdmin):
    list_display = ("name", "organization", "subject")
    search_fields: ClassVar[tuple] = ("id", "name")
    list_filter = (OrganizationFilter,)
    autocomplete_fields: ClassVar[list] = ["organization"]


@admin.register(EmailCampaign)
class EmailCampaignAdmin(DefModelAdmin):
    list_display = ("name", "organization", "event", "audience", "status", "total_recipients", "sent_count")
    search_fields: ClassVar[tuple] = ("id", "name")
    list_filter = (OrganizationFilter, EventFilter, "status", "campaign_type")
    autocomplete_fields: ClassVar[list] = ["organization", "event", "template", "created_by"]


class CampaignFilter(admin.SimpleListFilter):
    title = "Campaign status"
    parameter_name = "campaign_status"

    def lookups(self, request, model_admin):
        return EmailCampaign._meta.get_field("status").choices  # noqa: SLF001

    def queryset(self, request, queryset):
        if self.value():
            return queryset.filter(campaign__status=self.value())
        return queryset


@admin.register(CampaignRecipient)
class CampaignRecipientAdmin(DefModelAdmin):
    list_display = ("campaign", "email", "status", "sent_at")
    search_fields: ClassVar[tuple] = ("email",)
    list_filter = (CampaignFilter, "status")
    autocomplete_fields: ClassVar[list] = ["campaign", "member"]


@admin.register(Email)
class EmailAdmin(DefModelAdmin):
    list_display = ("recipient", "organization", "subj", "body_red", "sent")
    search_fields: ClassVar[tuple] = ("recipient", "subj")
    list_filter = (OrganizationFilter,)
    autocomplete_fields: ClassVar[list] = ["organization"]

    @staticmethod
    def body_red(instance: Email) -> str:
        return reduced(instance.body)
