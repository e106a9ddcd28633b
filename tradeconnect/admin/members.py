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

from tradeconnect.admin.base import DefModelAdmin, MemberFilter, OrganizationFilter
from tradeconnect.models.member import Member, Membership


@admin.register(Member)
class MemberAdmin(DefModelAdmin):
    list_display = ("id", "name", "surname", "email", "nit")
    search_fields: ClassVar[tuple] = ("id", "name", "surname", "email", "nit", "cui")
    autocomplete_fields: ClassVar[list] = ["user"]


@admin.register(Membership)
class MembershipAdmin(DefModelAdmin):
    list_display = ("member", "organization", "status", "newsletter")
    list_filter = (MemberFilter, OrganizationFilter, "status")
    autocomplete_fields: ClassVar[list] = ["member", "organization"]
