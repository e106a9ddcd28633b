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

from tradeconnect.admin.base import DefModelAdmin, EventFilter, OrganizationFilter
from tradeconnect.models.access import EventPermission, EventRole, OrganizationPermission, OrganizationRole


@admin.register(OrganizationRole)
class OrganizationRoleAdmin(DefModelAdmin):
    list_display = ("name", "organization", "number")
    search_fields: ClassVar[tuple] = ("id", "name")
    list_filter = (OrganizationFilter,)
    autocomplete_fields: ClassVar[list] = ["organization", "members", "permissions"]


@admin.register(OrganizationPermission)
class OrganizationPermissionAdmin(DefModelAdmin):
    list_display = ("name", "slug", "module", "number")
    search_fields: ClassVar[tuple] = ("id", "name", "slug")
    list_filter = ("module",)
    autocomplete_fields: ClassVar[list] = ["module"]


@admin.register(EventRole)
class EventRoleAdmin(DefModelAdmin):
    list_display = ("name", "event", "number")
    search_fields: ClassVar[tuple] = ("id", "name")
    list_filter = (EventFilter,)
    autocomplete_fields: ClassVar[list] = ["event", "members", "permissions"]


@admin.register(EventPermission)
class EventPermissionAdmin(DefModelAdmin):
    list_display = ("name", "slug", "module", "number")
    search_fields: ClassVar[tuple] = ("id", "name", "slug")
    list_filter = ("module",)
    autocomplete_fields: ClassVar[list] = ["module"]
