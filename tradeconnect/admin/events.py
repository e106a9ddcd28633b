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
from tradeconnect.models.event import AccessType, Capacity, Event, EventConfig


@admin.register(Event)
class EventAdmin(DefModelAdmin):
    list_display = ("name", "slug", "organization", "status", "start", "end")
    search_fields: ClassVar[tuple] = ("id", "name", "slug")
    list_filter = (OrganizationFilter, "status")
    autocomplete_fields: ClassVar[list] = ["organization"]


@admin.register(EventConfig)
class EventConfigAdmin(DefModelAdmin):
    list_display = ("event", "name", "value")
    search_fields: ClassVar[tuple] = ("id", "name")
    list_filter = (EventFilter,)
    autocomplete_fields: ClassVar[list] = ["event"]


@admin.register(AccessType)
class AccessTypeAdmin(DefModelAdmin):
    list_display = ("event", "number", "name", "price", "capacity", "status", "is_default")
    search_fields: ClassVar[tuple] = ("id", "name")
    list_filter = (EventFilter, "status")
    autocomplete_fields: ClassVar[list] = ["event"]


@admin.register(Capacity)
class CapacityAdmin(DefModelAdmin):
    list_display = ("event", "total", "overbooking_enabled", "overbooking_percentage", "waitlist_enabled")
    list_filter = (EventFilter,)
    autocomplete_fields: ClassVar[list] = ["event"]
