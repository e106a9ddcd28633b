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

from tradeconnect.admin.base import DefModelAdmin, EventFilter, MemberFilter
from tradeconnect.models.registration import CapacityLock, GroupReservation, Registration, WaitlistEntry


@admin.register(Registration)
class RegistrationAdmin(DefModelAdmin):
    list_display = ("uuid", "event", "member", "access_type", "quantity", "status", "total", "paid")
    search_fields: ClassVar[tuple] = ("id", "uuid")
    list_filter = (EventFilter, MemberFilter, "status")
    autocomplete_fields: ClassVar[list] = ["event", "member", "access_type", "promo_code"]


@admin.register(CapacityLock)
class CapacityLockAdmin(DefModelAdmin):
    list_display = ("uuid", "event", "member", "quantity", "status", "expires_at")
    search_fields: ClassVar[tuple] = ("id", "uuid")
    list_filter = (EventFilter, "status")
    autocomplete_fields: ClassVar[list] = ["event", "member", "access_type", "registration", "group"]


@admin.register(GroupReservation)
class GroupReservationAdmin(DefModelAdmin):
    list_display = ("uuid", "event", "leader", "status", "expires_at")
    search_fields: ClassVar[tuple] = ("id", "uuid")
    list_filter = (EventFilter, "status")
    autocomplete_fields: ClassVar[list] = ["event", "leader"]


@admin.register(WaitlistEntry)
class WaitlistEntryAdmin(DefModelAdmin):
    list_display = ("event", "access_type", "member", "position", "status", "expires_at")
    list_filter = (EventFilter, MemberFilter, "status")
    autocomplete_fields: ClassVar[list] = ["event", "member", "access_type", "registration"]
