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

from tradeconnect.admin.base import DefModelAdmin, EventFilter, MemberFilter, RegistrationFilter
from tradeconnect.models.checkin import AccessLog, Attendance, QRCode


@admin.register(QRCode)
class QRCodeAdmin(DefModelAdmin):
    list_display = ("qr_hash", "registration", "event", "status", "expires_at", "used_at")
    search_fields: ClassVar[tuple] = ("id", "qr_hash")
    list_filter = (EventFilter, RegistrationFilter, "status")
    autocomplete_fields: ClassVar[list] = ["registration", "event"]
    exclude = ("payload", "signature")


@admin.register(Attendance)
class AttendanceAdmin(DefModelAdmin):
    list_display = ("event", "member", "method", "status", "checked_in_at", "checked_out_at")
    list_filter = (EventFilter, MemberFilter, "method", "status")
    autocomplete_fields: ClassVar[list] = ["registration", "event", "member", "qr_code", "checked_in_by"]


@admin.register(AccessLog)
class AccessLogAdmin(DefModelAdmin):
    list_display = ("event", "qr_hash", "result", "failure_reason", "access_point", "created")
    list_filter = (EventFilter, "result")
    autocomplete_fields: ClassVar[list] = ["event", "qr_code", "scanned_by"]
