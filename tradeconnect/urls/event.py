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

from django.urls import (
    path,
)

from tradeconnect.views import access as views_ac
from tradeconnect.views import capacity as views_cp
from tradeconnect.views import checkin as views_ck
from tradeconnect.views import event as views_ev
from tradeconnect.views import registration as views_rg

urlpatterns = [
    path(
        "api/v1/events/",
        views_ev.event_list,
        name="api_event_list",
    ),
    path(
        "api/v1/events/create/",
        views_ev.event_create,
        name="api_event_create",
    ),
    path(
        "api/v1/events/<slug:slug>/",
        views_ev.event_detail,
        name="api_event_detail",
    ),
    path(
        "api/v1/events/<slug:slug>/update/",
        views_ev.event_update,
        name="api_event_update",
    ),
    path(
        "api/v1/events/<slug:slug>/publish/",
        views_ev.event_publish,
        name="api_event_publish",
    ),
    path(
        "api/v1/events/<slug:slug>/cancel/",
        views_ev.event_cancel,
        name="api_event_cancel",
    ),
    path(
        "api/v1/events/<slug:slug>/duplicate/",
        views_ev.event_duplicate,
        name="api_event_duplicate",
    ),
    path(
        "api/v1/events/<slug:slug>/access-types/",
        views_ev.access_type_list,
        name="api_access_type_list",
    ),
    path(
        "api/v1/events/<slug:slug>/access-types/create/",
        views_ev.access_type_create,
        name="api_access_type_create",
    ),
    path(
        "api/v1/events/<slug:slug>/access-types/<int:number>/update/",
        views_ev.access_type_update,
        name="api_access_type_update",
    ),
    path(
        "api/v1/events/<slug:slug>/access-types/<int:number>/archive/",
        views_ev.access_type_archive,
        name="api_access_type_archive",
    ),
    path(
        "api/v1/events/<slug:slug>/capacity/",
        views_cp.capacity_status,
        name="api_capacity_status",
    ),
    path(
        "api/v1/events/<slug:slug>/capacity/configure/",
        views_cp.capacity_configure,
        name="api_capacity_configure",
    ),
    path(
        "api/v1/events/<slug:slug>/capacity/report/",
        views_cp.capacity_report_view,
        name="api_capacity_report",
    ),
    path(
        "api/v1/events/<slug:slug>/capacity/reserve/",
        views_cp.capacity_reserve,
        name="api_capacity_reserve",
    ),
    path(
        "api/v1/events/<slug:slug>/capacity/locks/<str:lock_uuid>/release/",
        views_cp.capacity_release,
        name="api_capacity_release",
    ),
    path(
        "api/v1/events/<slug:slug>/groups/",
        views_cp.group_create,
        name="api_group_create",
    ),
    path(
        "api/v1/events/<slug:slug>/groups/<str:group_uuid>/",
        views_cp.group_detail,
        name="api_group_detail",
    ),
    path(
        "api/v1/events/<slug:slug>/groups/<str:group_uuid>/cancel/",
        views_cp.group_cancel,
        name="api_group_cancel",
    ),
    path(
        "api/v1/events/<slug:slug>/register/",
        views_rg.registration_create,
        name="api_registration_create",
    ),
    path(
        "api/v1/events/<slug:slug>/registrations/",
        views_rg.registration_list,
        name="api_registration_list",
    ),
    path(
        "api/v1/events/<slug:slug>/waitlist/",
        views_rg.waitlist_list,
        name="api_waitlist_list",
    ),
    path(
        "api/v1/events/<slug:slug>/waitlist/join/",
        views_rg.waitlist_join,
        name="api_waitlist_join",
    ),
    path(
        "api/v1/events/<slug:slug>/waitlist/leave/",
        views_rg.waitlist_leave,
        name="api_waitlist_leave",
    ),
    path(
        "api/v1/events/<slug:slug>/waitlist/confirm/",
        views_rg.waitlist_confirm,
        name="api_waitlist_confirm",
    ),
    path(
        "api/v1/events/<slug:slug>/waitlist/position/",
        views_rg.waitlist_position,
        name="api_waitlist_position",
    ),
    path(
        "api/v1/events/<slug:slug>/checkin/validate/",
        views_ck.qr_validate,
        name="api_qr_validate",
    ),
    path(
        "api/v1/events/<slug:slug>/checkin/invalidate/",
        views_ck.qr_invalidate,
        name="api_qr_invalidate",
    ),
    path(
        "api/v1/events/<slug:slug>/checkin/manual/",
        views_ck.checkin_manual,
        name="api_checkin_manual",
    ),
    path(
        "api/v1/events/<slug:slug>/checkin/<int:attendance_id>/checkout/",
        views_ck.checkin_checkout,
        name="api_checkin_checkout",
    ),
    path(
        "api/v1/events/<slug:slug>/attendance/",
        views_ck.attendance_list,
        name="api_attendance_list",
    ),
    path(
        "api/v1/events/<slug:slug>/attendance/stats/",
        views_ck.attendance_stats_view,
        name="api_attendance_stats",
    ),
    path(
        "api/v1/events/<slug:slug>/roles/",
        views_ac.event_role_list,
        name="api_event_role_list",
    ),
    path(
        "api/v1/events/<slug:slug>/roles/create/",
        views_ac.event_role_create,
        name="api_event_role_create",
    ),
    path(
        "api/v1/events/<slug:slug>/roles/<int:number>/assign/",
        views_ac.event_role_assign,
        name="api_event_role_assign",
    ),
]
