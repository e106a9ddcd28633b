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

from django.core.exceptions import ObjectDoesNotExist
from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET, require_POST

from tradeconnect.cache.capacity import get_capacity_status
from tradeconnect.cache.role import check_event_permission, has_event_permission
from tradeconnect.forms.event import CapacityForm
from tradeconnect.models.event import Capacity
from tradeconnect.models.registration import CapacityLock, GroupReservation
from tradeconnect.utils.capacity import (
    cancel_group_reservation,
    capacity_report,
    configure_capacity,
    create_group_reservation,
    release_reservation,
    reserve_capacity,
)
from tradeconnect.utils.common import (
    check_form,
    get_access_type,
    get_event,
    get_json_body,
    get_organization_member,
    get_quantity,
    get_request_member,
    save_log,
)
from tradeconnect.utils.core.exceptions import NotFoundError, UserPermissionError


@require_POST
def capacity_configure(request: HttpRequest, slug: str) -> JsonResponse:
    event = get_event(request, slug)
    check_event_permission(request, event, "manage_event_capacity")

    form = CapacityForm(data=get_json_body(request), instance=Capacity.objects.filter(event=event).first())
    check_form(form)
    capacity = configure_capacity(event, **form.cleaned_data)
    save_log(get_request_member(request), Capacity, capacity, event.organization_id)
    return JsonResponse(capacity.as_dict())


@require_GET
def capacity_status(request: HttpRequest, slug: str) -> JsonResponse:
    status = get_capacity_status(get_event(request, slug))
    if status is None:
        msg = "Capacity not configured"
        raise NotFoundError(msg)
    return JsonResponse(status)


@require_GET
def capacity_report_view(request: HttpRequest, slug: str) -> JsonResponse:
    event = get_event(request, slug)
    check_event_permission(request, event, "manage_event_capacity")
    report = capacity_report(event)
    if report is None:
        msg = "Capacity not configured"
        raise NotFoundError(msg)
    return JsonResponse(report)


@require_POST
def capacity_reserve(request: HttpRequest, slug: str) -> JsonResponse:
    """Hold seats while the member completes the registration."""
    event = get_event(request, slug)
    member = get_request_member(request)
    data = get_json_body(request)

    lock = reserve_capacity(
        event,
        member=member,
        access_type=get_access_type(event, data.get("access_type")),
        quantity=get_quantity(data),
        session_key=request.session.session_key or "",
    )
    return JsonResponse(lock.as_dict(), status=201)


@require_POST
def capacity_release(request: HttpRequest, slug: str, lock_uuid: str) -> JsonResponse:
    event = get_event(request, slug)
    member = get_request_member(request)
    try:
        lock = CapacityLock.objects.get(event=event, uuid=lock_uuid)
    except ObjectDoesNotExist as err:
        msg = "Reservation does not exist"
        raise NotFoundError(msg) from err

    if lock.member_id != member.id and not has_event_permission(request, event, "manage_event_capacity"):
        raise UserPermissionError("manage_event_capacity")

    return JsonResponse(release_reservation(lock).as_dict())


def get_group(request: HttpRequest, event, group_uuid: str) -> GroupReservation:
    """Get a group reservation of the event the current member leads or manages.

    Raises:
        NotFoundError: If the group does not exist
        UserPermissionError: If the member neither leads the group nor manages the event capacity
    """
    member = get_request_member(request)
    try:
        group = GroupReservation.objects.select_related("event").get(event=event, uuid=group_uuid)
    except ObjectDoesNotExist as err:
        msg = "Group reservation does not exist"
        raise NotFoundError(msg) from err

    if group.leader_id != member.id:
        check_event_permission(request, event, "manage_event_capacity")
    return group


@require_POST
def group_create(request: HttpRequest, slug: str) -> JsonResponse:
    """Hold seats for a group of members of the organization, one per participant."""
    event = get_event(request, slug)
    leader = get_request_member(request)
    data = get_json_body(request)

    entries = data.get("participants")
    if not isinstance(entries, list) or not all(isinstance(entry, dict) for entry in entries):
        return JsonResponse(
            {"error": "validation_error", "message": "Invalid data", "details": {"participants": "Required"}},
            status=400,
        )

    participants = [
        (get_organization_member(request, entry.get("member")), get_access_type(event, entry.get("access_type")))
        for entry in entries
    ]
    group, left_out = create_group_reservation(
        event, leader, participants, allow_partial=bool(data.get("allow_partial", False))
    )
    save_log(leader, GroupReservation, group, event.organization_id)
    return JsonResponse({**group.as_dict(), "left_out": [member.id for member in left_out]}, status=201)


@require_GET
def group_detail(request: HttpRequest, slug: str, group_uuid: str) -> JsonResponse:
    event = get_event(request, slug)
    return JsonResponse(get_group(request, event, group_uuid).as_dict())


@require_POST
def group_cancel(request: HttpRequest, slug: str, group_uuid: str) -> JsonResponse:
    event = get_event(request, slug)
    group = cancel_group_reservation(get_group(request, event, group_uuid))
    return JsonResponse(group.as_dict())
