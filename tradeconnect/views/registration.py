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

from tradeconnect.cache.role import check_event_permission, has_event_permission
from tradeconnect.models.registration import CapacityLock, Registration, WaitlistEntry
from tradeconnect.utils.checkin import get_active_qr
from tradeconnect.utils.common import (
    get_access_type,
    get_event,
    get_json_body,
    get_quantity,
    get_request_member,
    save_log,
)
from tradeconnect.utils.core.exceptions import NotFoundError, UserPermissionError
from tradeconnect.utils.registration import cancel_registration, get_member_registrations, register
from tradeconnect.utils.waitlist import (
    add_to_waitlist,
    confirm_entry,
    get_member_position,
    get_waitlist,
    remove_from_waitlist,
)


def get_organization_registration(request: HttpRequest, registration_uuid: str) -> Registration:
    """Raises NotFoundError if the registration does not exist in the organization."""
    try:
        return Registration.objects.select_related("event", "member", "access_type").get(
            uuid=registration_uuid, event__organization_id=request.organization["id"]
        )
    except ObjectDoesNotExist as err:
        msg = "Registration does not exist"
        raise NotFoundError(msg) from err


def get_registration(request: HttpRequest, registration_uuid: str) -> Registration:
    """Get a registration of the organization the current user can see.

    Raises:
        NotFoundError: If the registration does not exist in the organization
        UserPermissionError: If it belongs to somebody else and the user cannot manage it
    """
    registration = get_organization_registration(request, registration_uuid)
    member = get_request_member(request)
    if registration.member_id != member.id and not has_event_permission(
        request, registration.event, "manage_registrations"
    ):
        raise UserPermissionError("manage_registrations")
    return registration


def registration_data(registration: Registration) -> dict:
    data = registration.as_dict()
    data["balance"] = registration.balance()
    qr_code = get_active_qr(registration)
    data["qr_hash"] = qr_code.qr_hash if qr_code else None
    return data


@require_POST
def registration_create(request: HttpRequest, slug: str) -> JsonResponse:
    """Register the current member to an event.

    When the event is full and has a waitlist, the 409 error carries
    waitlist_available so the client can offer to join it.
    """
    event = get_event(request, slug)
    member = get_request_member(request)
    data = get_json_body(request)

    lock = None
    if data.get("lock"):
        try:
            lock = CapacityLock.objects.get(event=event, uuid=data["lock"])
        except ObjectDoesNotExist as err:
            msg = "Reservation does not exist"
            raise NotFoundError(msg) from err

    registration = register(
        event,
        member,
        access_type=get_access_type(event, data.get("access_type")),
        quantity=get_quantity(data),
        promo_code=data.get("promo_code") or None,
        lock=lock,
    )
    return JsonResponse(registration_data(registration), status=201)


@require_GET
def registration_detail(request: HttpRequest, registration_uuid: str) -> JsonResponse:
    return JsonResponse(registration_data(get_registration(request, registration_uuid)))


@require_POST
def registration_cancel(request: HttpRequest, registration_uuid: str) -> JsonResponse:
    registration = get_registration(request, registration_uuid)
    registration = cancel_registration(registration, get_json_body(request).get("reason", ""))
    save_log(get_request_member(request), Registration, registration, registration.event.organization_id)
    return JsonResponse(registration_data(registration))


@require_GET
def registration_my(request: HttpRequest) -> JsonResponse:
    member = get_request_member(request)
    registrations = get_member_registrations(member, request.organization["id"])
    return JsonResponse({"registrations": [registration.as_dict() for registration in registrations]})


@require_GET
def registration_list(request: HttpRequest, slug: str) -> JsonResponse:
    event = get_event(request, slug)
    check_event_permission(request, event, "manage_registrations")
    registrations = event.registrations.select_related("member", "access_type", "promo_code")
    status = request.GET.get("status")
    if status:
        registrations = registrations.filter(status=status)
    return JsonResponse({"registrations": [registration.as_dict() for registration in registrations]})


@require_POST
def waitlist_join(request: HttpRequest, slug: str) -> JsonResponse:
    event = get_event(request, slug)
    data = get_json_body(request)
    entry = add_to_waitlist(
        event,
        get_request_member(request),
        access_type=get_access_type(event, data.get("access_type")),
        quantity=get_quantity(data),
    )
    return JsonResponse(entry.as_dict(), status=201)


def get_member_entry(request: HttpRequest, slug: str) -> WaitlistEntry:
    """Get the waitlist entry of the current member on an event.

    Raises:
        NotFoundError: If the member is not waiting on the event
    """
    event = get_event(request, slug)
    member = get_request_member(request)
    position = get_member_position(event, member)
    if not position:
        msg = "You are not in the waitlist"
        raise NotFoundError(msg)
    return WaitlistEntry.objects.select_related("event", "access_type").get(pk=position["entry"])


@require_POST
def waitlist_leave(request: HttpRequest, slug: str) -> JsonResponse:
    entry = remove_from_waitlist(get_member_entry(request, slug))
    return JsonResponse(entry.as_dict())


@require_POST
def waitlist_confirm(request: HttpRequest, slug: str) -> JsonResponse:
    """Accept the seat offered to the current member."""
    entry = get_member_entry(request, slug)
    registration = confirm_entry(entry, get_request_member(request))
    return JsonResponse(registration_data(registration), status=201)


@require_GET
def waitlist_position(request: HttpRequest, slug: str) -> JsonResponse:
    event = get_event(request, slug)
    position = get_member_position(event, get_request_member(request))
    if not position:
        msg = "You are not in the waitlist"
        raise NotFoundError(msg)
    return JsonResponse(position)


@require_GET
def waitlist_list(request: HttpRequest, slug: str) -> JsonResponse:
    event = get_event(request, slug)
    check_event_permission(request, event, "manage_registrations")

    entries = []
    for entry in get_waitlist(event, get_access_type(event, request.GET.get("access_type"))):
        data = entry.as_dict()
        data["member_name"] = entry.member.display_member()
        data["email"] = entry.member.email
        entries.append(data)
    return JsonResponse({"waitlist": entries, "count": len(entries)})
