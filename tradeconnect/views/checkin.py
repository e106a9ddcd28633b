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
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.http import require_GET, require_POST

from tradeconnect.cache.qr import get_qr_by_hash
from tradeconnect.cache.role import check_event_permission
from tradeconnect.models.checkin import Attendance
from tradeconnect.utils.checkin import (
    attendance_stats,
    checkout,
    generate_qr,
    invalidate_qr,
    manual_checkin,
    qr_image,
    regenerate_qr,
    validate_qr,
)
from tradeconnect.utils.common import get_client_ip, get_event, get_json_body, get_object, get_request_member
from tradeconnect.utils.core.exceptions import NotFoundError
from tradeconnect.views.registration import get_registration


@require_POST
def qr_generate(request: HttpRequest, registration_uuid: str) -> JsonResponse:
    registration = get_registration(request, registration_uuid)
    return JsonResponse(generate_qr(registration).as_dict(), status=201)


@require_POST
def qr_regenerate(request: HttpRequest, registration_uuid: str) -> JsonResponse:
    """Replace the code of a registration, e.g. after it was shared by mistake."""
    registration = get_registration(request, registration_uuid)
    reason = get_json_body(request).get("reason") or "regenerated"
    return JsonResponse(regenerate_qr(registration, reason).as_dict(), status=201)


@require_GET
def qr_image_view(request: HttpRequest, registration_uuid: str) -> HttpResponse:
    registration = get_registration(request, registration_uuid)
    qr_code = generate_qr(registration)
    return HttpResponse(qr_image(qr_code), content_type="image/png")


@require_POST
def qr_validate(request: HttpRequest, slug: str) -> JsonResponse:
    """Check in the holder of a scanned code.

    Refused scans answer 200 with valid false, so scanners can show the reason.
    """
    event = get_event(request, slug)
    check_event_permission(request, event, "validate_qr")
    data = get_json_body(request)

    qr_hash = str(data.get("qr_hash", "")).strip()
    if not qr_hash:
        return JsonResponse(
            {"error": "validation_error", "message": "Invalid data", "details": {"qr_hash": "Required"}}, status=400
        )

    result = validate_qr(
        qr_hash,
        event,
        scanner=get_request_member(request),
        access_point=str(data.get("access_point", ""))[:100],
        ip_address=get_client_ip(request),
    )
    return JsonResponse(result)


@require_POST
def qr_invalidate(request: HttpRequest, slug: str) -> JsonResponse:
    event = get_event(request, slug)
    check_event_permission(request, event, "validate_qr")
    data = get_json_body(request)

    qr_code = get_qr_by_hash(str(data.get("qr_hash", "")))
    if not qr_code or qr_code.event_id != event.id:
        msg = "QR code does not exist"
        raise NotFoundError(msg)

    return JsonResponse(invalidate_qr(qr_code, data.get("reason", "")).as_dict())


@require_POST
def checkin_manual(request: HttpRequest, slug: str) -> JsonResponse:
    event = get_event(request, slug)
    check_event_permission(request, event, "validate_qr")
    data = get_json_body(request)

    try:
        registration = event.registrations.get(uuid=data.get("registration"))
    except ObjectDoesNotExist as err:
        msg = "Registration does not exist"
        raise NotFoundError(msg) from err

    attendance = manual_checkin(registration, get_request_member(request), str(data.get("access_point", ""))[:100])
    return JsonResponse(attendance.as_dict(), status=201)


@require_POST
def checkin_checkout(request: HttpRequest, slug: str, attendance_id: int) -> JsonResponse:
    event = get_event(request, slug)
    check_event_permission(request, event, "validate_qr")
    attendance = get_object(Attendance, request, attendance_id, event=event)
    return JsonResponse(checkout(attendance).as_dict())


@require_GET
def attendance_list(request: HttpRequest, slug: str) -> JsonResponse:
    event = get_event(request, slug)
    check_event_permission(request, event, "view_attendance")
    attendances = Attendance.objects.filter(event=event).select_related("registration", "member").order_by(
        "-checked_in_at"
    )
    return JsonResponse({"attendances": [attendance.as_dict() for attendance in attendances]})


@require_GET
def attendance_stats_view(request: HttpRequest, slug: str) -> JsonResponse:
    event = get_event(request, slug)
    check_event_permission(request, event, "view_attendance")
    return JsonResponse(attendance_stats(event))
