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

from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET, require_POST

from tradeconnect.cache.role import check_event_permission, check_organization_permission, has_event_permission
from tradeconnect.forms.event import AccessTypeForm, EventForm
from tradeconnect.models.access import EventRole
from tradeconnect.models.event import AccessType, AccessTypeStatus, Event, EventStatus
from tradeconnect.utils.common import (
    check_form,
    get_access_type,
    get_event,
    get_json_body,
    get_request_member,
    save_log,
)
from tradeconnect.utils.core.exceptions import NotFoundError
from tradeconnect.utils.registration import cancel_event, duplicate_event, publish_event


@require_GET
def event_list(request: HttpRequest) -> JsonResponse:
    """List the published events of the organization, every event for its managers."""
    events = Event.objects.filter(organization_id=request.organization["id"]).order_by("start")
    status = request.GET.get("status")
    if status and request.user.is_authenticated:
        check_organization_permission(request, "manage_event")
        events = events.filter(status=status)
    else:
        events = events.filter(status=EventStatus.PUBLISHED)

    return JsonResponse({"events": [event.as_dict() for event in events], "count": len(events)})


@require_GET
def event_detail(request: HttpRequest, slug: str) -> JsonResponse:
    event = get_event(request, slug)
    if event.status != EventStatus.PUBLISHED and not has_event_permission(request, event, "manage_event"):
        msg = "Event does not exist"
        raise NotFoundError(msg)

    data = event.as_dict()
    data["access_types"] = [
        access_type.as_dict() for access_type in event.access_types.filter(status=AccessTypeStatus.ACTIVE)
    ]
    return JsonResponse(data)


@require_POST
def event_create(request: HttpRequest) -> JsonResponse:
    """Create an event; the creator joins its organizer role."""
    check_organization_permission(request, "manage_event")
    member = get_request_member(request)

    form = EventForm(data=get_json_body(request), context={"organization_id": request.organization["id"]})
    check_form(form)
    event = form.save()

    EventRole.objects.get(event=event, number=1).members.add(member)
    save_log(member, Event, event)
    return JsonResponse(event.as_dict(), status=201)


@require_POST
def event_update(request: HttpRequest, slug: str) -> JsonResponse:
    event = get_event(request, slug)
    check_event_permission(request, event, "manage_event")

    form = EventForm(
        data=get_json_body(request), instance=event, context={"organization_id": request.organization["id"]}
    )
    check_form(form)
    event = form.save()
    save_log(get_request_member(request), Event, event)
    return JsonResponse(event.as_dict())


@require_POST
def event_publish(request: HttpRequest, slug: str) -> JsonResponse:
    event = get_event(request, slug)
    check_event_permission(request, event, "manage_event")
    event = publish_event(event)
    save_log(get_request_member(request), Event, event)
    return JsonResponse(event.as_dict())


@require_POST
def event_cancel(request: HttpRequest, slug: str) -> JsonResponse:
    event = get_event(request, slug)
    check_event_permission(request, event, "manage_event")
    event = cancel_event(event, get_json_body(request).get("reason", ""))
    save_log(get_request_member(request), Event, event)
    return JsonResponse(event.as_dict())


@require_POST
def event_duplicate(request: HttpRequest, slug: str) -> JsonResponse:
    """Copy an event as a new draft, with its access types and capacity."""
    event = get_event(request, slug)
    check_organization_permission(request, "manage_event")
    data = get_json_body(request)

    new_slug = str(data.get("slug", "")).strip().lower()
    error = ""
    if not new_slug:
        error = "Required"
    elif Event.objects.filter(slug=new_slug).exists():
        error = "Already in use"
    if error:
        return JsonResponse(
            {"error": "validation_error", "message": "Invalid data", "details": {"slug": error}}, status=400
        )

    copy = duplicate_event(event, new_slug, data.get("name"))
    return JsonResponse(copy.as_dict(), status=201)


@require_GET
def access_type_list(request: HttpRequest, slug: str) -> JsonResponse:
    event = get_event(request, slug)
    access_types = event.access_types.all()
    if not has_event_permission(request, event, "manage_event"):
        access_types = access_types.filter(status=AccessTypeStatus.ACTIVE)
    return JsonResponse({"access_types": [access_type.as_dict() for access_type in access_types]})


@require_POST
def access_type_create(request: HttpRequest, slug: str) -> JsonResponse:
    event = get_event(request, slug)
    check_event_permission(request, event, "manage_event")

    form = AccessTypeForm(data=get_json_body(request), context={"event": event})
    check_form(form)
    access_type = form.save()
    save_log(get_request_member(request), AccessType, access_type, event.organization_id)
    return JsonResponse(access_type.as_dict(), status=201)


@require_POST
def access_type_update(request: HttpRequest, slug: str, number: int) -> JsonResponse:
    event = get_event(request, slug)
    check_event_permission(request, event, "manage_event")

    form = AccessTypeForm(data=get_json_body(request), instance=get_access_type(event, number), context={"event": event})
    check_form(form)
    access_type = form.save()
    save_log(get_request_member(request), AccessType, access_type, event.organization_id)
    return JsonResponse(access_type.as_dict())


@require_POST
def access_type_archive(request: HttpRequest, slug: str, number: int) -> JsonResponse:
    """Hide an access type from sale, keeping its registrations."""
    event = get_event(request, slug)
    check_event_permission(request, event, "manage_event")

    access_type = get_access_type(event, number)
    access_type.status = AccessTypeStatus.ARCHIVED
    access_type.is_default = False
    access_type.save()
    save_log(get_request_member(request), AccessType, access_type, event.organization_id)
    return JsonResponse(access_type.as_dict())
