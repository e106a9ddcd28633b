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

from tradeconnect.cache.organization import get_member_organizations
from tradeconnect.cache.role import check_event_permission, check_organization_permission, get_member_permissions
from tradeconnect.models.access import EventPermission, EventRole, OrganizationPermission, OrganizationRole
from tradeconnect.forms.member import MemberForm
from tradeconnect.models.member import Member, Membership
from tradeconnect.utils.common import (
    check_form,
    get_event,
    get_json_body,
    get_organization_member,
    get_request_member,
    save_log,
)
from tradeconnect.utils.core.exceptions import NotFoundError


@require_GET
def my_permissions(request: HttpRequest) -> JsonResponse:
    get_request_member(request)
    event = get_event(request, request.GET["event"]) if request.GET.get("event") else None
    return JsonResponse(get_member_permissions(request, event))


@require_GET
def my_organizations(request: HttpRequest) -> JsonResponse:
    """Organizations joined by the current member, across tenants."""
    member = get_request_member(request)
    return JsonResponse({"organizations": get_member_organizations(member)})


def profile_dict(member: Member) -> dict:
    return {**member.as_dict(), "phone": member.phone, "nit": member.nit, "cui": member.cui}


@require_GET
def my_profile(request: HttpRequest) -> JsonResponse:
    return JsonResponse(profile_dict(get_request_member(request)))


@require_POST
def my_profile_update(request: HttpRequest) -> JsonResponse:
    """Update the profile of the current member, the NIT and CUI are checked before saving."""
    member = get_request_member(request)
    form = MemberForm(data=get_json_body(request), instance=member)
    check_form(form)
    member = form.save()
    save_log(member, Member, member)
    return JsonResponse(profile_dict(member))


@require_GET
def organization_role_list(request: HttpRequest) -> JsonResponse:
    check_organization_permission(request, "manage_roles")
    roles = OrganizationRole.objects.filter(organization_id=request.organization["id"]).order_by("number")
    return JsonResponse(
        {
            "roles": [role.as_dict() for role in roles],
            "permissions": list(OrganizationPermission.objects.values_list("slug", flat=True)),
        }
    )


@require_POST
def organization_role_create(request: HttpRequest) -> JsonResponse:
    check_organization_permission(request, "manage_roles")
    data = get_json_body(request)
    name = str(data.get("name", "")).strip()
    if not name:
        return JsonResponse(
            {"error": "validation_error", "message": "Invalid data", "details": {"name": "Required"}}, status=400
        )

    role = OrganizationRole.objects.create(organization_id=request.organization["id"], name=name[:100])
    role.permissions.set(OrganizationPermission.objects.filter(slug__in=data.get("permissions") or []))
    save_log(get_request_member(request), OrganizationRole, role)
    return JsonResponse(role.as_dict(), status=201)


@require_POST
def organization_role_assign(request: HttpRequest, number: int) -> JsonResponse:
    """Add (or with remove true, take away) a member from an organization role."""
    check_organization_permission(request, "manage_roles")
    try:
        role = OrganizationRole.objects.get(organization_id=request.organization["id"], number=number)
    except ObjectDoesNotExist as err:
        msg = "Role does not exist"
        raise NotFoundError(msg) from err

    data = get_json_body(request)
    member = get_organization_member(request, data.get("member"))
    if data.get("remove"):
        role.members.remove(member)
    else:
        role.members.add(member)
    save_log(get_request_member(request), OrganizationRole, role)
    return JsonResponse(role.as_dict())


@require_GET
def event_role_list(request: HttpRequest, slug: str) -> JsonResponse:
    event = get_event(request, slug)
    check_event_permission(request, event, "manage_roles")
    return JsonResponse(
        {
            "roles": [role.as_dict() for role in EventRole.objects.filter(event=event).order_by("number")],
            "permissions": list(EventPermission.objects.values_list("slug", flat=True)),
        }
    )


@require_POST
def event_role_create(request: HttpRequest, slug: str) -> JsonResponse:
    event = get_event(request, slug)
    check_event_permission(request, event, "manage_roles")
    data = get_json_body(request)
    name = str(data.get("name", "")).strip()
    if not name:
        return JsonResponse(
            {"error": "validation_error", "message": "Invalid data", "details": {"name": "Required"}}, status=400
        )

    role = EventRole.objects.create(event=event, name=name[:100])
    role.permissions.set(EventPermission.objects.filter(slug__in=data.get("permissions") or []))
    save_log(get_request_member(request), EventRole, role, event.organization_id)
    return JsonResponse(role.as_dict(), status=201)


@require_POST
def event_role_assign(request: HttpRequest, slug: str, number: int) -> JsonResponse:
    event = get_event(request, slug)
    check_event_permission(request, event, "manage_roles")
    try:
        role = EventRole.objects.get(event=event, number=number)
    except ObjectDoesNotExist as err:
        msg = "Role does not exist"
        raise NotFoundError(msg) from err

    data = get_json_body(request)
    member = get_organization_member(request, data.get("member"))
    if data.get("remove"):
        role.members.remove(member)
    else:
        role.members.add(member)
    save_log(get_request_member(request), EventRole, role, event.organization_id)
    return JsonResponse(role.as_dict())


@require_POST
def membership_join(request: HttpRequest) -> JsonResponse:
    """Join the current organization, optionally opting out of marketing emails."""
    member = get_request_member(request)
    data = get_json_body(request)
    membership, created = Membership.objects.get_or_create(
        member=member, organization_id=request.organization["id"]
    )
    if "newsletter" in data:
        membership.newsletter = bool(data["newsletter"])
        membership.save()
    return JsonResponse(
        {"organization": request.organization["slug"], "status": membership.status, "newsletter": membership.newsletter},
        status=201 if created else 200,
    )
