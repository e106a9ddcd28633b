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

import json
import logging
from typing import Any

from django.core.exceptions import ObjectDoesNotExist
from django.core.serializers.json import DjangoJSONEncoder
from django.http import HttpRequest, JsonResponse

from tradeconnect.models.event import AccessType, Event
from tradeconnect.models.member import Log, Member, MembershipStatus
from tradeconnect.utils.core.exceptions import NotFoundError, ReturnNowError, UserPermissionError

logger = logging.getLogger(__name__)


def save_log(member: Member | None, cls: type, element: Any, organization_id: int | None = None) -> None:
    """Create a log entry for model instance changes."""
    if organization_id is None:
        organization_id = getattr(element, "organization_id", None)
    Log.objects.create(
        member=member,
        organization_id=organization_id,
        cls=cls.__name__,
        eid=element.id,
        dct=json.dumps(element.as_dict(), cls=DjangoJSONEncoder),
    )


def get_client_ip(request: HttpRequest) -> str | None:
    """Return the client address, honouring the first X-Forwarded-For hop."""
    forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


def get_json_body(request: HttpRequest) -> dict:
    """Parse the JSON body of an API request.

    Raises:
        ReturnNowError: With a 400 response if the body is not a JSON object
    """
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError) as err:
        raise ReturnNowError(
            JsonResponse({"error": "invalid_json", "message": "Request body is not valid JSON"}, status=400)
        ) from err
    if not isinstance(data, dict):
        raise ReturnNowError(
            JsonResponse({"error": "invalid_json", "message": "Request body must be a JSON object"}, status=400)
        )
    return data


def check_form(form) -> None:
    """Stop the view with a 400 response listing the errors of an invalid form."""
    if not form.is_valid():
        raise ReturnNowError(
            JsonResponse(
                {"error": "validation_error", "message": "Invalid data", "details": form.errors.get_json_data()},
                status=400,
            )
        )


def get_member(member_id: int) -> Member:
    """Get member by ID.

    Raises:
        NotFoundError: If member does not exist
    """
    try:
        return Member.objects.get(pk=member_id)
    except ObjectDoesNotExist as err:
        msg = "Member does not exist"
        raise NotFoundError(msg) from err


def get_organization_member(request: HttpRequest, member_id: Any) -> Member:
    """Raises NotFoundError if the member did not join the organization."""
    try:
        return Member.objects.get(
            pk=member_id,
            memberships__organization_id=request.organization["id"],
            memberships__status=MembershipStatus.JOINED,
        )
    except (ObjectDoesNotExist, TypeError, ValueError) as err:
        msg = "Member does not exist"
        raise NotFoundError(msg) from err


def get_request_member(request: HttpRequest) -> Member:
    """Return the member of the logged user.

    Raises:
        UserPermissionError: If the user is anonymous or has no member profile
    """
    if not request.user.is_authenticated or not hasattr(request.user, "member"):
        raise UserPermissionError
    return request.user.member


def get_event(request: HttpRequest, slug: str) -> Event:
    """Get an event of the current organization by slug.

    Raises:
        NotFoundError: If no event with that slug belongs to the organization
    """
    try:
        return Event.objects.select_related("organization").get(slug=slug, organization_id=request.organization["id"])
    except ObjectDoesNotExist as err:
        msg = "Event does not exist"
        raise NotFoundError(msg) from err


def get_object(model: type, request: HttpRequest, pk: Any, **filters: Any) -> Any:
    """Get an instance of a model bound to the current organization.

    Raises:
        NotFoundError: If the element does not exist or belongs to another organization
    """
    if any(field.name == "organization" for field in model._meta.get_fields()):
        filters["organization_id"] = request.organization["id"]
    else:
        filters["event__organization_id"] = request.organization["id"]
    try:
        return model.objects.get(pk=pk, **filters)
    except (ObjectDoesNotExist, ValueError) as err:
        msg = f"{model.__name__} does not exist"
        raise NotFoundError(msg) from err


def get_access_type(event: Event, number: Any) -> AccessType | None:
    """Get an access type of the event by number, None when no number is given.

    Raises:
        NotFoundError: If the event has no active access type with that number
    """
    if number in (None, ""):
        return None
    try:
        return AccessType.objects.get(event=event, number=int(number))
    except (ObjectDoesNotExist, TypeError, ValueError) as err:
        msg = "Access type does not exist"
        raise NotFoundError(msg) from err


def get_quantity(data: dict, key: str = "quantity") -> int:
    """Read a positive quantity from the request data, 1 when missing.

    Raises:
        ReturnNowError: With a 400 response if the value is not a positive integer
    """
    try:
        quantity = int(data.get(key, 1))
    except (TypeError, ValueError):
        quantity = 0
    if quantity < 1:
        raise ReturnNowError(
            JsonResponse({"error": "invalid_quantity", "message": "Quantity must be a positive integer"}, status=400)
        )
    return quantity
