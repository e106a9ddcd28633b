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

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings as conf_settings
from django.core.cache import cache

from tradeconnect.models.access import EventRole, OrganizationRole
from tradeconnect.utils.core.exceptions import UserPermissionError

if TYPE_CHECKING:
    from django.http import HttpRequest

    from tradeconnect.models.event import Event


def is_platform_admin(request: HttpRequest) -> bool:
    """Superusers bypass every role check."""
    return request.user.is_authenticated and request.user.is_superuser


def cache_organization_role_key(organization_role_id: int) -> str:
    return f"organization_role_{organization_role_id}"


def get_organization_role(role: OrganizationRole) -> tuple[str, list[str]]:
    """Get organization role name and permission slugs."""
    return role.name, list(role.permissions.values_list("slug", flat=True))


def get_cache_organization_role(role_id: int) -> tuple[str, list[str]]:
    """Get cached organization role data by ID.

    Args:
        role_id: The organization role ID to retrieve.

    Returns:
        Tuple of role name and permission slugs.

    Raises:
        UserPermissionError: If the organization role cannot be found.
    """
    cache_key = cache_organization_role_key(role_id)
    cached_result = cache.get(cache_key)

    if cached_result is None:
        try:
            role = OrganizationRole.objects.get(pk=role_id)
        except OrganizationRole.DoesNotExist as err:
            raise UserPermissionError from err

        cached_result = get_organization_role(role)
        cache.set(cache_key, cached_result, timeout=conf_settings.CACHE_TIMEOUT_1_DAY)

    return cached_result


def remove_organization_role_cache(organization_role_id: int) -> None:
    cache.delete(cache_organization_role_key(organization_role_id))


def get_organization_roles(request: HttpRequest, organization_id: int) -> tuple[bool, dict[str, int], list[str]]:
    """Get organization roles and permissions for the current user.

    Args:
        request: Django HTTP request object containing user information
        organization_id: Organization whose roles are looked up

    Returns:
        tuple: A 3-tuple containing:
            - bool: True if user is admin (role 1) or superuser, False otherwise
            - dict: Mapping of permission slugs to integer values (1 for granted)
            - list: List of role names assigned to the user
    """
    if is_platform_admin(request):
        return True, {}, ["superuser"]

    permissions = {}
    role_names = []
    is_admin = False

    if not hasattr(request.user, "member"):
        return is_admin, permissions, role_names

    member_roles = OrganizationRole.objects.filter(
        organization_id=organization_id, members=request.user.member
    ).values_list("id", "number")

    for role_id, role_number in member_roles:
        # Role number 1 indicates admin privileges
        if role_number == 1:
            is_admin = True

        (role_name, permission_slugs) = get_cache_organization_role(role_id)
        role_names.append(role_name)
        for permission_slug in permission_slugs:
            permissions[permission_slug] = 1

    return is_admin, permissions, role_names


def has_organization_permission(request: HttpRequest, permission: str, organization_id: int | None = None) -> bool:
    """Check if the user has the specified organization permission.

    Admin users (role number 1) and superusers hold every permission.
    """
    if not request.user.is_authenticated:
        return False

    if organization_id is None:
        organization_id = request.organization["id"]

    (is_admin, user_permissions, role_names) = get_organization_roles(request, organization_id)
    if is_admin:
        return True

    if not permission:
        return bool(role_names)

    return permission in user_permissions


def check_organization_permission(request: HttpRequest, permission: str) -> None:
    if not has_organization_permission(request, permission):
        raise UserPermissionError(permission)


def cache_event_role_key(event_role_id: int) -> str:
    """Return cache key for event role assignment."""
    return f"event_role_{event_role_id}"


def get_event_role(role: EventRole) -> tuple[str, list[str]]:
    return role.name, list(role.permissions.values_list("slug", flat=True))


def get_cache_event_role(role_id: int) -> tuple[str, list[str]]:
    """Get cached event role data by ID, raising UserPermissionError when missing."""
    cache_key = cache_event_role_key(role_id)
    cached_result = cache.get(cache_key)

    if cached_result is None:
        try:
            role = EventRole.objects.get(pk=role_id)
        except EventRole.DoesNotExist as err:
            raise UserPermissionError from err

        cached_result = get_event_role(role)
        cache.set(cache_key, cached_result, timeout=conf_settings.CACHE_TIMEOUT_1_DAY)

    return cached_result


def remove_event_role_cache(event_role_id: int) -> None:
    cache.delete(cache_event_role_key(event_role_id))


def get_event_roles(request: HttpRequest, event: Event) -> tuple[bool, dict[str, int], list[str]]:
    """Get event roles and permissions for the current user.

    Returns:
        tuple: (is organizer or superuser, granted permission slugs, role names)
    """
    if is_platform_admin(request):
        return True, {}, ["superuser"]

    permissions = {}
    role_names = []
    is_organizer = False

    if not hasattr(request.user, "member"):
        return is_organizer, permissions, role_names

    member_roles = EventRole.objects.filter(event=event, members=request.user.member).values_list("id", "number")
    for role_id, role_number in member_roles:
        if role_number == 1:
            is_organizer = True

        (role_name, permission_slugs) = get_cache_event_role(role_id)
        role_names.append(role_name)
        for permission_slug in permission_slugs:
            permissions[permission_slug] = 1

    return is_organizer, permissions, role_names


def has_event_permission(request: HttpRequest, event: Event, permission: str) -> bool:
    """Check if the user has the specified permission on an event.

    Organization-level grants of the same permission apply to every event of the
    organization; event organizers (role number 1) hold every event permission.
    """
    if not request.user.is_authenticated:
        return False

    if has_organization_permission(request, permission, event.organization_id):
        return True

    (is_organizer, user_permissions, _role_names) = get_event_roles(request, event)
    if is_organizer:
        return True

    return permission in user_permissions


def check_event_permission(request: HttpRequest, event: Event, permission: str) -> None:
    if not has_event_permission(request, event, permission):
        raise UserPermissionError(permission)


def get_member_permissions(request: HttpRequest, event: Event | None = None) -> dict:
    """Summarize the roles and permissions of the current user, for the dashboard."""
    (is_admin, permissions, role_names) = get_organization_roles(request, request.organization["id"])
    result = {"is_admin": is_admin, "roles": role_names, "permissions": sorted(permissions)}

    if event:
        (is_organizer, event_permissions, event_role_names) = get_event_roles(request, event)
        result["event"] = {
            "is_organizer": is_organizer,
            "roles": event_role_names,
            "permissions": sorted(event_permissions),
        }

    return result
