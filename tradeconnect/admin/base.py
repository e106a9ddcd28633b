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

from typing import TYPE_CHECKING, ClassVar

from admin_auto_filters.filters import AutocompleteFilter
from django.contrib import admin
from import_export.admin import ImportExportModelAdmin

from tradeconnect.models.access import PermissionModule
from tradeconnect.models.member import Log

if TYPE_CHECKING:
    from django.db.models import QuerySet
    from django.http import HttpRequest

# Lookup from each model to its organization, checked in order
ORGANIZATION_LOOKUPS = [
    ("organization", "organization_id"),
    ("event", "event__organization_id"),
    ("registration", "registration__event__organization_id"),
    ("invoice", "invoice__organization_id"),
    ("campaign", "campaign__organization_id"),
    ("promo_code", "promo_code__organization_id"),
]


class DefModelAdmin(ImportExportModelAdmin):
    """Base admin class with import/export and organization filtering.

    Superusers see every object. Other staff users see only the objects of
    the organizations where they hold the admin role; models that cannot be
    traced back to an organization are hidden from them.
    """

    ordering: ClassVar[list] = ["-updated"]

    def _get_organization_lookup(self) -> str | None:
        model_fields = {f.name for f in self.model._meta.get_fields()}  # noqa: SLF001
        for field, lookup in ORGANIZATION_LOOKUPS:
            if field in model_fields:
                return lookup
        return None

    def _get_admin_organizations(self, request: HttpRequest) -> list[int]:
        if not hasattr(request.user, "member"):
            return []
        return list(
            request.user.member.organization_roles.filter(number=1).values_list(
                "organization_id", flat=True
            )
        )

    def get_queryset(self, request: HttpRequest) -> QuerySet:
        qs = super().get_queryset(request)
        if request.user.is_superuser:
            return qs

        lookup = self._get_organization_lookup()
        organization_ids = self._get_admin_organizations(request)
        if not lookup or not organization_ids:
            return qs.none()

        return qs.filter(**{f"{lookup}__in": organization_ids})

    def has_module_permission(self, request: HttpRequest) -> bool:
        if request.user.is_superuser:
            return super().has_module_permission(request)

        if not self._get_organization_lookup() or not self._get_admin_organizations(request):
            return False

        return super().has_module_permission(request)


def reduced(value: str | None) -> str:
    """Truncate string to maximum length with ellipsis."""
    max_length = 50
    if not value or len(value) < max_length:
        return value
    return value[:max_length] + "[...]"


class OrganizationFilter(AutocompleteFilter):
    title = "Organization"
    field_name = "organization"


class EventFilter(AutocompleteFilter):
    title = "Event"
    field_name = "event"


class MemberFilter(AutocompleteFilter):
    title = "Member"
    field_name = "member"


class RegistrationFilter(AutocompleteFilter):
    title = "Registration"
    field_name = "registration"


@admin.register(Log)
class LogAdmin(DefModelAdmin):
    list_display: ClassVar[tuple] = ("member", "organization", "cls", "eid", "created")
    search_fields = ("cls", "dct")
    list_filter = (OrganizationFilter,)
    autocomplete_fields: ClassVar[list] = ["member", "organization"]


@admin.register(PermissionModule)
class PermissionModuleAdmin(DefModelAdmin):
    list_display = ("name", "slug", "order")
    search_fields: ClassVar[list] = ["name"]
