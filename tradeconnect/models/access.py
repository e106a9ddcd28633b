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

from django.db import models
from django.db.models import Q, QuerySet, UniqueConstraint

from tradeconnect.models.base import AlphanumericValidator, BaseModel
from tradeconnect.models.event import Event
from tradeconnect.models.member import Member
from tradeconnect.models.organization import Organization


class PermissionModule(BaseModel):
    name = models.CharField(max_length=100)

    slug = models.SlugField(max_length=100, validators=[AlphanumericValidator], db_index=True, unique=True)

    order = models.IntegerField(default=0)


class OrganizationPermission(BaseModel):
    name = models.CharField(max_length=100)

    slug = models.SlugField(max_length=100, validators=[AlphanumericValidator], unique=True)

    number = models.IntegerField(default=0)

    module = models.ForeignKey(PermissionModule, on_delete=models.CASCADE, related_name="organization_permissions")

    descr = models.CharField(max_length=1000, blank=True)

    class Meta:
        ordering: ClassVar[list] = ["module__order", "number"]
        indexes: ClassVar[list] = [
            models.Index(fields=["slug"], condition=Q(deleted__isnull=True), name="operm_slug_act"),
        ]


class OrganizationRole(BaseModel):
    name = models.CharField(max_length=100)

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="roles")

    number = models.IntegerField(blank=True)

    members = models.ManyToManyField(Member, related_name="organization_roles", blank=True)

    permissions = models.ManyToManyField(OrganizationPermission, related_name="roles", blank=True)

    class Meta:
        constraints: ClassVar[list] = [
            UniqueConstraint(
                fields=["organization", "number", "deleted"],
                name="unique_organization_role_with_optional",
            ),
            UniqueConstraint(
                fields=["organization", "number"],
                condition=Q(deleted=None),
                name="unique_organization_role_without_optional",
            ),
        ]

    def as_dict(self) -> dict:
        return {
            "number": self.number,
            "name": self.name,
            "permissions": list(self.permissions.values_list("slug", flat=True)),
            "members": [member.id for member in self.members.all()],
        }


def get_organization_admins(organization: Organization) -> QuerySet[Member]:
    """Get all administrators of an organization.

    Args:
        organization: The organization to get administrators from.

    Returns:
        QuerySet of members assigned to the admin role (number 1).
    """
    admin_role = OrganizationRole.objects.get(organization=organization, number=1)
    return admin_role.members.all()


class EventPermission(BaseModel):
    name = models.CharField(max_length=100)

    slug = models.SlugField(max_length=100, validators=[AlphanumericValidator], unique=True)

    number = models.IntegerField(default=0)

    module = models.ForeignKey(PermissionModule, on_delete=models.CASCADE, related_name="event_permissions")

    descr = models.CharField(max_length=1000, blank=True)

    class Meta:
        ordering: ClassVar[list] = ["module__order", "number"]
        indexes: ClassVar[list] = [
            models.Index(fields=["slug"], condition=Q(deleted__isnull=True), name="eperm_slug_act"),
        ]


class EventRole(BaseModel):
    name = models.CharField(max_length=100)

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="roles")

    number = models.IntegerField(blank=True)

    members = models.ManyToManyField(Member, related_name="event_roles", blank=True)

    permissions = models.ManyToManyField(EventPermission, related_name="roles", blank=True)

    _clone_m2m_fields: ClassVar[list] = ["permissions"]

    class Meta:
        indexes: ClassVar[list] = [models.Index(fields=["number", "event"])]
        constraints: ClassVar[list] = [
            UniqueConstraint(
                fields=["event", "number", "deleted"],
                name="unique_event_role_with_optional",
            ),
            UniqueConstraint(
                fields=["event", "number"],
                condition=Q(deleted=None),
                name="unique_event_role_without_optional",
            ),
        ]

    def as_dict(self) -> dict:
        return {
            "number": self.number,
            "name": self.name,
            "permissions": list(self.permissions.values_list("slug", flat=True)),
            "members": [member.id for member in self.members.all()],
        }


def get_event_organizers(event: Event) -> QuerySet[Member]:
    """Get all organizer members of an event (event role number 1)."""
    organizer_role = EventRole.objects.get(event=event, number=1)
    return organizer_role.members.all()
