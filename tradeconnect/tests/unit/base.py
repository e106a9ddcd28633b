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

"""Base test case for unit tests with common methods"""

import json
from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth.models import User
from django.test import Client
from django.utils import timezone

from tradeconnect.models.access import EventPermission, EventRole, OrganizationPermission, OrganizationRole, PermissionModule
from tradeconnect.models.event import AccessType, Capacity, Event, EventStatus
from tradeconnect.models.member import Member
from tradeconnect.models.organization import Organization
from tradeconnect.models.promotion import DiscountType, PromoCode
from tradeconnect.models.registration import Registration, RegistrationStatus


@pytest.mark.django_db
class BaseTestCase:
    """Base test case with common test object accessors"""

    def organization(self):
        """Get the first organization, or create one"""
        organization = Organization.objects.filter(slug="acme").first()
        if not organization:
            organization = self.create_organization()
        return organization

    def member(self):
        """Get the default member, or create one"""
        member = Member.objects.filter(user__username="testuser").first()
        if not member:
            member = self.create_member()
        return member

    def event(self):
        """Get the default published event, or create one"""
        event = Event.objects.filter(slug="expo").first()
        if not event:
            event = self.create_event()
        return event

    # Helper methods for creating specific test objects when needed
    def create_organization(self, **kwargs):
        """Create a new organization with defaults"""
        defaults = {
            "name": "Acme Expo",
            "slug": "acme",
            "main_mail": "info@acme.test",
            "fiscal_nit": "12345679",
            "fiscal_name": "Acme Expo S.A.",
            "fiscal_address": "Zona 10",
        }
        defaults.update(kwargs)
        return Organization.objects.create(**defaults)

    def create_member(self, username="testuser", **kwargs):
        """Create a user with defaults; its member profile comes from the post save signal"""
        defaults = {
            "email": f"{username}@example.com",
            "first_name": "Test",
            "last_name": "User",
        }
        defaults.update(kwargs)
        user = User.objects.create_user(username=username, password="secret", **defaults)
        return user.member

    def create_event(self, organization=None, **kwargs):
        """Create a published event running now, with defaults"""
        if organization is None:
            organization = self.organization()
        now = timezone.now()
        defaults = {
            "name": "Trade Expo",
            "slug": "expo",
            "organization": organization,
            "start": now - timedelta(minutes=10),
            "end": now + timedelta(days=1),
            "price": Decimal("100.00"),
            "status": EventStatus.PUBLISHED,
            "published_at": now,
        }
        defaults.update(kwargs)
        return Event.objects.create(**defaults)

    def create_capacity(self, event=None, **kwargs):
        if event is None:
            event = self.event()
        defaults = {"event": event, "total": 10}
        defaults.update(kwargs)
        return Capacity.objects.create(**defaults)

    def create_access_type(self, event=None, **kwargs):
        if event is None:
            event = self.event()
        defaults = {"event": event, "name": "General", "price": Decimal("50.00")}
        defaults.update(kwargs)
        return AccessType.objects.create(**defaults)

    def create_registration(self, event=None, member=None, **kwargs):
        """Create a registration directly, bypassing capacity checks"""
        if event is None:
            event = self.event()
        if member is None:
            member = self.member()
        defaults = {
            "event": event,
            "member": member,
            "status": RegistrationStatus.CONFIRMED,
            "quantity": 1,
            "base_amount": Decimal("100.00"),
            "total": Decimal("100.00"),
        }
        defaults.update(kwargs)
        return Registration.objects.create(**defaults)

    def create_promo_code(self, organization=None, **kwargs):
        if organization is None:
            organization = self.organization()
        defaults = {
            "organization": organization,
            "code": "SAVE10",
            "discount_type": DiscountType.PERCENTAGE,
            "value": Decimal("10"),
        }
        defaults.update(kwargs)
        return PromoCode.objects.create(**defaults)

    def make_admin(self, member=None, organization=None):
        """Add the member to the admin role of the organization"""
        member = member or self.member()
        organization = organization or self.organization()
        OrganizationRole.objects.get(organization=organization, number=1).members.add(member)
        return member

    def grant_organization_permission(self, member, slug, organization=None):
        """Give the member a role holding a single organization permission"""
        organization = organization or self.organization()
        module, _ = PermissionModule.objects.get_or_create(slug="test", defaults={"name": "Test"})
        permission, _ = OrganizationPermission.objects.get_or_create(
            slug=slug, defaults={"name": slug, "module": module}
        )
        role = OrganizationRole.objects.create(organization=organization, name=f"Role {slug}")
        role.permissions.add(permission)
        role.members.add(member)
        return role

    def grant_event_permission(self, member, slug, event=None):
        """Give the member an event role holding a single event permission"""
        event = event or self.event()
        module, _ = PermissionModule.objects.get_or_create(slug="test", defaults={"name": "Test"})
        permission, _ = EventPermission.objects.get_or_create(slug=slug, defaults={"name": slug, "module": module})
        role = EventRole.objects.create(event=event, name=f"Role {slug}")
        role.permissions.add(permission)
        role.members.add(member)
        return role

    def api_client(self, member=None):
        """Client bound to the default organization, logged in as the member if given"""
        client = Client(HTTP_X_ORGANIZATION=self.organization().slug)
        if member is not None:
            client.force_login(member.user)
        return client

    @staticmethod
    def post_json(client, url, data=None):
        return client.post(url, data=json.dumps(data or {}), content_type="application/json")
