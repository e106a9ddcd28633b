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

import pytest
from django.contrib.auth.models import AnonymousUser
from django.test import RequestFactory

from tradeconnect.cache.role import (
    check_event_permission,
    get_member_permissions,
    has_event_permission,
    has_organization_permission,
)
from tradeconnect.tests.unit.base import BaseTestCase
from tradeconnect.utils.core.exceptions import UserPermissionError


class TestPermissions(BaseTestCase):
    def request(self, member=None):
        request = RequestFactory().get("/")
        request.user = member.user if member else AnonymousUser()
        request.organization = {"id": self.organization().id}
        return request

    def test_anonymous(self):
        assert not has_organization_permission(self.request(), "manage_events")
        assert not has_event_permission(self.request(), self.event(), "checkin_scan")

    def test_no_roles(self):
        assert not has_organization_permission(self.request(self.member()), "manage_events")

    def test_admin_holds_everything(self):
        self.make_admin()

        assert has_organization_permission(self.request(self.member()), "anything")
        assert has_event_permission(self.request(self.member()), self.event(), "anything")

    def test_superuser(self):
        member = self.member()
        member.user.is_superuser = True
        member.user.save()

        assert has_organization_permission(self.request(member), "manage_events")

    def test_organization_permission(self):
        self.grant_organization_permission(self.member(), "manage_events")

        request = self.request(self.member())
        assert has_organization_permission(request, "manage_events")
        assert not has_organization_permission(request, "manage_accounting")

    def test_organization_grant_applies_to_events(self):
        self.grant_organization_permission(self.member(), "checkin_scan")

        assert has_event_permission(self.request(self.member()), self.event(), "checkin_scan")

    def test_event_permission_scoped_to_event(self):
        self.grant_event_permission(self.member(), "checkin_scan")
        other = self.create_event(slug="other")

        request = self.request(self.member())
        assert has_event_permission(request, self.event(), "checkin_scan")
        assert not has_event_permission(request, other, "checkin_scan")
        with pytest.raises(UserPermissionError):
            check_event_permission(request, other, "checkin_scan")

    def test_organizer(self):
        self.event().roles.get(number=1).members.add(self.member())

        assert has_event_permission(self.request(self.member()), self.event(), "manage_capacity")
        assert not has_organization_permission(self.request(self.member()), "manage_capacity")

    def test_summary(self):
        self.grant_organization_permission(self.member(), "manage_events")
        self.grant_event_permission(self.member(), "checkin_scan")

        summary = get_member_permissions(self.request(self.member()), self.event())

        assert summary["is_admin"] is False
        assert summary["permissions"] == ["manage_events"]
        assert summary["event"]["permissions"] == ["checkin_scan"]
        assert summary["event"]["is_organizer"] is False
