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

from datetime import timedelta
from io import StringIO
from unittest.mock import Mock, patch

from django.core import mail
from django.core.management import call_command
from django.utils import timezone

from tradeconnect.management.commands.automate import Command
from tradeconnect.models.access import EventPermission, OrganizationPermission, PermissionModule
from tradeconnect.models.event import EventStatus
from tradeconnect.models.registration import CapacityLock, LockStatus
from tradeconnect.tests.unit.base import BaseTestCase


class TestAutomate(BaseTestCase):
    def test_runs_every_job(self):
        now = timezone.now()
        past = self.create_event(slug="past", start=now - timedelta(days=2), end=now - timedelta(days=1))
        lock = CapacityLock.objects.create(event=self.event(), quantity=1, expires_at=now - timedelta(minutes=1))
        out = StringIO()

        call_command("automate", stdout=out)

        output = out.getvalue()
        assert "expire_reservations: 1" in output
        assert "complete_past_events: 1" in output
        assert "purge_expired_nit_validations: 0" in output
        assert "purge_expired_cui_validations: 0" in output
        lock.refresh_from_db()
        past.refresh_from_db()
        assert lock.status == LockStatus.EXPIRED
        assert past.status == EventStatus.COMPLETED

    def test_failing_job_does_not_stop_others(self):
        jobs = [("broken", Mock(side_effect=RuntimeError("boom"))), ("working", Mock(return_value=3))]
        out = StringIO()

        with patch.object(Command, "jobs", jobs):
            call_command("automate", stdout=out)

        assert "working: 3" in out.getvalue()
        assert "broken" not in out.getvalue()
        assert mail.outbox[0].subject == "Automate broken"


class TestInitPermissions(BaseTestCase):
    def test_load(self):
        out = StringIO()

        call_command("init_permissions", stdout=out)
        call_command("init_permissions", stdout=out)

        assert PermissionModule.objects.filter(slug="event").exists()
        assert OrganizationPermission.objects.filter(slug="manage_event").exists()
        assert EventPermission.objects.filter(slug="validate_qr").exists()
        assert out.getvalue().strip().endswith("Permissions loaded, 0 new")
