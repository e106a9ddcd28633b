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

from pathlib import Path
from typing import Any

import yaml
from django.core.management.base import BaseCommand
from django.db import transaction

from tradeconnect.models.access import EventPermission, OrganizationPermission, PermissionModule

FIXTURE_PATH = Path(__file__).resolve().parent.parent.parent / "fixtures" / "permissions.yaml"


class Command(BaseCommand):
    help = "Reload permission modules and permissions from yaml"

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: ARG002
        """Create or update the permission modules, organization and event permissions.

        Permissions are matched by slug, so running the command again only
        refreshes names and descriptions.
        """
        with FIXTURE_PATH.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)

        created = 0
        with transaction.atomic():
            for entry in data:
                module, _ = PermissionModule.objects.update_or_create(
                    slug=entry["module"], defaults={"name": entry["name"], "order": entry["order"]}
                )
                for model, key in [(OrganizationPermission, "organization"), (EventPermission, "event")]:
                    for permission in entry.get(key, []):
                        _, is_new = model.objects.update_or_create(
                            slug=permission["slug"],
                            defaults={"name": permission["name"], "descr": permission["descr"], "module": module},
                        )
                        created += int(is_new)

        self.stdout.write(f"Permissions loaded, {created} new")
