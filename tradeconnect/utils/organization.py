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

from cryptography.fernet import Fernet
from django.db.models import Max

from tradeconnect.models.access import EventRole, OrganizationRole
from tradeconnect.models.event import Event
from tradeconnect.models.organization import Organization


def generate_organization_encryption_key(organization: Organization) -> None:
    """Generate the Fernet key used to encrypt the QR payloads of the organization."""
    if not organization.key:
        organization.key = Fernet.generate_key()


def auto_assign_permission_number(permission) -> None:
    """Number a permission after the highest one of its module, in steps of ten."""
    if permission.number:
        return
    max_number = permission.__class__.objects.filter(module=permission.module).aggregate(Max("number"))["number__max"]
    permission.number = (max_number or 0) + 10


def setup_organization_admin_role(organization: Organization, created: bool) -> None:
    """Create the admin role (number 1) of a new organization."""
    if not created:
        return
    OrganizationRole.objects.get_or_create(organization=organization, number=1, defaults={"name": "Admin"})


def setup_event_organizer_role(event: Event, created: bool) -> None:
    """Create the organizer role (number 1) of a new event."""
    if not created:
        return
    EventRole.objects.get_or_create(event=event, number=1, defaults={"name": "Organizer"})
