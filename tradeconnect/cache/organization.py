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

from tradeconnect.models.member import MembershipStatus
from tradeconnect.models.organization import Organization

if TYPE_CHECKING:
    from tradeconnect.models.member import Member


def cache_organization_key(slug: str) -> str:
    return f"organization_{slug}"


def get_cache_organization(slug: str) -> dict | None:
    """Get cached organization data for a slug.

    Args:
        slug: Organization slug identifier

    Returns:
        Organization data dictionary, or None if no organization has that slug
    """
    if not slug:
        return None

    key = cache_organization_key(slug)
    organization_data = cache.get(key)
    if organization_data is None:
        organization_data = init_cache_organization(slug)
        if not organization_data:
            return None
        cache.set(key, organization_data, timeout=conf_settings.CACHE_TIMEOUT_1_DAY)
    return organization_data


def init_cache_organization(slug: str) -> dict | None:
    organization = Organization.objects.filter(slug=slug).first()
    if not organization:
        return None
    return organization.as_dict()


def clear_organization_cache(organization: Organization) -> None:
    cache.delete(cache_organization_key(organization.slug))


def get_member_organizations(member: Member) -> list[dict]:
    """Return the organizations the member joined, as cached dictionaries."""
    slugs = member.memberships.filter(status=MembershipStatus.JOINED).values_list("organization__slug", flat=True)
    return [data for data in (get_cache_organization(slug) for slug in slugs) if data]
