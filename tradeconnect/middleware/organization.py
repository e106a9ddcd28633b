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

from typing import TYPE_CHECKING, Any

from django.conf import settings as conf_settings

from tradeconnect.cache.organization import get_cache_organization
from tradeconnect.middleware.exception import error_response

if TYPE_CHECKING:
    from collections.abc import Callable

    from django.http import HttpRequest, HttpResponse

ORGANIZATION_HEADER = "X-Organization"


class OrganizationIdentifyMiddleware:
    """Middleware to identify the organization (tenant) of each request.

    The tenant slug comes from the SLUG_ORGANIZATION setting, the
    X-Organization header, or the request subdomain, in this order.
    """

    def __init__(self, get_response: Callable) -> None:
        """Initialize middleware with Django response handler."""
        self.get_response = get_response

    def __call__(self, request: Any) -> Any:
        return self.get_organization_info(request) or self.get_response(request)

    @staticmethod
    def get_organization_slug(request: HttpRequest) -> str:
        configured_slug = getattr(conf_settings, "SLUG_ORGANIZATION", None)
        if configured_slug:
            return configured_slug

        header_slug = request.headers.get(ORGANIZATION_HEADER)
        if header_slug:
            return header_slug.strip().lower()

        request_host = request.get_host().split(":")[0]
        return request_host.split(".")[0]

    @classmethod
    def get_organization_info(cls, request: HttpRequest) -> HttpResponse | None:
        """Load the tenant data into request.organization.

        Returns:
            JsonResponse: If an API request cannot be bound to an organization
            None: Continue processing
        """
        request.organization = get_cache_organization(cls.get_organization_slug(request))
        if request.organization:
            return None

        # Admin panel is reachable without a tenant
        if request.path.startswith("/admin"):
            return None

        return error_response("unknown_organization", "Organization not found", 404)
